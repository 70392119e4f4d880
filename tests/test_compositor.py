from __future__ import annotations

import zlib
from typing import Callable

import pytest
from pypdf.generic import ArrayObject, DictionaryObject, NameObject, NullObject, StreamObject

from pdf_clean_margins.cloner import IdentityMap
from pdf_clean_margins.compositor import (
    build_output_page,
    content_program,
    import_page_as_form,
    page_content,
)
from pdf_clean_margins.config import AssemblySettings
from pdf_clean_margins.document import Document, as_object_id
from pdf_clean_margins.exceptions import (
    DanglingReferenceError,
    PageContentError,
    PageNotFoundError,
)


def test_import_page_as_form(source_document: Document) -> None:
    destination = Document()

    form_id = import_page_as_form(destination, source_document, 1)
    form = destination.get(form_id)

    assert form["/Type"] == "/XObject"
    assert form["/Subtype"] == "/Form"
    assert form["/FormType"] == 1
    assert list(form["/BBox"]) == [0, 0, 595, 842]
    assert form.get_data() == b"BT /F1 12 Tf 72 720 Td (Page 1) Tj ET"

    font_ref = form["/Resources"]["/Font"].get("/F1")
    assert font_ref.pdf is destination
    assert destination.get(as_object_id(font_ref))["/BaseFont"] == "/Helvetica"
    assert destination.dangling_references() == []


def test_page_without_resources_gets_empty_set(
    document_factory: Callable[..., Document],
) -> None:
    source = document_factory(page_count=1, resources=False)
    destination = Document()

    form = destination.get(import_page_as_form(destination, source, 0))

    assert form["/Resources"] == {}
    assert len(destination) == 1


def test_null_resources_treated_as_absent(source_document: Document) -> None:
    source_document.page(0)[NameObject("/Resources")] = NullObject()
    destination = Document()

    form = destination.get(import_page_as_form(destination, source_document, 0))

    assert form["/Resources"] == {}


def test_inherited_resources_follow_parent(
    document_factory: Callable[..., Document],
) -> None:
    source = document_factory(page_count=1)
    page = source.page(0)
    resources = page["/Resources"]
    del page["/Resources"]
    pages = source.resolve(page.get("/Parent"))
    pages[NameObject("/Resources")] = resources
    destination = Document()

    form = destination.get(import_page_as_form(destination, source, 0))

    font_ref = form["/Resources"]["/Font"].get("/F1")
    assert destination.get(as_object_id(font_ref))["/BaseFont"] == "/Helvetica"


def test_missing_page_leaves_destination_untouched(source_document: Document) -> None:
    destination = Document()
    destination.add(NameObject("/Existing"))
    before = dict(destination.objects)

    with pytest.raises(PageNotFoundError) as excinfo:
        import_page_as_form(destination, source_document, 7)

    assert "Page 7 not found" in str(excinfo.value)
    assert destination.objects == before


def test_shared_identity_map_reuses_resources(source_document: Document) -> None:
    destination = Document()
    identity_map = IdentityMap()

    first = destination.get(import_page_as_form(destination, source_document, 0, identity_map=identity_map))
    second = destination.get(import_page_as_form(destination, source_document, 1, identity_map=identity_map))

    first_font = as_object_id(first["/Resources"]["/Font"].get("/F1"))
    second_font = as_object_id(second["/Resources"]["/Font"].get("/F1"))
    assert first_font == second_font


def test_content_array_is_concatenated() -> None:
    source = Document()
    compressed = StreamObject.initialize_from_dictionary(
        {NameObject("/Filter"): NameObject("/FlateDecode"), "__streamdata__": zlib.compress(b"0 0 m")}
    )
    plain = StreamObject.initialize_from_dictionary({"__streamdata__": b"10 10 l S"})
    page = DictionaryObject(
        {
            NameObject("/Contents"): ArrayObject(
                [source.reference(source.add(compressed)), source.reference(source.add(plain))]
            )
        }
    )

    assert page_content(source, page) == b"0 0 m\n10 10 l S"
    assert compressed.decoded_self is None


def test_page_without_contents_is_empty() -> None:
    assert page_content(Document(), DictionaryObject()) == b""


def test_non_stream_contents_are_rejected() -> None:
    source = Document()
    page = DictionaryObject({NameObject("/Contents"): source.reference(source.add(NameObject("/Oops")))})

    with pytest.raises(PageContentError):
        page_content(source, page)


def test_content_program_default() -> None:
    assert content_program(AssemblySettings()) == b"q\n/X0 Do\nQ\n"


def test_content_program_overlay() -> None:
    program = content_program(AssemblySettings(), overlay=True).decode("ascii").splitlines()

    assert program[:3] == ["q", "/X0 Do", "Q"]
    assert program[3:] == ["q", "1 0 0 rg", "148.75 210.5 297.5 421 re", "f", "Q"]


def test_content_program_transform() -> None:
    program = content_program(AssemblySettings(), transform=(1, 0, 0, 1, 10, 20.5))

    assert program == b"q\n1 0 0 1 10 20.5 cm\n/X0 Do\nQ\n"
    with pytest.raises(ValueError):
        content_program(AssemblySettings(), transform=(1, 0, 0))


def test_build_output_page(source_document: Document) -> None:
    destination = Document()
    form_id = import_page_as_form(destination, source_document, 0)

    page_id = build_output_page(destination, form_id, overlay=True)
    page = destination.get(page_id)

    assert page["/Type"] == "/Page"
    assert "/Parent" not in page
    assert list(page["/MediaBox"]) == [0, 0, 595, 842]
    assert as_object_id(page["/Resources"]["/XObject"].get("/X0")) == form_id
    assert page["/Contents"].get_data().endswith(b"re\nf\nQ\n")


def test_build_output_page_custom_settings(source_document: Document) -> None:
    settings = AssemblySettings(page_size=(612, 792), form_name="/Page0")
    destination = Document()
    form_id = import_page_as_form(destination, source_document, 0, settings=settings)

    page = destination.get(build_output_page(destination, form_id, settings=settings))

    assert list(page["/MediaBox"]) == [0, 0, 612, 792]
    assert list(destination.get(form_id)["/BBox"]) == [0, 0, 612, 792]
    assert "/Page0" in page["/Resources"]["/XObject"]
    assert page["/Contents"].get_data() == b"q\n/Page0 Do\nQ\n"


def test_build_output_page_requires_form() -> None:
    destination = Document()

    with pytest.raises(DanglingReferenceError):
        build_output_page(destination, destination.reserve())
