from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional
import sys

import pytest
from pypdf import PdfWriter
from pypdf.generic import (
    ArrayObject,
    DecodedStreamObject,
    DictionaryObject,
    NameObject,
    NumberObject,
)

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pdf_clean_margins.document import Document  # noqa: E402


def _font(base_font: str = "/Helvetica") -> DictionaryObject:
    return DictionaryObject(
        {
            NameObject("/Type"): NameObject("/Font"),
            NameObject("/Subtype"): NameObject("/Type1"),
            NameObject("/BaseFont"): NameObject(base_font),
        }
    )


def _content(text: bytes) -> DecodedStreamObject:
    stream = DecodedStreamObject()
    stream.set_data(text)
    return stream


@pytest.fixture()
def document_factory() -> Callable[..., Document]:
    """Build an in-memory source document with a shared font.

    Every page draws its index with ``/F1``, which points at one font object
    used by all pages. ``resources=False`` leaves ``/Resources`` off the pages.
    """

    def _create(page_count: int = 2, resources: bool = True) -> Document:
        document = Document(version="1.4")
        font_id = document.add(_font())
        pages_id = document.reserve()

        kids = ArrayObject()
        for index in range(page_count):
            content_id = document.add(
                _content(f"BT /F1 12 Tf 72 720 Td (Page {index}) Tj ET".encode())
            )
            page = DictionaryObject()
            page[NameObject("/Type")] = NameObject("/Page")
            page[NameObject("/Parent")] = document.reference(pages_id)
            page[NameObject("/MediaBox")] = ArrayObject(
                [NumberObject(0), NumberObject(0), NumberObject(612), NumberObject(792)]
            )
            page[NameObject("/Contents")] = document.reference(content_id)
            if resources:
                fonts = DictionaryObject({NameObject("/F1"): document.reference(font_id)})
                page[NameObject("/Resources")] = DictionaryObject({NameObject("/Font"): fonts})
            page_id = document.add(page)
            kids.append(document.reference(page_id))
            document.pages[index] = page_id

        pages = DictionaryObject()
        pages[NameObject("/Type")] = NameObject("/Pages")
        pages[NameObject("/Kids")] = kids
        pages[NameObject("/Count")] = NumberObject(page_count)
        document.insert(pages_id, pages)

        catalog = DictionaryObject()
        catalog[NameObject("/Type")] = NameObject("/Catalog")
        catalog[NameObject("/Pages")] = document.reference(pages_id)
        document.trailer[NameObject("/Root")] = document.reference(document.add(catalog))
        return document

    return _create


@pytest.fixture()
def source_document(document_factory: Callable[..., Document]) -> Document:
    return document_factory()


@pytest.fixture()
def pdf_factory(tmp_path: Path) -> Callable[..., Path]:
    def _create(filename: str = "source.pdf", page_count: int = 2, title: Optional[str] = None) -> Path:
        path = tmp_path / filename
        writer = PdfWriter()
        font_ref = writer._add_object(_font())
        for index in range(page_count):
            page = writer.add_blank_page(width=612, height=792)
            page[NameObject("/Contents")] = writer._add_object(
                _content(f"BT /F1 12 Tf 72 720 Td (Page {index}) Tj ET".encode())
            )
            page[NameObject("/Resources")] = DictionaryObject(
                {NameObject("/Font"): DictionaryObject({NameObject("/F1"): font_ref})}
            )
        if title is not None:
            writer.add_metadata({"/Title": title})
        with path.open("wb") as handle:
            writer.write(handle)
        return path

    return _create


@pytest.fixture()
def sample_pdf(pdf_factory: Callable[..., Path]) -> Path:
    return pdf_factory("sample.pdf", title="Sample")
