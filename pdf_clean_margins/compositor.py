"""Form XObject import and output page composition."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from pypdf.generic import (
    ArrayObject,
    DecodedStreamObject,
    DictionaryObject,
    FloatObject,
    NameObject,
    NullObject,
    NumberObject,
    PdfObject,
    StreamObject,
)

from .cloner import IdentityMap, ObjectGraphCloner
from .config import AssemblySettings
from .document import Document, stream_payload
from .exceptions import DanglingReferenceError, PageContentError, PageNotFoundError
from .types import ObjectId, Selection

LOGGER = logging.getLogger("pdf_clean_margins.compositor")

# Receives the selection an output page is built for and returns a
# six-element ``cm`` matrix, or ``None`` to draw the form untransformed.
MarginTransform = Callable[[Selection], Optional[Sequence[float]]]

MAX_INHERITANCE_DEPTH = 64


def _fmt(value: float) -> str:
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def _number(value: float) -> PdfObject:
    if float(value).is_integer():
        return NumberObject(int(value))
    return FloatObject(value)


def _rectangle(width: float, height: float) -> ArrayObject:
    return ArrayObject([NumberObject(0), NumberObject(0), _number(width), _number(height)])


def _decoded(stream: StreamObject) -> bytes:
    # Decode a detached copy so the source stream keeps no decode cache.
    detached = dict(stream)
    detached["__streamdata__"] = stream_payload(stream)
    return StreamObject.initialize_from_dictionary(detached).get_data()


def page_content(source: Document, page: DictionaryObject) -> bytes:
    """Return the decoded content of *page*, concatenating content arrays."""

    raw = page.get("/Contents")
    if raw is None:
        return b""

    contents = source.resolve(raw)
    if contents is None:
        raise DanglingReferenceError(f"Page contents {raw} missing from the source document.")
    if isinstance(contents, NullObject):
        return b""

    items = contents if isinstance(contents, ArrayObject) else [contents]
    chunks: List[bytes] = []
    for item in items:
        stream = source.resolve(item)
        if stream is None:
            raise DanglingReferenceError(f"Content stream {item} missing from the source document.")
        if not isinstance(stream, StreamObject):
            raise PageContentError(f"Page contents must be streams, found {type(stream).__name__}.")
        try:
            chunks.append(_decoded(stream))
        except Exception as exc:
            raise PageContentError(f"Unable to decode content stream {item}. Error: {exc}") from exc
    return b"\n".join(chunks)


def page_resources(source: Document, page: DictionaryObject) -> Optional[PdfObject]:
    """Return the raw ``/Resources`` entry of *page*, following ``/Parent``."""

    node = page
    for _ in range(MAX_INHERITANCE_DEPTH):
        resources = node.get("/Resources")
        if resources is not None:
            if isinstance(source.resolve(resources), NullObject):
                return None
            return resources
        parent = source.resolve(node.get("/Parent"))
        if not isinstance(parent, DictionaryObject):
            return None
        node = parent
    LOGGER.warning("Stopped resource lookup after %d /Parent levels", MAX_INHERITANCE_DEPTH)
    return None


def import_page_as_form(
    destination: Document,
    source: Document,
    page_number: int,
    *,
    identity_map: Optional[IdentityMap] = None,
    settings: Optional[AssemblySettings] = None,
) -> ObjectId:
    """Import page *page_number* of *source* into *destination* as a form XObject.

    The page resources are cloned through *identity_map*; a page without
    resources yields a form with an empty resource dictionary.

    Raises:
        PageNotFoundError: If *source* has no page *page_number*.
    """

    settings = settings or AssemblySettings()
    page = source.page(page_number)
    if page is None:
        raise PageNotFoundError(
            f"Page {page_number} not found. Source document has {source.page_count} page(s)."
        )

    content = page_content(source, page)

    raw_resources = page_resources(source, page)
    if raw_resources is None:
        LOGGER.debug("Page %d has no resources; using an empty set", page_number)
        resources: PdfObject = DictionaryObject()
    else:
        cloner = ObjectGraphCloner(
            source, destination, identity_map, max_depth=settings.max_depth
        )
        resources = cloner.clone_value(raw_resources)

    form = DecodedStreamObject()
    form.set_data(content)
    form[NameObject("/Type")] = NameObject("/XObject")
    form[NameObject("/Subtype")] = NameObject("/Form")
    form[NameObject("/FormType")] = NumberObject(1)
    form[NameObject("/BBox")] = _rectangle(*settings.page_size)
    form[NameObject("/Resources")] = resources

    form_id = destination.add(form)
    LOGGER.debug("Imported page %d as form %s (%d content bytes)", page_number, form_id, len(content))
    return form_id


def content_program(
    settings: AssemblySettings,
    overlay: bool = False,
    transform: Optional[Sequence[float]] = None,
) -> bytes:
    """Return the content stream that draws the form named in *settings*."""

    operations = ["q"]
    if transform is not None:
        if len(transform) != 6:
            raise ValueError(f"Transform must have 6 values, got {len(transform)}")
        operations.append(" ".join(_fmt(value) for value in transform) + " cm")
    operations.append(f"{settings.form_name} Do")
    operations.append("Q")

    if overlay:
        width, height = settings.page_size
        red, green, blue = settings.overlay_color
        operations.extend(
            [
                "q",
                f"{_fmt(red)} {_fmt(green)} {_fmt(blue)} rg",
                f"{_fmt(width / 4)} {_fmt(height / 4)} {_fmt(width / 2)} {_fmt(height / 2)} re",
                "f",
                "Q",
            ]
        )

    return ("\n".join(operations) + "\n").encode("ascii")


def build_output_page(
    destination: Document,
    form_id: ObjectId,
    overlay: bool = False,
    *,
    settings: Optional[AssemblySettings] = None,
    transform: Optional[Sequence[float]] = None,
) -> ObjectId:
    """Create a page in *destination* that draws the form *form_id*.

    The page is not linked into any page tree.
    """

    settings = settings or AssemblySettings()
    if destination.get(form_id) is None:
        raise DanglingReferenceError(f"Form {form_id} is not present in the destination document.")

    content = DecodedStreamObject()
    content.set_data(content_program(settings, overlay, transform))
    content_id = destination.add(content)

    xobjects = DictionaryObject()
    xobjects[NameObject(settings.form_name)] = destination.reference(form_id)
    resources = DictionaryObject()
    resources[NameObject("/XObject")] = xobjects
    resources_id = destination.add(resources)

    page = DictionaryObject()
    page[NameObject("/Type")] = NameObject("/Page")
    page[NameObject("/MediaBox")] = _rectangle(*settings.page_size)
    page[NameObject("/Contents")] = destination.reference(content_id)
    page[NameObject("/Resources")] = destination.reference(resources_id)

    page_id = destination.add(page)
    LOGGER.debug("Built page %s around form %s (overlay=%s)", page_id, form_id, overlay)
    return page_id


__all__ = [
    "MarginTransform",
    "build_output_page",
    "content_program",
    "import_page_as_form",
    "page_content",
    "page_resources",
]
