"""Assembly of the output document from an ordered list of selections."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from pypdf.generic import ArrayObject, DictionaryObject, NameObject, NumberObject, TextStringObject

from .backends import DocumentBackend, PypdfBackend
from .cloner import IdentityMap
from .compositor import MarginTransform, build_output_page, import_page_as_form
from .config import AssemblySettings, ConversionConfig, IdentityScope
from .document import Document
from .exceptions import PdfMarginsError
from .types import ConversionResult, Selection

LOGGER = logging.getLogger("pdf_clean_margins.assembler")

PRODUCER = "PDF Clean Margins"

ProgressCallback = Callable[[int, int], None]


class DocumentAssembler:
    """Build output documents whose pages draw imported source pages.

    Each call to :meth:`assemble` creates and exclusively owns a new
    destination document; the source document is only read.
    """

    def __init__(
        self,
        source: Document,
        settings: Optional[AssemblySettings] = None,
        *,
        margin_transform: Optional[MarginTransform] = None,
    ) -> None:
        self.source = source
        self.settings = settings or AssemblySettings()
        self.margin_transform = margin_transform

    def assemble(
        self,
        selections: Iterable[Selection],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Document:
        """Return a new document with one page per selection, in order.

        The first failing selection aborts the whole assembly.
        """

        selections = list(selections)
        settings = self.settings
        destination = Document(version=settings.version)
        pages_id = destination.reserve()
        shared_map = IdentityMap() if settings.identity_scope == IdentityScope.DOCUMENT else None

        kids = ArrayObject()
        for index, selection in enumerate(selections):
            identity_map = shared_map if shared_map is not None else IdentityMap()
            form_id = import_page_as_form(
                destination,
                self.source,
                selection.page_number,
                identity_map=identity_map,
                settings=settings,
            )
            transform = self.margin_transform(selection) if self.margin_transform else None
            page_id = build_output_page(
                destination,
                form_id,
                settings.overlay,
                settings=settings,
                transform=transform,
            )

            page = destination.get(page_id)
            page[NameObject("/Parent")] = destination.reference(pages_id)
            kids.append(destination.reference(page_id))
            destination.pages[index] = page_id
            LOGGER.debug(
                "Selection %s -> page %s (identity map holds %d objects)",
                selection.describe(),
                page_id,
                len(identity_map),
            )

            if progress_callback:
                progress_callback(index + 1, len(selections))

        pages = DictionaryObject()
        pages[NameObject("/Type")] = NameObject("/Pages")
        pages[NameObject("/Kids")] = kids
        pages[NameObject("/Count")] = NumberObject(len(kids))
        destination.insert(pages_id, pages)

        catalog = DictionaryObject()
        catalog[NameObject("/Type")] = NameObject("/Catalog")
        catalog[NameObject("/Pages")] = destination.reference(pages_id)
        catalog_id = destination.add(catalog)

        info = DictionaryObject()
        info[NameObject("/Producer")] = TextStringObject(PRODUCER)
        info_id = destination.add(info)

        destination.trailer[NameObject("/Root")] = destination.reference(catalog_id)
        destination.trailer[NameObject("/Info")] = destination.reference(info_id)

        LOGGER.info(
            "Assembled %d page(s) from %d selection(s) into %d objects",
            destination.page_count,
            len(selections),
            len(destination),
        )
        return destination


def assemble(
    selections: Iterable[Selection],
    source: Document,
    settings: Optional[AssemblySettings] = None,
) -> Document:
    """Build a new document with one page per selection of *source*."""

    return DocumentAssembler(source, settings).assemble(selections)


def convert(
    config: ConversionConfig,
    backend: Optional[DocumentBackend] = None,
    *,
    margin_transform: Optional[MarginTransform] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> ConversionResult:
    """Load, assemble and save according to *config*.

    Raises:
        DocumentLoadError: If the input cannot be loaded.
        PageNotFoundError: If a selection names a page the input lacks.
        ObjectGraphError: If the input object graph cannot be transplanted.
        DocumentSaveError: If the output cannot be written.
    """

    backend = backend or PypdfBackend()
    LOGGER.info(
        "Converting %s -> %s with %d selection(s)",
        config.input_path,
        config.output_path,
        len(config.selections),
    )

    source = backend.load(config.input_path)
    assembler = DocumentAssembler(source, config.settings, margin_transform=margin_transform)
    try:
        destination = assembler.assemble(config.selections, progress_callback=progress_callback)
    except PdfMarginsError as exc:
        LOGGER.error("Assembly of %s failed: %s", config.input_path, exc)
        raise

    output_path = backend.save(destination, config.output_path)
    return ConversionResult(
        input_path=Path(config.input_path),
        output_path=Path(output_path),
        pages_written=destination.page_count,
        objects_written=len(destination),
        selections=tuple(config.selections),
    )


__all__ = ["DocumentAssembler", "PRODUCER", "ProgressCallback", "assemble", "convert"]
