"""pypdf backend implementation for PDF Clean Margins."""

from __future__ import annotations

import io
import logging
import os
import stat
import tempfile
from collections import Counter
from pathlib import Path
from typing import BinaryIO, List, Optional, Set

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from pypdf.generic import (
    ArrayObject,
    DictionaryObject,
    IndirectObject,
    NameObject,
    PdfObject,
    StreamObject,
)

from ..document import DEFAULT_VERSION, Document, stream_payload
from ..exceptions import DocumentLoadError, DocumentSaveError
from ..types import ObjectId
from .base import DocumentBackend, PathLike

LOGGER = logging.getLogger("pdf_clean_margins.backends")

TRAILER_REFERENCES = ("/Root", "/Info")


def _rebind(
    value: PdfObject,
    owner: object,
    pending: List[IndirectObject],
    *,
    generation: Optional[int] = None,
) -> PdfObject:
    """Copy *value* so its references resolve through *owner*.

    ``generation`` replaces the generation of every copied reference.
    """

    if isinstance(value, IndirectObject):
        pending.append(value)
        return IndirectObject(
            value.idnum, value.generation if generation is None else generation, owner
        )
    if isinstance(value, StreamObject):
        entries = {
            key: _rebind(item, owner, pending, generation=generation)
            for key, item in value.items()
        }
        entries["__streamdata__"] = stream_payload(value)
        return StreamObject.initialize_from_dictionary(entries)
    if isinstance(value, DictionaryObject):
        rebound = DictionaryObject()
        for key, item in value.items():
            rebound[key] = _rebind(item, owner, pending, generation=generation)
        return rebound
    if isinstance(value, ArrayObject):
        return ArrayObject(_rebind(item, owner, pending, generation=generation) for item in value)
    return value


def read_document(reader: PdfReader) -> Document:
    """Build a :class:`Document` holding every object reachable from the trailer."""

    header = reader.pdf_header
    version = header[len("%PDF-"):] if header.startswith("%PDF-") else DEFAULT_VERSION
    document = Document(version=version)

    pending: List[IndirectObject] = []
    visited: Set[ObjectId] = set()

    # flattened pages carry the attributes they inherit from the page tree
    for index, page in enumerate(reader.pages):
        reference = page.indirect_reference
        if reference is None:
            raise DocumentLoadError(f"Page {index} is not stored as an indirect object.")
        object_id = ObjectId(reference.idnum, reference.generation)
        document.pages[index] = object_id
        if object_id not in visited:
            visited.add(object_id)
            document.insert(object_id, _rebind(page, document, pending))

    for key in TRAILER_REFERENCES:
        value = reader.trailer.get(key)
        if value is not None:
            document.trailer[NameObject(key)] = _rebind(value, document, pending)

    while pending:
        reference = pending.pop()
        object_id = ObjectId(reference.idnum, reference.generation)
        if object_id in visited:
            continue
        visited.add(object_id)

        obj = reader.get_object(reference)
        if obj is None:
            LOGGER.debug("Leaving unresolvable reference %s out of the object table", object_id)
            continue
        document.insert(object_id, _rebind(obj, document, pending))

    return document


def _validate(document: Document) -> None:
    reserved = document.reserved()
    if reserved:
        raise DocumentSaveError(
            "Objects reserved but never written: " + ", ".join(str(oid) for oid in reserved)
        )

    numbers = Counter(object_id.number for object_id in document)
    duplicates = sorted(number for number, count in numbers.items() if count > 1)
    if duplicates:
        raise DocumentSaveError(f"Object numbers used by more than one generation: {duplicates}")

    if "/Root" not in document.trailer:
        raise DocumentSaveError("Document has no /Root catalog.")

    dangling = document.dangling_references()
    if dangling:
        holder, target = dangling[0]
        raise DocumentSaveError(
            f"Object {holder} references {target}, which is not in the document "
            f"({len(dangling)} dangling reference(s))."
        )


def _writer_object(writer: PdfWriter, value: PdfObject) -> PdfObject:
    if isinstance(value, IndirectObject):
        return writer.get_object(IndirectObject(value.idnum, 0, writer))
    return writer.get_object(writer._add_object(_rebind(value, writer, [], generation=0)))


def to_writer(document: Document) -> PdfWriter:
    """Move *document* into a :class:`~pypdf.PdfWriter`.

    Object ``n`` of the document becomes object ``n`` of the writer, with
    generation 0. Unused numbers are left empty and written as free entries.

    Raises:
        DocumentSaveError: If the document has reserved but unwritten slots,
            two objects sharing a number, dangling references or no catalog.
    """

    _validate(document)

    writer = PdfWriter()
    writer.pdf_header = f"%PDF-{document.version}"

    objects: List[Optional[PdfObject]] = [None] * max(
        (object_id.number for object_id in document), default=0
    )
    for object_id in sorted(document):
        obj = _rebind(document.objects[object_id], writer, [], generation=0)
        obj.indirect_reference = IndirectObject(object_id.number, 0, writer)
        objects[object_id.number - 1] = obj
    writer._objects = objects

    root = _writer_object(writer, document.trailer.get("/Root"))
    if not isinstance(root, DictionaryObject):
        raise DocumentSaveError(f"Document catalog must be a dictionary, found {type(root).__name__}.")
    writer._root_object = root

    info = document.trailer.get("/Info")
    writer._info_obj = None if info is None else _writer_object(writer, info).indirect_reference

    writer.generate_file_identifiers()
    return writer


def write_document(document: Document, stream: BinaryIO) -> int:
    """Serialize *document* to *stream* through pypdf's writer.

    Returns the number of objects written.
    """

    writer = to_writer(document)
    writer.write(stream)
    return sum(1 for obj in writer._objects if obj is not None)


def _file_mode(path: Path) -> int:
    """Return the permission bits a fresh write to *path* should end up with.

    An existing file keeps its mode; a new one gets what a plain ``open``
    would give under the current umask.
    """

    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


class PypdfBackend(DocumentBackend):
    """Backend implementation that uses `pypdf` under the hood."""

    def load(self, pdf_path: PathLike) -> Document:
        path = Path(pdf_path)
        if not path.exists() or not path.is_file():
            raise DocumentLoadError(f"PDF file not found: {pdf_path}")

        try:
            raw_bytes = path.read_bytes()
        except OSError as exc:
            raise DocumentLoadError(f"Unable to read PDF file: {pdf_path}. Error: {exc}") from exc

        try:
            reader = PdfReader(io.BytesIO(raw_bytes))
        except PdfReadError as exc:
            raise DocumentLoadError(f"Corrupted or invalid PDF file: {pdf_path}. Error: {exc}") from exc
        except Exception as exc:
            raise DocumentLoadError(f"Unexpected error reading PDF: {pdf_path}. Error: {exc}") from exc

        if reader.is_encrypted:
            raise DocumentLoadError(f"Encrypted PDFs are not supported: {pdf_path}")

        try:
            document = read_document(reader)
        except DocumentLoadError:
            raise
        except Exception as exc:
            LOGGER.error("Failed to read object graph of %s: %s", path, exc)
            raise DocumentLoadError(
                f"Unable to read PDF object graph: {pdf_path}. Error: {exc}"
            ) from exc

        LOGGER.info(
            "Loaded %s: version=%s, pages=%d, objects=%d",
            path,
            document.version,
            document.page_count,
            len(document),
        )
        return document

    def save(self, document: Document, destination: PathLike) -> Path:
        path = Path(destination)
        buffer = io.BytesIO()
        count = write_document(document, buffer)

        temp_path: Path | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            mode = _file_mode(path)
            with tempfile.NamedTemporaryFile(
                "wb", delete=False, dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            ) as handle:
                temp_path = Path(handle.name)
                handle.write(buffer.getvalue())
            temp_path.chmod(mode)
            temp_path.replace(path)
        except OSError as exc:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            LOGGER.error("Failed to write PDF to %s: %s", path, exc)
            raise DocumentSaveError(f"Failed to write PDF to {path}. Error: {exc}") from exc

        LOGGER.info("Wrote %d objects (%d bytes) to %s", count, buffer.tell(), path)
        return path


__all__ = ["PypdfBackend", "read_document", "to_writer", "write_document"]
