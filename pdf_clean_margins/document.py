"""In-memory PDF object table used as both clone source and destination."""

from __future__ import annotations

from typing import Any, Dict, Iterator, Optional, Tuple, Union

from pypdf.generic import (
    ArrayObject,
    DictionaryObject,
    IndirectObject,
    PdfObject,
    StreamObject,
)

from .types import ObjectId

DEFAULT_VERSION = "1.7"

Reference = Union[IndirectObject, ObjectId]


def stream_payload(stream: StreamObject) -> bytes:
    """Return the raw, still-encoded payload of *stream*."""

    return stream._data


class Document:
    """An object table keyed by :class:`ObjectId` plus a page index.

    Slots can be reserved before their object is known so that a parent can
    hand out references to a child that is still being built. References
    stored in the table are :class:`~pypdf.generic.IndirectObject` instances
    bound to this document, which lets pypdf resolve them through
    :meth:`get_object`.
    """

    def __init__(self, version: str = DEFAULT_VERSION) -> None:
        self.version = version
        self.objects: Dict[ObjectId, Optional[PdfObject]] = {}
        self.pages: Dict[int, ObjectId] = {}
        self.trailer = DictionaryObject()
        self._last_number = 0

    def __contains__(self, object_id: object) -> bool:
        return object_id in self.objects

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self) -> Iterator[ObjectId]:
        return iter(self.objects)

    # ------------------------------------------------------------------
    # Identity allocation
    # ------------------------------------------------------------------
    def reserve(self) -> ObjectId:
        """Allocate a fresh id whose slot stays empty until :meth:`insert`."""

        self._last_number += 1
        object_id = ObjectId(self._last_number, 0)
        self.objects[object_id] = None
        return object_id

    def discard(self, object_id: ObjectId) -> None:
        """Drop *object_id* from the table, populated or not."""

        self.objects.pop(object_id, None)

    def insert(self, object_id: ObjectId, obj: PdfObject) -> ObjectId:
        """Store *obj* under *object_id*, filling a reserved slot if present."""

        self.objects[object_id] = obj
        self._last_number = max(self._last_number, object_id.number)
        return object_id

    def add(self, obj: PdfObject) -> ObjectId:
        """Store *obj* under a newly allocated id and return it."""

        return self.insert(self.reserve(), obj)

    def is_reserved(self, object_id: ObjectId) -> bool:
        return object_id in self.objects and self.objects[object_id] is None

    def reserved(self) -> list[ObjectId]:
        return [object_id for object_id, obj in self.objects.items() if obj is None]

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def get(self, object_id: ObjectId) -> Optional[PdfObject]:
        return self.objects.get(object_id)

    def get_object(self, reference: Reference) -> Optional[PdfObject]:
        """Resolve *reference*; called by pypdf's ``IndirectObject.get_object``."""

        return self.objects.get(as_object_id(reference))

    def reference(self, object_id: ObjectId) -> IndirectObject:
        """Return a reference to *object_id* bound to this document."""

        return IndirectObject(object_id.number, object_id.generation, self)

    def resolve(self, value: Optional[PdfObject]) -> Optional[PdfObject]:
        """Follow *value* if it is a reference, otherwise return it unchanged."""

        if isinstance(value, IndirectObject):
            return self.get_object(value)
        return value

    def page(self, page_number: int) -> Optional[DictionaryObject]:
        object_id = self.pages.get(page_number)
        if object_id is None:
            return None
        page = self.objects.get(object_id)
        return page if isinstance(page, DictionaryObject) else None

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def dangling_references(self) -> list[Tuple[ObjectId, ObjectId]]:
        """Return ``(holder, target)`` pairs whose target is not populated.

        References bound to another document count as dangling too.
        Trailer references are reported with the holder ``0 65535``.
        """

        dangling: list[Tuple[ObjectId, ObjectId]] = []
        for holder, obj in self.objects.items():
            stack: list[Any] = [obj]
            while stack:
                value = stack.pop()
                if isinstance(value, IndirectObject):
                    target = as_object_id(value)
                    if value.pdf is not self or self.objects.get(target) is None:
                        dangling.append((holder, target))
                elif isinstance(value, DictionaryObject):
                    stack.extend(value.values())
                elif isinstance(value, ArrayObject):
                    stack.extend(value)
        for value in self.trailer.values():
            if isinstance(value, IndirectObject) and self.objects.get(as_object_id(value)) is None:
                dangling.append((ObjectId(0, 65535), as_object_id(value)))
        return dangling

    def __repr__(self) -> str:
        return (
            f"Document(version={self.version!r}, objects={len(self.objects)}, "
            f"pages={len(self.pages)})"
        )


def as_object_id(reference: Reference) -> ObjectId:
    if isinstance(reference, IndirectObject):
        return ObjectId(reference.idnum, reference.generation)
    return reference


__all__ = ["DEFAULT_VERSION", "Document", "as_object_id", "stream_payload"]
