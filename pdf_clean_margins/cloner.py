"""Deep copy of PDF object graphs from one :class:`Document` into another."""

from __future__ import annotations

import logging
from collections import deque
from contextlib import contextmanager
from typing import Deque, Dict, Iterator, List, Optional, Tuple

from pypdf.constants import StreamAttributes
from pypdf.generic import (
    ArrayObject,
    DictionaryObject,
    IndirectObject,
    PdfObject,
    StreamObject,
)

from .document import Document, Reference, as_object_id, stream_payload
from .exceptions import DanglingReferenceError, GraphDepthExceededError
from .types import ObjectId

LOGGER = logging.getLogger("pdf_clean_margins.cloner")

DEFAULT_MAX_DEPTH = 256


class IdentityMap:
    """Maps source object ids to the destination ids they were cloned into."""

    def __init__(self) -> None:
        self._mapping: Dict[ObjectId, ObjectId] = {}

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)

    def get(self, source_id: ObjectId) -> Optional[ObjectId]:
        return self._mapping.get(source_id)

    def register(self, source_id: ObjectId, destination_id: ObjectId) -> None:
        if source_id in self._mapping:
            raise ValueError(
                f"Source object {source_id} is already mapped to {self._mapping[source_id]}"
            )
        self._mapping[source_id] = destination_id

    def discard(self, source_id: ObjectId) -> None:
        self._mapping.pop(source_id, None)

    def items(self):
        return self._mapping.items()


class ObjectGraphCloner:
    """Copy objects and everything they reference into *destination*.

    A destination id is reserved and registered in the identity map before
    the body of the source object is copied. Any later reference to the same
    source object, including one reached through a cycle, resolves to that
    id instead of being copied again. Referenced objects are queued rather
    than recursed into, so only nesting of direct objects inside a single
    body consumes stack, and that is bounded by ``max_depth``.
    """

    def __init__(
        self,
        source: Document,
        destination: Document,
        identity_map: Optional[IdentityMap] = None,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        if source is destination:
            raise ValueError("Source and destination must be different documents")
        self.source = source
        self.destination = destination
        self.identity_map = identity_map if identity_map is not None else IdentityMap()
        self.max_depth = max_depth
        self._pending: Deque[Tuple[ObjectId, ObjectId]] = deque()
        self._reserved: List[Tuple[ObjectId, ObjectId]] = []

    def clone(self, object_id: Reference) -> ObjectId:
        """Clone the source object *object_id* and return its destination id."""

        source_id = as_object_id(object_id)
        with self._transaction():
            target_id = self._map_reference(source_id)
            copied = self._drain()
        if copied:
            LOGGER.debug("Cloned %s as %s (%d new objects)", source_id, target_id, copied)
        return target_id

    def clone_value(self, value: PdfObject) -> PdfObject:
        """Clone a direct value, cloning every object it references."""

        with self._transaction():
            result = self._copy(value, 0)
            copied = self._drain()
        LOGGER.debug("Cloned direct %s (%d new objects)", type(value).__name__, copied)
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    @contextmanager
    def _transaction(self) -> Iterator[None]:
        self._pending.clear()
        self._reserved = []
        try:
            yield
        except Exception:
            for source_id, target_id in reversed(self._reserved):
                self.identity_map.discard(source_id)
                self.destination.discard(target_id)
            LOGGER.debug("Rolled back %d reserved objects", len(self._reserved))
            raise
        finally:
            self._pending.clear()
            self._reserved = []

    def _map_reference(self, source_id: ObjectId) -> ObjectId:
        target_id = self.identity_map.get(source_id)
        if target_id is not None:
            return target_id

        if self.source.get(source_id) is None:
            raise DanglingReferenceError(
                f"Object {source_id} is referenced but missing from the source document."
            )

        target_id = self.destination.reserve()
        self.identity_map.register(source_id, target_id)
        self._reserved.append((source_id, target_id))
        self._pending.append((source_id, target_id))
        return target_id

    def _drain(self) -> int:
        copied = 0
        while self._pending:
            source_id, target_id = self._pending.popleft()
            body = self.source.get(source_id)
            self.destination.insert(target_id, self._copy(body, 0))
            copied += 1
        return copied

    def _copy(self, value: PdfObject, depth: int) -> PdfObject:
        if depth > self.max_depth:
            raise GraphDepthExceededError(
                f"Object nesting exceeds the maximum depth of {self.max_depth}."
            )

        if isinstance(value, IndirectObject):
            return self.destination.reference(self._map_reference(as_object_id(value)))

        if isinstance(value, StreamObject):
            # /Length is recomputed from the payload on write
            entries = {
                key: self._copy(item, depth + 1)
                for key, item in value.items()
                if key != StreamAttributes.LENGTH
            }
            entries["__streamdata__"] = stream_payload(value)
            return StreamObject.initialize_from_dictionary(entries)

        if isinstance(value, DictionaryObject):
            copied = DictionaryObject()
            for key, item in value.items():
                copied[key] = self._copy(item, depth + 1)
            return copied

        if isinstance(value, ArrayObject):
            items = ArrayObject()
            for item in value:
                items.append(self._copy(item, depth + 1))
            return items

        return value


def clone(
    source: Document,
    destination: Document,
    object_id: Reference,
    identity_map: Optional[IdentityMap] = None,
) -> ObjectId:
    """Clone *object_id* from *source* into *destination*."""

    return ObjectGraphCloner(source, destination, identity_map).clone(object_id)


def clone_value(
    source: Document,
    destination: Document,
    value: PdfObject,
    identity_map: Optional[IdentityMap] = None,
) -> PdfObject:
    """Clone the direct *value* from *source* into *destination*."""

    return ObjectGraphCloner(source, destination, identity_map).clone_value(value)


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "IdentityMap",
    "ObjectGraphCloner",
    "clone",
    "clone_value",
]
