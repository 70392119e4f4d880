"""Parsing of ``page[:left[:bottom[:right[:top]]]]`` selection specs."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Tuple

from .exceptions import (
    InvalidMarginError,
    InvalidPageNumberError,
    MalformedSpecError,
    SelectionError,
)
from .types import DEFAULT_SELECTION, Selection, Side

LOGGER = logging.getLogger("pdf_clean_margins.selection")

FIELD_SEPARATOR = ":"
MAX_FIELDS = 1 + len(Side)
MAX_FIELD_VALUE = 2**32 - 1

_UNSIGNED = re.compile(r"[0-9]+")
_MAX_DIGITS = len(str(MAX_FIELD_VALUE))


def _parse_unsigned(token: str) -> int | None:
    if not _UNSIGNED.fullmatch(token):
        return None
    if len(token.lstrip("0")) > _MAX_DIGITS:
        return None
    value = int(token)
    if value > MAX_FIELD_VALUE:
        return None
    return value


def parse_selection(spec: str, previous: Selection = DEFAULT_SELECTION) -> Selection:
    """Parse *spec* into a :class:`Selection`.

    Empty margin fields, and margin fields missing from the end of the
    spec, take the value at the same position in *previous*.

    Raises:
        MalformedSpecError: If the spec has fewer than 1 or more than 5 fields.
        InvalidPageNumberError: If the first field is not a non-negative integer.
        InvalidMarginError: If a non-empty margin field is not a non-negative integer.
    """

    fields = spec.split(FIELD_SEPARATOR) if spec and spec.strip() else []
    if not 1 <= len(fields) <= MAX_FIELDS:
        raise MalformedSpecError(
            f"Number of colon-separated values in '{spec}' is {len(fields)}, "
            f"must be within [1,{MAX_FIELDS}]."
        )

    page_number = _parse_unsigned(fields[0])
    if page_number is None:
        raise InvalidPageNumberError(
            f"Invalid page number '{fields[0]}' in '{spec}'. Expected a non-negative integer."
        )

    margins: List[int] = list(previous.margin_width)
    for side, token in zip(Side, fields[1:]):
        if not token:
            continue
        value = _parse_unsigned(token)
        if value is None:
            raise InvalidMarginError(
                f"Invalid {side.name.lower()} margin '{token}' in '{spec}'. "
                "Expected a non-negative integer."
            )
        margins[side] = value

    selection = Selection(page_number=page_number, margin_width=tuple(margins))
    LOGGER.debug("Parsed selection %r as %s", spec, selection.describe())
    return selection


def parse_selections(specs: Iterable[str]) -> Tuple[Selection, ...]:
    """Parse an ordered sequence of specs, each inheriting from the one before."""

    selections: List[Selection] = []
    previous = DEFAULT_SELECTION
    for spec in specs:
        try:
            previous = parse_selection(spec, previous)
        except SelectionError:
            LOGGER.debug("Rejected selection %r after %d valid", spec, len(selections))
            raise
        selections.append(previous)
    return tuple(selections)


__all__ = [
    "FIELD_SEPARATOR",
    "MAX_FIELDS",
    "MAX_FIELD_VALUE",
    "parse_selection",
    "parse_selections",
]
