"""
Type definitions and dataclasses for PDF Clean Margins.

This module defines data structures used throughout the library.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import NamedTuple, Tuple

Margins = Tuple[int, int, int, int]


class Side(IntEnum):
    """Positions of the four margin values inside a selection."""

    LEFT = 0
    BOTTOM = 1
    RIGHT = 2
    TOP = 3


class ObjectId(NamedTuple):
    """Identity of an object inside one document's object table."""

    number: int
    generation: int = 0

    def __str__(self) -> str:
        return f"{self.number} {self.generation} R"


@dataclass(frozen=True)
class Selection:
    """
    A fully resolved page selection.

    Attributes:
        page_number: Zero-based index of the source page
        margin_width: Margin values ordered (left, bottom, right, top)
    """
    page_number: int = 0
    margin_width: Margins = (0, 0, 0, 0)

    @property
    def left(self) -> int:
        return self.margin_width[Side.LEFT]

    @property
    def bottom(self) -> int:
        return self.margin_width[Side.BOTTOM]

    @property
    def right(self) -> int:
        return self.margin_width[Side.RIGHT]

    @property
    def top(self) -> int:
        return self.margin_width[Side.TOP]

    def describe(self) -> str:
        """Return the selection in its canonical ``page:l:b:r:t`` form."""
        return ":".join(str(value) for value in (self.page_number, *self.margin_width))


DEFAULT_SELECTION = Selection()


@dataclass
class ConversionResult:
    """
    Result of a conversion run.

    Attributes:
        input_path: Source PDF path
        output_path: Written PDF path
        pages_written: Number of pages in the output document
        objects_written: Number of objects in the output document
        selections: Selections that produced the pages, in order
    """
    input_path: Path
    output_path: Path
    pages_written: int
    objects_written: int
    selections: Tuple[Selection, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        """String representation of the result."""
        return (
            f"ConversionResult(pages={self.pages_written}, "
            f"objects={self.objects_written}, output='{self.output_path}')"
        )
