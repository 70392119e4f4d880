"""Run configuration for PDF Clean Margins."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Tuple

from .cloner import DEFAULT_MAX_DEPTH
from .document import DEFAULT_VERSION
from .types import Selection

A4_PORTRAIT: Tuple[int, int] = (595, 842)


class IdentityScope(str, Enum):
    """Lifetime of the identity map used while importing pages.

    ``PAGE`` starts a fresh map for every output page, so pages never share
    cloned objects. ``DOCUMENT`` keeps one map for the whole run and clones
    each source object at most once.
    """

    PAGE = "page"
    DOCUMENT = "document"


@dataclass(frozen=True)
class AssemblySettings:
    """
    Behavioural toggles for building the output document.

    Attributes:
        version: PDF version written in the output header
        page_size: Output page width and height in points, also the form bounding box
        overlay: Draw a marker rectangle over every output page
        overlay_color: RGB fill color of the marker, each channel in [0, 1]
        identity_scope: Lifetime of the identity map
        max_depth: Maximum nesting of direct objects accepted while cloning
        form_name: Resource name the output page uses for the imported form
    """
    version: str = DEFAULT_VERSION
    page_size: Tuple[float, float] = A4_PORTRAIT
    overlay: bool = False
    overlay_color: Tuple[float, float, float] = (1.0, 0.0, 0.0)
    identity_scope: IdentityScope = IdentityScope.PAGE
    max_depth: int = DEFAULT_MAX_DEPTH
    form_name: str = "/X0"

    def __post_init__(self) -> None:
        width, height = self.page_size
        if width <= 0 or height <= 0:
            raise ValueError(f"Page size must be positive, got {width}x{height}")
        if not self.form_name.startswith("/"):
            raise ValueError(f"Form name must start with '/', got {self.form_name!r}")
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")


@dataclass(frozen=True)
class ConversionConfig:
    """Everything a single conversion run needs."""

    input_path: Path
    output_path: Path
    selections: Tuple[Selection, ...]
    settings: AssemblySettings = field(default_factory=AssemblySettings)


__all__ = ["A4_PORTRAIT", "AssemblySettings", "ConversionConfig", "IdentityScope"]
