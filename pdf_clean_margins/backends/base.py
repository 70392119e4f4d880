"""Backend protocol for loading and saving documents."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from ..document import Document
from ..utils import PathLike


class DocumentBackend(Protocol):
    """Protocol defining backend operations for PDF reading/writing."""

    def load(self, pdf_path: PathLike) -> Document:
        """Load a PDF file and return its object table."""

    def save(self, document: Document, destination: PathLike) -> Path:
        """Persist *document* to *destination* and return the written path."""
