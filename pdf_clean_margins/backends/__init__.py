"""Backend abstractions for PDF Clean Margins."""

from .base import DocumentBackend
from .pypdf_backend import PypdfBackend, write_document

__all__ = [
    "DocumentBackend",
    "PypdfBackend",
    "write_document",
]
