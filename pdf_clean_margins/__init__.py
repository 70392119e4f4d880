"""
PDF Clean Margins - Rebuild selected PDF pages around reusable form XObjects.

Each selected source page is imported, together with every object its
resources reference, into a freshly built output document as a form
XObject, and a new page that draws the form is assembled around it.

Quick Start:
    >>> from pdf_clean_margins import PypdfBackend, assemble, parse_selections
    >>> backend = PypdfBackend()
    >>> source = backend.load('input.pdf')
    >>> output = assemble(parse_selections(['0:10:10:10:10', '1::20']), source)
    >>> backend.save(output, 'output.pdf')

Main Classes:
    - DocumentAssembler: Builds the output document from selections
    - ObjectGraphCloner: Copies object graphs between documents
    - Document: In-memory PDF object table

Exceptions:
    - PdfMarginsError: Base exception
    - MalformedSpecError, InvalidPageNumberError, InvalidMarginError: Bad selections
    - DocumentLoadError, DocumentSaveError: File I/O failures
    - PageNotFoundError: Selection refers to a missing page
    - DanglingReferenceError, GraphDepthExceededError: Unusable object graphs

For CLI usage, use the 'pdf-clean-margins' command after installation.
"""

__version__ = "1.0.0"
__author__ = "PDF Clean Margins Contributors"
__license__ = "MIT"

# Core classes
from pdf_clean_margins.assembler import DocumentAssembler, assemble, convert
from pdf_clean_margins.backends import DocumentBackend, PypdfBackend
from pdf_clean_margins.cloner import IdentityMap, ObjectGraphCloner, clone, clone_value
from pdf_clean_margins.compositor import build_output_page, import_page_as_form
from pdf_clean_margins.document import Document

# Configuration and data types
from pdf_clean_margins.config import AssemblySettings, ConversionConfig, IdentityScope
from pdf_clean_margins.types import (
    DEFAULT_SELECTION,
    ConversionResult,
    ObjectId,
    Selection,
    Side,
)
from pdf_clean_margins.selection import parse_selection, parse_selections

# Exceptions
from pdf_clean_margins.exceptions import (
    PdfMarginsError,
    SelectionError,
    MalformedSpecError,
    InvalidPageNumberError,
    InvalidMarginError,
    DocumentLoadError,
    DocumentSaveError,
    PageNotFoundError,
    PageContentError,
    ObjectGraphError,
    DanglingReferenceError,
    GraphDepthExceededError,
)

__all__ = [
    # Main classes
    "DocumentAssembler",
    "ObjectGraphCloner",
    "IdentityMap",
    "Document",
    "DocumentBackend",
    "PypdfBackend",
    # Operations
    "assemble",
    "convert",
    "clone",
    "clone_value",
    "import_page_as_form",
    "build_output_page",
    "parse_selection",
    "parse_selections",
    # Data types
    "AssemblySettings",
    "ConversionConfig",
    "ConversionResult",
    "IdentityScope",
    "ObjectId",
    "Selection",
    "Side",
    "DEFAULT_SELECTION",
    # Exceptions
    "PdfMarginsError",
    "SelectionError",
    "MalformedSpecError",
    "InvalidPageNumberError",
    "InvalidMarginError",
    "DocumentLoadError",
    "DocumentSaveError",
    "PageNotFoundError",
    "PageContentError",
    "ObjectGraphError",
    "DanglingReferenceError",
    "GraphDepthExceededError",
    # Version info
    "__version__",
]
