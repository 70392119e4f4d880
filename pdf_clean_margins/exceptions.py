"""
Custom exceptions for PDF Clean Margins.

This module defines all custom exceptions used throughout the library.
"""


class PdfMarginsError(Exception):
    """Base exception for all PDF Clean Margins errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown PDF clean margins error occurred."


class SelectionError(PdfMarginsError, ValueError):
    """Raised when a page selection specification cannot be parsed."""

    @property
    def default_message(self) -> str:
        return "Invalid page selection specification."


class MalformedSpecError(SelectionError):
    """Raised when a selection does not have between 1 and 5 fields."""

    @property
    def default_message(self) -> str:
        return "Selection must have between 1 and 5 colon-separated fields."


class InvalidPageNumberError(SelectionError):
    """Raised when the page number field is not a non-negative integer."""

    @property
    def default_message(self) -> str:
        return "Page number must be a non-negative integer."


class InvalidMarginError(SelectionError):
    """Raised when a margin field is not a non-negative integer."""

    @property
    def default_message(self) -> str:
        return "Margin width must be a non-negative integer."


class DocumentLoadError(PdfMarginsError):
    """Raised when the source PDF cannot be read or parsed."""

    @property
    def default_message(self) -> str:
        return "Unable to load PDF document."


class DocumentSaveError(PdfMarginsError):
    """Raised when the output PDF cannot be written."""

    @property
    def default_message(self) -> str:
        return "Unable to save PDF document."


class PageNotFoundError(PdfMarginsError):
    """Raised when a selection refers to a page the source does not have."""

    @property
    def default_message(self) -> str:
        return "Requested page does not exist in the source document."


class PageContentError(PdfMarginsError):
    """Raised when a page content stream cannot be decoded."""

    @property
    def default_message(self) -> str:
        return "Unable to decode page content stream."


class ObjectGraphError(PdfMarginsError):
    """Raised when the source object graph cannot be transplanted."""

    @property
    def default_message(self) -> str:
        return "Invalid object graph."


class DanglingReferenceError(ObjectGraphError):
    """Raised when a reference points at an object missing from the source."""

    @property
    def default_message(self) -> str:
        return "Reference to an object missing from the source document."


class GraphDepthExceededError(ObjectGraphError):
    """Raised when direct object nesting exceeds the configured depth."""

    @property
    def default_message(self) -> str:
        return "Object nesting exceeds the maximum supported depth."
