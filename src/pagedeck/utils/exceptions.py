"""
PageDeck - Custom Exceptions Module

This module defines custom exception classes for the collaborators around
the page model: loading source documents, merging, rendering and settings.
The page model itself never raises them; its mutators report failure
through their return values.
"""


class PageDeckError(Exception):
    """Base exception for all PageDeck errors.

    All custom exceptions should inherit from this class to allow
    catching any PageDeck-specific error.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional technical details for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class InvalidPdfError(PageDeckError):
    """Raised when a source document cannot be opened as a PDF."""

    def __init__(self, name: str, reason: str | None = None) -> None:
        """Initialize the exception.

        Args:
            name: File name (or path) of the invalid document
            reason: Optional reason why the PDF is invalid
        """
        self.name = name
        self.reason = reason
        msg = f"Invalid PDF file: {name}" if name else "Invalid PDF data"
        if reason:
            msg += f" - {reason}"
        super().__init__(msg, details=f"name={name}" if name else None)


class MergeError(PageDeckError):
    """Raised when the merge service cannot produce an output document."""

    def __init__(self, reason: str, details: str | None = None) -> None:
        self.reason = reason
        super().__init__(reason, details=details)


class RenderError(PageDeckError):
    """Raised when a page cannot be rendered."""

    def __init__(self, reason: str, page_number: int | None = None) -> None:
        """Initialize the exception.

        Args:
            reason: Why rendering failed
            page_number: Optional 1-based page number that failed
        """
        self.reason = reason
        self.page_number = page_number
        details = f"page={page_number}" if page_number is not None else None
        super().__init__(reason, details=details)


class RenderCancelledError(RenderError):
    """Raised when a render was superseded or its document was destroyed.

    Callers treat this as non-fatal.
    """

    def __init__(self, page_number: int | None = None) -> None:
        super().__init__("Rendering cancelled", page_number=page_number)


class ConfigurationError(PageDeckError):
    """Raised when there's a configuration-related error."""

    def __init__(self, setting_name: str | None = None, reason: str | None = None) -> None:
        """Initialize the exception.

        Args:
            setting_name: Optional name of the problematic setting
            reason: Optional reason for the error
        """
        self.setting_name = setting_name
        self.reason = reason

        if setting_name:
            msg = f"Configuration error for '{setting_name}'"
        else:
            msg = "Configuration error"

        if reason:
            msg += f": {reason}"

        super().__init__(msg)
