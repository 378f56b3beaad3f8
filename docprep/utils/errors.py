"""
Custom exceptions for the docprep document pipeline.

Every failure surfaced by a processing step is one of the exceptions defined
here. Third-party errors (PyMuPDF, Pillow, openpyxl, pytesseract) are
translated at the step boundary so callers only ever handle this hierarchy.
"""

from typing import Any, Optional


class DocprepException(Exception):
    """Base exception for all docprep-specific errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# Input Exceptions
# =============================================================================


class UnsupportedFileError(DocprepException):
    """Input file cannot be handled at all."""

    def __init__(self, reason: str, file_path: Optional[str] = None) -> None:
        """Initialize with the offending path."""
        message = f"Unsupported file type: {reason}"
        super().__init__(message, {"file_path": file_path} if file_path else None)


class InvalidFormatError(DocprepException):
    """File content does not match the format its extension promises."""

    def __init__(self, reason: str) -> None:
        """Initialize with the format problem."""
        super().__init__(f"Invalid format: {reason}")


# =============================================================================
# Extraction Exceptions
# =============================================================================


class ExtractionError(DocprepException):
    """Failed to extract text from a document."""

    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None) -> None:
        """Initialize with the extraction failure."""
        super().__init__(f"Failed to extract text: {reason}", details)


class ConversionError(DocprepException):
    """Failed to convert a document (e.g. PDF page rendering)."""

    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None) -> None:
        """Initialize with the conversion failure."""
        super().__init__(f"Failed to convert document: {reason}", details)


class OCRError(DocprepException):
    """Error during OCR processing."""

    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None) -> None:
        """Initialize with the OCR failure."""
        super().__init__(f"Failed to perform OCR: {reason}", details)


class ImageProcessingError(DocprepException):
    """Image could not be loaded, encoded or fitted into its size budget."""

    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None) -> None:
        """Initialize with the image failure."""
        super().__init__(f"Image processing failed: {reason}", details)


class FileIOError(DocprepException):
    """Wraps an underlying OSError (temp dirs, kept files, reads)."""

    def __init__(self, error: OSError, path: Optional[str] = None) -> None:
        """Initialize from the original OSError."""
        details = {"path": path} if path else None
        super().__init__(f"IO error: {error}", details)
        self.error = error


# =============================================================================
# Processing Exceptions
# =============================================================================


class ProcessingError(DocprepException):
    """Failed to process a document."""

    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None) -> None:
        """Initialize with the processing failure."""
        super().__init__(f"Failed to process document: {reason}", details)


class ProcessingTimeoutError(ProcessingError):
    """Processing operation timed out."""

    def __init__(self, operation: str, timeout: int) -> None:
        """Initialize with timeout information."""
        super().__init__(
            f"operation '{operation}' timed out after {timeout} seconds",
            {"operation": operation, "timeout": timeout},
        )


class InvalidProcessorError(DocprepException):
    """Object registered with the pipeline is not a processing step."""

    def __init__(self, processor: Any = None) -> None:
        """Initialize with the rejected object."""
        details = {"processor": type(processor).__name__} if processor is not None else None
        super().__init__("Invalid processor", details)


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(DocprepException):
    """Configuration error."""

    pass
