"""
Error taxonomy for the web PDF service.

Each error maps to one HTTP status at the router boundary; internal detail
is logged server-side and never returned to the caller.
"""

from typing import Optional


class PdfServiceError(Exception):
    """Base class for all service errors."""

    status_code = 500
    public_message = "Internal server error"


class ValidationError(PdfServiceError):
    """Missing or empty required input."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.public_message = message


class RenderError(PdfServiceError):
    """Selector wait, navigation or rendering failed, or the browser crashed."""

    public_message = "Failed to generate PDF"


class CompressionError(PdfServiceError):
    """Ghostscript could not be spawned, timed out or exited non-zero."""

    public_message = "Error compressing PDF"

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


class PayloadTooLargeError(ValidationError):
    """Request body exceeds the configured size limit."""

    status_code = 413
