"""
Exceptions raised at the boundaries of the form runtime.

The pure core never raises these. They come from the HTTP collaborators
and are turned into session state (load error, submit error, per-field
upload error) by the caller.
"""


class DynaformError(Exception):
    """Base class for all form runtime errors."""


class FormLoadError(DynaformError):
    """Raised when a form version cannot be fetched or parsed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SubmissionError(DynaformError):
    """Raised when the backend rejects or fails a submission."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class UploadError(DynaformError):
    """Raised when uploading a file for a field fails."""

    def __init__(self, field_id: str, message: str, status_code: int | None = None):
        self.field_id = field_id
        self.message = message
        self.status_code = status_code
        super().__init__(f"Field '{field_id}': {message}")
