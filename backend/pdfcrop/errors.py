"""
Crop API errors.

Every CropError carries the HTTP status it maps to; the app-level
exception handler renders it as {"error": message}.
"""


class CropError(Exception):
    """Base class for client-facing crop failures."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidCropRequest(CropError):
    """Missing file, non-numeric parameters or page index out of range."""

    status_code = 400


class UploadTooLarge(CropError):
    """Upload exceeded the configured size limit."""

    status_code = 413

    def __init__(self, limit_bytes: int, message: str = "File too large"):
        super().__init__(message)
        self.limit_bytes = limit_bytes
