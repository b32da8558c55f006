# backend/cropscan/errors.py
from typing import Any, Optional


class ConfigError(Exception):
    """Raised at startup when required configuration is missing or malformed."""


class CropScanError(Exception):
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(CropScanError):
    """Caller input missing or malformed."""
    status_code = 400


class UpstreamError(CropScanError):
    """A required third-party call failed or returned an unexpected shape."""
    status_code = 500


class StorageError(CropScanError):
    """Temporary file I/O failed."""
    status_code = 500
