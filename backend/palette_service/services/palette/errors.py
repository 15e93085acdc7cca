"""
Palette pipeline error taxonomy.

Every failure that leaves the pipeline is one of these; the HTTP layer turns
them into ``{"error": ..., "details": ...}`` responses.
"""
from typing import Any, Dict, Optional


class PaletteError(Exception):
    """Base class for all pipeline failures."""

    kind = "unexpected_failure"
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class MissingInput(PaletteError):
    """No image payload was supplied."""

    kind = "missing_input"
    status_code = 400


class PayloadTooLarge(PaletteError):
    """The uploaded image exceeds the configured size cap."""

    kind = "payload_too_large"
    status_code = 413


class UpstreamFailure(PaletteError):
    """A backend call failed or returned a non-success status."""

    kind = "upstream_failure"
    status_code = 502

    def __init__(self, message: str, details: Optional[str] = None,
                 status_code: Optional[int] = None, stage: Optional[str] = None):
        super().__init__(message, details=details, status_code=status_code)
        self.stage = stage


class MalformedBackendResponse(PaletteError):
    """A backend answered, but with data that cannot be normalized."""

    kind = "malformed_backend_response"
    status_code = 502


class UnexpectedFailure(PaletteError):
    """Anything not classified above."""

    kind = "unexpected_failure"
    status_code = 500

    @classmethod
    def wrap(cls, exc: Exception) -> "UnexpectedFailure":
        return cls(f"Internal Server Error: Failed to extract colors. Details: {exc}")
