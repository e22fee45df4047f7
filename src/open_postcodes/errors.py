"""Errors raised by the OpenPostcodes client.

Transport failures are not wrapped: whatever ``httpx`` raises reaches the
caller unchanged.
"""


class OpenPostcodesError(Exception):
    """Base error for open-postcodes."""


class ConfigurationError(OpenPostcodesError, ValueError):
    """Raised when the client is constructed with invalid settings."""


class InvalidPayloadError(OpenPostcodesError):
    """Raised when the API answers with a body that is not JSON."""

    def __init__(self, status_code: int | None = None):
        self.status_code = status_code
        super().__init__("Invalid JSON")


class APIError(OpenPostcodesError):
    """Raised when the API answers with a non-2xx status and a JSON error body.

    ``status_code`` is the HTTP status. The service's own numeric code is
    kept in ``_service_code`` and is only read inside this package.
    """

    def __init__(self, message: str, status_code: int, service_code=None):
        self.message = message
        self.status_code = status_code
        self._service_code = service_code
        super().__init__(message)

    @classmethod
    def from_payload(cls, payload, status_code: int) -> "APIError":
        """Build the error from a decoded ``{"message": ..., "code": ...}`` body."""
        if not isinstance(payload, dict):
            payload = {}
        message = payload.get("message")
        code = payload.get("code")
        return cls(f"{message} ({code})", status_code=status_code, service_code=code)
