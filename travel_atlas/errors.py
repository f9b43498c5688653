"""
Error taxonomy for the travel atlas backend.

Every upstream or validation problem is raised as one of these classes and
translated to an HTTP response by the handlers registered in ``main.py``.
An empty search result and an unavailable place detail are ordinary values,
not errors.
"""
from typing import Optional


class TravelAtlasError(Exception):
    """Base exception for all travel atlas errors."""

    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict:
        """Body returned to the client: ``{error, details?}``."""
        body = {"error": self.public_message}
        if self.message and self.message != self.public_message:
            body["details"] = self.message
        return body


class ConfigurationError(TravelAtlasError):
    """A required upstream API key or setting is missing."""

    def to_response(self) -> dict:
        return {"error": self.message}


class UpstreamDenied(TravelAtlasError):
    """The provider refused the request (bad key, quota exceeded)."""

    status_code = 403

    def __init__(
        self,
        message: str,
        service_name: str = "Google Places",
        status: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.service_name = service_name
        self.status = status
        self.public_message = f"{service_name} API request denied"
        super().__init__(message, original_error)


class UpstreamTransportFailure(TravelAtlasError):
    """Network error, timeout, non-2xx or unexpected status from a provider."""

    def __init__(
        self,
        message: str,
        service_name: str = "Google Places",
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        self.service_name = service_name
        self.upstream_status_code = status_code
        self.public_message = f"Failed to reach {service_name} API"
        super().__init__(message, original_error)


class ValidationFailure(TravelAtlasError):
    """The model's reply was not valid JSON or lacked required fields."""

    public_message = "Invalid response format from AI"
