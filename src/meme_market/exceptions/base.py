"""Base exceptions and error codes for the Meme Market backend."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Stable codes carried in every error response."""

    # Client input errors (4000-4099)
    INVALID_QUERY = "MEME-4000"
    INVALID_PARAMETER = "MEME-4001"
    INVALID_MEME_DATA = "MEME-4002"

    # Lookup errors (4040-4049)
    MEME_NOT_FOUND = "MEME-4040"

    # Catalog store errors (5000-5019)
    STORE_UNAVAILABLE = "MEME-5000"

    # Upstream collaborator errors (5020-5039)
    UPSTREAM_GENERATION_FAILED = "MEME-5020"

    # General Errors (9000-9999)
    UNKNOWN_ERROR = "MEME-9000"


class MemeMarketError(Exception):
    """
    Root of every error the catalog, ranking and tagging layers raise.

    ``status_code`` is the HTTP status the API answers with; subclasses
    override it. ``to_dict`` is the ``error`` member of the response body.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = dict(details or {})
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for API responses and CLI output."""
        payload: Dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
            "type": type(self).__name__,
        }
        if self.details:
            payload["details"] = self.details
        if self.original_error is not None:
            payload["original_error"] = str(self.original_error)
        return payload


class ClientInputError(MemeMarketError):
    """Base class for malformed client input. Never retried."""

    status_code = 400

    def __init__(
        self, message: str, code: ErrorCode = ErrorCode.INVALID_PARAMETER, **kwargs: Any
    ) -> None:
        super().__init__(message, code, **kwargs)


class CatalogError(MemeMarketError):
    """The catalog store could not serve a read or write."""

    def __init__(
        self, message: str, code: ErrorCode = ErrorCode.STORE_UNAVAILABLE, **kwargs: Any
    ) -> None:
        super().__init__(message, code, **kwargs)


class ExternalServiceError(MemeMarketError):
    """The tagging model or another upstream collaborator failed."""

    status_code = 502

    def __init__(
        self, message: str, code: ErrorCode = ErrorCode.UPSTREAM_GENERATION_FAILED, **kwargs: Any
    ) -> None:
        super().__init__(message, code, **kwargs)
