"""Specific exception classes raised by the ranking core and its collaborators."""

from typing import Any, Dict, Optional

from .base import (
    CatalogError,
    ClientInputError,
    ErrorCode,
    ExternalServiceError,
)


class InvalidQueryError(ClientInputError):
    """Raised when a search query is empty or has no usable terms."""

    def __init__(self, message: str, query: Optional[str] = None) -> None:
        """
        Initialize invalid query error.

        Args:
            message: Error message
            query: The offending raw query
        """
        details = {"query": query} if query is not None else None
        super().__init__(message, ErrorCode.INVALID_QUERY, details=details)


class InvalidParameterError(ClientInputError):
    """Raised when a query parameter is out of range or not recognised."""

    def __init__(self, parameter: str, value: Any, reason: str) -> None:
        """
        Initialize invalid parameter error.

        Args:
            parameter: Parameter name
            value: Rejected value
            reason: Why the value was rejected
        """
        super().__init__(
            f"Invalid value for '{parameter}': {reason}",
            ErrorCode.INVALID_PARAMETER,
            details={"parameter": parameter, "value": value},
        )


class InvalidMemeDataError(ClientInputError):
    """Raised when a new meme carries invalid tags or description."""

    def __init__(self, message: str, validation_errors: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize invalid meme data error.

        Args:
            message: Error message
            validation_errors: Per-field validation details
        """
        super().__init__(
            message,
            ErrorCode.INVALID_MEME_DATA,
            details={"validation_errors": validation_errors or {}},
        )


class MemeNotFoundError(CatalogError):
    """Raised when a referenced meme does not exist in the catalog."""

    status_code = 404

    def __init__(self, meme_id: str) -> None:
        """
        Initialize not found error.

        Args:
            meme_id: The missing meme ID
        """
        super().__init__(
            f"Meme with ID {meme_id} not found",
            ErrorCode.MEME_NOT_FOUND,
            details={"meme_id": meme_id},
        )
        self.meme_id = meme_id


class StoreUnavailableError(CatalogError):
    """Raised when the underlying catalog cannot be read or written."""

    status_code = 500

    def __init__(
        self,
        operation: str,
        original_error: Optional[Exception] = None,
    ) -> None:
        """
        Initialize store unavailable error.

        Args:
            operation: Store operation that failed
            original_error: Underlying driver exception
        """
        super().__init__(
            f"Catalog store unavailable during '{operation}'",
            ErrorCode.STORE_UNAVAILABLE,
            details={"operation": operation},
            original_error=original_error,
        )
        self.operation = operation


class UpstreamGenerationError(ExternalServiceError):
    """Raised when the tag/description model fails or returns unusable output."""

    def __init__(
        self,
        message: str,
        operation: str,
        original_error: Optional[Exception] = None,
    ) -> None:
        """
        Initialize upstream generation error.

        Args:
            message: Error message
            operation: Generation operation (tags or description)
            original_error: Underlying provider exception
        """
        super().__init__(
            message,
            ErrorCode.UPSTREAM_GENERATION_FAILED,
            details={"operation": operation},
            original_error=original_error,
        )
        self.operation = operation
