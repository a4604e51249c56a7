"""Exception hierarchy for the Meme Market backend."""

from .base import (
    CatalogError,
    ClientInputError,
    ErrorCode,
    ExternalServiceError,
    MemeMarketError,
)
from .specific import (
    InvalidMemeDataError,
    InvalidParameterError,
    InvalidQueryError,
    MemeNotFoundError,
    StoreUnavailableError,
    UpstreamGenerationError,
)

__all__ = [
    "CatalogError",
    "ClientInputError",
    "ErrorCode",
    "ExternalServiceError",
    "InvalidMemeDataError",
    "InvalidParameterError",
    "InvalidQueryError",
    "MemeMarketError",
    "MemeNotFoundError",
    "StoreUnavailableError",
    "UpstreamGenerationError",
]
