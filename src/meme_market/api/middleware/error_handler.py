"""Exception handlers turning service errors into API responses."""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...exceptions import ErrorCode, MemeMarketError
from ...utils.logging import get_logger

logger = get_logger(__name__)


def error_body(message: str, error: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Build the error envelope shared by every failing endpoint.

    Args:
        message: Human-readable message
        error: Machine-readable error details

    Returns:
        Dictionary with success, message and error keys
    """
    return {"success": False, "message": message, "error": error or {}}


async def meme_market_error_handler(request: Request, exc: MemeMarketError) -> JSONResponse:
    """Handle errors raised by the service layer."""
    error = exc.to_dict()
    if exc.status_code >= 500:
        # Driver messages stay in the logs
        error.pop("original_error", None)
        logger.error(
            "request_failed",
            path=request.url.path,
            code=exc.code.value,
            error=str(exc.original_error or exc),
        )
    else:
        logger.info("request_rejected", path=request.url.path, code=exc.code.value)

    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, error))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle malformed request bodies."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.info("request_rejected", path=request.url.path, code=ErrorCode.INVALID_MEME_DATA.value)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            "Invalid request",
            {
                "code": ErrorCode.INVALID_MEME_DATA.value,
                "type": "RequestValidationError",
                "details": {"validation_errors": errors},
            },
        ),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all unhandled exceptions globally."""
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            "An unexpected error occurred",
            {"code": ErrorCode.UNKNOWN_ERROR.value, "type": exc.__class__.__name__},
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the handlers to an application."""
    app.add_exception_handler(MemeMarketError, meme_market_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
