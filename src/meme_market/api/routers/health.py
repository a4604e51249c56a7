"""Health check router."""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...config.config import Settings, get_settings
from ...exceptions import StoreUnavailableError
from ...repositories.catalog import CatalogStore
from ..dependencies import get_catalog_store

router = APIRouter()


async def _catalog_status(store: CatalogStore) -> str:
    try:
        await store.ping()
    except StoreUnavailableError:
        return "unavailable"
    return "ok"


@router.get("/health", response_model=Dict[str, Any])
async def health_check(
    store: CatalogStore = Depends(get_catalog_store),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """
    Health check endpoint.

    Returns:
        Dict containing health status information; 503 when the catalog is unreachable
    """
    catalog = await _catalog_status(store)
    healthy = catalog == "ok"
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "version": settings.app_version,
            "env": settings.app_env,
            "catalog": catalog,
            "tagging_model": {
                "model": settings.dspy_model,
                "openai_configured": settings.openai_api_key is not None,
            },
        },
    )


@router.get("/health/liveness", response_model=Dict[str, Any])
async def liveness_check() -> Dict[str, Any]:
    """
    Liveness probe endpoint.

    Returns:
        Dict containing liveness status
    """
    return {"status": "alive"}


@router.get("/health/readiness", response_model=Dict[str, Any])
async def readiness_check(store: CatalogStore = Depends(get_catalog_store)) -> JSONResponse:
    """
    Readiness probe endpoint.

    Returns:
        Dict containing readiness status
    """
    catalog = await _catalog_status(store)
    ready = catalog == "ok"
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "not_ready", "catalog": catalog},
    )
