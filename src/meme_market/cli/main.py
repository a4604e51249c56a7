"""Command-line interface for the Meme Market backend."""

import asyncio
import sys
from typing import Any, Awaitable, Callable, Optional

import typer
from pydantic import BaseModel

from ..api.dependencies import build_resources, close_resources
from ..api.routers import memes
from ..config.config import get_settings
from ..database.connection import check_connection, init_models
from ..exceptions import MemeMarketError
from ..services.meme_service import MemeService
from ..utils.logging import get_logger, setup_logging

app = typer.Typer(help="Meme Market catalog and ranking CLI")

logger = get_logger(__name__)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
) -> None:
    """Configure logging for every command."""
    settings = get_settings()
    # stdout carries command output
    setup_logging(
        log_level or settings.log_level,
        json_format=False,
        log_file=settings.log_file,
        stream=sys.stderr,
    )


def _run_with_service(action: Callable[[MemeService], Awaitable[BaseModel]]) -> None:
    """Run one service call against the configured database and print the JSON result."""

    async def runner() -> BaseModel:
        settings = get_settings()
        resources = build_resources(settings)
        try:
            await init_models(resources.engine)
            service = MemeService(resources.store, resources.tagger, settings)
            return await action(service)
        finally:
            await close_resources(resources)

    try:
        result = asyncio.run(runner())
    except MemeMarketError as e:
        typer.echo(f"Error [{e.code.value}]: {e.message}", err=True)
        raise typer.Exit(code=1)
    typer.echo(result.model_dump_json(by_alias=True, indent=2))


@app.command("init-db")
def init_db() -> None:
    """Create the catalog tables."""
    settings = get_settings()

    async def runner() -> None:
        resources = build_resources(settings)
        try:
            await init_models(resources.engine)
        finally:
            await close_resources(resources)

    asyncio.run(runner())
    typer.echo(f"Catalog tables ready at {settings.database_url}")


@app.command("check-db")
def check_db() -> None:
    """Check that the catalog database is reachable."""
    settings = get_settings()

    async def runner() -> Any:
        resources = build_resources(settings)
        try:
            return await check_connection(resources.engine)
        finally:
            await close_resources(resources)

    try:
        asyncio.run(runner())
    except Exception as e:
        logger.error("database_check_failed", error=str(e))
        typer.echo(f"Database unreachable: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo("Database connection OK")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Bind port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Run the API server."""
    import uvicorn

    uvicorn.run("meme_market.api.app:app", host=host, port=port, reload=reload)


@app.command()
def search(
    query: str = typer.Argument(..., help="Search terms"),
    page: Optional[str] = typer.Option(None, help="Page number"),
    limit: Optional[str] = typer.Option(None, help="Page size"),
) -> None:
    """Search memes by tags and description."""
    _run_with_service(
        lambda service: memes.search_memes(q=query, page=page, limit=limit, service=service)
    )


@app.command()
def trending(
    page: Optional[str] = typer.Option(None, help="Page number"),
    limit: Optional[str] = typer.Option(None, help="Page size"),
) -> None:
    """Show trending memes."""
    _run_with_service(
        lambda service: memes.trending_memes(page=page, limit=limit, service=service)
    )


@app.command("popular-tags")
def popular_tags(limit: Optional[str] = typer.Option(None, help="Number of tags")) -> None:
    """Show the most used tags."""
    _run_with_service(lambda service: memes.popular_tags(limit=limit, service=service))


if __name__ == "__main__":
    app()
