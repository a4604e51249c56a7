"""Pytest configuration and fixtures."""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src to Python path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Set test environment before settings are cached
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_JSON"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("OPENAI_API_KEY", None)

from meme_market.config.config import Settings  # noqa: E402
from meme_market.services.meme_service import MemeService  # noqa: E402

from tests.utils.mocks import FakeCatalogStore, StubTagger, make_record  # noqa: E402

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed query time used by ranking tests."""
    return NOW


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the developer's environment."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        log_json=False,
        log_level="WARNING",
        openai_api_key=None,
    )


@pytest.fixture
def fake_store() -> FakeCatalogStore:
    """Empty in-memory catalog."""
    return FakeCatalogStore()


@pytest.fixture
def stub_tagger() -> StubTagger:
    """Tagger returning canned tags and description."""
    return StubTagger(tags=["drake", "reaction"], description="Drake pointing at choices")


@pytest.fixture
def service(fake_store: FakeCatalogStore, stub_tagger: StubTagger, test_settings: Settings) -> MemeService:
    """Meme service over the in-memory catalog."""
    return MemeService(fake_store, stub_tagger, test_settings)


@pytest.fixture
def record_factory():
    """Factory for catalog records with sensible defaults."""
    return make_record
