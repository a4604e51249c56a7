"""API tests through the FastAPI test client."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from meme_market.api.app import create_app
from meme_market.api.dependencies import get_catalog_store, get_tagger
from meme_market.config.config import get_settings
from meme_market.utils.clock import utc_now
from tests.utils.mocks import FakeCatalogStore, StubTagger, make_record


@pytest.fixture
def app(test_settings, fake_store, stub_tagger):
    app = create_app(test_settings)
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_catalog_store] = lambda: fake_store
    app.dependency_overrides[get_tagger] = lambda: stub_tagger
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


class TestSearchEndpoint:
    """Tests for GET /api/v1/memes/search."""

    def test_scenario(self, client, fake_store: FakeCatalogStore):
        now = utc_now()
        fake_store.seed(
            make_record(id="r1", tags=["drake", "reaction"], description="pointing at choices", created_at=now),
            make_record(id="r2", tags=["cat"], description="pointing meme", created_at=now),
            make_record(id="r3", tags=["dog"], description="unrelated", created_at=now),
        )

        response = client.get("/api/v1/memes/search", params={"q": "Pointing choices"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["searchQuery"] == "Pointing choices"
        assert body["searchWords"] == ["pointing", "choices"]
        assert [(m["id"], m["relevanceScore"]) for m in body["memes"]] == [("r1", 4), ("r2", 2)]
        assert body["pagination"] == {"current": 1, "total": 1, "count": 2, "totalItems": 2}
        assert {"imageUrl", "storageId", "createdAt"} <= set(body["memes"][0])

    @pytest.mark.parametrize("params", [{}, {"q": "   "}, {"q": "a b"}])
    def test_invalid_query(self, client, params):
        response = client.get("/api/v1/memes/search", params=params)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "MEME-4000"

    def test_non_numeric_paging_uses_defaults(self, client, fake_store):
        fake_store.seed(make_record(tags=["cat"]))
        response = client.get("/api/v1/memes/search", params={"q": "cat", "page": "x", "limit": "y"})
        assert response.status_code == 200
        assert response.json()["pagination"]["current"] == 1

    def test_non_positive_limit_rejected(self, client):
        response = client.get("/api/v1/memes/search", params={"q": "cat", "limit": "0"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MEME-4001"


class TestTrendingEndpoint:
    """Tests for GET /api/v1/memes/trending."""

    def test_trending_scores_are_rounded(self, client, fake_store):
        now = utc_now()
        fake_store.seed(
            make_record(id="hot", tags=["drake"], upvotes=10, downloads=5, created_at=now - timedelta(days=2)),
            make_record(id="old", tags=["cat"], upvotes=500, created_at=now - timedelta(days=31)),
        )

        response = client.get("/api/v1/memes/trending")

        assert response.status_code == 200
        body = response.json()
        assert [m["id"] for m in body["trendingMemes"]] == ["hot"]
        assert body["trendingMemes"][0]["trendingScore"] == 8.33
        assert body["trendingMemes"][0]["daysSinceCreation"] == 2.0
        assert body["mostTrendingTag"] == "drake"
        assert body["metadata"]["calculationPeriod"] == "Last 30 days"
        assert body["pagination"]["totalItems"] == 1

    def test_empty_catalog(self, client):
        body = client.get("/api/v1/memes/trending").json()
        assert body["trendingMemes"] == []
        assert body["mostTrendingTag"] is None
        assert body["pagination"]["total"] == 0


class TestTagEndpoints:
    """Tests for popular tags and tag suggestions."""

    def test_popular_tags_scenario(self, client, fake_store):
        fake_store.seed(
            make_record(tags=["funny", "cat"], upvotes=1),
            make_record(tags=["funny"], upvotes=2),
            make_record(tags=["dog"], upvotes=3),
        )

        body = client.get("/api/v1/memes/popular").json()

        funny = body["popularTags"][0]
        assert funny["tag"] == "funny"
        assert (funny["count"], funny["totalUpvotes"], funny["avgUpvotes"]) == (2, 3, 1.5)
        assert {"totalDownloads", "lastUsed"} <= set(funny)

    def test_suggest(self, client, fake_store):
        fake_store.seed(make_record(tags=["cat", "catnap", "dog"]))
        body = client.get("/api/v1/memes/tags/suggest", params={"q": "cat"}).json()
        assert body["query"] == "cat"
        assert [s["tag"] for s in body["suggestions"]] == ["cat", "catnap"]

    def test_suggest_requires_fragment(self, client):
        assert client.get("/api/v1/memes/tags/suggest").status_code == 400


class TestCatalogEndpoints:
    """Tests for listing, lookup, creation and engagement."""

    def test_list_with_filter_and_popularity(self, client, fake_store):
        fake_store.seed(
            make_record(id="a", tags=["cat"], upvotes=2, downloads=1),
            make_record(id="b", tags=["dog"], upvotes=9),
        )
        body = client.get("/api/v1/memes/", params={"tags": "CAT", "sort": "popular"}).json()
        assert [(m["id"], m["popularityScore"]) for m in body["memes"]] == [("a", 5)]
        assert body["pagination"]["totalItems"] == 1

    def test_list_unknown_sort(self, client):
        response = client.get("/api/v1/memes/", params={"sort": "random"})
        assert response.status_code == 400

    def test_get_meme(self, client, fake_store):
        fake_store.seed(make_record(id="m1", tags=["cat"]))
        assert client.get("/api/v1/memes/m1").json()["meme"]["id"] == "m1"

    def test_get_missing_meme(self, client):
        response = client.get("/api/v1/memes/nope")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "MEME-4040"

    def test_upvote_and_download(self, client, fake_store):
        fake_store.seed(make_record(id="m1", upvotes=4))
        upvote = client.post("/api/v1/memes/m1/upvote").json()
        download = client.post("/api/v1/memes/m1/download").json()
        assert (upvote["memeId"], upvote["upvotes"]) == ("m1", 5)
        assert download["downloads"] == 1

    def test_upvote_missing(self, client):
        assert client.post("/api/v1/memes/nope/upvote").status_code == 404

    def test_create_with_generated_metadata(self, client, fake_store):
        response = client.post(
            "/api/v1/memes/",
            json={"imageUrl": "https://img.example.com/x.jpg", "storageId": "memes/x"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["meme"]["tags"] == ["drake", "reaction"]
        assert body["metadata"] == {"descriptionGenerated": True, "tagsGenerated": True}
        assert body["meme"]["id"] in fake_store.records

    def test_create_with_invalid_tags(self, client, fake_store):
        response = client.post(
            "/api/v1/memes/",
            json={"imageUrl": "https://img.example.com/x.jpg", "storageId": "memes/x", "tags": ["ok", "b@d"]},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MEME-4002"
        assert fake_store.records == {}

    def test_create_with_missing_fields(self, client):
        response = client.post("/api/v1/memes/", json={"storageId": "memes/x"})
        assert response.status_code == 400
        assert response.json()["success"] is False


class TestFailures:
    """Tests for infrastructure failures."""

    def test_store_failure_is_a_server_error(self, client, fake_store):
        fake_store.unavailable = True
        response = client.get("/api/v1/memes/popular")

        assert response.status_code == 500
        body = response.json()
        assert body["error"]["code"] == "MEME-5000"
        assert "original_error" not in body["error"]

    def test_health(self, client, fake_store):
        assert client.get("/api/health").json()["catalog"] == "ok"
        assert client.get("/api/health/liveness").json() == {"status": "alive"}

        fake_store.unavailable = True
        assert client.get("/api/health").status_code == 503
        assert client.get("/api/health/readiness").json()["status"] == "not_ready"

    def test_metrics_endpoint(self, client):
        client.get("/api/v1/memes/popular")
        response = client.get("/metrics/")
        assert response.status_code == 200
        assert "meme_ranking_queries_total" in response.text


def test_end_to_end_with_sql_catalog(test_settings):
    """Create, upvote and find a meme through the real SQLite store."""
    app = create_app(test_settings)
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_tagger] = lambda: StubTagger(tags=None, description=None)

    with TestClient(app) as client:
        created = client.post(
            "/api/v1/memes/",
            json={
                "imageUrl": "https://img.example.com/e2e.jpg",
                "storageId": "memes/e2e",
                "description": "Distracted boyfriend looking back",
                "tags": ["boyfriend", "distracted"],
            },
        ).json()
        meme_id = created["meme"]["id"]

        assert client.post(f"/api/v1/memes/{meme_id}/upvote").json()["upvotes"] == 1

        body = client.get("/api/v1/memes/search", params={"q": "boyfriend"}).json()
        assert [m["id"] for m in body["memes"]] == [meme_id]
        assert body["memes"][0]["relevanceScore"] == 3
        assert body["memes"][0]["upvotes"] == 1

        fallback = client.post(
            "/api/v1/memes/",
            json={"imageUrl": "https://img.example.com/f.jpg", "storageId": "memes/f"},
        ).json()
        assert fallback["meme"]["tags"] == test_settings.fallback_tags
