"""Tests for ranked search."""

from datetime import timedelta

import pytest

from meme_market.exceptions import InvalidQueryError
from meme_market.repositories.catalog import CatalogFilter
from meme_market.services.relevance_search import (
    MAX_QUERY_LENGTH,
    RelevanceSearch,
    rank_matches,
    score_record,
    tokenize_query,
)
from meme_market.utils.pagination import PageParams
from tests.utils.mocks import FakeCatalogStore, make_record


class TestTokenizeQuery:
    """Tests for query tokenization."""

    def test_lowercases_and_splits_on_whitespace_runs(self):
        assert tokenize_query("  Pointing \t CHOICES\n") == ["pointing", "choices"]

    def test_drops_single_character_tokens(self):
        assert tokenize_query("a cat i x dog") == ["cat", "dog"]

    def test_repeated_tokens_kept_once(self):
        assert tokenize_query("cat dog cat") == ["cat", "dog"]

    @pytest.mark.parametrize("query", [None, "", "   ", "\t\n"])
    def test_blank_query_is_rejected(self, query):
        with pytest.raises(InvalidQueryError, match="Search query is required"):
            tokenize_query(query)

    def test_query_without_usable_tokens_is_rejected(self):
        with pytest.raises(InvalidQueryError, match="valid search terms") as exc_info:
            tokenize_query("a b c")
        assert exc_info.value.details == {"query": "a b c"}

    def test_overlong_query_is_rejected(self):
        query = " ".join(f"term{i}" for i in range(600))
        with pytest.raises(InvalidQueryError, match="at most 200 characters"):
            tokenize_query(query)

    def test_query_at_length_cap_is_accepted(self):
        query = "  " + "ab " * 66 + "cd  "
        assert len(query.strip()) == MAX_QUERY_LENGTH
        assert tokenize_query(query) == ["ab", "cd"]


class TestScoring:
    """Tests for relevance scoring."""

    def test_description_hits_weigh_double(self):
        record = make_record(tags=["drake", "reaction"], description="pointing at choices")
        hit = score_record(record, ["pointing", "choices"])
        assert hit.description_matches == 2
        assert hit.tag_matches == 0
        assert hit.score == 4

    def test_token_counted_once_per_field(self):
        record = make_record(tags=["cat", "catnap", "cats"], description="cat sees cat")
        hit = score_record(record, ["cat"])
        assert hit.description_matches == 1
        assert hit.tag_matches == 1
        assert hit.score == 3

    def test_substring_containment_matches_inside_words(self):
        record = make_record(tags=["category"], description="")
        assert score_record(record, ["cat"]).tag_matches == 1

    def test_scenario_ranking(self, now):
        r1 = make_record(id="r1", tags=["drake", "reaction"], description="pointing at choices", created_at=now)
        r2 = make_record(id="r2", tags=["cat"], description="pointing meme", created_at=now)
        ranked = rank_matches([r2, r1], ["pointing", "choices"])
        assert [hit.record.id for hit in ranked] == ["r1", "r2"]
        assert [hit.score for hit in ranked] == [4, 2]

    def test_non_matching_records_are_dropped(self):
        records = [make_record(tags=["dog"], description="a good boy")]
        assert rank_matches(records, ["cat"]) == []

    def test_ties_go_to_newest_then_id(self, now):
        older = make_record(id="older", tags=["cat"], created_at=now - timedelta(days=3))
        newer = make_record(id="newer", tags=["cat"], created_at=now)
        twin_b = make_record(id="b", tags=["cat"], created_at=now - timedelta(days=5))
        twin_a = make_record(id="a", tags=["cat"], created_at=now - timedelta(days=5))
        ranked = rank_matches([older, twin_b, newer, twin_a], ["cat"])
        assert [hit.record.id for hit in ranked] == ["newer", "older", "a", "b"]


class TestRelevanceSearch:
    """Tests for the search component over a catalog store."""

    @pytest.mark.asyncio
    async def test_paginates_after_ranking(self, now):
        records = [
            make_record(id=f"m{i}", tags=["cat"], description="cat" if i % 2 else "", created_at=now - timedelta(hours=i))
            for i in range(5)
        ]
        search = RelevanceSearch(FakeCatalogStore(records))

        first = await search.search("cat", PageParams(page=1, limit=2))
        second = await search.search("cat", PageParams(page=2, limit=2))

        assert first.total == 5
        # Description hits (score 3) outrank tag-only hits (score 1)
        assert [hit.record.id for hit in first.items] == ["m1", "m3"]
        assert [hit.record.id for hit in second.items] == ["m0", "m2"]

    @pytest.mark.asyncio
    async def test_scans_with_text_terms(self):
        store = FakeCatalogStore([make_record(tags=["cat"])])
        await RelevanceSearch(store).search("Cat  Dog", PageParams(page=1, limit=20))
        assert store.scan_filters == [CatalogFilter(text_terms=("cat", "dog"))]

    @pytest.mark.asyncio
    async def test_invalid_query_never_reaches_store(self):
        store = FakeCatalogStore([make_record(tags=["cat"])])
        with pytest.raises(InvalidQueryError):
            await RelevanceSearch(store).search("   ", PageParams(page=1, limit=20))
        assert store.scan_filters == []

    @pytest.mark.asyncio
    async def test_overlong_query_never_reaches_store(self):
        store = FakeCatalogStore([make_record(tags=["cat"])])
        query = "cat " + " ".join(f"tag{i}" for i in range(600))
        with pytest.raises(InvalidQueryError):
            await RelevanceSearch(store).search(query, PageParams(page=1, limit=20))
        assert store.scan_filters == []
