"""Ranked search over meme tags and descriptions."""

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from ..exceptions import InvalidQueryError
from ..models.meme import MemeRecord
from ..repositories.catalog import CatalogFilter, CatalogStore
from ..utils.logging import get_logger
from ..utils.pagination import PageParams, paginate

logger = get_logger(__name__)

DESCRIPTION_WEIGHT = 2
TAG_WEIGHT = 1
MAX_QUERY_LENGTH = 200

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ScoredMeme:
    """A search hit with its relevance breakdown."""

    record: MemeRecord
    description_matches: int
    tag_matches: int

    @property
    def score(self) -> int:
        return DESCRIPTION_WEIGHT * self.description_matches + TAG_WEIGHT * self.tag_matches


@dataclass(frozen=True)
class SearchResult:
    """One page of ranked search hits plus the size of the whole match set."""

    query: str
    tokens: List[str]
    items: List[ScoredMeme]
    total: int
    page: PageParams


def tokenize_query(query: str) -> List[str]:
    """
    Split a raw query into search tokens.

    Lowercases, splits on whitespace runs and drops tokens of one character.
    Repeated tokens are kept once, in order of first appearance.

    Raises:
        InvalidQueryError: If the query is blank, longer than
            MAX_QUERY_LENGTH characters, or leaves no tokens
    """
    if query is None or not query.strip():
        raise InvalidQueryError("Search query is required", query=query)
    if len(query.strip()) > MAX_QUERY_LENGTH:
        raise InvalidQueryError(
            f"Search query must be at most {MAX_QUERY_LENGTH} characters", query=query
        )

    tokens: List[str] = []
    for word in _WHITESPACE.split(query.lower()):
        if len(word) > 1 and word not in tokens:
            tokens.append(word)

    if not tokens:
        raise InvalidQueryError("Please provide valid search terms", query=query)
    return tokens


def score_record(record: MemeRecord, tokens: Iterable[str]) -> ScoredMeme:
    """
    Count how many distinct tokens hit the description and the tags.

    Matching is raw substring containment, so ``cat`` also hits ``category``.
    """
    description = record.description.lower()
    tags = [tag.lower() for tag in record.tags]
    distinct = set(tokens)

    description_matches = sum(1 for token in distinct if token in description)
    tag_matches = sum(1 for token in distinct if any(token in tag for tag in tags))
    return ScoredMeme(record, description_matches, tag_matches)


def rank_matches(records: Sequence[MemeRecord], tokens: Sequence[str]) -> List[ScoredMeme]:
    """
    Score every candidate and order the full match set.

    Records matching no token are dropped. Order: score desc, newest first,
    then id for a stable page boundary.
    """
    scored = [score_record(record, tokens) for record in records]
    hits = [hit for hit in scored if hit.description_matches or hit.tag_matches]
    hits.sort(key=lambda hit: (-hit.score, -hit.record.created_at.timestamp(), hit.record.id))
    return hits


class RelevanceSearch:
    """Tokenize, fetch candidates, score and paginate."""

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    async def search(self, query: str, page: PageParams) -> SearchResult:
        tokens = tokenize_query(query)
        candidates = await self.store.scan(CatalogFilter(text_terms=tuple(tokens)))
        ranked = rank_matches(candidates, tokens)

        logger.info(
            "search_ranked",
            tokens=tokens,
            candidates=len(candidates),
            matches=len(ranked),
            page=page.page,
            limit=page.limit,
        )
        return SearchResult(
            query=query,
            tokens=tokens,
            items=paginate(ranked, page),
            total=len(ranked),
            page=page,
        )
