"""Prometheus metrics for the ranking and engagement paths."""

from prometheus_client import Counter, Histogram

RANKING_QUERIES = Counter(
    "meme_ranking_queries_total",
    "Ranked view queries by operation and outcome",
    ["operation", "status"]
)

RANKING_LATENCY = Histogram(
    "meme_ranking_latency_seconds",
    "Time spent scanning and ranking a view",
    ["operation"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

RESULT_SIZE = Histogram(
    "meme_ranking_result_size",
    "Size of the full ranked set before pagination",
    ["operation"],
    buckets=[0, 1, 5, 10, 50, 100, 500, 1000, 5000]
)

ENGAGEMENT_EVENTS = Counter(
    "meme_engagement_events_total",
    "Upvotes and downloads recorded",
    ["kind"]
)

MEMES_CREATED = Counter(
    "meme_created_total",
    "Memes added to the catalog",
    ["metadata_source"]
)
