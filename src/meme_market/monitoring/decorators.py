"""Decorators for tracking metrics on service coroutines."""

import functools
import time
from typing import Any, Callable, TypeVar, cast

from ..exceptions import ClientInputError
from .metrics import RANKING_LATENCY, RANKING_QUERIES

F = TypeVar('F', bound=Callable[..., Any])


def track_ranking_query(operation: str) -> Callable[[F], F]:
    """Decorator recording outcome and latency of a ranked view query.

    Args:
        operation: Label for the view (search, trending, popular_tags, ...)

    Returns:
        A decorator for async functions.
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except ClientInputError:
                RANKING_QUERIES.labels(operation=operation, status="rejected").inc()
                raise
            except Exception:
                RANKING_QUERIES.labels(operation=operation, status="error").inc()
                raise
            finally:
                RANKING_LATENCY.labels(operation=operation).observe(time.perf_counter() - start_time)
            RANKING_QUERIES.labels(operation=operation, status="success").inc()
            return result

        return cast(F, wrapper)
    return decorator
