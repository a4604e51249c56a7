"""Page/limit normalization shared by every ranked view."""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, TypeVar

from ..exceptions import InvalidParameterError

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100
# Offsets are bound as signed 64-bit integers by the SQL drivers
MAX_OFFSET = 2**63 - 1


@dataclass(frozen=True)
class PageParams:
    """Normalized pagination parameters.

    Attributes:
        page: 1-based page number
        limit: Page size, between 1 and the configured maximum
        skip: Number of ranked items preceding the page
    """

    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _coerce_int(value: Any) -> Optional[int]:
    """Parse ``value`` as an int; ``None`` when missing or non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _require_positive(name: str, raw: Any, value: Optional[int]) -> None:
    if value is not None and value < 1:
        raise InvalidParameterError(name, raw, "must be a positive integer")


def clamp_limit(
    limit: Any,
    default: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> int:
    """Normalize a limit-only parameter (tag endpoints).

    Missing or non-numeric values fall back to ``default``; values above
    ``max_limit`` are clamped; values below 1 are rejected.
    """
    parsed = _coerce_int(limit)
    _require_positive("limit", limit, parsed)
    if parsed is None:
        parsed = default
    return min(parsed, max_limit)


def normalize_pagination(
    page: Any = None,
    limit: Any = None,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> PageParams:
    """
    Normalize raw page/limit values.

    Args:
        page: Raw page value (int, numeric string, or None)
        limit: Raw limit value (int, numeric string, or None)
        default_limit: Limit used when ``limit`` is missing or non-numeric
        max_limit: Upper bound on ``limit``

    Returns:
        PageParams: page >= 1, 1 <= limit <= max_limit

    Raises:
        InvalidParameterError: If page or limit is a number below 1, or the
            page starts past MAX_OFFSET
    """
    parsed_page = _coerce_int(page)
    _require_positive("page", page, parsed_page)

    params = PageParams(
        page=parsed_page if parsed_page is not None else DEFAULT_PAGE,
        limit=clamp_limit(limit, default=default_limit, max_limit=max_limit),
    )
    if params.skip > MAX_OFFSET:
        raise InvalidParameterError("page", page, "is too large")
    return params


def paginate(items: Sequence[T], params: PageParams) -> List[T]:
    """Slice a fully ranked sequence down to the requested page."""
    return list(items[params.skip:params.skip + params.limit])


def build_pagination(params: PageParams, total_items: int, count: int) -> Dict[str, int]:
    """
    Build the pagination block returned with every ranked page.

    Args:
        params: Normalized pagination parameters
        total_items: Size of the full ranked set
        count: Number of items on this page

    Returns:
        Dict with ``current``, ``total`` (page count), ``count`` and ``total_items``
    """
    return {
        "current": params.page,
        "total": math.ceil(total_items / params.limit) if total_items else 0,
        "count": count,
        "total_items": total_items,
    }
