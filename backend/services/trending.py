"""
Trending score and listing sort order.

`score_item` is a pure function shared by every listing surface so that an
item is ranked the same way wherever it appears.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Protocol, TypeVar

from models.exceptions import ValidationException

# Trending thresholds
APPRAISAL_THRESHOLD = 3
VIEW_THRESHOLD = 10
PAIRED_APPRAISAL_THRESHOLD = 2
PAIRED_VIEW_THRESHOLD = 5
RECENT_DAYS = 7

# Score weights
APPRAISAL_WEIGHT = 2
FRESH_FACTOR = 1.0  # up to 7 days old
AGING_FACTOR = 0.5  # up to 30 days old
STALE_FACTOR = 0.25
AGING_DAYS = 30


@dataclass(frozen=True)
class TrendingResult:
    is_trending: bool
    trending_score: float


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as stored by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def score_item(
    created_at: datetime,
    appraisal_count: int,
    view_count: int,
    now: Optional[datetime] = None,
) -> TrendingResult:
    """
    Compute trending status and score for one item.

    An item is trending with 3+ appraisals, or 10+ views, or 2+ appraisals
    combined with either 5+ views or an age of at most 7 days. The score is
    ``(appraisals * 2 + views)`` scaled by 1.0, 0.5 or 0.25 for items up to
    7 days, up to 30 days, and older.

    Args:
        created_at: Item creation time
        appraisal_count: Number of appraisals
        view_count: Number of views
        now: Evaluation instant (defaults to the current time)

    Returns:
        TrendingResult
    """
    now = as_utc(now or datetime.now(timezone.utc))
    created_at = as_utc(created_at)

    days_since_creation = (now - created_at) / timedelta(days=1)
    is_recent = created_at >= now - timedelta(days=RECENT_DAYS)

    is_trending = (
        appraisal_count >= APPRAISAL_THRESHOLD
        or view_count >= VIEW_THRESHOLD
        or (
            appraisal_count >= PAIRED_APPRAISAL_THRESHOLD
            and view_count >= PAIRED_VIEW_THRESHOLD
        )
        or (appraisal_count >= PAIRED_APPRAISAL_THRESHOLD and is_recent)
    )

    if days_since_creation <= RECENT_DAYS:
        recency_factor = FRESH_FACTOR
    elif days_since_creation <= AGING_DAYS:
        recency_factor = AGING_FACTOR
    else:
        recency_factor = STALE_FACTOR

    score = (appraisal_count * APPRAISAL_WEIGHT + view_count) * recency_factor
    return TrendingResult(is_trending=is_trending, trending_score=score)


class SortMode(str, enum.Enum):
    """Listing sort modes."""

    NEWEST = "newest"
    OLDEST = "oldest"
    MOST_LIKED = "most_liked"
    TRENDING = "trending"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortMode":
        """
        Parse a query-string value, defaulting to NEWEST.

        Raises:
            ValidationException: If the value is not a known mode
        """
        if not value:
            return cls.NEWEST
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(mode.value for mode in cls)
            raise ValidationException(f"Invalid sort. Must be one of: {allowed}")


class Rankable(Protocol):
    created_at: datetime
    appraisal_count: int
    is_trending: bool
    trending_score: float


R = TypeVar("R", bound=Rankable)


def _timestamp(item: Rankable) -> float:
    return as_utc(item.created_at).timestamp()


def sort_items(items: Iterable[R], mode: SortMode) -> List[R]:
    """
    Order annotated items.

    - trending: trending items first, by descending score; the rest (and
      score ties) by newest first
    - most_liked: descending appraisal count, otherwise keeping input order
    - newest / oldest: by creation time

    Args:
        items: Items carrying created_at, appraisal_count, is_trending and
            trending_score
        mode: Sort mode

    Returns:
        New sorted list
    """
    items = list(items)
    if mode == SortMode.TRENDING:
        return sorted(
            items,
            key=lambda i: (
                not i.is_trending,
                -i.trending_score if i.is_trending else 0.0,
                -_timestamp(i),
            ),
        )
    if mode == SortMode.MOST_LIKED:
        return sorted(items, key=lambda i: -i.appraisal_count)
    if mode == SortMode.OLDEST:
        return sorted(items, key=_timestamp)
    return sorted(items, key=_timestamp, reverse=True)
