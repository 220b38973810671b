"""
Analytics Service - aggregate figures for the analytics dashboard.

All figures cover issues and suggestions regardless of visibility.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import ValidationException
from repositories.submission_repository import IssueRepository, SuggestionRepository
from repositories.user_repository import UserRepository

TOP_CATEGORIES = 10
MAX_TREND_DAYS = 365


def _points(rows: list[tuple[str, int]]) -> list[schemas.TrendPoint]:
    return [schemas.TrendPoint(date=day, count=count) for day, count in rows]


def _status_breakdowns(
    rows: list[tuple[str, str, int]],
) -> dict[str, schemas.StatusBreakdown]:
    tracked = {
        db_models.ContentStatus.RESOLVED.value: "resolved",
        db_models.ContentStatus.UNDER_REVIEW.value: "under_review",
        db_models.ContentStatus.IN_PROGRESS.value: "in_progress",
    }
    by_county: dict[str, schemas.StatusBreakdown] = {}
    for county, status, count in rows:
        breakdown = by_county.setdefault(county, schemas.StatusBreakdown())
        breakdown.total += count
        if status in tracked:
            field = tracked[status]
            setattr(breakdown, field, getattr(breakdown, field) + count)
    return by_county


class AnalyticsService:
    """Service for analytics dashboard data."""

    @staticmethod
    def get_categories(db: Session) -> schemas.CategoryAnalytics:
        """
        Most used categories across both kinds.

        Returns:
            Up to ten categories ordered by combined count
        """
        merged: dict[str, dict[str, int]] = {}
        for category, count in IssueRepository(db).count_by_category():
            merged.setdefault(category, {"issues": 0, "suggestions": 0})["issues"] = count
        for category, count in SuggestionRepository(db).count_by_category():
            merged.setdefault(category, {"issues": 0, "suggestions": 0})[
                "suggestions"
            ] = count

        categories = [
            schemas.CategoryBreakdown(
                category=category,
                issues=counts["issues"],
                suggestions=counts["suggestions"],
                total=counts["issues"] + counts["suggestions"],
            )
            for category, counts in merged.items()
        ]
        categories.sort(key=lambda c: (-c.total, c.category))
        return schemas.CategoryAnalytics(categories=categories[:TOP_CATEGORIES])

    @staticmethod
    def get_trends(
        db: Session, period: int = 30, now: Optional[datetime] = None
    ) -> schemas.TrendAnalytics:
        """
        Daily creation counts, plus issues resolved per day.

        Args:
            db: Database session
            period: Window length in days (1..365)
            now: Reference instant, defaults to the current time

        Raises:
            ValidationException: If period is out of range
        """
        if period < 1 or period > MAX_TREND_DAYS:
            raise ValidationException("Invalid period. Must be between 1 and 365 days")

        now = now or datetime.now(timezone.utc)
        # SQLite stores naive UTC timestamps
        since = (now - timedelta(days=period)).replace(tzinfo=None)

        issues = IssueRepository(db)
        return schemas.TrendAnalytics(
            issues=_points(issues.daily_counts(since)),
            suggestions=_points(SuggestionRepository(db).daily_counts(since)),
            resolved=_points(
                issues.daily_counts(
                    since,
                    column="updated_at",
                    status=db_models.ContentStatus.RESOLVED.value,
                )
            ),
        )

    @staticmethod
    def get_geographic(db: Session) -> schemas.GeographicAnalytics:
        """Per-county status breakdown of both kinds, busiest county first."""
        issues = _status_breakdowns(IssueRepository(db).count_by_county_and_status())
        suggestions = _status_breakdowns(
            SuggestionRepository(db).count_by_county_and_status()
        )

        distribution = []
        for county in set(issues) | set(suggestions):
            issue_stats = issues.get(county, schemas.StatusBreakdown())
            suggestion_stats = suggestions.get(county, schemas.StatusBreakdown())
            distribution.append(
                schemas.CountyDistribution(
                    county=county,
                    issues=issue_stats,
                    suggestions=suggestion_stats,
                    total=issue_stats.total + suggestion_stats.total,
                )
            )
        distribution.sort(key=lambda d: (-d.total, d.county))
        return schemas.GeographicAnalytics(distribution=distribution)

    @staticmethod
    def get_overall(db: Session) -> schemas.OverallAnalytics:
        issues = IssueRepository(db)
        suggestions = SuggestionRepository(db)
        return schemas.OverallAnalytics(
            totals=schemas.OverallTotals(
                issues=issues.count(),
                suggestions=suggestions.count(),
                users=UserRepository(db).count_by_role(db_models.UserRole.USER),
                resolved=issues.count_resolved() + suggestions.count_resolved(),
            ),
            issues_by_status=[
                schemas.StatusCount(status=status, count=count)
                for status, count in issues.count_by_status()
            ],
            suggestions_by_status=[
                schemas.StatusCount(status=status, count=count)
                for status, count in suggestions.count_by_status()
            ],
        )
