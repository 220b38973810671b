"""
Public listing surfaces: civic space, all public items, trending and the
county map.

Every listing annotates items with appraisal counts (one grouped query per
kind) and the shared trending score before sorting.
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Session

import models.schemas as schemas
from models.counties import COUNTY_COORDINATES, is_valid_county
from models.exceptions import ValidationException
from repositories.appraisal_repository import AppraisalRepository
from repositories.db_models import AppraisalTarget
from repositories.filters import PUBLIC_LISTING, ContentFilter
from repositories.submission_repository import IssueRepository, SuggestionRepository
from services.trending import SortMode, score_item, sort_items

M = TypeVar("M", bound=BaseModel)

ITEM_TYPES = ("all", "issues", "suggestions")


def annotate(
    db: Session,
    rows: Sequence,
    target: AppraisalTarget,
    schema: Type[M],
    now: Optional[datetime] = None,
) -> List[M]:
    """
    Convert rows into ranked schemas with appraisal counts and trending data.

    Args:
        db: Database session
        rows: Issue or Suggestion rows
        target: Appraisal target kind of the rows
        schema: RankedIssue or RankedSuggestion
        now: Evaluation instant shared by every row

    Returns:
        Schemas in the same order as ``rows``
    """
    if not rows:
        return []
    now = now or datetime.now(timezone.utc)
    counts = AppraisalRepository(db).get_counts_batch(target, [row.id for row in rows])

    ranked: List[M] = []
    for row in rows:
        appraisal_count = counts.get(row.id, 0)
        result = score_item(row.created_at, appraisal_count, row.view_count or 0, now)
        item = schema.model_validate(row)
        ranked.append(
            item.model_copy(
                update={
                    "appraisal_count": appraisal_count,
                    "is_trending": result.is_trending,
                    "trending_score": result.trending_score,
                }
            )
        )
    return ranked


def _ranked_public(
    db: Session, filters: ContentFilter, now: datetime
) -> tuple[List[schemas.RankedIssue], List[schemas.RankedSuggestion]]:
    issues = annotate(
        db,
        IssueRepository(db).find(filters),
        AppraisalTarget.ISSUE,
        schemas.RankedIssue,
        now,
    )
    suggestions = annotate(
        db,
        SuggestionRepository(db).find(filters),
        AppraisalTarget.SUGGESTION,
        schemas.RankedSuggestion,
        now,
    )
    return issues, suggestions


class ListingService:
    """Read-only public listings."""

    @staticmethod
    def get_civic_space(db: Session, county: Optional[str]) -> schemas.CivicSpace:
        """
        Public items of one county, trending first.

        Raises:
            ValidationException: If county is missing or not a known county
        """
        if not county:
            raise ValidationException("County parameter is required")
        if not is_valid_county(county):
            raise ValidationException("Invalid county")

        now = datetime.now(timezone.utc)
        filters = ContentFilter(is_public=True, complete_only=True, county=county)
        issues, suggestions = _ranked_public(db, filters, now)

        issues = sort_items(issues, SortMode.TRENDING)
        suggestions = sort_items(suggestions, SortMode.TRENDING)
        return schemas.CivicSpace(
            county=county,
            issues=issues,
            suggestions=suggestions,
            issues_count=len(issues),
            suggestions_count=len(suggestions),
        )

    @staticmethod
    def get_all_public_items(
        db: Session, sort: Optional[str] = None, item_type: Optional[str] = None
    ) -> schemas.PublicItems:
        """
        Every public item across counties.

        Args:
            db: Database session
            sort: newest (default), oldest, most_liked or trending
            item_type: all (default), issues or suggestions; counts always
                cover both kinds

        Raises:
            ValidationException: If sort or type is not recognised
        """
        mode = SortMode.parse(sort)
        item_type = item_type or "all"
        if item_type not in ITEM_TYPES:
            raise ValidationException(
                'Invalid type. Must be "all", "issues" or "suggestions"'
            )

        now = datetime.now(timezone.utc)
        issues, suggestions = _ranked_public(db, PUBLIC_LISTING, now)
        issues = sort_items(issues, mode)
        suggestions = sort_items(suggestions, mode)

        issues_count = len(issues)
        suggestions_count = len(suggestions)
        return schemas.PublicItems(
            issues=issues if item_type in ("all", "issues") else [],
            suggestions=suggestions if item_type in ("all", "suggestions") else [],
            issues_count=issues_count,
            suggestions_count=suggestions_count,
            total_count=issues_count + suggestions_count,
        )

    @staticmethod
    def get_trending(db: Session) -> schemas.TrendingItems:
        """Public items that currently qualify as trending, best first."""
        now = datetime.now(timezone.utc)
        issues, suggestions = _ranked_public(db, PUBLIC_LISTING, now)

        issues = [i for i in sort_items(issues, SortMode.TRENDING) if i.is_trending]
        suggestions = [
            s for s in sort_items(suggestions, SortMode.TRENDING) if s.is_trending
        ]
        return schemas.TrendingItems(
            issues=issues,
            suggestions=suggestions,
            issues_count=len(issues),
            suggestions_count=len(suggestions),
        )

    @staticmethod
    def get_county_stats(db: Session) -> schemas.CountyStats:
        """Public item counts per county, for counties with at least one item."""
        issue_counts = IssueRepository(db).count_by_county(PUBLIC_LISTING)
        suggestion_counts = SuggestionRepository(db).count_by_county(PUBLIC_LISTING)

        counties = []
        for county, centre in COUNTY_COORDINATES.items():
            issues = issue_counts.get(county, 0)
            suggestions = suggestion_counts.get(county, 0)
            if issues == 0 and suggestions == 0:
                continue
            counties.append(
                schemas.CountyStat(
                    county=county,
                    issues_count=issues,
                    suggestions_count=suggestions,
                    total_count=issues + suggestions,
                    coordinates=schemas.Coordinates(lat=centre.lat, lng=centre.lng),
                )
            )
        return schemas.CountyStats(counties=counties, total_counties=len(counties))
