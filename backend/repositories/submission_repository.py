"""
Shared queries for the two submission tables (issues and suggestions).
"""

from datetime import datetime
from typing import Any, Generic, List, Optional, TypeVar

from sqlalchemy import func, update
from sqlalchemy.orm import Session, selectinload

import repositories.db_models as db_models
from repositories.filters import ContentFilter
from .base import BaseRepository

S = TypeVar("S", db_models.Issue, db_models.Suggestion)


class SubmissionRepository(BaseRepository[S], Generic[S]):
    """
    Repository base for Issue and Suggestion.

    Subclasses set ``image_model`` and ``image_fk`` (the image table's
    parent column name).
    """

    image_model: Any = None
    image_fk: str = ""

    def __init__(self, model: type[S], db: Session):
        super().__init__(model, db)

    def find(
        self,
        filters: ContentFilter,
        skip: int = 0,
        limit: Optional[int] = None,
        newest_first: bool = True,
    ) -> List[S]:
        """
        List rows matching ``filters`` with images eagerly loaded.

        Args:
            filters: Structured predicates
            skip: Rows to skip
            limit: Maximum rows (None for all)
            newest_first: Order by created_at descending (ascending otherwise)

        Returns:
            Matching rows
        """
        query = filters.apply(self.db.query(self.model), self.model)
        order = (
            (self.model.created_at.desc(), self.model.id.desc())
            if newest_first
            else (self.model.created_at.asc(), self.model.id.asc())
        )
        query = query.options(selectinload(self.model.images)).order_by(*order)
        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def case_id_exists(self, case_id: str) -> bool:
        return (
            self.db.query(self.model.id).filter(self.model.case_id == case_id).first()
            is not None
        )

    def add_image(self, parent_id: int, url: str, public_id: Optional[str]) -> None:
        """Stage an image row for a parent submission."""
        self.db.add(
            self.image_model(**{self.image_fk: parent_id}, url=url, public_id=public_id)
        )

    def increment_view_count(self, entity: S) -> int:
        """
        Atomically add one view and commit.

        Returns:
            The stored view count after the increment
        """
        self.db.execute(
            update(self.model)
            .where(self.model.id == entity.id)
            .values(view_count=self.model.view_count + 1)
        )
        self.db.commit()
        self.db.refresh(entity)
        return entity.view_count

    def count_by_status(
        self, filters: Optional[ContentFilter] = None
    ) -> List[tuple[str, int]]:
        """(status, count) pairs, most frequent first."""
        query = self.db.query(self.model.status, func.count(self.model.id))
        if filters is not None:
            query = filters.apply(query, self.model)
        rows = (
            query.group_by(self.model.status)
            .order_by(func.count(self.model.id).desc(), self.model.status)
            .all()
        )
        return [(status, int(count)) for status, count in rows]

    def count_by_category(self) -> List[tuple[str, int]]:
        rows = (
            self.db.query(self.model.category, func.count(self.model.id))
            .group_by(self.model.category)
            .order_by(func.count(self.model.id).desc(), self.model.category)
            .all()
        )
        return [(category, int(count)) for category, count in rows]

    def count_by_county(self, filters: ContentFilter) -> dict[str, int]:
        """Counts grouped by county (rows with no county are skipped)."""
        query = self.db.query(self.model.county, func.count(self.model.id)).filter(
            self.model.county.isnot(None)
        )
        rows = filters.apply(query, self.model).group_by(self.model.county).all()
        return {county: int(count) for county, count in rows}

    def count_by_county_and_status(self) -> List[tuple[str, str, int]]:
        rows = (
            self.db.query(
                self.model.county, self.model.status, func.count(self.model.id)
            )
            .filter(self.model.county.isnot(None))
            .group_by(self.model.county, self.model.status)
            .all()
        )
        return [(county, status, int(count)) for county, status, count in rows]

    def daily_counts(
        self, since: datetime, column: str = "created_at", status: Optional[str] = None
    ) -> List[tuple[str, int]]:
        """
        Count rows per calendar day.

        Args:
            since: Earliest instant included
            column: Timestamp column to bucket on ("created_at" or "updated_at")
            status: Only count rows in this status

        Returns:
            (YYYY-MM-DD, count) pairs in date order
        """
        stamp = getattr(self.model, column)
        day = func.date(stamp)
        query = self.db.query(day, func.count(self.model.id)).filter(stamp >= since)
        if status is not None:
            query = query.filter(self.model.status == status)
        rows = query.group_by(day).order_by(day).all()
        return [(str(d), int(count)) for d, count in rows]

    def count_resolved(self) -> int:
        return (
            self.db.query(func.count(self.model.id))
            .filter(self.model.status == db_models.ContentStatus.RESOLVED.value)
            .scalar()
            or 0
        )


class IssueRepository(SubmissionRepository[db_models.Issue]):
    """Repository for Issue rows."""

    image_model = db_models.IssueImage
    image_fk = "issue_id"

    def __init__(self, db: Session):
        super().__init__(db_models.Issue, db)


class SuggestionRepository(SubmissionRepository[db_models.Suggestion]):
    """Repository for Suggestion rows."""

    image_model = db_models.SuggestionImage
    image_fk = "suggestion_id"

    def __init__(self, db: Session):
        super().__init__(db_models.Suggestion, db)
