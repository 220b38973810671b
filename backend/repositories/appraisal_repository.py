"""
Appraisal (like) repository.
"""

from typing import Any, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


def _target_column(target: db_models.AppraisalTarget) -> Any:
    if target == db_models.AppraisalTarget.ISSUE:
        return db_models.Appraisal.issue_id
    return db_models.Appraisal.suggestion_id


class AppraisalRepository(BaseRepository[db_models.Appraisal]):
    """Repository for the appraisal ledger."""

    def __init__(self, db: Session):
        super().__init__(db_models.Appraisal, db)

    def get_for_user(
        self, user_id: int, target: db_models.AppraisalTarget, target_id: int
    ) -> Optional[db_models.Appraisal]:
        """
        Get a user's appraisal of one item.

        Args:
            user_id: User ID
            target: Item kind
            target_id: Issue or suggestion ID

        Returns:
            Appraisal if the user likes the item, None otherwise
        """
        return (
            self.db.query(db_models.Appraisal)
            .filter(
                db_models.Appraisal.user_id == user_id,
                _target_column(target) == target_id,
            )
            .first()
        )

    def stage_new(
        self, user_id: int, target: db_models.AppraisalTarget, target_id: int
    ) -> db_models.Appraisal:
        """Stage an appraisal row for insertion."""
        column = (
            "issue_id" if target == db_models.AppraisalTarget.ISSUE else "suggestion_id"
        )
        appraisal = db_models.Appraisal(user_id=user_id, **{column: target_id})
        self.db.add(appraisal)
        return appraisal

    def count_for(self, target: db_models.AppraisalTarget, target_id: int) -> int:
        return (
            self.db.query(func.count(db_models.Appraisal.id))
            .filter(_target_column(target) == target_id)
            .scalar()
            or 0
        )

    def get_counts_batch(
        self, target: db_models.AppraisalTarget, ids: Sequence[int]
    ) -> dict[int, int]:
        """
        Appraisal counts for many items of one kind in a single query.

        Args:
            target: Item kind
            ids: Item IDs

        Returns:
            Dict mapping every requested ID to its count (0 when unliked)
        """
        if not ids:
            return {}

        column = _target_column(target)
        rows = (
            self.db.query(column, func.count(db_models.Appraisal.id))
            .filter(column.in_(list(ids)))
            .group_by(column)
            .all()
        )
        result = {item_id: int(count) for item_id, count in rows}

        for item_id in ids:
            result.setdefault(item_id, 0)

        return result

    def delete_for_target(
        self, target: db_models.AppraisalTarget, target_id: int
    ) -> int:
        """Stage deletion of every appraisal of an item. Returns rows removed."""
        return (
            self.db.query(db_models.Appraisal)
            .filter(_target_column(target) == target_id)
            .delete(synchronize_session=False)
        )
