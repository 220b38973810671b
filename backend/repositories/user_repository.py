"""
User repository for database operations.
"""

from typing import Any, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, aliased

import repositories.db_models as db_models
from .base import BaseRepository


class UserRepository(BaseRepository[db_models.User]):
    """Repository for User entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db_models.User, db)

    def get_by_email(self, email: str) -> Optional[db_models.User]:
        """
        Get user by email.

        Args:
            email: User email (matched exactly)

        Returns:
            User if found, None otherwise
        """
        return (
            self.db.query(db_models.User).filter(db_models.User.email == email).first()
        )

    def get_by_role(self, role: db_models.UserRole) -> List[db_models.User]:
        return (
            self.db.query(db_models.User)
            .filter(db_models.User.role == role.value)
            .order_by(db_models.User.id)
            .all()
        )

    def count_by_role(self, role: db_models.UserRole) -> int:
        return (
            self.db.query(func.count(db_models.User.id))
            .filter(db_models.User.role == role.value)
            .scalar()
            or 0
        )

    def list_with_summary(self) -> List[Any]:
        """
        List every user with profile summary and content counts.

        Returns:
            Rows of (User, banned_by_email, first_name, surname, county,
            issues_count, suggestions_count), newest account first
        """
        banner = aliased(db_models.User)

        issue_counts = (
            self.db.query(
                db_models.Issue.user_id.label("user_id"),
                func.count(db_models.Issue.id).label("total"),
            )
            .group_by(db_models.Issue.user_id)
            .subquery()
        )
        suggestion_counts = (
            self.db.query(
                db_models.Suggestion.user_id.label("user_id"),
                func.count(db_models.Suggestion.id).label("total"),
            )
            .group_by(db_models.Suggestion.user_id)
            .subquery()
        )

        return (
            self.db.query(
                db_models.User,
                banner.email.label("banned_by_email"),
                db_models.UserProfile.first_name,
                db_models.UserProfile.surname,
                db_models.UserProfile.county,
                func.coalesce(issue_counts.c.total, 0).label("issues_count"),
                func.coalesce(suggestion_counts.c.total, 0).label(
                    "suggestions_count"
                ),
            )
            .outerjoin(banner, db_models.User.banned_by == banner.id)
            .outerjoin(
                db_models.UserProfile,
                db_models.UserProfile.user_id == db_models.User.id,
            )
            .outerjoin(issue_counts, issue_counts.c.user_id == db_models.User.id)
            .outerjoin(
                suggestion_counts, suggestion_counts.c.user_id == db_models.User.id
            )
            .order_by(db_models.User.created_at.desc(), db_models.User.id.desc())
            .all()
        )
