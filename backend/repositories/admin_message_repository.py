"""
Admin support message repository.
"""

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session, aliased

import repositories.db_models as db_models
from .base import BaseRepository

OPEN_STATUSES = (
    db_models.MessageStatus.PENDING.value,
    db_models.MessageStatus.IN_PROGRESS.value,
)


class AdminMessageRepository(BaseRepository[db_models.AdminMessage]):
    """Repository for AdminMessage rows."""

    def __init__(self, db: Session):
        super().__init__(db_models.AdminMessage, db)

    def list_for_admin(self, admin_id: int, status: Optional[str] = None) -> List[Any]:
        """
        Inbox of an admin with sender details.

        Args:
            admin_id: Receiving admin
            status: Optional status filter

        Returns:
            Rows of (AdminMessage, user_email, first_name, surname, user_county),
            newest first
        """
        sender = aliased(db_models.User)
        query = (
            self.db.query(
                db_models.AdminMessage,
                sender.email.label("user_email"),
                db_models.UserProfile.first_name,
                db_models.UserProfile.surname,
                db_models.UserProfile.county.label("user_county"),
            )
            .join(sender, sender.id == db_models.AdminMessage.user_id)
            .outerjoin(
                db_models.UserProfile,
                db_models.UserProfile.user_id == db_models.AdminMessage.user_id,
            )
            .filter(db_models.AdminMessage.admin_id == admin_id)
        )
        if status:
            query = query.filter(db_models.AdminMessage.status == status)
        return query.order_by(
            db_models.AdminMessage.created_at.desc(), db_models.AdminMessage.id.desc()
        ).all()

    def list_for_user(self, user_id: int) -> List[Any]:
        """Rows of (AdminMessage, admin_email) sent by a user, newest first."""
        admin = aliased(db_models.User)
        return (
            self.db.query(db_models.AdminMessage, admin.email.label("admin_email"))
            .outerjoin(admin, admin.id == db_models.AdminMessage.admin_id)
            .filter(db_models.AdminMessage.user_id == user_id)
            .order_by(
                db_models.AdminMessage.created_at.desc(),
                db_models.AdminMessage.id.desc(),
            )
            .all()
        )

    def count_unread(self, admin_id: int) -> int:
        """Open messages (pending or in progress) the admin has not viewed."""
        return (
            self.db.query(func.count(db_models.AdminMessage.id))
            .filter(
                db_models.AdminMessage.admin_id == admin_id,
                db_models.AdminMessage.status.in_(OPEN_STATUSES),
                db_models.AdminMessage.viewed_at.is_(None),
            )
            .scalar()
            or 0
        )

    def close_resolved_before(self, cutoff: datetime, now: datetime) -> int:
        """
        Close every message resolved before ``cutoff`` and commit.

        Returns:
            Number of messages closed
        """
        result = self.db.execute(
            update(db_models.AdminMessage)
            .where(
                db_models.AdminMessage.status
                == db_models.MessageStatus.RESOLVED.value,
                db_models.AdminMessage.resolved_at.isnot(None),
                db_models.AdminMessage.resolved_at < cutoff,
            )
            .values(status=db_models.MessageStatus.CLOSED.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return int(result.rowcount or 0)
