"""
Weekly summary emails for citizen accounts.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from loguru import logger
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from repositories.filters import ContentFilter
from repositories.submission_repository import IssueRepository, SuggestionRepository
from repositories.user_repository import UserRepository
from services.email_service import EmailService, recipient_name

# (to_email, subject, html_body, text_body) -> False on failure
Sender = Callable[[str, str, str, str], Optional[bool]]

DIGEST_WINDOW = timedelta(days=7)


class DigestService:
    """Builds and sends the Monday digest."""

    @staticmethod
    def build_for_user(
        db: Session, user: db_models.User, since: datetime
    ) -> tuple[str, str, str]:
        """
        Build one user's summary of items created since ``since``.

        Returns:
            (subject, html_body, text_body)
        """
        filters = ContentFilter(
            owner_id=user.id, created_since=since, complete_only=True
        )
        issues = [
            (item.case_id, item.title, item.status)
            for item in IssueRepository(db).find(filters)
        ]
        suggestions = [
            (item.case_id, item.title, item.status)
            for item in SuggestionRepository(db).find(filters)
        ]
        return EmailService.build_weekly_summary(
            recipient_name(user), issues, suggestions
        )

    @staticmethod
    def send_weekly_summaries(
        db: Session,
        send: Optional[Sender] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Send a summary to every account with the user role.

        One failing recipient never stops the run.

        Args:
            db: Database session
            send: Delivery callable; defaults to a blocking send
            now: Reference instant for the seven-day window

        Returns:
            Number of summaries handed off successfully
        """
        send = send or EmailService.deliver
        now = now or datetime.now(timezone.utc)
        # SQLite stores naive UTC timestamps
        since = (now - DIGEST_WINDOW).replace(tzinfo=None)

        users = UserRepository(db).get_by_role(db_models.UserRole.USER)
        logger.info(f"Sending weekly summaries to {len(users)} users")

        sent = 0
        for user in users:
            try:
                subject, html_body, text_body = DigestService.build_for_user(
                    db, user, since
                )
                if send(user.email, subject, html_body, text_body) is not False:
                    sent += 1
            except Exception as e:
                logger.error(f"Weekly summary for user {user.id} failed: {e}")
        return sent
