"""
Support messages from citizens to the admin of their county.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from helpers.sanitization import clean_text
import models.schemas as schemas
import repositories.db_models as db_models
from models.config import settings
from models.exceptions import (
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from models.principal import AuthenticatedPrincipal
from repositories.admin_location_repository import AdminLocationRepository
from repositories.admin_message_repository import AdminMessageRepository
from repositories.profile_repository import ProfileRepository

MESSAGE_STATUSES = frozenset(s.value for s in db_models.MessageStatus)
RESOLVING_STATUSES = frozenset(
    {db_models.MessageStatus.RESOLVED.value, db_models.MessageStatus.CLOSED.value}
)


class AdminMessageService:
    """Service for admin support messages."""

    @staticmethod
    def get_issue_types() -> list[str]:
        return list(db_models.ADMIN_MESSAGE_ISSUE_TYPES)

    @staticmethod
    def create_message(
        db: Session,
        principal: AuthenticatedPrincipal,
        data: schemas.AdminMessageCreate,
    ) -> db_models.AdminMessage:
        """
        Send a message to the admin who manages the sender's county.

        Args:
            db: Database session
            principal: Sending user
            data: Issue type and description

        Returns:
            The created message

        Raises:
            ValidationException: Missing fields, unknown issue type, or no
                profile county
            NotFoundException: No admin manages the sender's county
        """
        description = clean_text(data.description)
        if not data.issue_type or not description:
            raise ValidationException("Issue type and description are required")
        if data.issue_type not in db_models.ADMIN_MESSAGE_ISSUE_TYPES:
            raise ValidationException("Invalid issue type")

        county = ProfileRepository(db).get_county(principal.user_id)
        if not county:
            raise ValidationException("User must have a county set in their profile")

        admin = AdminLocationRepository(db).get_admin_for_county(county)
        if admin is None:
            raise NotFoundException(
                "No admin is currently assigned to your county. "
                "Please try again later."
            )

        message = AdminMessageRepository(db).create(
            db_models.AdminMessage(
                user_id=principal.user_id,
                admin_id=admin.id,
                issue_type=data.issue_type,
                description=description,
                status=db_models.MessageStatus.PENDING.value,
            )
        )
        logger.info(
            f"Admin message {message.id} from user {principal.user_id} "
            f"routed to admin {admin.id} ({county})"
        )
        return message

    @staticmethod
    def auto_close_resolved(db: Session, now: Optional[datetime] = None) -> int:
        """
        Close messages resolved more than MESSAGE_AUTO_CLOSE_HOURS ago.

        Returns:
            Number of messages closed
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(hours=settings.MESSAGE_AUTO_CLOSE_HOURS)
        closed = AdminMessageRepository(db).close_resolved_before(cutoff, now)
        if closed:
            logger.info(f"Auto-closed {closed} resolved admin messages")
        return closed

    @staticmethod
    def get_admin_inbox(
        db: Session, principal: AuthenticatedPrincipal, status: Optional[str] = None
    ) -> schemas.AdminInbox:
        """
        The admin's inbox, newest first, after closing stale resolved messages.

        An unknown ``status`` filter is ignored.
        """
        AdminMessageService.auto_close_resolved(db)

        repo = AdminMessageRepository(db)
        status_filter = status if status in MESSAGE_STATUSES else None
        rows = repo.list_for_admin(principal.user_id, status_filter)

        messages = [
            schemas.InboxMessage.model_validate(message).model_copy(
                update={
                    "user_email": user_email,
                    "first_name": first_name,
                    "surname": surname,
                    "user_county": user_county,
                }
            )
            for message, user_email, first_name, surname, user_county in rows
        ]
        return schemas.AdminInbox(
            messages=messages,
            count=len(messages),
            unread_count=repo.count_unread(principal.user_id),
        )

    @staticmethod
    def get_user_messages(
        db: Session, principal: AuthenticatedPrincipal
    ) -> schemas.SentMessages:
        rows = AdminMessageRepository(db).list_for_user(principal.user_id)
        messages = [
            schemas.SentMessage.model_validate(message).model_copy(
                update={"admin_email": admin_email}
            )
            for message, admin_email in rows
        ]
        return schemas.SentMessages(messages=messages, count=len(messages))

    @staticmethod
    def mark_viewed(
        db: Session, principal: AuthenticatedPrincipal, message_id: int
    ) -> schemas.MarkViewedResult:
        """Set viewed_at once. Repeated calls and unknown IDs are no-ops."""
        repo = AdminMessageRepository(db)
        message = repo.get_by_id(message_id)
        if (
            message is None
            or message.admin_id != principal.user_id
            or message.viewed_at is not None
        ):
            return schemas.MarkViewedResult(
                message="Message already viewed or not found", already_viewed=True
            )

        message.viewed_at = datetime.now(timezone.utc)
        message = repo.update(message)
        return schemas.MarkViewedResult(
            message="Message marked as viewed",
            already_viewed=False,
            admin_message=schemas.AdminMessage.model_validate(message),
        )

    @staticmethod
    def _get_owned(
        repo: AdminMessageRepository,
        principal: AuthenticatedPrincipal,
        message_id: int,
        action: str,
    ) -> db_models.AdminMessage:
        message = repo.get_by_id(message_id)
        if message is None:
            raise NotFoundException("Message not found")
        if message.admin_id != principal.user_id:
            raise PermissionDeniedException(
                f"You do not have permission to {action} this message"
            )
        return message

    @staticmethod
    def update_status(
        db: Session,
        principal: AuthenticatedPrincipal,
        message_id: int,
        data: schemas.MessageStatusUpdate,
    ) -> db_models.AdminMessage:
        """
        Change a message's status, optionally recording a response.

        Resolving or closing stamps resolved_at; any update marks the message
        viewed.

        Raises:
            ValidationException: Missing or unknown status
            NotFoundException: Unknown message
            PermissionDeniedException: Message belongs to another admin
        """
        if not data.status or data.status not in MESSAGE_STATUSES:
            raise ValidationException("Valid status is required")

        repo = AdminMessageRepository(db)
        message = AdminMessageService._get_owned(repo, principal, message_id, "update")

        now = datetime.now(timezone.utc)
        message.status = data.status
        if data.admin_response:
            message.admin_response = data.admin_response
        if data.status in RESOLVING_STATUSES:
            message.resolved_at = now
        if message.viewed_at is None:
            message.viewed_at = now
        return repo.update(message)

    @staticmethod
    def delete_message(
        db: Session, principal: AuthenticatedPrincipal, message_id: int
    ) -> None:
        repo = AdminMessageRepository(db)
        message = AdminMessageService._get_owned(repo, principal, message_id, "delete")
        repo.delete(message)
