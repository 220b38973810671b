"""
User Service

Handles admin user management: listing, bans and theme preferences.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from models.principal import AuthenticatedPrincipal
from repositories.user_repository import UserRepository
from services.trending import as_utc

# None means permanent
BAN_DURATIONS: dict[str, Optional[timedelta]] = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "permanent": None,
}
THEMES = frozenset(t.value for t in db_models.ThemePreference)


class UserService:
    """Service for managing users, bans and preferences."""

    @staticmethod
    def list_users(db: Session) -> schemas.UserList:
        """All users with profile summary and content counts, newest first."""
        users = []
        for (
            user,
            banned_by_email,
            first_name,
            surname,
            county,
            issues_count,
            suggestions_count,
        ) in UserRepository(db).list_with_summary():
            users.append(
                schemas.AdminUserSummary(
                    id=user.id,
                    email=user.email,
                    role=user.role,
                    created_at=user.created_at,
                    updated_at=user.updated_at,
                    banned=user.banned,
                    banned_until=user.banned_until,
                    ban_reason=user.ban_reason,
                    banned_at=user.banned_at,
                    banned_by=user.banned_by,
                    banned_by_email=banned_by_email,
                    first_name=first_name,
                    surname=surname,
                    county=county,
                    issues_count=issues_count,
                    suggestions_count=suggestions_count,
                )
            )
        return schemas.UserList(users=users, count=len(users))

    @staticmethod
    def ban_user(
        db: Session, principal: AuthenticatedPrincipal, data: schemas.BanRequest
    ) -> schemas.BanResult:
        """
        Ban a citizen for 24 hours, 7 days or permanently.

        Args:
            db: Database session
            principal: Acting admin
            data: Target user, ban type and optional reason

        Returns:
            Ban summary

        Raises:
            ValidationException: Missing user ID or unknown ban type
            NotFoundException: Unknown user
            PermissionDeniedException: Target is an admin
        """
        if not data.user_id:
            raise ValidationException("User ID is required")
        if data.ban_type not in BAN_DURATIONS:
            raise ValidationException(
                'Invalid ban type. Must be "24h", "7d", or "permanent"'
            )

        repo = UserRepository(db)
        user = repo.get_by_id(data.user_id)
        if user is None:
            raise NotFoundException("User not found")
        if user.role == db_models.UserRole.ADMIN.value:
            raise PermissionDeniedException("Cannot ban another admin")

        now = datetime.now(timezone.utc)
        duration = BAN_DURATIONS[data.ban_type]
        user.banned = True
        user.banned_until = now + duration if duration else None
        user.ban_reason = data.reason or f"Banned by admin: {data.ban_type} ban"
        user.banned_by = principal.user_id
        user.banned_at = now
        user = repo.update(user)

        logger.info(
            f"User {user.id} banned ({data.ban_type}) by admin {principal.user_id}"
        )
        return schemas.BanResult(
            message=f"User banned successfully ({data.ban_type})",
            user_id=user.id,
            banned_until=user.banned_until,
            is_permanent=duration is None,
        )

    @staticmethod
    def _clear_ban(user: db_models.User) -> None:
        user.banned = False
        user.banned_until = None
        user.ban_reason = None
        user.banned_by = None
        user.banned_at = None

    @staticmethod
    def unban_user(db: Session, user_id: int) -> None:
        """
        Raises:
            NotFoundException: Unknown user
        """
        repo = UserRepository(db)
        user = repo.get_by_id(user_id)
        if user is None:
            raise NotFoundException("User not found")
        UserService._clear_ban(user)
        repo.commit()
        logger.info(f"User {user_id} unbanned")

    @staticmethod
    def clear_expired_ban(
        db: Session, user: db_models.User, now: Optional[datetime] = None
    ) -> bool:
        """
        Lift a temporary ban whose end time has passed.

        Returns:
            True if a ban was cleared
        """
        if not user.banned or user.banned_until is None:
            return False
        now = now or datetime.now(timezone.utc)
        if as_utc(user.banned_until) > now:
            return False

        UserService._clear_ban(user)
        UserRepository(db).commit()
        logger.info(f"Expired ban of user {user.id} cleared")
        return True

    @staticmethod
    def get_ban_details(db: Session, user: db_models.User) -> schemas.BanDetails:
        if UserService.clear_expired_ban(db, user):
            return schemas.BanDetails(
                banned=False,
                message="Your ban has expired. You can now access the platform.",
            )
        if not user.banned:
            return schemas.BanDetails(banned=False)

        banned_by = user.banned_by_user.email if user.banned_by_user else None
        return schemas.BanDetails(
            banned=True,
            banned_until=user.banned_until,
            ban_reason=user.ban_reason,
            banned_at=user.banned_at,
            banned_by=banned_by,
            is_permanent=user.banned_until is None,
        )

    @staticmethod
    def get_theme(user: Optional[db_models.User]) -> str:
        if user is None:
            return db_models.ThemePreference.LIGHT.value
        return user.theme_preference or db_models.ThemePreference.LIGHT.value

    @staticmethod
    def set_theme(db: Session, user: db_models.User, theme: Optional[str]) -> str:
        """
        Raises:
            ValidationException: Theme is not "light" or "dark"
        """
        if theme not in THEMES:
            raise ValidationException('Invalid theme. Must be "light" or "dark"')
        user.theme_preference = theme
        UserRepository(db).update(user)
        return theme
