"""
User profile repository.
"""

from typing import Optional

from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class ProfileRepository(BaseRepository[db_models.UserProfile]):
    """Repository for UserProfile rows (one per user)."""

    def __init__(self, db: Session):
        super().__init__(db_models.UserProfile, db)

    def get_by_user_id(self, user_id: int) -> Optional[db_models.UserProfile]:
        """
        Get the profile belonging to a user.

        Args:
            user_id: Owning user ID

        Returns:
            Profile if one has been created, None otherwise
        """
        return (
            self.db.query(db_models.UserProfile)
            .filter(db_models.UserProfile.user_id == user_id)
            .first()
        )

    def get_county(self, user_id: int) -> Optional[str]:
        profile = self.get_by_user_id(user_id)
        return profile.county if profile else None

    def get_or_new(self, user_id: int) -> db_models.UserProfile:
        """Existing profile, or a new staged (uncommitted) one."""
        profile = self.get_by_user_id(user_id)
        if profile is None:
            profile = db_models.UserProfile(user_id=user_id)
            self.db.add(profile)
        return profile
