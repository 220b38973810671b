"""
User profile service.

Once every required field is filled in, the owner may only change address,
civic interests and county. Admins can correct any field of a citizen's
profile.
"""

from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.counties import is_valid_county
from models.exceptions import (
    AlreadyExistsException,
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from models.principal import AuthenticatedPrincipal
from repositories.profile_repository import ProfileRepository
from repositories.user_repository import UserRepository

EDITABLE_WHEN_COMPLETE = ("address", "civic_interests", "county")
ADMIN_EDITABLE = ("first_name", "surname", "date_of_birth", "ppsn", "address")


def _check_county(county: Optional[str]) -> None:
    if county and not is_valid_county(county):
        raise ValidationException("Invalid county")


class ProfileService:
    """Service for user profiles."""

    @staticmethod
    def get_profile(db: Session, user_id: int) -> Optional[db_models.UserProfile]:
        return ProfileRepository(db).get_by_user_id(user_id)

    @staticmethod
    def create_profile(
        db: Session, principal: AuthenticatedPrincipal, data: schemas.ProfileCreate
    ) -> db_models.UserProfile:
        """
        Create the caller's profile.

        Raises:
            AlreadyExistsException: If a profile already exists
            ValidationException: If the county is not a known county
        """
        repo = ProfileRepository(db)
        if repo.get_by_user_id(principal.user_id) is not None:
            raise AlreadyExistsException("Profile already exists. Use update instead.")
        _check_county(data.county)

        return repo.create(
            db_models.UserProfile(
                user_id=principal.user_id,
                first_name=data.first_name or None,
                surname=data.surname or None,
                date_of_birth=data.date_of_birth,
                address=data.address or None,
                ppsn=data.ppsn or None,
                civic_interests=data.civic_interests or [],
                county=data.county or None,
            )
        )

    @staticmethod
    def update_profile(
        db: Session, principal: AuthenticatedPrincipal, data: schemas.ProfileUpdate
    ) -> db_models.UserProfile:
        """
        Update (or create) the caller's profile.

        On a complete profile only address, civic_interests and county are
        applied; other fields are silently kept. On an incomplete profile
        every non-empty field is applied.

        Raises:
            ValidationException: If the county is not a known county
        """
        _check_county(data.county)
        repo = ProfileRepository(db)
        profile = repo.get_by_user_id(principal.user_id)

        if profile is None:
            return ProfileService.create_profile(
                db, principal, schemas.ProfileCreate(**data.model_dump())
            )

        provided = data.model_dump(exclude_unset=True)
        if profile.is_complete:
            for field in EDITABLE_WHEN_COMPLETE:
                if field not in provided:
                    continue
                if field == "county" and not provided[field]:
                    continue
                setattr(profile, field, provided[field])
        else:
            for field, value in provided.items():
                if field == "civic_interests" or value not in (None, ""):
                    setattr(profile, field, value)

        return repo.update(profile)

    @staticmethod
    def set_county(
        db: Session, principal: AuthenticatedPrincipal, county: Optional[str]
    ) -> db_models.UserProfile:
        """
        Set the caller's county, creating a profile if needed.

        Raises:
            ValidationException: Missing or unknown county
        """
        if not county:
            raise ValidationException("County is required")
        _check_county(county)

        repo = ProfileRepository(db)
        profile = repo.get_or_new(principal.user_id)
        profile.county = county
        repo.commit()
        repo.refresh(profile)
        return profile

    @staticmethod
    def update_profile_as_admin(
        db: Session, user_id: int, data: schemas.AdminProfileUpdate
    ) -> db_models.UserProfile:
        """
        Admin correction of a citizen's profile.

        Raises:
            NotFoundException: Unknown user
            PermissionDeniedException: Target is an admin
            ValidationException: No field given
        """
        user = UserRepository(db).get_by_id(user_id)
        if user is None:
            raise NotFoundException("User not found")
        if user.role == db_models.UserRole.ADMIN.value:
            raise PermissionDeniedException("Cannot modify another admin's profile")

        provided = data.model_dump(exclude_unset=True)
        if not provided:
            raise ValidationException("At least one field must be provided for update")

        repo = ProfileRepository(db)
        profile = repo.get_or_new(user_id)
        for field in ADMIN_EDITABLE:
            if field in provided:
                setattr(profile, field, provided[field])
        repo.commit()
        repo.refresh(profile)

        logger.info(f"Profile of user {user_id} corrected by an admin: {sorted(provided)}")
        return profile
