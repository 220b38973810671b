"""
Admin county assignment.

Each county is managed by at most one admin. The conflict pre-check gives a
readable error; the unique constraint on admin_locations.county is what
actually guarantees the rule under concurrent requests.
"""

from typing import Iterable, List

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.counties import is_valid_county
from models.exceptions import (
    CountyConflictException,
    InvalidCountyException,
    ValidationException,
)
from repositories.admin_location_repository import AdminLocationRepository


class AdminLocationService:
    """Service for admin county ownership."""

    @staticmethod
    def _normalize(counties: Iterable[str]) -> List[str]:
        requested: List[str] = []
        for county in counties:
            if not is_valid_county(county):
                raise InvalidCountyException(str(county))
            if county not in requested:
                requested.append(county)
        return requested

    @staticmethod
    def assign_counties(
        db: Session, admin_id: int, counties: Iterable[str]
    ) -> List[str]:
        """
        Replace an admin's full county set.

        Args:
            db: Database session
            admin_id: Admin user ID
            counties: Requested counties (duplicates collapsed)

        Returns:
            The admin's counties, sorted alphabetically

        Raises:
            ValidationException: If no county is given
            InvalidCountyException: If a county is not in the county list
            CountyConflictException: If another admin holds a requested
                county; nothing is changed
        """
        requested = AdminLocationService._normalize(counties or [])
        if not requested:
            raise ValidationException("At least one county is required")

        repo = AdminLocationRepository(db)

        conflicts = repo.find_conflicts(admin_id, requested)
        if conflicts:
            raise CountyConflictException(conflicts)

        try:
            repo.replace_counties(admin_id, requested)
            repo.commit()
        except IntegrityError:
            repo.rollback()
            # Lost a race with another admin between the check and the write
            conflicts = repo.find_conflicts(admin_id, requested)
            logger.warning(
                f"County assignment for admin {admin_id} hit the unique constraint"
            )
            raise CountyConflictException(conflicts)
        except Exception:
            repo.rollback()
            raise

        logger.info(f"Admin {admin_id} now manages: {', '.join(sorted(requested))}")
        return sorted(requested)

    @staticmethod
    def get_admin_counties(db: Session, admin_id: int) -> List[str]:
        return AdminLocationRepository(db).get_counties(admin_id)

    @staticmethod
    def get_all_assignments(db: Session, current_admin_id: int) -> List[dict]:
        """
        Every county assignment, flagged for the calling admin.

        Returns:
            Dicts with county, admin_id, admin_email and is_current_admin,
            ordered by county
        """
        return [
            {
                "county": county,
                "admin_id": admin_id,
                "admin_email": email,
                "is_current_admin": admin_id == current_admin_id,
            }
            for county, admin_id, email in AdminLocationRepository(
                db
            ).list_assignments()
        ]
