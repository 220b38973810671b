"""
Admin location repository: which admin manages which county.
"""

from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class AdminLocationRepository(BaseRepository[db_models.AdminLocation]):
    """Repository for AdminLocation rows."""

    def __init__(self, db: Session):
        super().__init__(db_models.AdminLocation, db)

    def get_counties(self, admin_id: int) -> List[str]:
        """
        Counties managed by an admin.

        Args:
            admin_id: Admin user ID

        Returns:
            County names sorted alphabetically
        """
        rows = (
            self.db.query(db_models.AdminLocation.county)
            .filter(db_models.AdminLocation.admin_id == admin_id)
            .order_by(db_models.AdminLocation.county)
            .all()
        )
        return [county for (county,) in rows]

    def find_conflicts(
        self, admin_id: int, counties: Iterable[str]
    ) -> List[tuple[str, str]]:
        """
        Find requested counties already held by a different admin.

        Args:
            admin_id: Admin requesting the counties
            counties: Requested county names

        Returns:
            (county, owner email) pairs sorted by county
        """
        wanted = list(counties)
        if not wanted:
            return []
        rows = (
            self.db.query(db_models.AdminLocation.county, db_models.User.email)
            .join(db_models.User, db_models.User.id == db_models.AdminLocation.admin_id)
            .filter(
                db_models.AdminLocation.county.in_(wanted),
                db_models.AdminLocation.admin_id != admin_id,
            )
            .order_by(db_models.AdminLocation.county)
            .all()
        )
        return [(county, email) for county, email in rows]

    def replace_counties(self, admin_id: int, counties: Iterable[str]) -> None:
        """
        Stage a full replacement of an admin's counties.

        Deletes every existing row for the admin, then inserts one row per
        county and flushes. The caller commits or rolls back.
        """
        self.db.query(db_models.AdminLocation).filter(
            db_models.AdminLocation.admin_id == admin_id
        ).delete(synchronize_session=False)
        self.db.flush()
        self.db.add_all(
            [
                db_models.AdminLocation(admin_id=admin_id, county=county)
                for county in counties
            ]
        )
        self.db.flush()

    def list_assignments(self) -> List[tuple[str, int, str]]:
        """All (county, admin_id, admin_email) rows ordered by county."""
        rows = (
            self.db.query(
                db_models.AdminLocation.county,
                db_models.AdminLocation.admin_id,
                db_models.User.email,
            )
            .join(db_models.User, db_models.User.id == db_models.AdminLocation.admin_id)
            .order_by(db_models.AdminLocation.county)
            .all()
        )
        return [(county, admin_id, email) for county, admin_id, email in rows]

    def get_admin_for_county(self, county: str) -> Optional[db_models.User]:
        """The admin-role user managing ``county``, if any."""
        return (
            self.db.query(db_models.User)
            .join(
                db_models.AdminLocation,
                db_models.AdminLocation.admin_id == db_models.User.id,
            )
            .filter(
                db_models.AdminLocation.county == county,
                db_models.User.role == db_models.UserRole.ADMIN.value,
            )
            .first()
        )

    def admin_owns_county(self, admin_id: int, county: Optional[str]) -> bool:
        if not county:
            return False
        return (
            self.db.query(db_models.AdminLocation.id)
            .filter(
                db_models.AdminLocation.admin_id == admin_id,
                db_models.AdminLocation.county == county,
            )
            .first()
            is not None
        )
