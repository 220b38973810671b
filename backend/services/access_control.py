"""
County-based access control for issues and suggestions.

Public items are readable by anyone. Private items are readable only by
their owner or by an admin whose counties include the item's county.
"""

from typing import Optional, Protocol

from sqlalchemy.orm import Session

from models.exceptions import AuthenticationException, PermissionDeniedException
from models.principal import AuthenticatedPrincipal
from repositories.admin_location_repository import AdminLocationRepository


class Governed(Protocol):
    user_id: int
    county: Optional[str]
    is_public: bool


def is_county_admin(
    db: Session, principal: Optional[AuthenticatedPrincipal], county: Optional[str]
) -> bool:
    """True when ``principal`` is an admin who manages ``county``."""
    if principal is None or not principal.is_admin:
        return False
    return AdminLocationRepository(db).admin_owns_county(principal.user_id, county)


def can_manage(
    db: Session, principal: Optional[AuthenticatedPrincipal], item: Governed
) -> bool:
    """Owner or admin-of-county, regardless of visibility."""
    if principal is None:
        return False
    if principal.user_id == item.user_id:
        return True
    return is_county_admin(db, principal, item.county)


def can_access(
    db: Session, principal: Optional[AuthenticatedPrincipal], item: Governed
) -> bool:
    """
    Whether ``principal`` may read ``item``.

    Args:
        db: Database session
        principal: Caller, or None when anonymous
        item: Object exposing user_id, county and is_public

    Returns:
        True for public items, owners and admins of the item's county
    """
    if item.is_public:
        return True
    return can_manage(db, principal, item)


def require_read_access(
    db: Session,
    principal: Optional[AuthenticatedPrincipal],
    item: Governed,
    kind: str = "issue",
) -> None:
    """
    Raise unless ``principal`` may read ``item``.

    Raises:
        AuthenticationException: Anonymous caller on a private item
        PermissionDeniedException: Authenticated caller without rights
    """
    if can_access(db, principal, item):
        return
    if principal is None:
        raise AuthenticationException(
            f"Authentication required to view private {kind}s"
        )
    raise PermissionDeniedException(f"You do not have permission to view this {kind}")
