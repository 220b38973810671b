"""Identity passed from the HTTP layer into services."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    import repositories.db_models as db_models


@dataclass(frozen=True)
class AuthenticatedPrincipal:
    """
    The caller of a service operation, as resolved from the bearer token.

    Services trust this value and never decode tokens themselves. Anonymous
    callers are represented by ``None`` wherever an operation accepts them.
    """

    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @classmethod
    def from_user(
        cls, user: Optional["db_models.User"]
    ) -> Optional["AuthenticatedPrincipal"]:
        if user is None:
            return None
        return cls(user_id=int(user.id), role=str(user.role))
