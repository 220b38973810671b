"""
Structured filters for issue and suggestion queries.

A `ContentFilter` is a plain value object: every populated field becomes one
bound SQLAlchemy predicate. Nothing is ever spliced into SQL text, and the
predicate list can be inspected without a database.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import and_, false, func
from sqlalchemy.sql.elements import ColumnElement


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class ContentFilter:
    """
    Optional predicates over an Issue or Suggestion model.

    Attributes:
        counties: Restrict to these counties (an empty sequence matches nothing)
        county: Restrict to a single county
        is_public: Restrict by visibility
        complete_only: Require non-blank title, description and category
        case_id_contains: Case-insensitive case ID substring
        category: Exact category
        status: Exact status
        item_type: Exact `type` column value (issues only)
        owner_id: Restrict to one owner
        created_since: Only items created at or after this instant
    """

    counties: Optional[Sequence[str]] = None
    county: Optional[str] = None
    is_public: Optional[bool] = None
    complete_only: bool = False
    case_id_contains: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    item_type: Optional[str] = None
    owner_id: Optional[int] = None
    created_since: Optional[datetime] = None

    def predicates(self, model: Any) -> list[ColumnElement[bool]]:
        """
        Build the predicate list for ``model``.

        Args:
            model: db_models.Issue or db_models.Suggestion

        Returns:
            List of SQLAlchemy boolean expressions, in field order

        Raises:
            ValueError: If ``item_type`` is used on a model without a type column
        """
        clauses: list[ColumnElement[bool]] = []

        if self.counties is not None:
            if self.counties:
                clauses.append(model.county.in_(list(self.counties)))
            else:
                clauses.append(false())
        if self.county is not None:
            clauses.append(model.county == self.county)
        if self.is_public is not None:
            clauses.append(model.is_public.is_(self.is_public))
        if self.complete_only:
            for column in (model.title, model.description, model.category):
                clauses.append(
                    and_(column.isnot(None), func.trim(column) != "")
                )
        if self.case_id_contains:
            pattern = f"%{_escape_like(self.case_id_contains.strip())}%"
            clauses.append(model.case_id.ilike(pattern, escape="\\"))
        if self.category is not None:
            clauses.append(model.category == self.category)
        if self.status is not None:
            clauses.append(model.status == self.status)
        if self.item_type is not None:
            type_column = getattr(model, "type", None)
            if type_column is None:
                raise ValueError(f"{model.__name__} has no type column")
            clauses.append(type_column == self.item_type)
        if self.owner_id is not None:
            clauses.append(model.user_id == self.owner_id)
        if self.created_since is not None:
            clauses.append(model.created_at >= self.created_since)

        return clauses

    def apply(self, query: Any, model: Any) -> Any:
        """Return ``query`` narrowed by every predicate."""
        for clause in self.predicates(model):
            query = query.filter(clause)
        return query


PUBLIC_LISTING = ContentFilter(is_public=True, complete_only=True)
