"""
Appraisal (like) service.

A user likes a public item at most once; toggling removes the like again.
Counts are always read back from the appraisals table.
"""

from collections import defaultdict
from typing import Iterable, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models.schemas as schemas
from models.exceptions import (
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from models.principal import AuthenticatedPrincipal
from repositories.appraisal_repository import AppraisalRepository
from repositories.db_models import AppraisalTarget
from repositories.submission_repository import IssueRepository, SuggestionRepository
from services.access_control import require_read_access

INVALID_TYPE_MESSAGE = 'Invalid type. Must be "issue" or "suggestion"'


def parse_target(value: Optional[str]) -> AppraisalTarget:
    """
    Parse an item kind from a request.

    Raises:
        ValidationException: If the value is not "issue" or "suggestion"
    """
    try:
        return AppraisalTarget(value)
    except ValueError:
        raise ValidationException(INVALID_TYPE_MESSAGE)


def _get_item(db: Session, target: AppraisalTarget, target_id: int):
    item_repo = (
        IssueRepository(db)
        if target == AppraisalTarget.ISSUE
        else SuggestionRepository(db)
    )
    item = item_repo.get_by_id(target_id)
    if item is None:
        raise NotFoundException(f"{target.value} not found")
    return item


class AppraisalService:
    """Service for toggling and reading appraisals."""

    @staticmethod
    def toggle(
        db: Session,
        principal: AuthenticatedPrincipal,
        target_type: Optional[str],
        target_id: int,
    ) -> schemas.AppraisalToggleResult:
        """
        Like or unlike a public item.

        A concurrent duplicate like that trips the unique constraint is
        rolled back and reported as liked.

        Args:
            db: Database session
            principal: Authenticated caller
            target_type: "issue" or "suggestion"
            target_id: Item ID

        Returns:
            Whether the caller now likes the item, and the item's like count

        Raises:
            ValidationException: Unknown target type
            NotFoundException: Item does not exist
            PermissionDeniedException: Item is private
        """
        target = parse_target(target_type)
        item = _get_item(db, target, target_id)
        if not item.is_public:
            raise PermissionDeniedException(
                "Appraisals can only be added to public items"
            )

        repo = AppraisalRepository(db)
        existing = repo.get_for_user(principal.user_id, target, target_id)

        if existing is not None:
            repo.delete(existing)
            liked = False
            message = "Appraisal removed"
        else:
            try:
                repo.stage_new(principal.user_id, target, target_id)
                repo.commit()
            except IntegrityError:
                repo.rollback()
                logger.debug(
                    f"Duplicate appraisal by user {principal.user_id} on "
                    f"{target.value} {target_id}"
                )
            liked = True
            message = "Appraisal added"

        return schemas.AppraisalToggleResult(
            message=message, liked=liked, count=repo.count_for(target, target_id)
        )

    @staticmethod
    def get_status(
        db: Session,
        principal: Optional[AuthenticatedPrincipal],
        target_type: Optional[str],
        target_id: int,
    ) -> schemas.AppraisalStatus:
        """
        Like count of an item, and whether the caller (if any) likes it.

        Raises:
            ValidationException: Unknown target type
            NotFoundException: Item does not exist
            AuthenticationException: Anonymous caller on a private item
            PermissionDeniedException: Caller may not read the item
        """
        target = parse_target(target_type)
        item = _get_item(db, target, target_id)
        require_read_access(db, principal, item, target.value)

        repo = AppraisalRepository(db)

        liked = False
        if principal is not None:
            liked = repo.get_for_user(principal.user_id, target, target_id) is not None

        return schemas.AppraisalStatus(
            count=repo.count_for(target, target_id), liked=liked
        )

    @staticmethod
    def get_counts(
        db: Session, items: Iterable[schemas.AppraisalItemRef]
    ) -> schemas.AppraisalCounts:
        """
        Like counts for many items, keyed ``"<type>_<id>"``.

        Uses one grouped query per item kind.
        """
        ids_by_target: dict[AppraisalTarget, list[int]] = defaultdict(list)
        for item in items:
            ids_by_target[item.type].append(item.id)

        repo = AppraisalRepository(db)
        counts: dict[str, schemas.AppraisalCount] = {}
        for target, ids in ids_by_target.items():
            for item_id, count in repo.get_counts_batch(target, ids).items():
                counts[f"{target.value}_{item_id}"] = schemas.AppraisalCount(
                    count=count
                )
        return schemas.AppraisalCounts(counts=counts)
