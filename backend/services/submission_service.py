"""
Issue and suggestion service.

Both kinds share one implementation; ``IssueService`` and
``SuggestionService`` only differ in their repository, schemas, status
vocabulary and the extra geolocation fields issues carry.
"""

from datetime import datetime, timezone
from typing import Any, ClassVar, Iterable, List, Optional, Type

from loguru import logger
from pydantic import BaseModel
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.sanitization import sanitize_plain_text
from models.config import settings
from models.exceptions import (
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from models.principal import AuthenticatedPrincipal
from repositories.admin_location_repository import AdminLocationRepository
from repositories.filters import ContentFilter
from repositories.profile_repository import ProfileRepository
from repositories.submission_repository import (
    IssueRepository,
    SubmissionRepository,
    SuggestionRepository,
)
from services.access_control import (
    can_manage,
    is_county_admin,
    require_read_access,
)
from services.case_id import generate_unique_case_id
from services.email_service import EmailService
from services.image_storage import ImageStorage, get_image_storage
from services.listing_service import annotate
from services.trending import SortMode, sort_items

NO_COUNTY_MESSAGE = (
    "Please select your county in your profile before submitting issues or "
    "suggestions"
)


def case_id_taken(db: Session, case_id: str) -> bool:
    """True when an issue or a suggestion already uses ``case_id``."""
    return IssueRepository(db).case_id_exists(case_id) or SuggestionRepository(
        db
    ).case_id_exists(case_id)


def _required(value: Optional[str], label: str, plain_text: bool = True) -> str:
    cleaned = sanitize_plain_text(value) if plain_text else value
    cleaned = (cleaned or "").strip()
    if not cleaned:
        raise ValidationException(f"{label} is required")
    return cleaned


class SubmissionService:
    """Shared behaviour for issues and suggestions."""

    kind: ClassVar[str] = ""
    label: ClassVar[str] = ""
    article: ClassVar[str] = "a"
    repository: ClassVar[Type[SubmissionRepository]]
    target: ClassVar[db_models.AppraisalTarget]
    schema: ClassVar[Type[BaseModel]]
    ranked_schema: ClassVar[Type[BaseModel]]
    statuses: ClassVar[frozenset[str]] = frozenset()
    created_message: ClassVar[str] = ""

    @classmethod
    def _extra_fields(cls, data: Any) -> dict:
        return {}

    @classmethod
    def _get_or_404(cls, db: Session, item_id: int) -> Any:
        item = cls.repository(db).get_by_id(item_id)
        if item is None:
            raise NotFoundException(f"{cls.label} not found")
        return item

    @classmethod
    def create(
        cls,
        db: Session,
        principal: AuthenticatedPrincipal,
        data: schemas.SuggestionCreate,
        images: Iterable[Any] = (),
        storage: Optional[ImageStorage] = None,
    ) -> BaseModel:
        """
        Create an item owned by ``principal`` in their profile county.

        Row, case ID and image rows are written in one transaction. An image
        that fails to upload is logged and skipped.

        Args:
            db: Database session
            principal: Authenticated, non-banned caller
            data: Submitted fields
            images: Uploaded files
            storage: Image storage (defaults to local disk)

        Returns:
            The created item with its images

        Raises:
            ValidationException: Blank required field, no profile county, or
                too many images
        """
        title = _required(data.title, "Title")
        description = _required(data.description, "Description")
        category = _required(data.category, "Category", plain_text=False)

        files = [f for f in images if f is not None]
        if len(files) > settings.MAX_IMAGES_PER_SUBMISSION:
            raise ValidationException(
                f"A maximum of {settings.MAX_IMAGES_PER_SUBMISSION} images is allowed"
            )

        county = ProfileRepository(db).get_county(principal.user_id)
        if not county:
            raise ValidationException(NO_COUNTY_MESSAGE)

        repo = cls.repository(db)
        storage = storage or get_image_storage()
        try:
            item = repo.model(
                user_id=principal.user_id,
                title=title,
                description=description,
                category=category,
                status=db_models.ContentStatus.UNDER_REVIEW.value,
                case_id=generate_unique_case_id(lambda c: case_id_taken(db, c)),
                county=county,
                is_public=bool(data.is_public),
                **cls._extra_fields(data),
            )
            repo.add(item)
            repo.flush()

            for upload in files:
                try:
                    stored = storage.upload(upload, f"{cls.kind}s")
                except Exception as e:
                    logger.warning(
                        f"Image upload failed for {cls.kind} {item.case_id}: {e}"
                    )
                    continue
                repo.add_image(item.id, stored.url, stored.public_id)

            repo.commit()
        except Exception:
            repo.rollback()
            raise

        repo.refresh(item)
        logger.info(
            f"{cls.label} {item.case_id} created by user {principal.user_id} "
            f"in {county}"
        )
        return cls.schema.model_validate(item)

    @classmethod
    def get(
        cls, db: Session, principal: Optional[AuthenticatedPrincipal], item_id: int
    ) -> BaseModel:
        """
        Read one item, counting a view when it is public.

        Raises:
            NotFoundException: Unknown ID
            AuthenticationException: Anonymous caller on a private item
            PermissionDeniedException: Caller is neither owner nor county admin
        """
        item = cls._get_or_404(db, item_id)
        require_read_access(db, principal, item, cls.kind)

        if item.is_public:
            cls.repository(db).increment_view_count(item)

        return cls.schema.model_validate(item)

    @classmethod
    def list_public(
        cls,
        db: Session,
        category: Optional[str] = None,
        status: Optional[str] = None,
        item_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[BaseModel]:
        """Public items filtered by category, status and (issues) type."""
        filters = ContentFilter(
            is_public=True,
            category=category or None,
            status=status or None,
            item_type=item_type or None,
        )
        rows = cls.repository(db).find(filters, skip=offset, limit=limit)
        return [cls.schema.model_validate(row) for row in rows]

    @classmethod
    def list_mine(
        cls,
        db: Session,
        principal: AuthenticatedPrincipal,
        sort: Optional[str] = None,
    ) -> List[BaseModel]:
        """The caller's complete items with appraisal counts, sorted."""
        mode = SortMode.parse(sort)
        filters = ContentFilter(owner_id=principal.user_id, complete_only=True)
        rows = cls.repository(db).find(filters)
        return sort_items(annotate(db, rows, cls.target, cls.ranked_schema), mode)

    @classmethod
    def list_for_admin(
        cls,
        db: Session,
        principal: AuthenticatedPrincipal,
        case_id: Optional[str] = None,
    ) -> List[BaseModel]:
        """
        Public and private items in the admin's counties, newest first.

        Args:
            db: Database session
            principal: Admin caller
            case_id: Optional case-insensitive case ID substring

        Returns:
            Ranked items; empty when the admin manages no county
        """
        counties = AdminLocationRepository(db).get_counties(principal.user_id)
        if not counties:
            return []
        filters = ContentFilter(
            counties=counties,
            complete_only=True,
            case_id_contains=(case_id or "").strip() or None,
        )
        rows = cls.repository(db).find(filters)
        return annotate(db, rows, cls.target, cls.ranked_schema)

    @classmethod
    def update_status(
        cls,
        db: Session,
        principal: AuthenticatedPrincipal,
        item_id: int,
        status: Optional[str],
        admin_note: Optional[str] = None,
    ) -> BaseModel:
        """
        Status change by the owner or an admin of the item's county.

        The owner is emailed when an admin changes the status.

        Raises:
            ValidationException: Status outside this kind's vocabulary
            NotFoundException: Unknown ID
            PermissionDeniedException: Caller is neither owner nor county admin
        """
        if not status or status not in cls.statuses:
            raise ValidationException("Invalid status")

        item = cls._get_or_404(db, item_id)
        if not can_manage(db, principal, item):
            raise PermissionDeniedException(f"Not authorized to update this {cls.kind}")

        old_status = item.status
        item.status = status
        item = cls.repository(db).update(item)

        if old_status != status and principal.is_admin:
            EmailService.notify_status_change(
                item.owner,
                item.case_id,
                item.title,
                old_status,
                status,
                cls.kind,
                admin_note,
            )

        return cls.schema.model_validate(item)

    @classmethod
    def triage(
        cls,
        db: Session,
        principal: AuthenticatedPrincipal,
        item_id: int,
        status: Optional[str],
        admin_note: Optional[str] = None,
    ) -> BaseModel:
        """
        Admin triage of an item in one of the admin's counties.

        Accepting or rejecting requires a note and records it together with
        the acting admin and the time.

        Raises:
            ValidationException: Invalid status, or missing note on a decision
            NotFoundException: Unknown ID
            PermissionDeniedException: Item is outside the admin's counties
        """
        if not status or status not in db_models.TRIAGE_STATUSES:
            raise ValidationException("Invalid status")
        is_decision = status in db_models.DECISION_STATUSES
        if is_decision and not (admin_note or "").strip():
            raise ValidationException(
                "Admin note is required when accepting or rejecting "
                f"{cls.article} {cls.kind}"
            )

        item = cls._get_or_404(db, item_id)
        if not is_county_admin(db, principal, item.county):
            raise PermissionDeniedException(
                f"You do not have permission to manage this {cls.kind}"
            )

        old_status = item.status
        item.status = status
        if is_decision:
            item.admin_note = admin_note
            item.admin_action_by = principal.user_id
            item.admin_action_at = datetime.now(timezone.utc)
        item = cls.repository(db).update(item)

        logger.info(
            f"Admin {principal.user_id} set {cls.kind} {item.case_id} to {status}"
        )
        EmailService.notify_status_change(
            item.owner,
            item.case_id,
            item.title,
            old_status,
            status,
            cls.kind,
            admin_note,
        )
        return cls.schema.model_validate(item)

    @classmethod
    def add_admin_response(
        cls,
        db: Session,
        principal: AuthenticatedPrincipal,
        item_id: int,
        message: Optional[str],
    ) -> None:
        """
        Email an admin's response to the item's owner.

        Raises:
            PermissionDeniedException: Caller is not an admin of the item's county
            ValidationException: Blank message
            NotFoundException: Unknown ID
        """
        if not principal.is_admin:
            raise PermissionDeniedException("Admin access required")
        if not message or not message.strip():
            raise ValidationException("Message is required")

        item = cls._get_or_404(db, item_id)
        if not is_county_admin(db, principal, item.county):
            raise PermissionDeniedException(
                f"You do not have permission to manage this {cls.kind}"
            )
        admin = db.get(db_models.User, principal.user_id)
        admin_name = admin.email.split("@")[0] if admin else None

        EmailService.notify_admin_response(
            item.owner,
            item.case_id,
            item.title,
            cls.kind,
            message.strip(),
            admin_name,
        )


class IssueService(SubmissionService):
    """Service for issues."""

    kind = "issue"
    label = "Issue"
    article = "an"
    repository = IssueRepository
    target = db_models.AppraisalTarget.ISSUE
    schema = schemas.Issue
    ranked_schema = schemas.RankedIssue
    statuses = db_models.ISSUE_STATUSES
    created_message = "Issue created successfully"

    @classmethod
    def _extra_fields(cls, data: Any) -> dict:
        item_type = (
            db_models.IssueType.SUGGESTION.value
            if getattr(data, "type", None) == db_models.IssueType.SUGGESTION.value
            else db_models.IssueType.ISSUE.value
        )
        address = sanitize_plain_text(getattr(data, "address", None))
        return {
            "latitude": getattr(data, "latitude", None),
            "longitude": getattr(data, "longitude", None),
            "address": address.strip() if address and address.strip() else None,
            "type": item_type,
        }


class SuggestionService(SubmissionService):
    """Service for suggestions."""

    kind = "suggestion"
    label = "Suggestion"
    repository = SuggestionRepository
    target = db_models.AppraisalTarget.SUGGESTION
    schema = schemas.Suggestion
    ranked_schema = schemas.RankedSuggestion
    statuses = db_models.SUGGESTION_STATUSES
    created_message = "Suggestion submitted successfully"
