"""Support messages between citizens and their county admin."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
from models.principal import AuthenticatedPrincipal
from repositories.database import get_db
from services.admin_message_service import AdminMessageService
from services.profile_service import ProfileService

router = APIRouter(prefix="/admin-messages", tags=["admin-messages"])


@router.get("/issue-types", response_model=schemas.IssueTypes)
def get_issue_types() -> schemas.IssueTypes:
    return schemas.IssueTypes(issue_types=AdminMessageService.get_issue_types())


@router.post(
    "/messages",
    response_model=schemas.AdminMessageMutation,
    status_code=status.HTTP_201_CREATED,
)
def create_message(
    data: schemas.AdminMessageCreate,
    principal: AuthenticatedPrincipal = Depends(auth.get_active_principal),
    db: Session = Depends(get_db),
) -> schemas.AdminMessageMutation:
    """Send a message to the admin of the caller's county."""
    message = AdminMessageService.create_message(db, principal, data)
    return schemas.AdminMessageMutation(
        message="Message sent successfully",
        admin_message=schemas.AdminMessage.model_validate(message),
    )


@router.get("/messages", response_model=schemas.SentMessages)
def get_my_messages(
    principal: AuthenticatedPrincipal = Depends(auth.get_principal),
    db: Session = Depends(get_db),
) -> schemas.SentMessages:
    return AdminMessageService.get_user_messages(db, principal)


# Admin inbox


@router.get("/admin/messages", response_model=schemas.AdminInbox)
def get_inbox(
    status_filter: Optional[str] = Query(None, alias="status"),
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.AdminInbox:
    return AdminMessageService.get_admin_inbox(db, principal, status_filter)


@router.patch(
    "/admin/messages/{message_id}/viewed", response_model=schemas.MarkViewedResult
)
def mark_viewed(
    message_id: int,
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.MarkViewedResult:
    return AdminMessageService.mark_viewed(db, principal, message_id)


@router.patch(
    "/admin/messages/{message_id}/status",
    response_model=schemas.AdminMessageMutation,
)
def update_message_status(
    message_id: int,
    data: schemas.MessageStatusUpdate,
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.AdminMessageMutation:
    message = AdminMessageService.update_status(db, principal, message_id, data)
    return schemas.AdminMessageMutation(
        message="Message status updated successfully",
        admin_message=schemas.AdminMessage.model_validate(message),
    )


@router.delete("/admin/messages/{message_id}", response_model=schemas.MessageResponse)
def delete_message(
    message_id: int,
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    AdminMessageService.delete_message(db, principal, message_id)
    return schemas.MessageResponse(message="Message deleted successfully")


@router.get("/admin/users/{user_id}/profile", response_model=schemas.ProfileEnvelope)
def get_user_profile(
    user_id: int,
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.ProfileEnvelope:
    profile = ProfileService.get_profile(db, user_id)
    return schemas.ProfileEnvelope(
        profile=schemas.Profile.model_validate(profile) if profile else None
    )


@router.patch(
    "/admin/users/{user_id}/profile", response_model=schemas.ProfileMutation
)
def update_user_profile(
    user_id: int,
    data: schemas.AdminProfileUpdate,
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.ProfileMutation:
    """Correct a citizen's profile, for example after a support request."""
    profile = ProfileService.update_profile_as_admin(db, user_id, data)
    return schemas.ProfileMutation(
        message="User profile updated successfully",
        profile=schemas.Profile.model_validate(profile),
    )
