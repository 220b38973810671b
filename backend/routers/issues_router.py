"""Citizen issue reports."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
from helpers.pagination import PaginationLimit, PaginationOffset
from helpers.rate_limiter import SUBMISSION_LIMIT, limiter
from models.principal import AuthenticatedPrincipal
from repositories.database import get_db
from services.submission_service import IssueService

router = APIRouter(prefix="/issues", tags=["issues"])


@router.get("", response_model=schemas.IssueList)
def list_issues(
    category: Optional[str] = None,
    status: Optional[str] = None,
    type: Optional[str] = None,
    limit: PaginationLimit = 50,
    offset: PaginationOffset = 0,
    db: Session = Depends(get_db),
) -> schemas.IssueList:
    """Public issues, newest first."""
    issues = IssueService.list_public(db, category, status, type, limit, offset)
    return schemas.IssueList(issues=issues, count=len(issues))


@router.get("/my", response_model=schemas.RankedIssueList)
def list_my_issues(
    sort: Optional[str] = None,
    principal: AuthenticatedPrincipal = Depends(auth.get_principal),
    db: Session = Depends(get_db),
) -> schemas.RankedIssueList:
    issues = IssueService.list_mine(db, principal, sort)
    return schemas.RankedIssueList(issues=issues, count=len(issues))


@router.post(
    "",
    response_model=schemas.IssueMutation,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(SUBMISSION_LIMIT)
def create_issue(
    request: Request,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    is_public: bool = Form(False),
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    address: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    principal: AuthenticatedPrincipal = Depends(auth.get_active_principal),
    db: Session = Depends(get_db),
) -> schemas.IssueMutation:
    """
    Report an issue in the caller's profile county.

    Multipart form; up to MAX_IMAGES_PER_SUBMISSION files under ``images``.
    """
    data = schemas.IssueCreate(
        title=title,
        description=description,
        category=category,
        is_public=is_public,
        latitude=latitude,
        longitude=longitude,
        address=address,
        type=type,
    )
    issue = IssueService.create(db, principal, data, images or [])
    return schemas.IssueMutation(message=IssueService.created_message, issue=issue)


@router.get("/{issue_id}", response_model=schemas.IssueEnvelope)
def get_issue(
    issue_id: int,
    principal: Optional[AuthenticatedPrincipal] = Depends(auth.get_optional_principal),
    db: Session = Depends(get_db),
) -> schemas.IssueEnvelope:
    """Public issues are readable by anyone; private ones by owner and county admin."""
    return schemas.IssueEnvelope(issue=IssueService.get(db, principal, issue_id))


@router.patch("/{issue_id}/status", response_model=schemas.IssueMutation)
def update_issue_status(
    issue_id: int,
    data: schemas.StatusUpdate,
    principal: AuthenticatedPrincipal = Depends(auth.get_active_principal),
    db: Session = Depends(get_db),
) -> schemas.IssueMutation:
    issue = IssueService.update_status(
        db, principal, issue_id, data.status, data.admin_note
    )
    return schemas.IssueMutation(message="Issue status updated", issue=issue)


@router.post("/{issue_id}/response", response_model=schemas.MessageResponse)
def respond_to_issue(
    issue_id: int,
    data: schemas.AdminResponseCreate,
    principal: AuthenticatedPrincipal = Depends(auth.get_principal),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    """Email an admin response to the issue's owner."""
    IssueService.add_admin_response(db, principal, issue_id, data.message)
    return schemas.MessageResponse(message="Admin response sent successfully")
