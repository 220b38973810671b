"""Citizen suggestions."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
from helpers.pagination import PaginationLimit, PaginationOffset
from helpers.rate_limiter import SUBMISSION_LIMIT, limiter
from models.principal import AuthenticatedPrincipal
from repositories.database import get_db
from services.submission_service import SuggestionService

router = APIRouter(prefix="/suggestions", tags=["suggestions"])


@router.get("", response_model=schemas.SuggestionList)
def list_suggestions(
    category: Optional[str] = None,
    status: Optional[str] = None,
    limit: PaginationLimit = 50,
    offset: PaginationOffset = 0,
    db: Session = Depends(get_db),
) -> schemas.SuggestionList:
    """Public suggestions, newest first."""
    suggestions = SuggestionService.list_public(
        db, category, status, limit=limit, offset=offset
    )
    return schemas.SuggestionList(suggestions=suggestions, count=len(suggestions))


@router.get("/my", response_model=schemas.RankedSuggestionList)
def list_my_suggestions(
    sort: Optional[str] = None,
    principal: AuthenticatedPrincipal = Depends(auth.get_principal),
    db: Session = Depends(get_db),
) -> schemas.RankedSuggestionList:
    suggestions = SuggestionService.list_mine(db, principal, sort)
    return schemas.RankedSuggestionList(
        suggestions=suggestions, count=len(suggestions)
    )


@router.post(
    "",
    response_model=schemas.SuggestionMutation,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(SUBMISSION_LIMIT)
def create_suggestion(
    request: Request,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    is_public: bool = Form(False),
    images: Optional[List[UploadFile]] = File(None),
    principal: AuthenticatedPrincipal = Depends(auth.get_active_principal),
    db: Session = Depends(get_db),
) -> schemas.SuggestionMutation:
    """Submit a suggestion for the caller's profile county."""
    data = schemas.SuggestionCreate(
        title=title, description=description, category=category, is_public=is_public
    )
    suggestion = SuggestionService.create(db, principal, data, images or [])
    return schemas.SuggestionMutation(
        message=SuggestionService.created_message, suggestion=suggestion
    )


@router.get("/{suggestion_id}", response_model=schemas.SuggestionEnvelope)
def get_suggestion(
    suggestion_id: int,
    principal: Optional[AuthenticatedPrincipal] = Depends(auth.get_optional_principal),
    db: Session = Depends(get_db),
) -> schemas.SuggestionEnvelope:
    return schemas.SuggestionEnvelope(
        suggestion=SuggestionService.get(db, principal, suggestion_id)
    )


@router.patch("/{suggestion_id}/status", response_model=schemas.SuggestionMutation)
def update_suggestion_status(
    suggestion_id: int,
    data: schemas.StatusUpdate,
    principal: AuthenticatedPrincipal = Depends(auth.get_active_principal),
    db: Session = Depends(get_db),
) -> schemas.SuggestionMutation:
    suggestion = SuggestionService.update_status(
        db, principal, suggestion_id, data.status, data.admin_note
    )
    return schemas.SuggestionMutation(
        message="Suggestion status updated", suggestion=suggestion
    )


@router.post("/{suggestion_id}/response", response_model=schemas.MessageResponse)
def respond_to_suggestion(
    suggestion_id: int,
    data: schemas.AdminResponseCreate,
    principal: AuthenticatedPrincipal = Depends(auth.get_principal),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    SuggestionService.add_admin_response(db, principal, suggestion_id, data.message)
    return schemas.MessageResponse(message="Admin response sent successfully")
