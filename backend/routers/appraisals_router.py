"""Likes on public issues and suggestions."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
from models.principal import AuthenticatedPrincipal
from repositories.database import get_db
from services.appraisal_service import AppraisalService

router = APIRouter(prefix="/appraisals", tags=["appraisals"])


@router.post("/{item_id}/toggle", response_model=schemas.AppraisalToggleResult)
def toggle_appraisal(
    item_id: int,
    data: schemas.AppraisalToggle,
    principal: AuthenticatedPrincipal = Depends(auth.get_active_principal),
    db: Session = Depends(get_db),
) -> schemas.AppraisalToggleResult:
    """Like the item, or remove the caller's like if present."""
    return AppraisalService.toggle(db, principal, data.type, item_id)


@router.get("/{item_id}/status", response_model=schemas.AppraisalStatus)
def get_appraisal_status(
    item_id: int,
    type: Optional[str] = None,
    principal: Optional[AuthenticatedPrincipal] = Depends(auth.get_optional_principal),
    db: Session = Depends(get_db),
) -> schemas.AppraisalStatus:
    return AppraisalService.get_status(db, principal, type, item_id)


@router.post("/counts", response_model=schemas.AppraisalCounts)
def get_appraisal_counts(
    data: schemas.AppraisalCountsRequest, db: Session = Depends(get_db)
) -> schemas.AppraisalCounts:
    """Batch counts keyed ``<type>_<id>``."""
    return AppraisalService.get_counts(db, data.items)
