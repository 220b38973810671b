"""The caller's civic profile."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
from models.principal import AuthenticatedPrincipal
from repositories.database import get_db
from services.profile_service import ProfileService

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=schemas.ProfileEnvelope)
def get_profile(
    principal: AuthenticatedPrincipal = Depends(auth.get_principal),
    db: Session = Depends(get_db),
) -> schemas.ProfileEnvelope:
    """Return ``{"profile": null}`` when none has been created yet."""
    profile = ProfileService.get_profile(db, principal.user_id)
    return schemas.ProfileEnvelope(
        profile=schemas.Profile.model_validate(profile) if profile else None
    )


@router.post(
    "",
    response_model=schemas.ProfileMutation,
    status_code=status.HTTP_201_CREATED,
)
def create_profile(
    data: schemas.ProfileCreate,
    principal: AuthenticatedPrincipal = Depends(auth.get_active_principal),
    db: Session = Depends(get_db),
) -> schemas.ProfileMutation:
    profile = ProfileService.create_profile(db, principal, data)
    return schemas.ProfileMutation(
        message="Profile created successfully",
        profile=schemas.Profile.model_validate(profile),
    )


@router.put("", response_model=schemas.ProfileMutation)
def update_profile(
    data: schemas.ProfileUpdate,
    principal: AuthenticatedPrincipal = Depends(auth.get_active_principal),
    db: Session = Depends(get_db),
) -> schemas.ProfileMutation:
    """
    Update the profile, creating it if needed.

    Once complete, only address, civic interests and county can change.
    """
    profile = ProfileService.update_profile(db, principal, data)
    return schemas.ProfileMutation(
        message="Profile updated successfully",
        profile=schemas.Profile.model_validate(profile),
    )


@router.patch("/county", response_model=schemas.ProfileMutation)
def update_county(
    data: schemas.CountyUpdate,
    principal: AuthenticatedPrincipal = Depends(auth.get_active_principal),
    db: Session = Depends(get_db),
) -> schemas.ProfileMutation:
    profile = ProfileService.set_county(db, principal, data.county)
    return schemas.ProfileMutation(
        message="County updated successfully",
        profile=schemas.Profile.model_validate(profile),
    )
