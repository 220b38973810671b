"""Ban details for the signed-in user."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from repositories.database import get_db
from services.user_service import UserService

router = APIRouter(prefix="/ban", tags=["ban"])


@router.get("/details", response_model=schemas.BanDetails)
def get_ban_details(
    current_user: db_models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
) -> schemas.BanDetails:
    """Banned users can still call this to see why and until when."""
    return UserService.get_ban_details(db, current_user)
