"""Light/dark theme preference."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from repositories.database import get_db
from services.user_service import UserService

router = APIRouter(prefix="/theme", tags=["theme"])


@router.get("/preference", response_model=schemas.Theme)
def get_theme(
    current_user: Optional[db_models.User] = Depends(auth.get_current_user_optional),
) -> schemas.Theme:
    """Anonymous callers get the light theme."""
    return schemas.Theme(theme=UserService.get_theme(current_user))


@router.post("/preference", response_model=schemas.ThemeResult)
def set_theme(
    data: schemas.ThemeUpdate,
    current_user: db_models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
) -> schemas.ThemeResult:
    theme = UserService.set_theme(db, current_user, data.theme)
    return schemas.ThemeResult(
        message="Theme preference updated successfully", theme=theme
    )
