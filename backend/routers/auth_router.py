"""Authentication router endpoints."""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.rate_limiter import AUTH_LIMIT, limiter
from repositories.database import get_db
from services.auth_service import AuthService
from services.recaptcha_service import RecaptchaService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=schemas.RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(AUTH_LIMIT)
async def register(
    request: Request,
    data: schemas.RegisterRequest,
    db: Session = Depends(get_db),
) -> schemas.RegisterResponse:
    """
    Register a new user.

    A reCAPTCHA token is required once RECAPTCHA_SECRET_KEY is configured.
    """
    if RecaptchaService.is_enabled():
        client_ip = request.client.host if request.client else None
        await RecaptchaService.verify(data.recaptcha_token, client_ip)
    return AuthService.register(db, data)


@router.post("/login", response_model=schemas.LoginResponse)
@limiter.limit(AUTH_LIMIT)
def login(
    request: Request,
    credentials: schemas.LoginRequest,
    db: Session = Depends(get_db),
) -> schemas.LoginResponse:
    """Exchange email and password for a bearer token."""
    return AuthService.login(db, credentials.email, credentials.password)


@router.post("/accept-terms", response_model=schemas.TermsAcceptance)
def accept_terms(
    current_user: db_models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
) -> schemas.TermsAcceptance:
    return AuthService.accept_terms(db, current_user)
