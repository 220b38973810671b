"""
Authentication Service

Handles registration, login and acceptance of the terms of use.
"""

from datetime import datetime, timezone

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from authentication.auth import (
    authenticate_user,
    create_user_token,
    get_password_hash,
)
from models.config import settings
from models.exceptions import (
    InvalidCredentialsException,
    UserAlreadyExistsException,
    ValidationException,
)
from repositories.user_repository import UserRepository


def resolve_role(admin_code: str | None) -> db_models.UserRole:
    """
    Role granted at registration.

    With ADMIN_CODE configured the code must match it exactly; without it,
    any non-empty code grants the admin role.

    Raises:
        ValidationException: If a code is given and does not match ADMIN_CODE
    """
    if not admin_code:
        return db_models.UserRole.USER
    if settings.ADMIN_CODE and admin_code != settings.ADMIN_CODE:
        raise ValidationException("Invalid admin code")
    return db_models.UserRole.ADMIN


class AuthService:
    """Service for authentication business logic."""

    @staticmethod
    def register(db: Session, data: schemas.RegisterRequest) -> schemas.RegisterResponse:
        """
        Create an account and sign a token for it.

        Args:
            db: Database session
            data: Email, password and optional admin code

        Returns:
            Token and public user fields

        Raises:
            UserAlreadyExistsException: If the email is taken
            ValidationException: If the admin code is wrong
        """
        repo = UserRepository(db)
        if repo.get_by_email(data.email) is not None:
            raise UserAlreadyExistsException()

        role = resolve_role(data.admin_code)
        user = db_models.User(
            email=data.email,
            hashed_password=get_password_hash(data.password),
            role=role.value,
        )
        try:
            user = repo.create(user)
        except IntegrityError:
            repo.rollback()
            raise UserAlreadyExistsException()

        logger.info(f"User {user.id} registered with role {role.value}")
        return schemas.RegisterResponse(
            message="User created successfully",
            token=create_user_token(user),
            user=schemas.UserPublic.model_validate(user),
        )

    @staticmethod
    def login(db: Session, email: str, password: str) -> schemas.LoginResponse:
        """
        Authenticate a user and create an access token.

        ``terms_accepted`` is only true when the accepted version is current.

        Raises:
            InvalidCredentialsException: If email or password is incorrect
        """
        user = authenticate_user(db, email, password)
        if not user:
            raise InvalidCredentialsException()

        terms_current = bool(user.terms_accepted) and (
            user.terms_version >= settings.CURRENT_TERMS_VERSION
        )
        return schemas.LoginResponse(
            message="Login successful",
            token=create_user_token(user),
            user=schemas.UserSession(
                id=user.id,
                email=user.email,
                role=user.role,
                terms_accepted=terms_current,
                terms_accepted_at=user.terms_accepted_at,
                terms_version=user.terms_version,
                theme_preference=user.theme_preference,
            ),
        )

    @staticmethod
    def accept_terms(db: Session, user: db_models.User) -> schemas.TermsAcceptance:
        user.terms_accepted = True
        user.terms_accepted_at = datetime.now(timezone.utc)
        user.terms_version = settings.CURRENT_TERMS_VERSION
        user = UserRepository(db).update(user)
        return schemas.TermsAcceptance(
            message="Terms and conditions accepted successfully",
            user=schemas.TermsStatus.model_validate(user),
        )
