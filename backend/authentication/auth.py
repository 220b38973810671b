from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends
from fastapi.security import (
    HTTPAuthorizationCredentials,
    HTTPBearer,
    OAuth2PasswordBearer,
)
import jwt
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.config import settings
from models.exceptions import (
    AuthenticationException,
    ConfigurationException,
    PermissionDeniedException,
    UserBannedException,
)
from models.principal import AuthenticatedPrincipal
from repositories.database import get_db
from services.user_service import UserService
from services.trending import as_utc

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")
optional_oauth2_scheme = HTTPBearer(auto_error=False)


def _secret_key() -> str:
    if not settings.SECRET_KEY:
        raise ConfigurationException("SECRET_KEY not configured")
    return settings.SECRET_KEY


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a JWT.

    Raises:
        ConfigurationException: If SECRET_KEY is not set
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, _secret_key(), algorithm=settings.ALGORITHM)


def create_user_token(user: db_models.User) -> str:
    """Token whose subject is the user ID, carrying the role."""
    return create_access_token(data={"sub": str(user.id), "role": str(user.role)})


def authenticate_user(db: Session, email: str, password: str) -> db_models.User | None:
    user = db.query(db_models.User).filter(db_models.User.email == email).first()
    if not user:
        return None
    if not verify_password(password, str(user.hashed_password)):
        return None
    return user


def _user_from_token(db: Session, token: str) -> Optional[db_models.User]:
    payload = jwt.decode(token, _secret_key(), algorithms=[settings.ALGORITHM])
    subject = payload.get("sub")
    if subject is None:
        return None
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        return None
    return db.get(db_models.User, user_id)


async def get_current_user(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> db_models.User:
    """
    Get the current authenticated user from the JWT token.

    Banned users are returned too (so they can read their ban details); an
    expired ban is cleared here.

    Raises:
        AuthenticationException: If credentials are invalid or user not found.
        ConfigurationException: If SECRET_KEY is not set.
    """
    try:
        user = _user_from_token(db, token)
    except jwt.exceptions.ExpiredSignatureError:
        raise AuthenticationException("Session expired. Please log in again.")
    except jwt.exceptions.InvalidTokenError:
        raise AuthenticationException("Could not validate credentials")

    if user is None:
        raise AuthenticationException("Could not validate credentials")

    UserService.clear_expired_ban(db, user)
    return user


async def get_current_active_user(
    current_user: db_models.User = Depends(get_current_user),
) -> db_models.User:
    """
    Get the current user and verify they are not banned.

    Raises:
        UserBannedException: If the user is currently banned.
    """
    if current_user.banned:
        banned_until = (
            as_utc(current_user.banned_until) if current_user.banned_until else None
        )
        raise UserBannedException(banned_until)
    return current_user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(
        optional_oauth2_scheme
    ),
    db: Session = Depends(get_db),
) -> Optional[db_models.User]:
    """
    Get current user if authenticated, otherwise return None.

    If no credentials are provided, returns None (anonymous access).
    If credentials are provided but expired, raises AuthenticationException
    so the user knows to re-login (returns 401).
    If credentials are malformed or invalid, returns None.
    """
    if credentials is None:
        return None

    try:
        return _user_from_token(db, credentials.credentials)
    except jwt.exceptions.ExpiredSignatureError:
        raise AuthenticationException("Session expired. Please log in again.")
    except jwt.exceptions.InvalidTokenError:
        return None


async def get_admin_user(
    current_user: db_models.User = Depends(get_current_user),
) -> db_models.User:
    """
    Require the admin role.

    Raises:
        PermissionDeniedException: If user is not an admin.
    """
    if current_user.role != db_models.UserRole.ADMIN.value:
        raise PermissionDeniedException("Admin access required")
    return current_user


async def get_principal(
    current_user: db_models.User = Depends(get_current_user),
) -> AuthenticatedPrincipal:
    """Principal of any authenticated caller, banned or not."""
    return AuthenticatedPrincipal.from_user(current_user)  # type: ignore[return-value]


async def get_active_principal(
    current_user: db_models.User = Depends(get_current_active_user),
) -> AuthenticatedPrincipal:
    """Principal of an authenticated, non-banned caller."""
    return AuthenticatedPrincipal.from_user(current_user)  # type: ignore[return-value]


async def get_optional_principal(
    current_user: Optional[db_models.User] = Depends(get_current_user_optional),
) -> Optional[AuthenticatedPrincipal]:
    return AuthenticatedPrincipal.from_user(current_user)


async def get_admin_principal(
    current_user: db_models.User = Depends(get_admin_user),
) -> AuthenticatedPrincipal:
    return AuthenticatedPrincipal.from_user(current_user)  # type: ignore[return-value]
