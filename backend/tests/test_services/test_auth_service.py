"""Tests for AuthService and token helpers."""

from datetime import timedelta
from unittest.mock import patch

import jwt
import pytest
from sqlalchemy.orm import Session

import models.schemas as schemas
from authentication.auth import create_access_token, create_user_token
from models.config import settings
from models.exceptions import (
    ConfigurationException,
    InvalidCredentialsException,
    UserAlreadyExistsException,
    ValidationException,
)
from services.auth_service import AuthService, resolve_role


def register(db: Session, email: str = "new@example.com", admin_code=None):
    return AuthService.register(
        db,
        schemas.RegisterRequest(
            email=email, password="s3cret-pass", admin_code=admin_code
        ),
    )


class TestRegister:
    """Tests for AuthService.register."""

    def test_registers_citizen(self, db_session: Session) -> None:
        result = register(db_session)

        assert result.message == "User created successfully"
        assert result.user.role == "user"
        payload = jwt.decode(
            result.token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        assert payload["sub"] == str(result.user.id)
        assert payload["role"] == "user"

    def test_duplicate_email(self, db_session: Session, citizen) -> None:
        with pytest.raises(UserAlreadyExistsException):
            register(db_session, citizen.email)

    def test_any_code_grants_admin_without_configured_code(
        self, db_session: Session
    ) -> None:
        assert register(db_session, admin_code="anything").user.role == "admin"


class TestResolveRole:
    def test_no_code_is_citizen(self) -> None:
        assert resolve_role(None).value == "user"
        assert resolve_role("").value == "user"

    def test_configured_code_must_match(self) -> None:
        with patch("services.auth_service.settings") as mock_settings:
            mock_settings.ADMIN_CODE = "county-hall"
            assert resolve_role("county-hall").value == "admin"
            with pytest.raises(ValidationException) as exc_info:
                resolve_role("guess")
        assert exc_info.value.message == "Invalid admin code"


class TestLogin:
    def test_login_success(self, db_session: Session, citizen) -> None:
        result = AuthService.login(db_session, citizen.email, "password123")

        assert result.message == "Login successful"
        assert result.user.id == citizen.id
        assert result.user.terms_accepted is False
        assert result.user.theme_preference == "light"

    def test_wrong_password(self, db_session: Session, citizen) -> None:
        with pytest.raises(InvalidCredentialsException):
            AuthService.login(db_session, citizen.email, "nope")

    def test_unknown_email(self, db_session: Session) -> None:
        with pytest.raises(InvalidCredentialsException):
            AuthService.login(db_session, "ghost@example.com", "password123")

    def test_outdated_terms_are_not_accepted(
        self, db_session: Session, citizen
    ) -> None:
        citizen.terms_accepted = True
        citizen.terms_version = settings.CURRENT_TERMS_VERSION - 1
        db_session.commit()

        result = AuthService.login(db_session, citizen.email, "password123")
        assert result.user.terms_accepted is False

    def test_accept_terms(self, db_session: Session, citizen) -> None:
        result = AuthService.accept_terms(db_session, citizen)

        assert result.user.terms_accepted is True
        assert result.user.terms_version == settings.CURRENT_TERMS_VERSION
        login = AuthService.login(db_session, citizen.email, "password123")
        assert login.user.terms_accepted is True


class TestTokens:
    def test_user_token_subject(self, citizen) -> None:
        token = create_user_token(citizen)
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        assert payload["sub"] == str(citizen.id)

    def test_missing_secret(self) -> None:
        with patch("authentication.auth.settings") as mock_settings:
            mock_settings.SECRET_KEY = ""
            with pytest.raises(ConfigurationException):
                create_access_token({"sub": "1"}, timedelta(minutes=5))
