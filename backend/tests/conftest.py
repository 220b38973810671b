"""
Pytest configuration and fixtures for backend tests.
"""

import os
import sys
import tempfile
from datetime import date
from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment variables before importing config
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["CORS_ORIGINS"] = '["http://localhost:3000"]'
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="civicfix-uploads-")
os.environ["EMAIL_PROVIDER"] = "console"
os.environ["RECAPTCHA_SECRET_KEY"] = ""
os.environ["ADMIN_CODE"] = ""

from authentication.auth import create_access_token, get_password_hash  # noqa: E402
from repositories.database import Base, get_db  # noqa: E402
import repositories.db_models as db_models  # noqa: E402
from services.case_id import generate_case_id  # noqa: E402
from services.email_service import EmailService  # noqa: E402
from services.image_storage import StoredImage  # noqa: E402

# Test database engine (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh in-memory database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with overridden database dependency."""
    from main import app
    from helpers.rate_limiter import limiter

    # Reset rate limiter storage before each test to prevent rate limit errors
    limiter.reset()

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch) -> list:
    """Capture queued emails instead of sending them."""
    outbox: list = []

    def capture(to_email, subject, html_body, text_body):
        outbox.append(
            {"to": to_email, "subject": subject, "html": html_body, "text": text_body}
        )

    monkeypatch.setattr(EmailService, "send_fire_and_forget", staticmethod(capture))
    return outbox


class FakeImageStorage:
    """In-memory image storage; files named ``broken*`` fail to upload."""

    def __init__(self):
        self.uploaded: list[str] = []
        self.deleted: list[str] = []

    def upload(self, upload, folder: str) -> StoredImage:
        name = upload.filename or "image.png"
        if name.startswith("broken"):
            raise ValueError("Uploaded file is empty")
        public_id = f"{folder}/{len(self.uploaded)}-{name}"
        self.uploaded.append(public_id)
        return StoredImage(url=f"/uploads/{public_id}", public_id=public_id)

    def delete(self, public_id: str) -> None:
        self.deleted.append(public_id)


@pytest.fixture(autouse=True)
def image_storage(monkeypatch) -> FakeImageStorage:
    storage = FakeImageStorage()
    monkeypatch.setattr(
        "services.submission_service.get_image_storage", lambda: storage
    )
    monkeypatch.setattr("services.admin_service.get_image_storage", lambda: storage)
    return storage


# Factories


@pytest.fixture
def make_user(db_session):
    """Factory fixture creating a user with an optional profile."""

    def _make_user(
        email: str,
        role: db_models.UserRole = db_models.UserRole.USER,
        county: Optional[str] = None,
        complete_profile: bool = False,
        password: str = "password123",
    ) -> db_models.User:
        user = db_models.User(
            email=email,
            hashed_password=get_password_hash(password),
            role=role.value,
        )
        db_session.add(user)
        db_session.flush()

        if county or complete_profile:
            profile = db_models.UserProfile(user_id=user.id, county=county)
            if complete_profile:
                profile.first_name = "Aoife"
                profile.surname = "Byrne"
                profile.date_of_birth = date(1990, 5, 17)
                profile.address = "1 Main Street"
                profile.ppsn = "1234567TA"
                profile.county = county or "Dublin"
            db_session.add(profile)

        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_issue(db_session):
    """Factory fixture creating an issue row directly."""

    def _make_issue(owner: db_models.User, **overrides) -> db_models.Issue:
        fields = {
            "user_id": owner.id,
            "title": "Broken streetlight",
            "description": "The light outside number 4 is out",
            "category": "Lighting",
            "status": db_models.ContentStatus.UNDER_REVIEW.value,
            "case_id": generate_case_id(),
            "county": "Dublin",
            "is_public": True,
        }
        fields.update(overrides)
        issue = db_models.Issue(**fields)
        db_session.add(issue)
        db_session.commit()
        db_session.refresh(issue)
        return issue

    return _make_issue


@pytest.fixture
def make_suggestion(db_session):
    """Factory fixture creating a suggestion row directly."""

    def _make_suggestion(
        owner: db_models.User, **overrides
    ) -> db_models.Suggestion:
        fields = {
            "user_id": owner.id,
            "title": "More bike racks",
            "description": "Add bike racks near the library",
            "category": "Transport",
            "status": db_models.ContentStatus.UNDER_REVIEW.value,
            "case_id": generate_case_id(),
            "county": "Dublin",
            "is_public": True,
        }
        fields.update(overrides)
        suggestion = db_models.Suggestion(**fields)
        db_session.add(suggestion)
        db_session.commit()
        db_session.refresh(suggestion)
        return suggestion

    return _make_suggestion


@pytest.fixture
def assign_counties(db_session):
    """Give an admin a set of counties directly."""

    def _assign(admin: db_models.User, *counties: str) -> None:
        for county in counties:
            db_session.add(db_models.AdminLocation(admin_id=admin.id, county=county))
        db_session.commit()

    return _assign


# Common users


@pytest.fixture
def citizen(make_user) -> db_models.User:
    return make_user("citizen@example.com", county="Dublin")


@pytest.fixture
def other_citizen(make_user) -> db_models.User:
    return make_user("neighbour@example.com", county="Dublin")


@pytest.fixture
def admin_user(make_user, assign_counties) -> db_models.User:
    """Admin managing Dublin."""
    admin = make_user("admin@example.com", role=db_models.UserRole.ADMIN)
    assign_counties(admin, "Dublin")
    return admin


@pytest.fixture
def cork_admin(make_user, assign_counties) -> db_models.User:
    """Admin managing Cork only."""
    admin = make_user("cork.admin@example.com", role=db_models.UserRole.ADMIN)
    assign_counties(admin, "Cork")
    return admin


def headers_for(user: db_models.User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(citizen) -> dict:
    return headers_for(citizen)


@pytest.fixture
def admin_auth_headers(admin_user) -> dict:
    return headers_for(admin_user)
