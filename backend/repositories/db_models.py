"""
Database models using SQLAlchemy 2.0 style with Mapped type hints.

Status columns are plain strings; the allowed vocabularies live next to the
enums below and are enforced by the services.
"""

import enum
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repositories.database import Base


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class ThemePreference(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"


class ContentStatus(str, enum.Enum):
    """Every status an issue or suggestion can hold."""

    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    APPROVED = "approved"
    IMPLEMENTED = "implemented"


# Owner/admin transition endpoint vocabularies
ISSUE_STATUSES = frozenset(
    s.value
    for s in (
        ContentStatus.UNDER_REVIEW,
        ContentStatus.IN_PROGRESS,
        ContentStatus.RESOLVED,
        ContentStatus.CLOSED,
    )
)
SUGGESTION_STATUSES = frozenset(
    s.value
    for s in (
        ContentStatus.SUBMITTED,
        ContentStatus.UNDER_REVIEW,
        ContentStatus.APPROVED,
        ContentStatus.IMPLEMENTED,
        ContentStatus.REJECTED,
    )
)
# Admin triage endpoint, shared by both kinds
TRIAGE_STATUSES = frozenset(
    s.value
    for s in (
        ContentStatus.UNDER_REVIEW,
        ContentStatus.ACCEPTED,
        ContentStatus.REJECTED,
        ContentStatus.IN_PROGRESS,
        ContentStatus.RESOLVED,
    )
)
# Triage transitions that record the admin note and actor
DECISION_STATUSES = frozenset(
    {ContentStatus.ACCEPTED.value, ContentStatus.REJECTED.value}
)


class IssueType(str, enum.Enum):
    ISSUE = "issue"
    SUGGESTION = "suggestion"


class AppraisalTarget(str, enum.Enum):
    ISSUE = "issue"
    SUGGESTION = "suggestion"


class MessageStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


ADMIN_MESSAGE_ISSUE_TYPES: tuple[str, ...] = (
    "I wrote my PPSN wrong",
    "I wrote my name wrong",
    "I wrote my surname wrong",
    "I wrote my date of birth wrong",
    "I wrote my address wrong",
    "Other profile issue",
    "Account access issue",
    "Other",
)


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(
        String(16), default=UserRole.USER.value, nullable=False, index=True
    )

    # Ban state; banned_until NULL with banned=True means permanent
    banned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    banned_until: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    ban_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    banned_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    banned_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    theme_preference: Mapped[str] = mapped_column(
        String(8), default=ThemePreference.LIGHT.value, nullable=False
    )

    terms_accepted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    terms_accepted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )
    terms_version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    profile: Mapped[Optional["UserProfile"]] = relationship(
        "UserProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    admin_locations: Mapped[List["AdminLocation"]] = relationship(
        "AdminLocation", back_populates="admin", cascade="all, delete-orphan"
    )
    banned_by_user: Mapped[Optional["User"]] = relationship(
        "User", remote_side="User.id", foreign_keys=[banned_by]
    )


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    surname: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ppsn: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    civic_interests: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    county: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    user: Mapped["User"] = relationship("User", back_populates="profile")

    REQUIRED_FIELDS = (
        "first_name",
        "surname",
        "date_of_birth",
        "address",
        "ppsn",
        "county",
    )

    @property
    def is_complete(self) -> bool:
        return all(getattr(self, field) for field in self.REQUIRED_FIELDS)


class AdminLocation(Base):
    """A county managed by an admin. Each county has at most one row."""

    __tablename__ = "admin_locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    admin_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    county: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    admin: Mapped["User"] = relationship("User", back_populates="admin_locations")

    __table_args__ = (UniqueConstraint("county", name="uq_admin_location_county"),)


class Issue(Base):
    __tablename__ = "issues"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), default=ContentStatus.UNDER_REVIEW.value, nullable=False
    )
    type: Mapped[str] = mapped_column(
        String(16), default=IssueType.ISSUE.value, nullable=False
    )
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    case_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    county: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    admin_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    admin_action_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    admin_action_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    owner: Mapped["User"] = relationship("User", foreign_keys=[user_id])
    images: Mapped[List["IssueImage"]] = relationship(
        "IssueImage",
        back_populates="issue",
        order_by="IssueImage.created_at",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_issues_county_public", "county", "is_public"),
        Index("ix_issues_created_at", "created_at"),
    )


class Suggestion(Base):
    __tablename__ = "suggestions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), default=ContentStatus.UNDER_REVIEW.value, nullable=False
    )
    case_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    county: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    admin_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    admin_action_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    admin_action_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    owner: Mapped["User"] = relationship("User", foreign_keys=[user_id])
    images: Mapped[List["SuggestionImage"]] = relationship(
        "SuggestionImage",
        back_populates="suggestion",
        order_by="SuggestionImage.created_at",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_suggestions_county_public", "county", "is_public"),
        Index("ix_suggestions_created_at", "created_at"),
    )


class IssueImage(Base):
    __tablename__ = "issue_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    issue_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    public_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    issue: Mapped["Issue"] = relationship("Issue", back_populates="images")


class SuggestionImage(Base):
    __tablename__ = "suggestion_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    suggestion_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("suggestions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    public_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    suggestion: Mapped["Suggestion"] = relationship(
        "Suggestion", back_populates="images"
    )


class Appraisal(Base):
    """A like. Exactly one of issue_id / suggestion_id is set."""

    __tablename__ = "appraisals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    issue_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("issues.id", ondelete="CASCADE"), nullable=True, index=True
    )
    suggestion_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("suggestions.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    __table_args__ = (
        UniqueConstraint("user_id", "issue_id", name="uq_appraisal_user_issue"),
        UniqueConstraint(
            "user_id", "suggestion_id", name="uq_appraisal_user_suggestion"
        ),
        CheckConstraint(
            "(issue_id IS NULL) <> (suggestion_id IS NULL)",
            name="ck_appraisal_single_target",
        ),
    )


class AdminMessage(Base):
    """A support ticket from a citizen to the admin of their county."""

    __tablename__ = "admin_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    admin_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    issue_type: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), default=MessageStatus.PENDING.value, nullable=False, index=True
    )
    admin_response: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    viewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    user: Mapped["User"] = relationship("User", foreign_keys=[user_id])
    admin: Mapped["User"] = relationship("User", foreign_keys=[admin_id])
