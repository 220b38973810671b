"""Tests for AdminMessageService."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from models.principal import AuthenticatedPrincipal
from services.admin_message_service import AdminMessageService

ISSUE_TYPE = "I wrote my PPSN wrong"


def principal(user) -> AuthenticatedPrincipal:
    return AuthenticatedPrincipal.from_user(user)


def send(db: Session, user, description: str = "My PPSN has a typo"):
    return AdminMessageService.create_message(
        db,
        principal(user),
        schemas.AdminMessageCreate(issue_type=ISSUE_TYPE, description=description),
    )


class TestCreateMessage:
    """Tests for AdminMessageService.create_message."""

    def test_routes_to_county_admin(
        self, db_session: Session, citizen, admin_user, cork_admin
    ) -> None:
        message = send(db_session, citizen)

        assert message.admin_id == admin_user.id
        assert message.status == "pending"
        assert message.viewed_at is None

    def test_description_is_sanitized(
        self, db_session: Session, citizen, admin_user
    ) -> None:
        message = send(db_session, citizen, "  <b>Typo</b> in PPSN ")
        assert message.description == "Typo in PPSN"

    def test_unknown_issue_type(self, db_session: Session, citizen, admin_user) -> None:
        with pytest.raises(ValidationException) as exc_info:
            AdminMessageService.create_message(
                db_session,
                principal(citizen),
                schemas.AdminMessageCreate(issue_type="Complaint", description="x"),
            )
        assert exc_info.value.message == "Invalid issue type"

    def test_missing_fields(self, db_session: Session, citizen, admin_user) -> None:
        with pytest.raises(ValidationException):
            AdminMessageService.create_message(
                db_session,
                principal(citizen),
                schemas.AdminMessageCreate(issue_type=ISSUE_TYPE, description="   "),
            )

    def test_no_county(self, db_session: Session, make_user, admin_user) -> None:
        user = make_user("drifter@example.com")
        with pytest.raises(ValidationException):
            send(db_session, user)

    def test_no_admin_for_county(self, db_session: Session, make_user) -> None:
        user = make_user("sligo@example.com", county="Sligo")
        with pytest.raises(NotFoundException):
            send(db_session, user)


class TestInbox:
    def test_inbox_lists_sender_details_and_unread(
        self, db_session: Session, make_user, admin_user
    ) -> None:
        sender = make_user("sender@example.com", complete_profile=True)
        first = send(db_session, sender)
        send(db_session, sender, "Second")

        AdminMessageService.mark_viewed(db_session, principal(admin_user), first.id)
        inbox = AdminMessageService.get_admin_inbox(db_session, principal(admin_user))

        assert inbox.count == 2
        assert inbox.unread_count == 1
        assert inbox.messages[0].user_email == "sender@example.com"
        assert inbox.messages[0].first_name == "Aoife"
        assert inbox.messages[0].user_county == "Dublin"

    def test_status_filter(self, db_session: Session, citizen, admin_user) -> None:
        message = send(db_session, citizen)
        send(db_session, citizen)
        AdminMessageService.update_status(
            db_session,
            principal(admin_user),
            message.id,
            schemas.MessageStatusUpdate(status="in_progress"),
        )

        inbox = AdminMessageService.get_admin_inbox(
            db_session, principal(admin_user), "in_progress"
        )
        assert [m.id for m in inbox.messages] == [message.id]

        unfiltered = AdminMessageService.get_admin_inbox(
            db_session, principal(admin_user), "bogus"
        )
        assert unfiltered.count == 2

    def test_user_sees_own_messages_with_admin_email(
        self, db_session: Session, citizen, other_citizen, admin_user
    ) -> None:
        send(db_session, citizen)
        send(db_session, other_citizen)

        sent = AdminMessageService.get_user_messages(db_session, principal(citizen))
        assert sent.count == 1
        assert sent.messages[0].admin_email == "admin@example.com"


class TestMarkViewed:
    def test_marks_once(self, db_session: Session, citizen, admin_user) -> None:
        message = send(db_session, citizen)

        first = AdminMessageService.mark_viewed(
            db_session, principal(admin_user), message.id
        )
        second = AdminMessageService.mark_viewed(
            db_session, principal(admin_user), message.id
        )

        assert first.already_viewed is False
        assert first.admin_message.viewed_at is not None
        assert second.already_viewed is True

    def test_unknown_or_foreign_message_is_noop(
        self, db_session: Session, citizen, admin_user, cork_admin
    ) -> None:
        message = send(db_session, citizen)

        assert AdminMessageService.mark_viewed(
            db_session, principal(cork_admin), message.id
        ).already_viewed
        assert AdminMessageService.mark_viewed(
            db_session, principal(admin_user), 999
        ).already_viewed


class TestUpdateStatus:
    def test_resolving_stamps_times(
        self, db_session: Session, citizen, admin_user
    ) -> None:
        message = send(db_session, citizen)
        updated = AdminMessageService.update_status(
            db_session,
            principal(admin_user),
            message.id,
            schemas.MessageStatusUpdate(status="resolved", admin_response="Fixed"),
        )

        assert updated.status == "resolved"
        assert updated.admin_response == "Fixed"
        assert updated.resolved_at is not None
        assert updated.viewed_at is not None

    def test_invalid_status(self, db_session: Session, citizen, admin_user) -> None:
        message = send(db_session, citizen)
        with pytest.raises(ValidationException):
            AdminMessageService.update_status(
                db_session,
                principal(admin_user),
                message.id,
                schemas.MessageStatusUpdate(status="done"),
            )

    def test_other_admin_forbidden(
        self, db_session: Session, citizen, admin_user, cork_admin
    ) -> None:
        message = send(db_session, citizen)
        with pytest.raises(PermissionDeniedException):
            AdminMessageService.update_status(
                db_session,
                principal(cork_admin),
                message.id,
                schemas.MessageStatusUpdate(status="closed"),
            )
        with pytest.raises(PermissionDeniedException):
            AdminMessageService.delete_message(
                db_session, principal(cork_admin), message.id
            )

    def test_delete(self, db_session: Session, citizen, admin_user) -> None:
        message = send(db_session, citizen)
        AdminMessageService.delete_message(db_session, principal(admin_user), message.id)
        assert db_session.get(db_models.AdminMessage, message.id) is None


class TestAutoClose:
    def test_closes_only_stale_resolved_messages(
        self, db_session: Session, citizen, admin_user
    ) -> None:
        now = datetime.now(timezone.utc)
        stale = send(db_session, citizen)
        fresh = send(db_session, citizen)
        pending = send(db_session, citizen)
        resolved_times = (
            (stale, now - timedelta(hours=49)),
            (fresh, now - timedelta(hours=47)),
        )
        for message, resolved_at in resolved_times:
            message.status = "resolved"
            message.resolved_at = resolved_at
        db_session.commit()

        closed = AdminMessageService.auto_close_resolved(db_session, now=now)

        assert closed == 1
        db_session.expire_all()
        assert db_session.get(db_models.AdminMessage, stale.id).status == "closed"
        assert db_session.get(db_models.AdminMessage, fresh.id).status == "resolved"
        assert db_session.get(db_models.AdminMessage, pending.id).status == "pending"
