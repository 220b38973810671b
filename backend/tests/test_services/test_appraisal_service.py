"""Tests for AppraisalService."""

import pytest
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    AuthenticationException,
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from models.principal import AuthenticatedPrincipal
from services.appraisal_service import AppraisalService


def principal(user) -> AuthenticatedPrincipal:
    return AuthenticatedPrincipal.from_user(user)


class TestToggle:
    """Tests for AppraisalService.toggle."""

    def test_like_then_unlike(
        self, db_session: Session, citizen, other_citizen, make_issue
    ) -> None:
        issue = make_issue(citizen)

        liked = AppraisalService.toggle(
            db_session, principal(other_citizen), "issue", issue.id
        )
        assert liked.liked is True
        assert liked.count == 1
        assert liked.message == "Appraisal added"

        unliked = AppraisalService.toggle(
            db_session, principal(other_citizen), "issue", issue.id
        )
        assert unliked.liked is False
        assert unliked.count == 0
        assert unliked.message == "Appraisal removed"

    def test_count_reflects_all_users(
        self, db_session: Session, citizen, other_citizen, make_suggestion
    ) -> None:
        suggestion = make_suggestion(citizen)
        AppraisalService.toggle(db_session, principal(citizen), "suggestion", suggestion.id)
        result = AppraisalService.toggle(
            db_session, principal(other_citizen), "suggestion", suggestion.id
        )
        assert result.count == 2

    def test_private_item_rejected(
        self, db_session: Session, citizen, make_issue
    ) -> None:
        issue = make_issue(citizen, is_public=False)
        with pytest.raises(PermissionDeniedException):
            AppraisalService.toggle(db_session, principal(citizen), "issue", issue.id)

    def test_unknown_item(self, db_session: Session, citizen) -> None:
        with pytest.raises(NotFoundException):
            AppraisalService.toggle(db_session, principal(citizen), "suggestion", 999)

    def test_invalid_type(self, db_session: Session, citizen) -> None:
        with pytest.raises(ValidationException) as exc_info:
            AppraisalService.toggle(db_session, principal(citizen), "idea", 1)
        assert exc_info.value.message == 'Invalid type. Must be "issue" or "suggestion"'

    def test_issue_and_suggestion_with_same_id_are_separate(
        self, db_session: Session, citizen, make_issue, make_suggestion
    ) -> None:
        issue = make_issue(citizen)
        suggestion = make_suggestion(citizen)
        assert issue.id == suggestion.id

        AppraisalService.toggle(db_session, principal(citizen), "issue", issue.id)

        assert (
            AppraisalService.get_status(
                db_session, principal(citizen), "suggestion", suggestion.id
            ).liked
            is False
        )


class TestStatusAndCounts:
    def test_status_anonymous(
        self, db_session: Session, citizen, make_issue
    ) -> None:
        issue = make_issue(citizen)
        AppraisalService.toggle(db_session, principal(citizen), "issue", issue.id)

        status = AppraisalService.get_status(db_session, None, "issue", issue.id)
        assert status.count == 1
        assert status.liked is False

    def test_status_for_liker(self, db_session: Session, citizen, make_issue) -> None:
        issue = make_issue(citizen)
        AppraisalService.toggle(db_session, principal(citizen), "issue", issue.id)

        status = AppraisalService.get_status(
            db_session, principal(citizen), "issue", issue.id
        )
        assert status.liked is True

    def test_status_unknown_item(self, db_session: Session, citizen) -> None:
        with pytest.raises(NotFoundException):
            AppraisalService.get_status(db_session, principal(citizen), "issue", 999)

    def test_status_private_item(
        self,
        db_session: Session,
        citizen,
        other_citizen,
        admin_user,
        cork_admin,
        make_issue,
    ) -> None:
        issue = make_issue(citizen, is_public=False)

        with pytest.raises(AuthenticationException):
            AppraisalService.get_status(db_session, None, "issue", issue.id)
        for outsider in (other_citizen, cork_admin):
            with pytest.raises(PermissionDeniedException):
                AppraisalService.get_status(
                    db_session, principal(outsider), "issue", issue.id
                )

        for reader in (citizen, admin_user):
            status = AppraisalService.get_status(
                db_session, principal(reader), "issue", issue.id
            )
            assert status.count == 0

    def test_batch_counts(
        self, db_session: Session, citizen, other_citizen, make_issue, make_suggestion
    ) -> None:
        issue = make_issue(citizen)
        quiet_issue = make_issue(citizen)
        suggestion = make_suggestion(citizen)
        for user in (citizen, other_citizen):
            AppraisalService.toggle(db_session, principal(user), "issue", issue.id)
        AppraisalService.toggle(
            db_session, principal(citizen), "suggestion", suggestion.id
        )

        result = AppraisalService.get_counts(
            db_session,
            [
                schemas.AppraisalItemRef(id=issue.id, type=db_models.AppraisalTarget.ISSUE),
                schemas.AppraisalItemRef(
                    id=quiet_issue.id, type=db_models.AppraisalTarget.ISSUE
                ),
                schemas.AppraisalItemRef(
                    id=suggestion.id, type=db_models.AppraisalTarget.SUGGESTION
                ),
            ],
        )

        assert result.counts[f"issue_{issue.id}"].count == 2
        assert result.counts[f"issue_{quiet_issue.id}"].count == 0
        assert result.counts[f"suggestion_{suggestion.id}"].count == 1
