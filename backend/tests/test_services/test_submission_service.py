"""Tests for IssueService and SuggestionService."""

from io import BytesIO
from types import SimpleNamespace

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
from services.case_id import CASE_ID_PATTERN
from services.submission_service import (
    NO_COUNTY_MESSAGE,
    IssueService,
    SuggestionService,
    case_id_taken,
)


def principal(user) -> AuthenticatedPrincipal:
    return AuthenticatedPrincipal.from_user(user)


def upload(name: str) -> SimpleNamespace:
    return SimpleNamespace(filename=name, file=BytesIO(b"\x89PNG fake"))


def issue_form(**overrides) -> schemas.IssueCreate:
    fields = {
        "title": "Pothole on Main Street",
        "description": "Deep pothole near the school gate",
        "category": "Roads",
        "is_public": True,
    }
    fields.update(overrides)
    return schemas.IssueCreate(**fields)


class TestCreate:
    """Tests for SubmissionService.create."""

    def test_creates_issue_in_profile_county(
        self, db_session: Session, citizen
    ) -> None:
        issue = IssueService.create(db_session, principal(citizen), issue_form())

        assert issue.county == "Dublin"
        assert issue.status == db_models.ContentStatus.UNDER_REVIEW.value
        assert issue.user_id == citizen.id
        assert issue.type == "issue"
        assert CASE_ID_PATTERN.match(issue.case_id)
        assert case_id_taken(db_session, issue.case_id)

    def test_issue_keeps_location_fields(self, db_session: Session, citizen) -> None:
        issue = IssueService.create(
            db_session,
            principal(citizen),
            issue_form(latitude=53.35, longitude=-6.26, address=" 1 Main St ", type="suggestion"),
        )
        assert issue.latitude == 53.35
        assert issue.longitude == -6.26
        assert issue.address == "1 Main St"
        assert issue.type == "suggestion"

    def test_markup_is_stripped(self, db_session: Session, citizen) -> None:
        issue = IssueService.create(
            db_session,
            principal(citizen),
            issue_form(title="<b>Broken</b> bench", description="<i>Seat</i> cracked"),
        )
        assert issue.title == "Broken bench"
        assert issue.description == "Seat cracked"

    @pytest.mark.parametrize("field, label", [("title", "Title"), ("category", "Category")])
    def test_blank_required_field(
        self, db_session: Session, citizen, field: str, label: str
    ) -> None:
        with pytest.raises(ValidationException) as exc_info:
            IssueService.create(
                db_session, principal(citizen), issue_form(**{field: "   "})
            )
        assert exc_info.value.message == f"{label} is required"

    def test_requires_profile_county(self, db_session: Session, make_user) -> None:
        user = make_user("nocounty@example.com")
        with pytest.raises(ValidationException) as exc_info:
            SuggestionService.create(
                db_session,
                principal(user),
                schemas.SuggestionCreate(title="t", description="d", category="c"),
            )
        assert exc_info.value.message == NO_COUNTY_MESSAGE

    def test_images_stored_in_order(
        self, db_session: Session, citizen, image_storage
    ) -> None:
        issue = IssueService.create(
            db_session,
            principal(citizen),
            issue_form(),
            images=[upload("a.png"), upload("b.png")],
        )

        assert len(issue.images) == 2
        assert issue.images[0].endswith("a.png")
        assert issue.images[1].endswith("b.png")
        assert all(url.startswith("http") for url in issue.images)
        assert image_storage.uploaded[0].startswith("issues/")

    def test_failed_image_is_skipped(self, db_session: Session, citizen) -> None:
        suggestion = SuggestionService.create(
            db_session,
            principal(citizen),
            schemas.SuggestionCreate(title="Bins", description="More bins", category="Waste"),
            images=[upload("broken.png"), upload("ok.png")],
        )
        assert len(suggestion.images) == 1
        assert suggestion.images[0].endswith("ok.png")

    def test_too_many_images(self, db_session: Session, citizen) -> None:
        with pytest.raises(ValidationException):
            IssueService.create(
                db_session,
                principal(citizen),
                issue_form(),
                images=[upload(f"{i}.png") for i in range(6)],
            )
        assert db_session.query(db_models.Issue).count() == 0


class TestGet:
    """Tests for SubmissionService.get."""

    def test_public_read_counts_a_view(
        self, db_session: Session, citizen, make_issue
    ) -> None:
        issue = make_issue(citizen)

        IssueService.get(db_session, None, issue.id)
        result = IssueService.get(db_session, None, issue.id)

        assert result.view_count == 2

    def test_private_read_by_owner_does_not_count(
        self, db_session: Session, citizen, make_issue
    ) -> None:
        issue = make_issue(citizen, is_public=False)
        result = IssueService.get(db_session, principal(citizen), issue.id)
        assert result.view_count == 0

    def test_private_read_anonymous(
        self, db_session: Session, citizen, make_suggestion
    ) -> None:
        suggestion = make_suggestion(citizen, is_public=False)
        with pytest.raises(AuthenticationException):
            SuggestionService.get(db_session, None, suggestion.id)

    def test_private_read_by_county_admin(
        self, db_session: Session, citizen, admin_user, cork_admin, make_issue
    ) -> None:
        issue = make_issue(citizen, is_public=False)

        result = IssueService.get(db_session, principal(admin_user), issue.id)
        assert result.id == issue.id
        assert result.view_count == 0
        with pytest.raises(PermissionDeniedException):
            IssueService.get(db_session, principal(cork_admin), issue.id)

    def test_unknown_id(self, db_session: Session) -> None:
        with pytest.raises(NotFoundException) as exc_info:
            SuggestionService.get(db_session, None, 42)
        assert exc_info.value.message == "Suggestion not found"


class TestListings:
    def test_list_public_filters(
        self, db_session: Session, citizen, make_issue
    ) -> None:
        roads = make_issue(citizen, category="Roads")
        make_issue(citizen, category="Lighting")
        make_issue(citizen, category="Roads", is_public=False)

        result = IssueService.list_public(db_session, category="Roads")
        assert [i.id for i in result] == [roads.id]

    def test_list_public_by_type(self, db_session: Session, citizen, make_issue) -> None:
        make_issue(citizen)
        flagged = make_issue(citizen, type="suggestion")

        result = IssueService.list_public(db_session, item_type="suggestion")
        assert [i.id for i in result] == [flagged.id]

    def test_list_mine_only_own_complete_items(
        self, db_session: Session, citizen, other_citizen, make_suggestion
    ) -> None:
        mine = make_suggestion(citizen, is_public=False)
        make_suggestion(citizen, description=" ")
        make_suggestion(other_citizen)

        result = SuggestionService.list_mine(db_session, principal(citizen))
        assert [s.id for s in result] == [mine.id]
        assert result[0].appraisal_count == 0

    def test_list_mine_rejects_unknown_sort(self, db_session: Session, citizen) -> None:
        with pytest.raises(ValidationException):
            IssueService.list_mine(db_session, principal(citizen), "loudest")

    def test_list_for_admin_scoped_to_counties(
        self, db_session: Session, citizen, admin_user, make_issue
    ) -> None:
        public = make_issue(citizen)
        private = make_issue(citizen, is_public=False)
        make_issue(citizen, county="Cork")

        result = IssueService.list_for_admin(db_session, principal(admin_user))
        assert {i.id for i in result} == {public.id, private.id}

    def test_list_for_admin_case_id_search(
        self, db_session: Session, citizen, admin_user, make_issue
    ) -> None:
        target = make_issue(citizen, case_id="CIVIC-1A2B-3C4D")
        make_issue(citizen, case_id="CIVIC-9999-8888")

        result = IssueService.list_for_admin(
            db_session, principal(admin_user), " 1a2b "
        )
        assert [i.id for i in result] == [target.id]

    def test_list_for_admin_without_counties(
        self, db_session: Session, citizen, make_user, make_issue
    ) -> None:
        make_issue(citizen)
        admin = make_user("new.admin@example.com", role=db_models.UserRole.ADMIN)
        assert IssueService.list_for_admin(db_session, principal(admin)) == []


class TestUpdateStatus:
    """Tests for the owner/admin status endpoint."""

    def test_owner_update_sends_no_email(
        self, db_session: Session, citizen, make_issue, sent_emails
    ) -> None:
        issue = make_issue(citizen)
        result = IssueService.update_status(
            db_session, principal(citizen), issue.id, "closed"
        )
        assert result.status == "closed"
        assert sent_emails == []

    def test_admin_update_emails_owner(
        self, db_session: Session, citizen, admin_user, make_issue, sent_emails
    ) -> None:
        issue = make_issue(citizen)
        IssueService.update_status(
            db_session, principal(admin_user), issue.id, "in_progress", "Crew booked"
        )

        assert len(sent_emails) == 1
        assert sent_emails[0]["to"] == citizen.email
        assert issue.case_id in sent_emails[0]["subject"]
        assert "Crew booked" in sent_emails[0]["text"]

    def test_stranger_forbidden(
        self, db_session: Session, citizen, other_citizen, make_issue
    ) -> None:
        issue = make_issue(citizen)
        with pytest.raises(PermissionDeniedException):
            IssueService.update_status(
                db_session, principal(other_citizen), issue.id, "closed"
            )

    @pytest.mark.parametrize("is_public", [True, False])
    def test_admin_of_other_county_forbidden(
        self,
        db_session: Session,
        citizen,
        cork_admin,
        make_issue,
        make_suggestion,
        sent_emails,
        is_public: bool,
    ) -> None:
        issue = make_issue(citizen, is_public=is_public)
        suggestion = make_suggestion(citizen, is_public=is_public)

        with pytest.raises(PermissionDeniedException):
            IssueService.update_status(
                db_session, principal(cork_admin), issue.id, "resolved"
            )
        with pytest.raises(PermissionDeniedException):
            SuggestionService.update_status(
                db_session, principal(cork_admin), suggestion.id, "implemented"
            )

        db_session.refresh(issue)
        db_session.refresh(suggestion)
        assert issue.status == "under_review"
        assert suggestion.status == "under_review"
        assert sent_emails == []

    def test_vocabulary_per_kind(
        self, db_session: Session, citizen, make_issue, make_suggestion
    ) -> None:
        issue = make_issue(citizen)
        suggestion = make_suggestion(citizen)

        with pytest.raises(ValidationException):
            IssueService.update_status(db_session, principal(citizen), issue.id, "approved")
        result = SuggestionService.update_status(
            db_session, principal(citizen), suggestion.id, "approved"
        )
        assert result.status == "approved"


class TestTriage:
    """Tests for admin triage."""

    def test_decision_requires_note(
        self, db_session: Session, citizen, admin_user, make_issue
    ) -> None:
        issue = make_issue(citizen)
        with pytest.raises(ValidationException) as exc_info:
            IssueService.triage(db_session, principal(admin_user), issue.id, "accepted", " ")
        assert exc_info.value.message == (
            "Admin note is required when accepting or rejecting an issue"
        )

    def test_decision_records_note_and_actor(
        self, db_session: Session, citizen, admin_user, make_suggestion, sent_emails
    ) -> None:
        suggestion = make_suggestion(citizen)
        result = SuggestionService.triage(
            db_session, principal(admin_user), suggestion.id, "rejected", "Out of scope"
        )

        assert result.status == "rejected"
        assert result.admin_note == "Out of scope"
        assert result.admin_action_by == admin_user.id
        assert result.admin_action_at is not None
        assert len(sent_emails) == 1

    def test_non_decision_keeps_note_empty(
        self, db_session: Session, citizen, admin_user, make_issue
    ) -> None:
        issue = make_issue(citizen)
        result = IssueService.triage(
            db_session, principal(admin_user), issue.id, "in_progress", "ignored"
        )
        assert result.admin_note is None
        assert result.admin_action_by is None

    def test_outside_county_forbidden(
        self, db_session: Session, citizen, cork_admin, make_issue, sent_emails
    ) -> None:
        issue = make_issue(citizen)
        with pytest.raises(PermissionDeniedException):
            IssueService.triage(db_session, principal(cork_admin), issue.id, "resolved")
        assert sent_emails == []

    def test_closed_is_not_a_triage_status(
        self, db_session: Session, citizen, admin_user, make_issue
    ) -> None:
        issue = make_issue(citizen)
        with pytest.raises(ValidationException):
            IssueService.triage(db_session, principal(admin_user), issue.id, "closed")


class TestAdminResponse:
    def test_emails_owner(
        self, db_session: Session, citizen, admin_user, make_issue, sent_emails
    ) -> None:
        issue = make_issue(citizen)
        IssueService.add_admin_response(
            db_session, principal(admin_user), issue.id, "  We are on it.  "
        )

        assert len(sent_emails) == 1
        assert sent_emails[0]["to"] == citizen.email
        assert "We are on it." in sent_emails[0]["text"]
        assert "admin Response" in sent_emails[0]["text"]

    def test_requires_admin(self, db_session: Session, citizen, make_issue) -> None:
        issue = make_issue(citizen)
        with pytest.raises(PermissionDeniedException):
            IssueService.add_admin_response(
                db_session, principal(citizen), issue.id, "hello"
            )

    def test_admin_of_other_county_forbidden(
        self, db_session: Session, citizen, cork_admin, make_issue, sent_emails
    ) -> None:
        issue = make_issue(citizen, is_public=False)
        with pytest.raises(PermissionDeniedException):
            IssueService.add_admin_response(
                db_session, principal(cork_admin), issue.id, "hello"
            )
        assert sent_emails == []

    def test_blank_message(
        self, db_session: Session, citizen, admin_user, make_issue
    ) -> None:
        issue = make_issue(citizen)
        with pytest.raises(ValidationException):
            IssueService.add_admin_response(db_session, principal(admin_user), issue.id, "")
