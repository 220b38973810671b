"""Admin dashboard endpoints. Every route requires the admin role."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
from models.principal import AuthenticatedPrincipal
from repositories.database import get_db
from services.admin_location_service import AdminLocationService
from services.admin_service import AdminService
from services.digest_service import DigestService
from services.email_service import EmailService
from services.submission_service import IssueService, SuggestionService
from services.user_service import UserService

router = APIRouter(prefix="/admin", tags=["admin"])


# Locations


@router.post("/locations", response_model=schemas.AdminLocationsResult)
def set_locations(
    data: schemas.AdminLocationsUpdate,
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.AdminLocationsResult:
    """
    Replace the caller's counties.

    Rejected as a whole when another admin already holds any of them.
    """
    locations = AdminLocationService.assign_counties(
        db, principal.user_id, data.counties
    )
    return schemas.AdminLocationsResult(
        message="Admin locations updated successfully", locations=locations
    )


@router.get("/locations", response_model=schemas.AdminLocations)
def get_locations(
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.AdminLocations:
    return schemas.AdminLocations(
        locations=AdminLocationService.get_admin_counties(db, principal.user_id)
    )


@router.get("/locations/all", response_model=schemas.CountyAssignments)
def get_all_locations(
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.CountyAssignments:
    assignments = AdminLocationService.get_all_assignments(db, principal.user_id)
    return schemas.CountyAssignments(
        assignments=[schemas.CountyAssignment(**a) for a in assignments]
    )


# Content triage


@router.get("/issues", response_model=schemas.RankedIssueList)
def list_county_issues(
    case_id: Optional[str] = Query(None, alias="caseId"),
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.RankedIssueList:
    """Issues in the caller's counties, public and private."""
    issues = IssueService.list_for_admin(db, principal, case_id)
    return schemas.RankedIssueList(issues=issues, count=len(issues))


@router.get("/suggestions", response_model=schemas.RankedSuggestionList)
def list_county_suggestions(
    case_id: Optional[str] = Query(None, alias="caseId"),
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.RankedSuggestionList:
    suggestions = SuggestionService.list_for_admin(db, principal, case_id)
    return schemas.RankedSuggestionList(
        suggestions=suggestions, count=len(suggestions)
    )


@router.patch("/issues/{issue_id}/status", response_model=schemas.IssueMutation)
def triage_issue(
    issue_id: int,
    data: schemas.StatusUpdate,
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.IssueMutation:
    issue = IssueService.triage(db, principal, issue_id, data.status, data.admin_note)
    return schemas.IssueMutation(
        message="Issue status updated successfully", issue=issue
    )


@router.patch(
    "/suggestions/{suggestion_id}/status", response_model=schemas.SuggestionMutation
)
def triage_suggestion(
    suggestion_id: int,
    data: schemas.StatusUpdate,
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.SuggestionMutation:
    suggestion = SuggestionService.triage(
        db, principal, suggestion_id, data.status, data.admin_note
    )
    return schemas.SuggestionMutation(
        message="Suggestion status updated successfully", suggestion=suggestion
    )


@router.delete("/issues/{issue_id}", response_model=schemas.MessageResponse)
def delete_issue(
    issue_id: int,
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    AdminService.delete_issue(db, principal, issue_id)
    return schemas.MessageResponse(message="Issue deleted successfully")


@router.get("/stats", response_model=schemas.IssueStats)
def get_stats(
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.IssueStats:
    return AdminService.get_issue_stats(db)


@router.post("/trigger-weekly-emails", response_model=schemas.DigestTriggered)
def trigger_weekly_emails(
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.DigestTriggered:
    """Queue this week's summaries now instead of waiting for Monday."""
    recipients = DigestService.send_weekly_summaries(
        db, send=EmailService.send_fire_and_forget
    )
    return schemas.DigestTriggered(
        message="Weekly email summaries triggered successfully",
        recipients=recipients,
    )


# Users


@router.get("/users", response_model=schemas.UserList)
def list_users(
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.UserList:
    return UserService.list_users(db)


@router.post("/users/ban", response_model=schemas.BanResult)
def ban_user(
    data: schemas.BanRequest,
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.BanResult:
    return UserService.ban_user(db, principal, data)


@router.delete("/users/{user_id}/ban", response_model=schemas.MessageResponse)
def unban_user(
    user_id: int,
    principal: AuthenticatedPrincipal = Depends(auth.get_admin_principal),
    db: Session = Depends(get_db),
) -> schemas.MessageResponse:
    UserService.unban_user(db, user_id)
    return schemas.MessageResponse(message="User unbanned successfully")
