from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from helpers.media_urls import image_urls
from repositories.db_models import AppraisalTarget


# Auth Schemas
class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    admin_code: Optional[str] = None
    recaptcha_token: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserPublic(BaseModel):
    id: int
    email: str
    role: str

    model_config = ConfigDict(from_attributes=True)


class UserSession(UserPublic):
    """User block returned with a login token."""

    terms_accepted: bool
    terms_accepted_at: Optional[datetime] = None
    terms_version: int = 0
    theme_preference: str = "light"


class RegisterResponse(BaseModel):
    message: str
    token: str
    user: UserPublic


class LoginResponse(BaseModel):
    message: str
    token: str
    user: UserSession


class TermsStatus(BaseModel):
    id: int
    email: str
    terms_accepted: bool
    terms_accepted_at: Optional[datetime] = None
    terms_version: int

    model_config = ConfigDict(from_attributes=True)


class TermsAcceptance(BaseModel):
    message: str
    user: TermsStatus


# Profile Schemas
class ProfileFields(BaseModel):
    first_name: Optional[str] = None
    surname: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    ppsn: Optional[str] = None
    civic_interests: Optional[List[str]] = None
    county: Optional[str] = None


class ProfileCreate(ProfileFields):
    pass


class ProfileUpdate(ProfileFields):
    pass


class CountyUpdate(BaseModel):
    county: Optional[str] = None


class AdminProfileUpdate(BaseModel):
    """Fields an admin may correct on a citizen's profile."""

    first_name: Optional[str] = None
    surname: Optional[str] = None
    date_of_birth: Optional[date] = None
    ppsn: Optional[str] = None
    address: Optional[str] = None


class Profile(ProfileFields):
    id: int
    user_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileEnvelope(BaseModel):
    profile: Optional[Profile] = None


class ProfileMutation(BaseModel):
    message: str
    profile: Profile


# Submission Schemas
class SubmissionBase(BaseModel):
    id: int
    user_id: int
    case_id: str
    title: str
    description: str
    category: str
    status: str
    county: Optional[str] = None
    is_public: bool
    view_count: int = 0
    admin_note: Optional[str] = None
    admin_action_by: Optional[int] = None
    admin_action_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    images: List[str] = []

    model_config = ConfigDict(from_attributes=True)

    @field_validator("images", mode="before")
    @classmethod
    def normalize_images(cls, value: object) -> List[str]:
        return image_urls(value)  # type: ignore[arg-type]


class Issue(SubmissionBase):
    type: str = "issue"
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None


class Suggestion(SubmissionBase):
    pass


class RankingFields(BaseModel):
    appraisal_count: int = 0
    is_trending: bool = False
    trending_score: float = 0.0


class RankedIssue(Issue, RankingFields):
    pass


class RankedSuggestion(Suggestion, RankingFields):
    pass


class SuggestionCreate(BaseModel):
    """Submission form fields; blank values are rejected by the service."""

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    is_public: bool = False


class IssueCreate(SuggestionCreate):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    type: Optional[str] = None


class IssueEnvelope(BaseModel):
    issue: Issue


class SuggestionEnvelope(BaseModel):
    suggestion: Suggestion


class IssueList(BaseModel):
    issues: List[Issue]
    count: int


class SuggestionList(BaseModel):
    suggestions: List[Suggestion]
    count: int


class RankedIssueList(BaseModel):
    issues: List[RankedIssue]
    count: int


class RankedSuggestionList(BaseModel):
    suggestions: List[RankedSuggestion]
    count: int


class IssueMutation(BaseModel):
    message: str
    issue: Issue


class SuggestionMutation(BaseModel):
    message: str
    suggestion: Suggestion


class StatusUpdate(BaseModel):
    status: Optional[str] = None
    admin_note: Optional[str] = None


class AdminResponseCreate(BaseModel):
    message: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


# Listing Schemas
class CivicSpace(BaseModel):
    county: str
    issues: List[RankedIssue]
    suggestions: List[RankedSuggestion]
    issues_count: int
    suggestions_count: int


class PublicItems(BaseModel):
    issues: List[RankedIssue]
    suggestions: List[RankedSuggestion]
    issues_count: int
    suggestions_count: int
    total_count: int


class TrendingItems(BaseModel):
    issues: List[RankedIssue]
    suggestions: List[RankedSuggestion]
    issues_count: int
    suggestions_count: int


class Coordinates(BaseModel):
    lat: float
    lng: float


class CountyStat(BaseModel):
    county: str
    issues_count: int
    suggestions_count: int
    total_count: int
    coordinates: Coordinates


class CountyStats(BaseModel):
    counties: List[CountyStat]
    total_counties: int


# Appraisal Schemas
class AppraisalToggle(BaseModel):
    type: Optional[str] = None


class AppraisalToggleResult(BaseModel):
    message: str
    liked: bool
    count: int


class AppraisalStatus(BaseModel):
    count: int
    liked: bool


class AppraisalItemRef(BaseModel):
    id: int
    type: AppraisalTarget


class AppraisalCountsRequest(BaseModel):
    items: List[AppraisalItemRef]


class AppraisalCount(BaseModel):
    count: int


class AppraisalCounts(BaseModel):
    counts: Dict[str, AppraisalCount]


# Admin Location Schemas
class AdminLocationsUpdate(BaseModel):
    counties: List[str] = []


class AdminLocationsResult(BaseModel):
    message: str
    locations: List[str]


class AdminLocations(BaseModel):
    locations: List[str]


class CountyAssignment(BaseModel):
    county: str
    admin_id: int
    admin_email: str
    is_current_admin: bool


class CountyAssignments(BaseModel):
    assignments: List[CountyAssignment]


# Admin User Schemas
class AdminUserSummary(BaseModel):
    id: int
    email: str
    role: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    banned: bool
    banned_until: Optional[datetime] = None
    ban_reason: Optional[str] = None
    banned_at: Optional[datetime] = None
    banned_by: Optional[int] = None
    banned_by_email: Optional[str] = None
    first_name: Optional[str] = None
    surname: Optional[str] = None
    county: Optional[str] = None
    issues_count: int = 0
    suggestions_count: int = 0


class UserList(BaseModel):
    users: List[AdminUserSummary]
    count: int


class BanRequest(BaseModel):
    user_id: Optional[int] = None
    ban_type: Optional[str] = None
    reason: Optional[str] = None


class BanResult(BaseModel):
    message: str
    user_id: int
    banned_until: Optional[datetime] = None
    is_permanent: bool


class DigestTriggered(BaseModel):
    message: str
    recipients: int


class BanDetails(BaseModel):
    banned: bool
    message: Optional[str] = None
    banned_until: Optional[datetime] = None
    ban_reason: Optional[str] = None
    banned_at: Optional[datetime] = None
    banned_by: Optional[str] = None
    is_permanent: Optional[bool] = None


class StatusCount(BaseModel):
    status: str
    count: int


class IssueStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_category: Dict[str, int]


# Theme Schemas
class Theme(BaseModel):
    theme: str


class ThemeUpdate(BaseModel):
    theme: Optional[str] = None


class ThemeResult(BaseModel):
    message: str
    theme: str


# reCAPTCHA Schemas
class RecaptchaVerifyRequest(BaseModel):
    token: Optional[str] = None


class RecaptchaResult(BaseModel):
    success: bool
    score: Optional[float] = None
    message: Optional[str] = None


# Analytics Schemas
class CategoryBreakdown(BaseModel):
    category: str
    issues: int
    suggestions: int
    total: int


class CategoryAnalytics(BaseModel):
    categories: List[CategoryBreakdown]


class TrendPoint(BaseModel):
    date: str
    count: int


class TrendAnalytics(BaseModel):
    issues: List[TrendPoint]
    suggestions: List[TrendPoint]
    resolved: List[TrendPoint]


class StatusBreakdown(BaseModel):
    total: int = 0
    resolved: int = 0
    under_review: int = 0
    in_progress: int = 0


class CountyDistribution(BaseModel):
    county: str
    issues: StatusBreakdown
    suggestions: StatusBreakdown
    total: int


class GeographicAnalytics(BaseModel):
    distribution: List[CountyDistribution]


class OverallTotals(BaseModel):
    issues: int
    suggestions: int
    users: int
    resolved: int


class OverallAnalytics(BaseModel):
    totals: OverallTotals
    issues_by_status: List[StatusCount]
    suggestions_by_status: List[StatusCount]


# Admin Message Schemas
class AdminMessageCreate(BaseModel):
    issue_type: Optional[str] = None
    description: Optional[str] = None


class AdminMessage(BaseModel):
    id: int
    user_id: int
    admin_id: int
    issue_type: str
    description: str
    status: str
    admin_response: Optional[str] = None
    viewed_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class InboxMessage(AdminMessage):
    user_email: Optional[str] = None
    first_name: Optional[str] = None
    surname: Optional[str] = None
    user_county: Optional[str] = None


class SentMessage(AdminMessage):
    admin_email: Optional[str] = None


class AdminMessageMutation(BaseModel):
    message: str
    admin_message: AdminMessage


class AdminInbox(BaseModel):
    messages: List[InboxMessage]
    count: int
    unread_count: int


class SentMessages(BaseModel):
    messages: List[SentMessage]
    count: int


class MarkViewedResult(BaseModel):
    message: str
    already_viewed: bool
    admin_message: Optional[AdminMessage] = None


class MessageStatusUpdate(BaseModel):
    status: Optional[str] = None
    admin_response: Optional[str] = None


class IssueTypes(BaseModel):
    issue_types: List[str]
