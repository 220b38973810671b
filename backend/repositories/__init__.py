"""
Repository pattern implementation for data access layer.
"""

from .admin_location_repository import AdminLocationRepository
from .admin_message_repository import AdminMessageRepository
from .appraisal_repository import AppraisalRepository
from .base import BaseRepository
from .filters import ContentFilter
from .profile_repository import ProfileRepository
from .submission_repository import (
    IssueRepository,
    SubmissionRepository,
    SuggestionRepository,
)
from .user_repository import UserRepository

__all__ = [
    "AdminLocationRepository",
    "AdminMessageRepository",
    "AppraisalRepository",
    "BaseRepository",
    "ContentFilter",
    "IssueRepository",
    "ProfileRepository",
    "SubmissionRepository",
    "SuggestionRepository",
    "UserRepository",
]
