"""
Admin dashboard operations: issue statistics and hard deletion.
"""

from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
from models.exceptions import NotFoundException
from models.principal import AuthenticatedPrincipal
from repositories.appraisal_repository import AppraisalRepository
from repositories.db_models import AppraisalTarget
from repositories.submission_repository import IssueRepository
from services.image_storage import ImageStorage, get_image_storage


class AdminService:
    """Service for admin-only maintenance operations."""

    @staticmethod
    def get_issue_stats(db: Session) -> schemas.IssueStats:
        repo = IssueRepository(db)
        return schemas.IssueStats(
            total=repo.count(),
            by_status=dict(repo.count_by_status()),
            by_category=dict(repo.count_by_category()),
        )

    @staticmethod
    def delete_issue(
        db: Session,
        principal: AuthenticatedPrincipal,
        issue_id: int,
        storage: Optional[ImageStorage] = None,
    ) -> None:
        """
        Permanently delete an issue with its images and appraisals.

        Stored image files are removed after the commit; a failure there is
        logged and ignored.

        Raises:
            NotFoundException: Unknown issue
        """
        repo = IssueRepository(db)
        issue = repo.get_by_id(issue_id)
        if issue is None:
            raise NotFoundException("Issue not found")

        public_ids = [image.public_id for image in issue.images if image.public_id]
        try:
            AppraisalRepository(db).delete_for_target(AppraisalTarget.ISSUE, issue_id)
            repo.delete(issue)
        except Exception:
            repo.rollback()
            raise

        storage = storage or get_image_storage()
        for public_id in public_ids:
            try:
                storage.delete(public_id)
            except Exception as e:
                logger.warning(f"Could not delete stored image {public_id}: {e}")

        logger.info(f"Issue {issue_id} deleted by admin {principal.user_id}")
