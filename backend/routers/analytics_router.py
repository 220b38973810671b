"""
Analytics Router - dashboard figures for signed-in users.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
from models.principal import AuthenticatedPrincipal
from repositories.database import get_db
from services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get(
    "/categories",
    response_model=schemas.CategoryAnalytics,
    summary="Most used categories",
)
def get_categories(
    principal: AuthenticatedPrincipal = Depends(auth.get_principal),
    db: Session = Depends(get_db),
) -> schemas.CategoryAnalytics:
    return AnalyticsService.get_categories(db)


@router.get(
    "/trends",
    response_model=schemas.TrendAnalytics,
    summary="Daily submissions and resolutions",
    description="`period` is the window in days, between 1 and 365.",
)
def get_trends(
    period: int = 30,
    principal: AuthenticatedPrincipal = Depends(auth.get_principal),
    db: Session = Depends(get_db),
) -> schemas.TrendAnalytics:
    return AnalyticsService.get_trends(db, period)


@router.get(
    "/geographic",
    response_model=schemas.GeographicAnalytics,
    summary="Status breakdown per county",
)
def get_geographic(
    principal: AuthenticatedPrincipal = Depends(auth.get_principal),
    db: Session = Depends(get_db),
) -> schemas.GeographicAnalytics:
    return AnalyticsService.get_geographic(db)


@router.get(
    "/overall",
    response_model=schemas.OverallAnalytics,
    summary="Platform totals",
)
def get_overall(
    principal: AuthenticatedPrincipal = Depends(auth.get_principal),
    db: Session = Depends(get_db),
) -> schemas.OverallAnalytics:
    return AnalyticsService.get_overall(db)
