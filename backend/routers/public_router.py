"""Anonymous listings of public content: civic space, feeds and the map."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import models.schemas as schemas
from repositories.database import get_db
from services.listing_service import ListingService

router = APIRouter(tags=["public"])


@router.get("/civic-space", response_model=schemas.CivicSpace)
def get_civic_space(
    county: Optional[str] = None, db: Session = Depends(get_db)
) -> schemas.CivicSpace:
    """Public items of one county, trending first."""
    return ListingService.get_civic_space(db, county)


@router.get("/all-public-items", response_model=schemas.PublicItems)
def get_all_public_items(
    sort: Optional[str] = None,
    type: Optional[str] = None,
    db: Session = Depends(get_db),
) -> schemas.PublicItems:
    """
    Public items of every county.

    ``sort`` is one of trending, newest, oldest, most_liked; ``type`` is one of
    all, issues, suggestions.
    """
    return ListingService.get_all_public_items(db, sort, type)


@router.get("/trending", response_model=schemas.TrendingItems)
def get_trending(db: Session = Depends(get_db)) -> schemas.TrendingItems:
    return ListingService.get_trending(db)


@router.get("/map/county-stats", response_model=schemas.CountyStats)
def get_county_stats(db: Session = Depends(get_db)) -> schemas.CountyStats:
    return ListingService.get_county_stats(db)
