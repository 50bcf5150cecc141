"""PowerUp — Public Competition Finder Routes."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.meet_routes import get_meet_service
from app.meets.public import DATE_RANGE_OPTIONS, DEFAULT_DATE_RANGE, PublicMeetService
from app.meets.service import MeetService, MeetServiceError
from app.models.meet_models import PublicMeet
from app.core.logging import get_logger

logger = get_logger("api.public")

router = APIRouter(prefix="/public", tags=["Public"])


@router.get("/meets", response_model=List[PublicMeet])
async def find_meets(
    location: str = Query("", description="Venue, city or state text"),
    federation: str = Query("all", description='Federation name or "all"'),
    date_range: str = Query(DEFAULT_DATE_RANGE, description=" | ".join(DATE_RANGE_OPTIONS)),
    service: MeetService = Depends(get_meet_service),
):
    """Published meets matching the competition finder filters."""
    try:
        return PublicMeetService(service).search_with_filters(
            location=location, federation=federation, date_range=date_range
        )
    except MeetServiceError as e:
        logger.error(f"Competition search failed: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to search competitions: {e}")


@router.get("/meets/by-location", response_model=List[PublicMeet])
async def meets_by_location(
    location: str = Query("", description="Venue, city or state text"),
    service: MeetService = Depends(get_meet_service),
):
    """Published meets whose venue, city or state contains the text."""
    try:
        return PublicMeetService(service).search_by_location(location)
    except MeetServiceError as e:
        logger.error(f"Location search failed: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to search competitions: {e}")


@router.get("/meets/by-federation/{federation}", response_model=List[PublicMeet])
async def meets_by_federation(
    federation: str,
    service: MeetService = Depends(get_meet_service),
):
    """Published meets of one federation; "all" lists every published meet."""
    try:
        return PublicMeetService(service).get_by_federation(federation)
    except MeetServiceError as e:
        logger.error(f"Federation lookup failed: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to search competitions: {e}")
