"""PowerUp — Meet Director API Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from app.database import get_session
from app.meets.service import (
    MeetNotFoundError,
    MeetService,
    MeetServiceError,
    MeetValidationError,
)
from app.meets.validator import validate_meet
from app.models.meet_models import Federation, MeetDraft, MeetStatus, ValidationResult
from app.storage.sql_store import SqlDocumentStore
from app.core.logging import get_logger

logger = get_logger("api.meets")

router = APIRouter(prefix="/meets", tags=["Meets"])


def get_meet_service(session: Session = Depends(get_session)) -> MeetService:
    """Dependency — a MeetService bound to the request's DB session."""
    return MeetService(SqlDocumentStore(session))


def _to_http_error(e: MeetServiceError) -> HTTPException:
    if isinstance(e, MeetValidationError):
        return HTTPException(
            status_code=422,
            detail={
                "message": str(e),
                "errors": e.result.errors,
                "warnings": e.result.warnings,
            },
        )
    if isinstance(e, MeetNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


# ── Request Models ──


class MeetStatsUpdate(BaseModel):
    """Request body for PUT /meets/{meet_id}/stats."""

    registrations: int = Field(ge=0)
    revenue: float = Field(ge=0)


# ── Endpoints ──


@router.post("/validate", response_model=ValidationResult)
async def validate(draft: MeetDraft):
    """Validate a (possibly incomplete) meet without saving it."""
    return validate_meet(draft)


@router.post("", status_code=201)
async def create_meet(draft: MeetDraft, service: MeetService = Depends(get_meet_service)):
    """Create a meet. Rejected with 422 when validation finds errors."""
    try:
        meet_id = service.create_meet(draft)
    except MeetServiceError as e:
        raise _to_http_error(e)
    return {"status": "success", "id": meet_id}


@router.get("")
async def list_meets(
    status: Optional[MeetStatus] = Query(None),
    federation: Optional[Federation] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    start_after: Optional[str] = Query(None, description="Meet ID cursor"),
    service: MeetService = Depends(get_meet_service),
):
    """List meets, most recently updated first."""
    try:
        meets = service.list_meets(
            status=status, federation=federation, limit=limit, start_after=start_after
        )
    except MeetServiceError as e:
        raise _to_http_error(e)
    return {"status": "success", "count": len(meets), "meets": meets}


@router.get("/upcoming")
async def upcoming_meets(
    limit: int = Query(10, ge=1, le=100),
    service: MeetService = Depends(get_meet_service),
):
    """Published or open meets from today on."""
    try:
        meets = service.get_upcoming_meets(limit=limit)
    except MeetServiceError as e:
        raise _to_http_error(e)
    return {"status": "success", "count": len(meets), "meets": meets}


@router.get("/search")
async def search_meets(
    q: str = Query(..., min_length=1, description="Name, city, state or venue"),
    service: MeetService = Depends(get_meet_service),
):
    try:
        meets = service.search_meets(q)
    except MeetServiceError as e:
        raise _to_http_error(e)
    return {"status": "success", "count": len(meets), "meets": meets}


@router.get("/stats")
async def overall_stats(service: MeetService = Depends(get_meet_service)):
    """Totals across all meets."""
    try:
        return service.get_all_meets_stats()
    except MeetServiceError as e:
        raise _to_http_error(e)


@router.get("/{meet_id}")
async def get_meet(meet_id: str, service: MeetService = Depends(get_meet_service)):
    try:
        meet = service.get_meet(meet_id)
    except MeetServiceError as e:
        raise _to_http_error(e)
    if meet is None:
        raise HTTPException(status_code=404, detail=f"Meet {meet_id} not found")
    return meet


@router.patch("/{meet_id}")
async def update_meet(
    meet_id: str,
    changes: MeetDraft,
    service: MeetService = Depends(get_meet_service),
):
    """Partially update a meet. The merged record must still validate."""
    try:
        service.update_meet(meet_id, changes)
    except MeetServiceError as e:
        raise _to_http_error(e)
    return {"status": "success", "id": meet_id}


@router.put("/{meet_id}/stats")
async def update_meet_stats(
    meet_id: str,
    body: MeetStatsUpdate,
    service: MeetService = Depends(get_meet_service),
):
    """Set registration count and revenue."""
    try:
        service.update_meet_stats(meet_id, body.registrations, body.revenue)
    except MeetServiceError as e:
        raise _to_http_error(e)
    return {"status": "success", "id": meet_id}


@router.delete("/{meet_id}")
async def delete_meet(meet_id: str, service: MeetService = Depends(get_meet_service)):
    try:
        service.delete_meet(meet_id)
    except MeetServiceError as e:
        raise _to_http_error(e)
    return {"status": "success", "id": meet_id}
