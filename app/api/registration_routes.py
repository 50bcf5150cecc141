"""PowerUp — Meet Registration Routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.meet_routes import _to_http_error, get_meet_service
from app.meets.registrations import (
    RegistrationNotFoundError,
    RegistrationRefusedError,
    RegistrationService,
)
from app.meets.service import MeetService, MeetServiceError
from app.models.meet_models import MeetStats
from app.models.registration_models import (
    BulkActionResult,
    BulkStatusChange,
    PaymentChange,
    PaymentStatus,
    Registration,
    RegistrationRequest,
    RegistrationStats,
    RegistrationStatus,
    StatusChange,
    WithdrawalRequest,
)
from app.core.logging import get_logger

logger = get_logger("api.registrations")

router = APIRouter(prefix="/meets", tags=["Registrations"])


def get_registration_service(
    meets: MeetService = Depends(get_meet_service),
) -> RegistrationService:
    """Dependency: a RegistrationService sharing the request's meet service."""
    return RegistrationService(meets.store, meets)


def _to_registration_http_error(e: MeetServiceError) -> HTTPException:
    if isinstance(e, RegistrationRefusedError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, RegistrationNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    return _to_http_error(e)


@router.post("/{meet_id}/registrations", status_code=201, response_model=Registration)
async def register_for_meet(
    meet_id: str,
    request: RegistrationRequest,
    service: RegistrationService = Depends(get_registration_service),
):
    """Enter an athlete. 409 when the meet is closed, full or the entry is a duplicate."""
    try:
        return service.register_for_meet(meet_id, request)
    except MeetServiceError as e:
        raise _to_registration_http_error(e)


@router.get("/{meet_id}/registrations", response_model=List[Registration])
async def list_registrations(
    meet_id: str,
    status: Optional[RegistrationStatus] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None),
    service: RegistrationService = Depends(get_registration_service),
):
    try:
        return service.list_for_meet(meet_id, status=status, payment_status=payment_status)
    except MeetServiceError as e:
        raise _to_registration_http_error(e)


@router.get("/{meet_id}/registrations/stats", response_model=RegistrationStats)
async def registration_stats(
    meet_id: str,
    service: RegistrationService = Depends(get_registration_service),
):
    try:
        return service.get_registration_stats(meet_id)
    except MeetServiceError as e:
        raise _to_registration_http_error(e)


@router.post("/{meet_id}/registrations/bulk-status", response_model=BulkActionResult)
async def bulk_update_status(
    meet_id: str,
    body: BulkStatusChange,
    service: RegistrationService = Depends(get_registration_service),
):
    """Set one status on many registrations. Per-item failures are listed."""
    try:
        return service.bulk_update_status(meet_id, body.registration_ids, body.status, body.notes)
    except MeetServiceError as e:
        raise _to_registration_http_error(e)


@router.put("/{meet_id}/registrations/{registration_id}/status")
async def update_registration_status(
    meet_id: str,
    registration_id: str,
    body: StatusChange,
    service: RegistrationService = Depends(get_registration_service),
):
    try:
        service.update_registration_status(meet_id, registration_id, body.status, body.notes)
    except MeetServiceError as e:
        raise _to_registration_http_error(e)
    return {"status": "success", "id": registration_id}


@router.put("/{meet_id}/registrations/{registration_id}/payment")
async def update_payment_status(
    meet_id: str,
    registration_id: str,
    body: PaymentChange,
    service: RegistrationService = Depends(get_registration_service),
):
    try:
        service.update_payment_status(
            meet_id, registration_id, body.payment_status, body.payment_amount
        )
    except MeetServiceError as e:
        raise _to_registration_http_error(e)
    return {"status": "success", "id": registration_id}


@router.post("/{meet_id}/withdraw")
async def withdraw(
    meet_id: str,
    body: WithdrawalRequest,
    service: RegistrationService = Depends(get_registration_service),
):
    try:
        service.withdraw(meet_id, body.athlete_id, body.reason)
    except MeetServiceError as e:
        raise _to_registration_http_error(e)
    return {"status": "success", "athlete_id": body.athlete_id}


@router.get("/{meet_id}/stats", response_model=MeetStats)
async def meet_stats(
    meet_id: str,
    service: RegistrationService = Depends(get_registration_service),
):
    """Registration and revenue stats, with pending / approved from the ledger."""
    try:
        stats = service.get_meet_stats(meet_id)
    except MeetServiceError as e:
        raise _to_registration_http_error(e)
    if stats is None:
        raise HTTPException(status_code=404, detail=f"Meet {meet_id} not found")
    return stats
