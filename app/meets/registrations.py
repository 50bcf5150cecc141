"""PowerUp — Registration Ledger.

Athlete entries for a meet, kept in the registrations collection and linked
to their meet by meet_id. Every ledger write recomputes the meet's
registrations counter (entries holding a spot) and revenue (paid amounts)
through MeetService.update_meet_stats.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.meets.normalizer import (
    from_storage_form,
    storage_now,
    to_display_datetime,
    to_storage_patch,
)
from app.meets.service import (
    UPCOMING_STATUSES,
    MeetNotFoundError,
    MeetService,
    MeetServiceError,
)
from app.meets.stats import compute_registration_stats
from app.models.meet_models import Meet, MeetStats
from app.models.registration_models import (
    ACTIVE_STATUSES,
    BulkActionResult,
    PaymentStatus,
    Registration,
    RegistrationRequest,
    RegistrationStats,
    RegistrationStatus,
)
from app.storage.base import COLLECTION_REGISTRATIONS, DocumentStore, OrderBy, QueryFilter
from app.core.logging import get_logger

logger = get_logger("meets.registrations")

# Statuses that block a second entry by the same athlete
HELD_STATUSES = [s.value for s in ACTIVE_STATUSES] + [RegistrationStatus.WAITLISTED.value]


class RegistrationNotFoundError(MeetServiceError):
    """Raised when the registration does not exist for the given meet."""


class RegistrationRefusedError(MeetServiceError):
    """Raised when a meet cannot take the registration."""


def to_registration(document: Dict[str, Any]) -> Registration:
    """Stored document → Registration."""
    data = from_storage_form(document)
    data["registered_at"] = to_display_datetime(data.get("registered_at"))
    return Registration.model_validate(data)


def entry_fee_for(meet: Meet, today: date) -> Tuple[float, bool]:
    """(amount, is_early_bird) owed by an athlete registering today."""
    if (
        meet.early_bird_fee is not None
        and meet.early_bird_deadline is not None
        and today <= meet.early_bird_deadline
    ):
        return meet.early_bird_fee, True
    return meet.registration_fee or 0.0, False


def _offered(choice: str, options: Optional[List[str]]) -> bool:
    # A meet without a list accepts any choice
    return not options or choice in options


class RegistrationService:
    """Registration operations for meets in a document store."""

    def __init__(self, store: DocumentStore, meets: Optional[MeetService] = None):
        self.store = store
        self.meets = meets or MeetService(store)

    # ── Helpers ──

    def _require_meet(self, meet_id: str) -> Meet:
        meet = self.meets.get_meet(meet_id)
        if meet is None:
            raise MeetNotFoundError(f"Meet {meet_id} not found")
        return meet

    def _query(self, filters: Sequence[QueryFilter], action: str) -> List[Registration]:
        try:
            documents = self.store.list(
                COLLECTION_REGISTRATIONS,
                filters=filters,
                order_by=OrderBy("registered_at", "asc"),
            )
        except Exception as e:
            logger.error(f"Error querying registrations: {e}")
            raise MeetServiceError(f"Failed to {action}: {e}") from e
        return [to_registration(d) for d in documents]

    def _get(self, meet_id: str, registration_id: str) -> Registration:
        try:
            document = self.store.get(COLLECTION_REGISTRATIONS, registration_id)
        except Exception as e:
            raise MeetServiceError(f"Failed to get registration: {e}") from e
        if document is None or document.get("meet_id") != meet_id:
            raise RegistrationNotFoundError(
                f"Registration {registration_id} not found for meet {meet_id}"
            )
        return to_registration(document)

    def _write(self, registration_id: str, changes: Dict[str, Any], action: str) -> None:
        try:
            self.store.update(COLLECTION_REGISTRATIONS, registration_id, to_storage_patch(changes))
        except Exception as e:
            logger.error(f"Error trying to {action}: {e}")
            raise MeetServiceError(f"Failed to {action}: {e}") from e

    def sync_meet_counters(self, meet_id: str) -> None:
        """Recompute the meet's registrations and revenue from its ledger."""
        registrations = self.list_for_meet(meet_id)
        holding = sum(1 for r in registrations if r.registration_status in ACTIVE_STATUSES)
        revenue = sum(
            r.payment_amount for r in registrations if r.payment_status == PaymentStatus.PAID
        )
        self.meets.update_meet_stats(meet_id, holding, revenue)

    # ── Athlete actions ──

    def register_for_meet(
        self, meet_id: str, request: RegistrationRequest, today: Optional[date] = None
    ) -> Registration:
        """Enter an athlete in a meet. New entries start pending and unpaid."""
        today = today or datetime.now(timezone.utc).date()
        meet = self._require_meet(meet_id)

        if meet.status.value not in UPCOMING_STATUSES:
            raise RegistrationRefusedError("Registration is not currently open for this meet")
        if meet.registration_deadline is not None and today > meet.registration_deadline:
            raise RegistrationRefusedError("Registration deadline has passed")
        if meet.max_participants and meet.registrations >= meet.max_participants:
            raise RegistrationRefusedError("This meet is at capacity")
        for field, choice, options in (
            ("Weight class", request.weight_class, meet.weight_classes),
            ("Division", request.division, meet.divisions),
            ("Equipment", request.equipment, meet.equipment),
        ):
            if not _offered(choice, options):
                raise RegistrationRefusedError(f"{field} {choice} is not offered at this meet")
        if self.get_athlete_registration(meet_id, request.athlete_id) is not None:
            raise RegistrationRefusedError("Athlete is already registered for this meet")

        amount, is_early_bird = entry_fee_for(meet, today)
        now = storage_now()
        data = request.model_dump(exclude_none=True)
        data.update(
            meet_id=meet_id,
            registration_status=RegistrationStatus.PENDING.value,
            payment_status=PaymentStatus.UNPAID.value,
            payment_amount=amount,
            is_early_bird=is_early_bird,
            registered_at=now,
            updated_at=now,
        )

        try:
            registration_id = self.store.create(COLLECTION_REGISTRATIONS, data)
        except Exception as e:
            logger.error(f"Error registering for meet: {e}", extra={"meet_id": meet_id})
            raise MeetServiceError(f"Failed to register for meet: {e}") from e

        self.sync_meet_counters(meet_id)
        logger.info(
            f"Athlete {request.athlete_id} registered", extra={"meet_id": meet_id}
        )
        return self._get(meet_id, registration_id)

    def withdraw(self, meet_id: str, athlete_id: str, reason: Optional[str] = None) -> None:
        """Withdraw an athlete's current entry and free its spot."""
        registration = self.get_athlete_registration(meet_id, athlete_id)
        if registration is None:
            raise RegistrationNotFoundError(
                f"Athlete {athlete_id} has no registration for meet {meet_id}"
            )
        changes: Dict[str, Any] = {"registration_status": RegistrationStatus.WITHDRAWN.value}
        if reason:
            changes["notes"] = f"Withdrawn: {reason}"
        self._write(registration.id, changes, "withdraw from meet")
        self.sync_meet_counters(meet_id)
        logger.info(f"Athlete {athlete_id} withdrew", extra={"meet_id": meet_id})

    # ── Director actions ──

    def update_registration_status(
        self,
        meet_id: str,
        registration_id: str,
        status: RegistrationStatus,
        notes: Optional[str] = None,
    ) -> None:
        self._set_status(meet_id, registration_id, status, notes)
        self.sync_meet_counters(meet_id)

    def _set_status(
        self,
        meet_id: str,
        registration_id: str,
        status: RegistrationStatus,
        notes: Optional[str],
    ) -> None:
        self._get(meet_id, registration_id)
        changes: Dict[str, Any] = {"registration_status": RegistrationStatus(status).value}
        if notes:
            changes["notes"] = notes
        self._write(registration_id, changes, "update registration status")

    def update_payment_status(
        self,
        meet_id: str,
        registration_id: str,
        payment_status: PaymentStatus,
        payment_amount: Optional[float] = None,
    ) -> None:
        """Record a payment change; meet revenue follows the paid amounts."""
        self._get(meet_id, registration_id)
        changes: Dict[str, Any] = {"payment_status": PaymentStatus(payment_status).value}
        if payment_amount is not None:
            changes["payment_amount"] = payment_amount
        self._write(registration_id, changes, "update payment status")
        self.sync_meet_counters(meet_id)

    def bulk_update_status(
        self,
        meet_id: str,
        registration_ids: Sequence[str],
        status: RegistrationStatus,
        notes: Optional[str] = None,
    ) -> BulkActionResult:
        """Set one status on many registrations; failures are reported, not raised."""
        result = BulkActionResult()
        for registration_id in registration_ids:
            try:
                self._set_status(meet_id, registration_id, status, notes)
                result.success += 1
            except MeetServiceError as e:
                result.failed += 1
                result.errors.append(f"Failed to update {registration_id}: {e}")
        if result.success:
            self.sync_meet_counters(meet_id)
        logger.info(
            f"Bulk status update: {result.success} updated, {result.failed} failed",
            extra={"meet_id": meet_id},
        )
        return result

    # ── Reads ──

    def get_athlete_registration(self, meet_id: str, athlete_id: str) -> Optional[Registration]:
        """The athlete's entry that still holds or awaits a spot, if any."""
        found = self._query(
            [
                QueryFilter("meet_id", "==", meet_id),
                QueryFilter("athlete_id", "==", athlete_id),
                QueryFilter("registration_status", "in", HELD_STATUSES),
            ],
            "get athlete registration",
        )
        return found[0] if found else None

    def list_for_meet(
        self,
        meet_id: str,
        status: Optional[RegistrationStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> List[Registration]:
        """A meet's registrations in registration order."""
        filters = [QueryFilter("meet_id", "==", meet_id)]
        if status:
            filters.append(
                QueryFilter("registration_status", "==", RegistrationStatus(status).value)
            )
        if payment_status:
            filters.append(
                QueryFilter("payment_status", "==", PaymentStatus(payment_status).value)
            )
        return self._query(filters, "get meet registrations")

    def get_registration_stats(self, meet_id: str) -> RegistrationStats:
        self._require_meet(meet_id)
        return compute_registration_stats(self.list_for_meet(meet_id))

    def get_meet_stats(self, meet_id: str) -> Optional[MeetStats]:
        """Meet stats with pending / approved counts taken from the ledger."""
        ledger = compute_registration_stats(self.list_for_meet(meet_id))
        return self.meets.get_meet_stats(meet_id, ledger)
