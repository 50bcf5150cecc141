"""PowerUp — Meet Service.

CRUD, listing, search and stats for meets on top of a DocumentStore.
Validates before every write and normalizes records on the way in and out.
Storage failures surface as MeetServiceError; nothing is retried.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from app.config import settings
from app.meets.normalizer import from_storage_form, to_storage_form, to_storage_patch
from app.meets.stats import compute_overall_stats, compute_stats
from app.meets.validator import validate_meet
from app.models.meet_models import (
    Federation,
    Meet,
    MeetDraft,
    MeetStats,
    MeetStatus,
    OverallStats,
    StorageTimestamp,
    ValidationResult,
)
from app.models.registration_models import RegistrationStats
from app.storage.base import (
    COLLECTION_MEETS,
    DocumentNotFoundError,
    DocumentStore,
    OrderBy,
    QueryFilter,
)
from app.core.logging import get_logger

logger = get_logger("meets.service")

UPCOMING_STATUSES = [MeetStatus.PUBLISHED.value, MeetStatus.REGISTRATION_OPEN.value]

# Maintained by update_meet_stats only
COUNTER_FIELDS = {"registrations", "revenue"}


class MeetServiceError(Exception):
    """Raised when a meet operation fails. The cause is chained."""


class MeetNotFoundError(MeetServiceError):
    """Raised when the target meet does not exist."""


class MeetValidationError(MeetServiceError):
    """Raised when a write is refused because the record is invalid."""

    def __init__(self, message: str, result: ValidationResult):
        self.result = result
        super().__init__(message)


def _wrap(action: str, error: Exception) -> MeetServiceError:
    if isinstance(error, DocumentNotFoundError):
        return MeetNotFoundError(f"Failed to {action}: {error}")
    return MeetServiceError(f"Failed to {action}: {error}")


def build_new_meet(draft: MeetDraft) -> Dict[str, Any]:
    """Creation-time defaults for a new meet record.

    Counters are left out so the normalizer starts them at zero.
    """
    data = draft.model_dump(mode="json", exclude_none=True, exclude=COUNTER_FIELDS)
    data.setdefault("status", MeetStatus.DRAFT.value)
    data.setdefault("director_id", settings.default_director_id)
    return data


def to_meet(document: Dict[str, Any]) -> Meet:
    """Stored document → Meet."""
    return Meet.model_validate(from_storage_form(document))


class MeetService:
    """Meet operations against a document store."""

    def __init__(self, store: DocumentStore):
        self.store = store

    # ── Writes ──

    def create_meet(self, draft: MeetDraft) -> str:
        """Validate and store a new meet. Returns the new meet ID."""
        record = build_new_meet(draft)
        result = validate_meet(MeetDraft.model_validate(record))
        if not result.is_valid:
            logger.warning(f"Meet rejected: {'; '.join(result.errors)}")
            raise MeetValidationError("Meet data is invalid", result)

        try:
            meet_id = self.store.create(COLLECTION_MEETS, to_storage_form(record))
        except Exception as e:
            logger.error(f"Error creating meet: {e}")
            raise _wrap("create meet", e) from e

        logger.info("Meet created", extra={"meet_id": meet_id})
        return meet_id

    def update_meet(self, meet_id: str, changes: MeetDraft) -> None:
        """Apply a partial update after validating the merged record.

        Registration counters are not updatable here; see update_meet_stats.
        Capacity is checked only when the patch changes max_participants, so
        a meet that filled past capacity can still be edited or closed.
        """
        patch = changes.model_dump(mode="json", exclude_unset=True, exclude=COUNTER_FIELDS)

        try:
            current = self.store.get(COLLECTION_MEETS, meet_id)
        except Exception as e:
            raise _wrap("update meet", e) from e
        if current is None:
            raise MeetNotFoundError(f"Failed to update meet: meet {meet_id} not found")

        # Location is stored as one map; carry over the parts not being changed
        if "location" in patch and isinstance(current.get("location"), dict):
            patch["location"] = {**current["location"], **(patch["location"] or {})}

        merged = MeetDraft.model_validate({**from_storage_form(current), **patch})
        result = validate_meet(
            merged,
            enforce_capacity=settings.enforce_capacity and "max_participants" in patch,
        )
        if not result.is_valid:
            logger.warning(
                f"Meet update rejected: {'; '.join(result.errors)}",
                extra={"meet_id": meet_id},
            )
            raise MeetValidationError("Meet data is invalid", result)

        try:
            self.store.update(COLLECTION_MEETS, meet_id, to_storage_patch(patch))
        except Exception as e:
            logger.error(f"Error updating meet: {e}", extra={"meet_id": meet_id})
            raise _wrap("update meet", e) from e
        logger.info("Meet updated", extra={"meet_id": meet_id})

    def update_meet_stats(self, meet_id: str, registrations: int, revenue: float) -> None:
        """Set the registration count and revenue of a meet."""
        try:
            self.store.update(
                COLLECTION_MEETS,
                meet_id,
                to_storage_patch({"registrations": registrations, "revenue": revenue}),
            )
        except Exception as e:
            logger.error(f"Error updating meet stats: {e}", extra={"meet_id": meet_id})
            raise _wrap("update meet stats", e) from e
        logger.info("Meet stats updated", extra={"meet_id": meet_id})

    def delete_meet(self, meet_id: str) -> None:
        try:
            self.store.delete(COLLECTION_MEETS, meet_id)
        except Exception as e:
            logger.error(f"Error deleting meet: {e}", extra={"meet_id": meet_id})
            raise _wrap("delete meet", e) from e
        logger.info("Meet deleted", extra={"meet_id": meet_id})

    # ── Reads ──

    def get_meet(self, meet_id: str) -> Optional[Meet]:
        """Return the meet, or None if it does not exist."""
        try:
            document = self.store.get(COLLECTION_MEETS, meet_id)
        except Exception as e:
            logger.error(f"Error getting meet: {e}", extra={"meet_id": meet_id})
            raise _wrap("get meet", e) from e
        if document is None:
            logger.info("Meet not found", extra={"meet_id": meet_id})
            return None
        return to_meet(document)

    def _query(
        self,
        filters: Sequence[QueryFilter],
        order_by: Optional[OrderBy],
        limit: Optional[int],
        start_after: Optional[str] = None,
        action: str = "get meets",
    ) -> List[Meet]:
        try:
            documents = self.store.list(
                COLLECTION_MEETS,
                filters=filters,
                order_by=order_by,
                limit=limit,
                start_after=start_after,
            )
        except Exception as e:
            logger.error(f"Error querying meets: {e}")
            raise _wrap(action, e) from e
        return [to_meet(d) for d in documents]

    def list_meets(
        self,
        status: Optional[MeetStatus] = None,
        federation: Optional[Federation] = None,
        limit: Optional[int] = None,
        start_after: Optional[str] = None,
        order_by: str = "updated_at",
        direction: str = "desc",
    ) -> List[Meet]:
        """List meets, newest activity first by default."""
        filters: List[QueryFilter] = []
        if status:
            filters.append(QueryFilter("status", "==", MeetStatus(status).value))
        if federation:
            filters.append(QueryFilter("federation", "==", Federation(federation).value))

        meets = self._query(
            filters,
            OrderBy(order_by, direction),
            limit or settings.meets_page_size,
            start_after,
        )
        logger.info(f"Retrieved {len(meets)} meets")
        return meets

    def get_meets_by_status(self, status: MeetStatus) -> List[Meet]:
        return self.list_meets(status=status)

    def get_upcoming_meets(
        self, limit: Optional[int] = None, today: Optional[date] = None
    ) -> List[Meet]:
        """Published or open meets dated today or later, soonest first."""
        today = today or datetime.now(timezone.utc).date()
        return self._query(
            [
                QueryFilter("status", "in", UPCOMING_STATUSES),
                QueryFilter("date", ">=", StorageTimestamp.from_date(today)),
            ],
            OrderBy("date", "asc"),
            limit or settings.upcoming_meets_limit,
            action="get upcoming meets",
        )

    def get_meets_in_date_range(
        self,
        start: date,
        end: date,
        status: MeetStatus = MeetStatus.PUBLISHED,
        limit: Optional[int] = None,
    ) -> List[Meet]:
        """Meets with the given status dated within [start, end], soonest first."""
        return self._query(
            [
                QueryFilter("status", "==", MeetStatus(status).value),
                QueryFilter("date", ">=", StorageTimestamp.from_date(start)),
                QueryFilter("date", "<=", StorageTimestamp.from_date(end)),
            ],
            OrderBy("date", "asc"),
            limit or settings.meets_page_size,
            action="get meets by date range",
        )

    def search_meets(self, term: str) -> List[Meet]:
        """Case-insensitive match on name, city, state or venue of published meets."""
        needle = term.lower()
        results = []
        for meet in self.list_meets(status=MeetStatus.PUBLISHED):
            location = meet.location
            haystack = " ".join(
                part or ""
                for part in (
                    meet.name,
                    location.city if location else None,
                    location.state if location else None,
                    location.venue if location else None,
                )
            ).lower()
            if needle in haystack:
                results.append(meet)
        return results

    # ── Stats ──

    def get_meet_stats(
        self, meet_id: str, ledger: Optional[RegistrationStats] = None
    ) -> Optional[MeetStats]:
        meet = self.get_meet(meet_id)
        if meet is None:
            return None
        return compute_stats(meet, ledger)

    def get_all_meets_stats(self) -> OverallStats:
        """Totals across every stored meet."""
        meets = self._query([], None, None, action="get overall stats")
        return compute_overall_stats(meets)
