"""PowerUp — Meet Record Normalizer.

Write path: calendar dates → StorageTimestamp, system timestamps, counter defaults.
Read path: StorageTimestamp → YYYY-MM-DD text and display datetimes.

All functions return new dicts and leave their input untouched.
"""

import threading
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional, Union

from app.models.meet_models import StorageTimestamp

CALENDAR_DATE_FIELDS = ("date", "registration_deadline", "early_bird_deadline")
SYSTEM_TIMESTAMP_FIELDS = ("created_at", "updated_at")
COUNTER_FIELDS = ("registrations", "revenue")

CalendarValue = Union[StorageTimestamp, datetime, date, str, None]

_clock_lock = threading.Lock()
_last_issued: Optional[datetime] = None


def storage_now() -> StorageTimestamp:
    """Current UTC time; successive readings strictly increase."""
    global _last_issued
    with _clock_lock:
        now = datetime.now(timezone.utc)
        if _last_issued is not None and now <= _last_issued:
            now = _last_issued + timedelta(microseconds=1)
        _last_issued = now
    return StorageTimestamp(instant=now)


def _is_absent(value: Any) -> bool:
    return value is None or value == ""


def to_calendar_timestamp(value: CalendarValue) -> StorageTimestamp:
    """Convert a calendar date to its stored form (UTC midnight)."""
    if isinstance(value, StorageTimestamp):
        return value
    if isinstance(value, datetime):
        return StorageTimestamp.from_date(value.date())
    if isinstance(value, date):
        return StorageTimestamp.from_date(value)
    if isinstance(value, str):
        return StorageTimestamp.from_date(date.fromisoformat(value))
    raise TypeError(f"Cannot store {type(value).__name__} as a calendar date")


def to_instant_timestamp(value: Union[StorageTimestamp, datetime, str]) -> StorageTimestamp:
    """Convert a system timestamp to its stored form at full precision."""
    if isinstance(value, StorageTimestamp):
        return value
    if isinstance(value, datetime):
        return StorageTimestamp.from_datetime(value)
    if isinstance(value, str):
        return StorageTimestamp.from_datetime(datetime.fromisoformat(value))
    raise TypeError(f"Cannot store {type(value).__name__} as a timestamp")


def to_calendar_text(value: CalendarValue) -> Optional[str]:
    """Render a stored calendar date as YYYY-MM-DD; text passes through."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, StorageTimestamp):
        return value.to_date().isoformat()
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Unsupported calendar date value: {type(value).__name__}")


def to_display_datetime(value: Union[StorageTimestamp, datetime, str, None]) -> Optional[datetime]:
    """Render a stored system timestamp as an aware datetime."""
    if value is None:
        return None
    if isinstance(value, StorageTimestamp):
        return value.to_datetime()
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        return to_display_datetime(datetime.fromisoformat(value))
    raise TypeError(f"Unsupported timestamp value: {type(value).__name__}")


def _convert_calendar_fields(data: Dict[str, Any]) -> None:
    for field in CALENDAR_DATE_FIELDS:
        if field in data and not _is_absent(data[field]):
            data[field] = to_calendar_timestamp(data[field])


def to_storage_form(
    record: Mapping[str, Any], now: Optional[StorageTimestamp] = None
) -> Dict[str, Any]:
    """Prepare a full meet record for its first (or a full) write.

    Does not validate; callers validate first and only persist valid records.
    """
    now = now or storage_now()
    data = dict(record)

    _convert_calendar_fields(data)

    if data.get("created_at") is None:
        data["created_at"] = now
    else:
        data["created_at"] = to_instant_timestamp(data["created_at"])
    data["updated_at"] = now

    # Absent → default; an explicit 0 stays 0
    for field in COUNTER_FIELDS:
        if data.get(field) is None:
            data[field] = 0

    return data


def to_storage_patch(
    changes: Mapping[str, Any], now: Optional[StorageTimestamp] = None
) -> Dict[str, Any]:
    """Prepare a partial update. Never touches created_at or the counters."""
    now = now or storage_now()
    data = {k: v for k, v in changes.items() if k != "created_at"}
    _convert_calendar_fields(data)
    data["updated_at"] = now
    return data


def from_storage_form(document: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a stored document back to display form. Idempotent."""
    data = dict(document)
    for field in CALENDAR_DATE_FIELDS:
        if field in data:
            data[field] = to_calendar_text(data[field])
    for field in SYSTEM_TIMESTAMP_FIELDS:
        if field in data:
            data[field] = to_display_datetime(data[field])
    return data
