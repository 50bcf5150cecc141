"""Tests for the write/read normalization of meet records."""

import copy
from datetime import date, datetime, timezone

import pytest

from app.meets.normalizer import (
    from_storage_form,
    storage_now,
    to_storage_form,
    to_storage_patch,
)
from app.models.meet_models import StorageTimestamp

CREATED = StorageTimestamp(instant=datetime(2025, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc))


def test_calendar_dates_become_utc_midnight_timestamps(meet_data):
    stored = to_storage_form({**meet_data, "early_bird_deadline": "2025-07-01"})
    assert stored["date"] == StorageTimestamp(
        instant=datetime(2025, 8, 15, tzinfo=timezone.utc)
    )
    assert isinstance(stored["registration_deadline"], StorageTimestamp)
    assert stored["early_bird_deadline"].to_date() == date(2025, 7, 1)


def test_absent_optional_dates_stay_absent(meet_data):
    stored = to_storage_form(meet_data)
    assert "early_bird_deadline" not in stored


def test_date_objects_are_accepted(meet_data):
    stored = to_storage_form({**meet_data, "date": date(2025, 8, 15)})
    assert stored["date"].to_date() == date(2025, 8, 15)


def test_input_is_not_mutated(meet_data):
    original = copy.deepcopy(meet_data)
    to_storage_form(meet_data)
    assert meet_data == original


def test_first_write_sets_created_and_updated(meet_data):
    now = storage_now()
    stored = to_storage_form(meet_data, now=now)
    assert stored["created_at"] == now
    assert stored["updated_at"] == now


def test_existing_created_at_is_kept(meet_data):
    stored = to_storage_form({**meet_data, "created_at": CREATED})
    assert stored["created_at"] == CREATED
    assert stored["updated_at"] != CREATED


def test_existing_created_at_datetime_is_converted(meet_data):
    stored = to_storage_form({**meet_data, "created_at": CREATED.instant})
    assert stored["created_at"] == CREATED


def test_counters_default_to_zero(meet_data):
    stored = to_storage_form(meet_data)
    assert stored["registrations"] == 0
    assert stored["revenue"] == 0


def test_existing_counters_are_preserved(meet_data):
    stored = to_storage_form({**meet_data, "registrations": 12, "revenue": 0})
    assert stored["registrations"] == 12
    assert stored["revenue"] == 0


def test_repeated_writes_differ_only_in_updated_at(meet_data):
    record = {**meet_data, "created_at": CREATED}
    first = to_storage_form(record)
    second = to_storage_form(record)

    assert second["updated_at"].instant > first["updated_at"].instant
    first.pop("updated_at")
    second.pop("updated_at")
    assert first == second


def test_storage_clock_strictly_increases():
    readings = [storage_now().instant for _ in range(200)]
    assert all(a < b for a, b in zip(readings, readings[1:]))


def test_round_trip_recovers_calendar_dates(meet_data):
    record = {**meet_data, "early_bird_deadline": "2025-07-01"}
    now = storage_now()
    restored = from_storage_form(to_storage_form(record, now=now))

    assert restored["date"] == "2025-08-15"
    assert restored["registration_deadline"] == "2025-08-01"
    assert restored["early_bird_deadline"] == "2025-07-01"
    assert restored["created_at"] == now.instant
    assert restored["updated_at"] == now.instant
    assert restored["updated_at"].tzinfo is not None


def test_from_storage_form_is_idempotent(meet_data):
    once = from_storage_form(to_storage_form(meet_data))
    assert from_storage_form(once) == once


def test_string_dates_pass_through_on_read():
    assert from_storage_form({"date": "2025-08-15"}) == {"date": "2025-08-15"}


def test_unknown_date_type_is_rejected():
    with pytest.raises(TypeError):
        from_storage_form({"date": 20250815})


def test_patch_only_touches_given_fields():
    now = storage_now()
    patch = to_storage_patch({"name": "Renamed", "date": "2025-09-01"}, now=now)
    assert patch == {
        "name": "Renamed",
        "date": StorageTimestamp.from_date(date(2025, 9, 1)),
        "updated_at": now,
    }


def test_patch_never_sets_created_at():
    patch = to_storage_patch({"created_at": CREATED, "name": "x"})
    assert "created_at" not in patch
    assert "registrations" not in patch
