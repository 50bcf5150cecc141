"""Tests for the athlete-facing meet listings."""

from datetime import date

import pytest

from app.meets.public import (
    PublicMeetService,
    date_range_from_option,
    format_entry_fee,
    status_display_text,
    to_public_meet,
)
from app.models.meet_models import Meet, MeetDraft, MeetStatus


@pytest.mark.parametrize(
    "option, end",
    [
        ("30days", date(2025, 2, 28)),
        ("3months", date(2025, 4, 29)),
        ("6months", date(2025, 7, 29)),
        ("1year", date(2026, 1, 29)),
        ("whenever", date(2025, 4, 29)),
    ],
)
def test_date_range_options(option, end):
    assert date_range_from_option(option, today=date(2025, 1, 29)) == (date(2025, 1, 29), end)


def test_month_shift_clamps_to_month_end():
    assert date_range_from_option("3months", today=date(2025, 11, 30))[1] == date(2026, 2, 28)


@pytest.mark.parametrize(
    "fee, early, text",
    [
        (75, None, "$75"),
        (75, 60, "$75 ($60 early)"),
        (75, 80, "$75"),
        (75, 0, "$75 ($0 early)"),
        (62.5, 50, "$62.50 ($50 early)"),
    ],
)
def test_format_entry_fee(fee, early, text):
    assert format_entry_fee(fee, early) == text


@pytest.mark.parametrize(
    "status, spots, text",
    [
        (MeetStatus.REGISTRATION_OPEN, 3, "Registration Open"),
        (MeetStatus.REGISTRATION_OPEN, 0, "Waitlist Available"),
        (MeetStatus.PUBLISHED, 0, "Registration Open"),
        (MeetStatus.REGISTRATION_CLOSED, 10, "Registration Closed"),
        (MeetStatus.DRAFT, 10, "Draft"),
        (MeetStatus.COMPLETED, 10, "Coming Soon"),
    ],
)
def test_status_display_text(status, spots, text):
    assert status_display_text(status, spots) == text


def test_public_meet_view():
    meet = Meet.model_validate(
        {
            "id": "m1",
            "name": "Tampa Bay Open",
            "date": "2025-08-15",
            "location": {"venue": "Convention Center", "city": "Tampa"},
            "federation": "USAPL",
            "registration_fee": 75,
            "early_bird_fee": 60,
            "early_bird_deadline": "2025-07-01",
            "max_participants": 60,
            "registrations": 65,
            "status": "registration-open",
        }
    )
    public = to_public_meet(meet)
    assert public.date == "August 15, 2025"
    assert public.location.state == "TBD"
    assert public.entry_fee == "$75 ($60 early)"
    assert public.spots_left == 0
    assert public.status == "Waitlist Available"
    assert public.early_bird_deadline == "2025-07-01"


def test_public_meet_view_of_sparse_meet():
    public = to_public_meet(Meet(id="m2"))
    assert public.name == "Untitled Meet"
    assert public.federation == "Other"
    assert public.date == "TBD"
    assert public.entry_fee == "$0"


@pytest.fixture
def finder(service, meet_data):
    def create(**overrides):
        return service.create_meet(MeetDraft.model_validate({**meet_data, **overrides}))

    create(name="Tampa Bay Open", status="published")
    create(
        name="Lone Star Classic",
        status="published",
        federation="USPA",
        date="2025-10-04",
        registration_deadline="2025-09-20",
        location={"venue": "Expo Hall", "address": "9 Oak", "city": "Dallas", "state": "TX"},
    )
    create(name="Hidden Draft")
    return PublicMeetService(service)


def test_published_meets_soonest_first(finder):
    assert [m.name for m in finder.get_published_meets()] == [
        "Tampa Bay Open",
        "Lone Star Classic",
    ]


def test_search_by_location(finder):
    assert [m.name for m in finder.search_by_location("dallas")] == ["Lone Star Classic"]
    assert len(finder.search_by_location("  ")) == 2


def test_get_by_federation(finder):
    assert [m.name for m in finder.get_by_federation("uspa")] == ["Lone Star Classic"]
    assert len(finder.get_by_federation("all")) == 2


def test_search_with_filters(finder):
    today = date(2025, 7, 20)
    assert [m.name for m in finder.search_with_filters(today=today)] == [
        "Tampa Bay Open",
        "Lone Star Classic",
    ]
    assert [m.name for m in finder.search_with_filters(date_range="30days", today=today)] == [
        "Tampa Bay Open"
    ]
    assert finder.search_with_filters(federation="IPF", today=today) == []
    assert [
        m.name for m in finder.search_with_filters(location="tx", federation="USPA", today=today)
    ] == ["Lone Star Classic"]
