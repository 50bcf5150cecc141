"""Tests for the registration ledger and its effect on meet counters."""

from datetime import date

import pytest

from app.meets.registrations import (
    RegistrationNotFoundError,
    RegistrationRefusedError,
    RegistrationService,
)
from app.meets.service import MeetNotFoundError
from app.models.meet_models import MeetDraft, MeetStatus
from app.models.registration_models import (
    PaymentStatus,
    RegistrationRequest,
    RegistrationStatus,
)

JULY = date(2025, 7, 10)


def _request(athlete_id, **overrides):
    fields = dict(weight_class="Men 83kg", division="Open", equipment="Raw")
    fields.update(overrides)
    return RegistrationRequest(athlete_id=athlete_id, **fields)


@pytest.fixture
def registrations(service):
    return RegistrationService(service.store, service)


@pytest.fixture
def create_meet(service, meet_data):
    def create(**overrides):
        data = {
            **meet_data,
            "status": "registration-open",
            "early_bird_fee": 60,
            "early_bird_deadline": "2025-07-01",
            **overrides,
        }
        return service.create_meet(MeetDraft.model_validate(data))

    return create


def test_register_creates_pending_unpaid_entry(service, registrations, create_meet):
    meet_id = create_meet()
    entry = registrations.register_for_meet(meet_id, _request("a1"), today=JULY)

    assert entry.meet_id == meet_id
    assert entry.athlete_id == "a1"
    assert entry.registration_status == RegistrationStatus.PENDING
    assert entry.payment_status == PaymentStatus.UNPAID
    assert entry.payment_amount == 75
    assert entry.is_early_bird is False
    assert entry.registered_at is not None
    assert service.get_meet(meet_id).registrations == 1


def test_early_bird_fee_applies_through_its_deadline(registrations, create_meet):
    meet_id = create_meet()
    entry = registrations.register_for_meet(meet_id, _request("a1"), today=date(2025, 7, 1))
    assert entry.payment_amount == 60
    assert entry.is_early_bird is True


@pytest.mark.parametrize(
    "overrides, today, message",
    [
        ({"status": "draft"}, JULY, "Registration is not currently open for this meet"),
        ({"status": "registration-closed"}, JULY, "Registration is not currently open for this meet"),
        ({}, date(2025, 8, 2), "Registration deadline has passed"),
    ],
)
def test_registration_refused(registrations, create_meet, overrides, today, message):
    meet_id = create_meet(**overrides)
    with pytest.raises(RegistrationRefusedError, match=message):
        registrations.register_for_meet(meet_id, _request("a1"), today=today)


def test_published_meet_takes_registrations(registrations, create_meet):
    meet_id = create_meet(status="published")
    registrations.register_for_meet(meet_id, _request("a1"), today=JULY)


def test_full_meet_refuses_registration(registrations, create_meet):
    meet_id = create_meet(max_participants=1)
    registrations.register_for_meet(meet_id, _request("a1"), today=JULY)
    with pytest.raises(RegistrationRefusedError, match="This meet is at capacity"):
        registrations.register_for_meet(meet_id, _request("a2"), today=JULY)


def test_choice_must_be_offered(registrations, create_meet):
    meet_id = create_meet()
    with pytest.raises(RegistrationRefusedError, match="Weight class Men 120kg"):
        registrations.register_for_meet(
            meet_id, _request("a1", weight_class="Men 120kg"), today=JULY
        )
    with pytest.raises(RegistrationRefusedError, match="Equipment Wraps"):
        registrations.register_for_meet(meet_id, _request("a1", equipment="Wraps"), today=JULY)


def test_duplicate_entry_refused_until_withdrawn(service, registrations, create_meet):
    meet_id = create_meet()
    registrations.register_for_meet(meet_id, _request("a1"), today=JULY)
    with pytest.raises(RegistrationRefusedError, match="already registered"):
        registrations.register_for_meet(meet_id, _request("a1"), today=JULY)

    registrations.withdraw(meet_id, "a1")
    registrations.register_for_meet(meet_id, _request("a1"), today=JULY)
    assert service.get_meet(meet_id).registrations == 1
    assert len(registrations.list_for_meet(meet_id)) == 2


def test_unknown_meet(registrations):
    with pytest.raises(MeetNotFoundError):
        registrations.register_for_meet("missing", _request("a1"), today=JULY)
    with pytest.raises(MeetNotFoundError):
        registrations.get_registration_stats("missing")


def test_withdraw_frees_the_spot(service, registrations, create_meet):
    meet_id = create_meet()
    registrations.register_for_meet(meet_id, _request("a1"), today=JULY)
    registrations.register_for_meet(meet_id, _request("a2"), today=JULY)

    registrations.withdraw(meet_id, "a1", reason="injury")

    assert service.get_meet(meet_id).registrations == 1
    withdrawn = registrations.list_for_meet(meet_id, status=RegistrationStatus.WITHDRAWN)
    assert [r.athlete_id for r in withdrawn] == ["a1"]
    assert withdrawn[0].notes == "Withdrawn: injury"

    with pytest.raises(RegistrationNotFoundError):
        registrations.withdraw(meet_id, "a1")


def test_payments_drive_meet_revenue(service, registrations, create_meet):
    meet_id = create_meet()
    first = registrations.register_for_meet(meet_id, _request("a1"), today=date(2025, 6, 1))
    second = registrations.register_for_meet(meet_id, _request("a2"), today=JULY)

    registrations.update_payment_status(meet_id, first.id, PaymentStatus.PAID)
    registrations.update_payment_status(meet_id, second.id, PaymentStatus.PAID, payment_amount=70)
    assert service.get_meet(meet_id).revenue == 130

    registrations.update_payment_status(meet_id, second.id, PaymentStatus.REFUNDED)
    assert service.get_meet(meet_id).revenue == 60
    paid = registrations.list_for_meet(meet_id, payment_status=PaymentStatus.PAID)
    assert [r.id for r in paid] == [first.id]


def test_status_changes_move_the_counter(service, registrations, create_meet):
    meet_id = create_meet()
    entry = registrations.register_for_meet(meet_id, _request("a1"), today=JULY)

    registrations.update_registration_status(meet_id, entry.id, RegistrationStatus.APPROVED)
    assert service.get_meet(meet_id).registrations == 1

    registrations.update_registration_status(
        meet_id, entry.id, RegistrationStatus.REJECTED, notes="Membership expired"
    )
    assert service.get_meet(meet_id).registrations == 0
    assert registrations.list_for_meet(meet_id)[0].notes == "Membership expired"


def test_registration_belongs_to_its_meet(registrations, create_meet):
    meet_id = create_meet()
    other_id = create_meet(name="Other Meet")
    entry = registrations.register_for_meet(meet_id, _request("a1"), today=JULY)
    with pytest.raises(RegistrationNotFoundError):
        registrations.update_registration_status(other_id, entry.id, RegistrationStatus.APPROVED)
    with pytest.raises(RegistrationNotFoundError):
        registrations.update_payment_status(meet_id, "missing", PaymentStatus.PAID)


def test_bulk_update_reports_each_failure(service, registrations, create_meet):
    meet_id = create_meet()
    ids = [
        registrations.register_for_meet(meet_id, _request(f"a{i}"), today=JULY).id
        for i in range(3)
    ]

    result = registrations.bulk_update_status(
        meet_id, ids[:2] + ["missing"], RegistrationStatus.APPROVED
    )

    assert result.success == 2
    assert result.failed == 1
    assert result.errors[0].startswith("Failed to update missing")
    approved = registrations.list_for_meet(meet_id, status=RegistrationStatus.APPROVED)
    assert [r.id for r in approved] == ids[:2]


def test_stats_use_the_ledger(registrations, create_meet):
    meet_id = create_meet()
    entries = [
        registrations.register_for_meet(meet_id, _request(f"a{i}"), today=JULY)
        for i in range(3)
    ]
    registrations.update_registration_status(meet_id, entries[0].id, RegistrationStatus.APPROVED)
    registrations.update_payment_status(meet_id, entries[0].id, PaymentStatus.PAID)

    stats = registrations.get_meet_stats(meet_id)
    assert stats.total_registrations == 3
    assert stats.pending_registrations == 2
    assert stats.approved_registrations == 1
    assert stats.total_revenue == 75
    assert stats.available_spots == 57

    ledger = registrations.get_registration_stats(meet_id)
    assert ledger.paid_registrations == 1
    assert ledger.pending_revenue == 150
    assert ledger.division_breakdown == {"Open": 3}


def test_full_meet_can_be_closed(service, registrations, create_meet):
    meet_id = create_meet(max_participants=2)
    for athlete in ("a1", "a2"):
        registrations.register_for_meet(meet_id, _request(athlete), today=JULY)

    service.update_meet(meet_id, MeetDraft(status=MeetStatus.REGISTRATION_CLOSED))
    assert service.get_meet(meet_id).status == MeetStatus.REGISTRATION_CLOSED
