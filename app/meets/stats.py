"""PowerUp — Meet Stats.

Read-time figures derived from meet records and their registrations.
Pure functions, no storage access.
"""

from collections import Counter
from typing import Iterable, Optional

from app.models.meet_models import Meet, MeetStats, MeetStatus, OverallStats
from app.models.registration_models import (
    ACTIVE_STATUSES,
    PaymentStatus,
    Registration,
    RegistrationStats,
    RegistrationStatus,
)

OUTSTANDING_PAYMENTS = (PaymentStatus.UNPAID, PaymentStatus.PARTIAL)


def _registration_progress(registrations: int, max_participants: int) -> Optional[float]:
    """Percentage of capacity filled; None when there is no capacity."""
    if max_participants == 0:
        return None
    return registrations / max_participants * 100


def compute_stats(meet: Meet, ledger: Optional[RegistrationStats] = None) -> MeetStats:
    """Compute registration and revenue stats for one meet.

    Pending and approved counts come from the ledger when it holds entries.
    Without one, every counted registration is treated as approved.
    available_spots is not clamped, so an over-capacity meet goes negative.
    """
    registrations = meet.registrations or 0
    max_participants = meet.max_participants or 0
    registration_fee = meet.registration_fee or 0.0

    if ledger is not None and ledger.total_registrations:
        pending = ledger.pending_registrations
        approved = ledger.approved_registrations
    else:
        pending, approved = 0, registrations

    return MeetStats(
        total_registrations=registrations,
        pending_registrations=pending,
        approved_registrations=approved,
        total_revenue=meet.revenue or 0.0,
        available_spots=max_participants - registrations,
        registration_progress=_registration_progress(registrations, max_participants),
        estimated_max_revenue=max_participants * registration_fee,
    )


def compute_registration_stats(registrations: Iterable[Registration]) -> RegistrationStats:
    """Status counts, revenue and division / weight-class breakdowns."""
    stats = RegistrationStats()
    divisions: Counter = Counter()
    weight_classes: Counter = Counter()

    for r in registrations:
        stats.total_registrations += 1
        if r.registration_status == RegistrationStatus.PENDING:
            stats.pending_registrations += 1
        elif r.registration_status == RegistrationStatus.APPROVED:
            stats.approved_registrations += 1
        elif r.registration_status == RegistrationStatus.WAITLISTED:
            stats.waitlisted_registrations += 1

        if r.payment_status == PaymentStatus.PAID:
            stats.paid_registrations += 1
            stats.total_revenue += r.payment_amount
        elif r.payment_status in OUTSTANDING_PAYMENTS and r.registration_status in ACTIVE_STATUSES:
            stats.pending_revenue += r.payment_amount

        if r.has_coach:
            stats.coach_count += 1
        divisions[r.division] += 1
        weight_classes[r.weight_class] += 1

    stats.division_breakdown = dict(divisions)
    stats.weight_class_breakdown = dict(weight_classes)
    return stats


def compute_overall_stats(meets: Iterable[Meet]) -> OverallStats:
    """Aggregate totals and status counts across meets."""
    stats = OverallStats()
    for meet in meets:
        stats.total_meets += 1
        stats.total_registrations += meet.registrations or 0
        stats.total_revenue += meet.revenue or 0.0
        if meet.status == MeetStatus.REGISTRATION_OPEN:
            stats.registration_open_count += 1
        elif meet.status == MeetStatus.PUBLISHED:
            stats.published_count += 1
        elif meet.status == MeetStatus.DRAFT:
            stats.draft_count += 1
        elif meet.status == MeetStatus.COMPLETED:
            stats.completed_count += 1
    return stats
