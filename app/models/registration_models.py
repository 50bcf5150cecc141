"""PowerUp — Registration Models.

Athlete entries in a meet and the figures derived from them.
"""

import datetime as dt
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    WAITLISTED = "waitlisted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    CHECKED_IN = "checked-in"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    PARTIAL = "partial"
    REFUNDED = "refunded"
    WAIVED = "waived"


# Statuses that take up one of the meet's spots
ACTIVE_STATUSES = (
    RegistrationStatus.PENDING,
    RegistrationStatus.APPROVED,
    RegistrationStatus.CHECKED_IN,
)


# ─────────────────────────────────────────────
# REQUESTS
# ─────────────────────────────────────────────


class RegistrationRequest(BaseModel):
    """What an athlete submits when entering a meet."""

    athlete_id: str = Field(min_length=1)
    weight_class: str = Field(min_length=1)
    division: str = Field(min_length=1)
    equipment: str = Field(min_length=1)
    has_coach: bool = False
    coach_name: Optional[str] = None


class StatusChange(BaseModel):
    status: RegistrationStatus
    notes: Optional[str] = None


class PaymentChange(BaseModel):
    payment_status: PaymentStatus
    payment_amount: Optional[float] = Field(default=None, ge=0)


class WithdrawalRequest(BaseModel):
    athlete_id: str = Field(min_length=1)
    reason: Optional[str] = None


class BulkStatusChange(BaseModel):
    registration_ids: List[str]
    status: RegistrationStatus
    notes: Optional[str] = None


# ─────────────────────────────────────────────
# LEDGER ENTRIES
# ─────────────────────────────────────────────


class Registration(BaseModel):
    """One athlete's entry in a meet, as stored."""

    id: str
    meet_id: str
    athlete_id: str
    weight_class: str
    division: str
    equipment: str
    has_coach: bool = False
    coach_name: Optional[str] = None
    registration_status: RegistrationStatus = RegistrationStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    payment_amount: float = 0.0
    is_early_bird: bool = False
    notes: Optional[str] = None
    registered_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class RegistrationStats(BaseModel):
    """Counts and breakdowns over a meet's registrations."""

    total_registrations: int = 0
    pending_registrations: int = 0
    approved_registrations: int = 0
    waitlisted_registrations: int = 0
    paid_registrations: int = 0
    total_revenue: float = 0.0  # Sum of paid amounts
    pending_revenue: float = 0.0  # Active entries not yet paid
    coach_count: int = 0
    division_breakdown: Dict[str, int] = {}
    weight_class_breakdown: Dict[str, int] = {}


class BulkActionResult(BaseModel):
    success: int = 0
    failed: int = 0
    errors: List[str] = []
