"""PowerUp — Meet Record Models.

Pydantic schemas for meet records as the API and services see them, the
backend-native timestamp type used in stored documents, and the validation
and stats outputs derived from a meet.
"""

import datetime as dt
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, field_validator


class Federation(str, Enum):
    """Sanctioning federation of a meet."""

    USAPL = "USAPL"
    USPA = "USPA"
    IPF = "IPF"
    OTHER = "Other"


class MeetStatus(str, Enum):
    """Meet lifecycle status."""

    DRAFT = "draft"
    PUBLISHED = "published"
    REGISTRATION_OPEN = "registration-open"
    REGISTRATION_CLOSED = "registration-closed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


# ─────────────────────────────────────────────
# STORAGE TIMESTAMP — Backend-native instant
# ─────────────────────────────────────────────


class StorageTimestamp(BaseModel):
    """Native timestamp value of the document store.

    Calendar dates are stored as UTC midnight of that day. Always timezone-aware.
    """

    model_config = {"frozen": True}

    instant: dt.datetime

    @field_validator("instant")
    @classmethod
    def _ensure_utc(cls, value: dt.datetime) -> dt.datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.timezone.utc)
        return value.astimezone(dt.timezone.utc)

    @classmethod
    def from_date(cls, value: dt.date) -> "StorageTimestamp":
        return cls(
            instant=dt.datetime(value.year, value.month, value.day, tzinfo=dt.timezone.utc)
        )

    @classmethod
    def from_datetime(cls, value: dt.datetime) -> "StorageTimestamp":
        return cls(instant=value)

    def to_datetime(self) -> dt.datetime:
        return self.instant

    def to_date(self) -> dt.date:
        return self.instant.date()


# ─────────────────────────────────────────────
# MEET RECORDS
# ─────────────────────────────────────────────


class MeetLocation(BaseModel):
    """Where the meet takes place."""

    venue: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None


class MeetDraft(BaseModel):
    """A meet record as collected from a director, possibly incomplete.

    Every field is optional so a half-finished wizard can still be validated.
    Constraints are reported by the validator rather than enforced here.
    """

    name: Optional[str] = None
    date: Optional[dt.date] = None
    location: Optional[MeetLocation] = None
    federation: Optional[Federation] = None
    weight_classes: Optional[List[str]] = None
    divisions: Optional[List[str]] = None
    equipment: Optional[List[str]] = None
    registration_deadline: Optional[dt.date] = None
    registration_fee: Optional[float] = None
    early_bird_deadline: Optional[dt.date] = None
    early_bird_fee: Optional[float] = None
    max_participants: Optional[int] = None
    registrations: Optional[int] = None
    revenue: Optional[float] = None
    status: Optional[MeetStatus] = None
    director_id: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Tampa Bay Open",
                    "date": "2025-08-15",
                    "location": {
                        "venue": "Convention Center",
                        "address": "1 Main St",
                        "city": "Tampa",
                        "state": "FL",
                    },
                    "federation": "USAPL",
                    "weight_classes": ["Men 83kg"],
                    "divisions": ["Open"],
                    "equipment": ["Raw"],
                    "registration_deadline": "2025-08-01",
                    "registration_fee": 75,
                    "max_participants": 60,
                }
            ]
        }
    }


class Meet(MeetDraft):
    """A stored meet, read back for display or editing."""

    id: str
    registrations: int = 0
    revenue: float = 0.0
    status: MeetStatus = MeetStatus.DRAFT
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


# ─────────────────────────────────────────────
# VALIDATION OUTPUT
# ─────────────────────────────────────────────


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueKind(str, Enum):
    """Stable machine-readable identifier of a validation check."""

    MISSING_NAME = "missing_name"
    MISSING_DATE = "missing_date"
    MISSING_VENUE = "missing_venue"
    MISSING_ADDRESS = "missing_address"
    MISSING_CITY = "missing_city"
    MISSING_STATE = "missing_state"
    MISSING_FEDERATION = "missing_federation"
    MISSING_WEIGHT_CLASSES = "missing_weight_classes"
    MISSING_DIVISIONS = "missing_divisions"
    MISSING_EQUIPMENT = "missing_equipment"
    MISSING_REGISTRATION_DEADLINE = "missing_registration_deadline"
    NEGATIVE_REGISTRATION_FEE = "negative_registration_fee"
    INVALID_MAX_PARTICIPANTS = "invalid_max_participants"
    DEADLINE_NOT_BEFORE_MEET = "deadline_not_before_meet"
    OVER_CAPACITY = "over_capacity"
    EARLY_BIRD_FEE_MISSING = "early_bird_fee_missing"
    EARLY_BIRD_DEADLINE_MISSING = "early_bird_deadline_missing"
    EARLY_BIRD_FEE_NOT_DISCOUNTED = "early_bird_fee_not_discounted"
    EARLY_BIRD_AFTER_DEADLINE = "early_bird_after_deadline"


class ValidationIssue(BaseModel):
    """One failed check."""

    kind: IssueKind
    severity: Severity
    field: str
    message: str


class ValidationResult(BaseModel):
    """Outcome of validating a meet record."""

    is_valid: bool
    errors: List[str] = []
    warnings: List[str] = []
    issues: List[ValidationIssue] = []


# ─────────────────────────────────────────────
# STATS
# ─────────────────────────────────────────────


class MeetStats(BaseModel):
    """Registration and revenue figures for a single meet."""

    total_registrations: int
    pending_registrations: int
    approved_registrations: int
    total_revenue: float
    available_spots: int
    registration_progress: Optional[float]  # None when capacity is 0
    estimated_max_revenue: float


class OverallStats(BaseModel):
    """Totals across every meet."""

    total_meets: int = 0
    total_registrations: int = 0
    total_revenue: float = 0.0
    registration_open_count: int = 0
    published_count: int = 0
    draft_count: int = 0
    completed_count: int = 0


# ─────────────────────────────────────────────
# PUBLIC LISTING — Athlete-facing meet view
# ─────────────────────────────────────────────


class PublicLocation(BaseModel):
    venue: str = "TBD"
    city: str = "TBD"
    state: str = "TBD"
    address: Optional[str] = None


class PublicMeet(BaseModel):
    """A meet as shown to athletes browsing competitions."""

    id: str
    name: str
    federation: str
    date: str  # "August 15, 2025" or "TBD"
    location: PublicLocation
    entry_fee: str  # "$75" or "$75 ($60 early)"
    status: str  # Display text, e.g. "Registration Open"
    spots_left: int
    registrations: int
    max_participants: int
    early_bird_fee: Optional[float] = None
    early_bird_deadline: Optional[str] = None  # YYYY-MM-DD
