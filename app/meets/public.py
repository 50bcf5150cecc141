"""PowerUp — Public Meet Listings.

Athlete-facing view of published meets: display formatting plus the
location / federation / date-range filters of the competition finder.
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Tuple

from app.meets.service import MeetService
from app.models.meet_models import Meet, MeetStatus, PublicLocation, PublicMeet
from app.core.logging import get_logger

logger = get_logger("meets.public")

DATE_RANGE_OPTIONS = ("30days", "3months", "6months", "1year")
DEFAULT_DATE_RANGE = "3months"
SEARCH_POOL_SIZE = 100


def _add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping to the last day of the target month."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def date_range_from_option(option: str, today: Optional[date] = None) -> Tuple[date, date]:
    """Resolve a finder option ("30days", "3months", ...) to (start, end)."""
    today = today or datetime.now(timezone.utc).date()
    if option == "30days":
        return today, today + timedelta(days=30)
    if option == "6months":
        return today, _add_months(today, 6)
    if option == "1year":
        return today, _add_months(today, 12)
    # "3months" and anything unrecognized
    return today, _add_months(today, 3)


def _money(amount: float) -> str:
    return f"${int(amount)}" if float(amount).is_integer() else f"${amount:.2f}"


def format_entry_fee(registration_fee: float, early_bird_fee: Optional[float] = None) -> str:
    """Render the fee, e.g. $75, or $75 ($60 early) when early bird is a discount."""
    if early_bird_fee is not None and early_bird_fee < registration_fee:
        return f"{_money(registration_fee)} ({_money(early_bird_fee)} early)"
    return _money(registration_fee)


def status_display_text(status: MeetStatus, spots_left: int) -> str:
    if status == MeetStatus.REGISTRATION_OPEN:
        return "Registration Open" if spots_left > 0 else "Waitlist Available"
    if status == MeetStatus.PUBLISHED:
        return "Registration Open"
    if status == MeetStatus.REGISTRATION_CLOSED:
        return "Registration Closed"
    if status == MeetStatus.DRAFT:
        return "Draft"
    return "Coming Soon"


def display_date(value: Optional[date]) -> str:
    if value is None:
        return "TBD"
    return f"{value:%B} {value.day}, {value.year}"


def to_public_meet(meet: Meet) -> PublicMeet:
    max_participants = meet.max_participants or 0
    spots_left = max(0, max_participants - meet.registrations)
    location = meet.location

    return PublicMeet(
        id=meet.id,
        name=meet.name or "Untitled Meet",
        federation=meet.federation.value if meet.federation else "Other",
        date=display_date(meet.date),
        location=PublicLocation(
            venue=(location.venue if location else None) or "TBD",
            city=(location.city if location else None) or "TBD",
            state=(location.state if location else None) or "TBD",
            address=location.address if location else None,
        ),
        entry_fee=format_entry_fee(meet.registration_fee or 0, meet.early_bird_fee),
        status=status_display_text(meet.status, spots_left),
        spots_left=spots_left,
        registrations=meet.registrations,
        max_participants=max_participants,
        early_bird_fee=meet.early_bird_fee,
        early_bird_deadline=(
            meet.early_bird_deadline.isoformat() if meet.early_bird_deadline else None
        ),
    )


def _location_text(meet: PublicMeet) -> str:
    return f"{meet.location.venue} {meet.location.city} {meet.location.state}".lower()


class PublicMeetService:
    """Published meets for the competition finder."""

    def __init__(self, meets: MeetService):
        self.meets = meets

    def get_published_meets(self, limit: int = 50) -> List[PublicMeet]:
        """Published meets, soonest first."""
        meets = self.meets.list_meets(
            status=MeetStatus.PUBLISHED, limit=limit, order_by="date", direction="asc"
        )
        logger.info(f"Retrieved {len(meets)} published meets")
        return [to_public_meet(m) for m in meets]

    def search_by_location(self, location: str) -> List[PublicMeet]:
        if not location.strip():
            return self.get_published_meets()
        term = location.lower()
        return [
            m for m in self.get_published_meets(SEARCH_POOL_SIZE) if term in _location_text(m)
        ]

    def get_by_federation(self, federation: str) -> List[PublicMeet]:
        """Published meets of one federation; "all" disables the filter."""
        if federation == "all":
            return self.get_published_meets()
        return [
            m
            for m in self.get_published_meets(SEARCH_POOL_SIZE)
            if m.federation.lower() == federation.lower()
        ]

    def get_by_date_range(self, start: date, end: date) -> List[PublicMeet]:
        meets = self.meets.get_meets_in_date_range(start, end)
        logger.info(f"Retrieved {len(meets)} meets between {start} and {end}")
        return [to_public_meet(m) for m in meets]

    def search_with_filters(
        self,
        location: str = "",
        federation: str = "all",
        date_range: str = DEFAULT_DATE_RANGE,
        today: Optional[date] = None,
    ) -> List[PublicMeet]:
        """Date range first, then federation, then location text."""
        start, end = date_range_from_option(date_range, today)
        results = self.get_by_date_range(start, end)

        if federation != "all":
            results = [m for m in results if m.federation.lower() == federation.lower()]
        if location.strip():
            term = location.lower()
            results = [m for m in results if term in _location_text(m)]

        logger.info(f"Found {len(results)} meets with applied filters")
        return results
