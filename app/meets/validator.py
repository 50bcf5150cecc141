"""PowerUp — Meet Record Validator.

Runs every check against a (possibly partial) meet record and reports the
failures as data. Errors block persistence; warnings are advisory only.
"""

from typing import List, Optional

from app.config import settings
from app.models.meet_models import (
    IssueKind,
    MeetDraft,
    Severity,
    ValidationIssue,
    ValidationResult,
)

# Message templates, keyed by check
ISSUE_MESSAGES = {
    IssueKind.MISSING_NAME: "Meet name is required",
    IssueKind.MISSING_DATE: "Meet date is required",
    IssueKind.MISSING_VENUE: "Venue name is required",
    IssueKind.MISSING_ADDRESS: "Street address is required",
    IssueKind.MISSING_CITY: "City is required",
    IssueKind.MISSING_STATE: "State is required",
    IssueKind.MISSING_FEDERATION: "Federation is required",
    IssueKind.MISSING_WEIGHT_CLASSES: "At least one weight class is required",
    IssueKind.MISSING_DIVISIONS: "At least one division is required",
    IssueKind.MISSING_EQUIPMENT: "At least one equipment category is required",
    IssueKind.MISSING_REGISTRATION_DEADLINE: "Registration deadline is required",
    IssueKind.NEGATIVE_REGISTRATION_FEE: "Registration fee cannot be negative",
    IssueKind.INVALID_MAX_PARTICIPANTS: "Max participants must be greater than 0",
    IssueKind.DEADLINE_NOT_BEFORE_MEET: "Registration deadline must be before the meet date",
    IssueKind.OVER_CAPACITY: "Registrations ({registrations}) exceed max participants ({max_participants})",
    IssueKind.EARLY_BIRD_FEE_MISSING: "Early bird deadline set but no early bird fee specified",
    IssueKind.EARLY_BIRD_DEADLINE_MISSING: "Early bird fee set but no early bird deadline specified",
    IssueKind.EARLY_BIRD_FEE_NOT_DISCOUNTED: "Early bird fee should be less than regular registration fee",
    IssueKind.EARLY_BIRD_AFTER_DEADLINE: "Early bird deadline should not be after the registration deadline",
}


def render_message(kind: IssueKind, **params) -> str:
    """Render the human-readable message for a check."""
    return ISSUE_MESSAGES[kind].format(**params)


def _issue(kind: IssueKind, severity: Severity, field: str, **params) -> ValidationIssue:
    return ValidationIssue(
        kind=kind,
        severity=severity,
        field=field,
        message=render_message(kind, **params),
    )


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _required_field_issues(record: MeetDraft, require_address: bool) -> List[ValidationIssue]:
    """Presence checks, one issue per missing field."""
    issues: List[ValidationIssue] = []
    error = Severity.ERROR
    location = record.location

    if _blank(record.name):
        issues.append(_issue(IssueKind.MISSING_NAME, error, "name"))
    if record.date is None:
        issues.append(_issue(IssueKind.MISSING_DATE, error, "date"))

    if location is None or _blank(location.venue):
        issues.append(_issue(IssueKind.MISSING_VENUE, error, "location.venue"))
    if require_address and (location is None or _blank(location.address)):
        issues.append(_issue(IssueKind.MISSING_ADDRESS, error, "location.address"))
    if location is None or _blank(location.city):
        issues.append(_issue(IssueKind.MISSING_CITY, error, "location.city"))
    if location is None or _blank(location.state):
        issues.append(_issue(IssueKind.MISSING_STATE, error, "location.state"))

    if record.federation is None:
        issues.append(_issue(IssueKind.MISSING_FEDERATION, error, "federation"))
    if not record.weight_classes:
        issues.append(_issue(IssueKind.MISSING_WEIGHT_CLASSES, error, "weight_classes"))
    if not record.divisions:
        issues.append(_issue(IssueKind.MISSING_DIVISIONS, error, "divisions"))
    if not record.equipment:
        issues.append(_issue(IssueKind.MISSING_EQUIPMENT, error, "equipment"))
    if record.registration_deadline is None:
        issues.append(
            _issue(IssueKind.MISSING_REGISTRATION_DEADLINE, error, "registration_deadline")
        )
    return issues


def _numeric_issues(record: MeetDraft, enforce_capacity: bool) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    error = Severity.ERROR

    if record.registration_fee is not None and record.registration_fee < 0:
        issues.append(_issue(IssueKind.NEGATIVE_REGISTRATION_FEE, error, "registration_fee"))
    if record.max_participants is not None and record.max_participants <= 0:
        issues.append(_issue(IssueKind.INVALID_MAX_PARTICIPANTS, error, "max_participants"))

    if (
        enforce_capacity
        and record.registrations is not None
        and record.max_participants is not None
        and record.max_participants > 0
        and record.registrations > record.max_participants
    ):
        issues.append(
            _issue(
                IssueKind.OVER_CAPACITY,
                error,
                "registrations",
                registrations=record.registrations,
                max_participants=record.max_participants,
            )
        )
    return issues


def _date_order_issues(record: MeetDraft) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    if record.date is not None and record.registration_deadline is not None:
        if record.registration_deadline >= record.date:
            issues.append(
                _issue(
                    IssueKind.DEADLINE_NOT_BEFORE_MEET,
                    Severity.ERROR,
                    "registration_deadline",
                )
            )
    return issues


def _early_bird_warnings(record: MeetDraft) -> List[ValidationIssue]:
    """Early-bird pricing is optional; inconsistencies only warn."""
    issues: List[ValidationIssue] = []
    warning = Severity.WARNING
    has_deadline = record.early_bird_deadline is not None
    has_fee = record.early_bird_fee is not None

    if has_deadline and not has_fee:
        issues.append(_issue(IssueKind.EARLY_BIRD_FEE_MISSING, warning, "early_bird_fee"))
    if has_fee and not has_deadline:
        issues.append(
            _issue(IssueKind.EARLY_BIRD_DEADLINE_MISSING, warning, "early_bird_deadline")
        )
    if (
        has_fee
        and record.registration_fee is not None
        and record.early_bird_fee >= record.registration_fee
    ):
        issues.append(
            _issue(IssueKind.EARLY_BIRD_FEE_NOT_DISCOUNTED, warning, "early_bird_fee")
        )
    if (
        has_deadline
        and record.registration_deadline is not None
        and record.early_bird_deadline > record.registration_deadline
    ):
        issues.append(
            _issue(IssueKind.EARLY_BIRD_AFTER_DEADLINE, warning, "early_bird_deadline")
        )
    return issues


def validate_meet(
    record: MeetDraft,
    require_address: Optional[bool] = None,
    enforce_capacity: Optional[bool] = None,
) -> ValidationResult:
    """Validate a meet record.

    Every check runs; nothing short-circuits and nothing raises. The policy
    flags default to the configured settings.
    """
    if require_address is None:
        require_address = settings.require_address
    if enforce_capacity is None:
        enforce_capacity = settings.enforce_capacity

    issues = (
        _required_field_issues(record, require_address)
        + _numeric_issues(record, enforce_capacity)
        + _date_order_issues(record)
        + _early_bird_warnings(record)
    )

    errors = [i.message for i in issues if i.severity == Severity.ERROR]
    warnings = [i.message for i in issues if i.severity == Severity.WARNING]
    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        issues=issues,
    )
