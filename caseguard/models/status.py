"""Status rules for case records."""

from datetime import date, datetime
from typing import Optional

from .case import CaseRecord, Status

# Hearings this many days out or closer count as scheduled
SCHEDULED_WINDOW_DAYS = 7

STATUS_LABELS: dict[Status, str] = {
    Status.OPEN: "Open",
    Status.CLOSED: "Closed",
    Status.AWAITING_COURT: "Awaiting Court",
    Status.REVIEWING_EVIDENCE: "Reviewing Evidence",
    Status.SCHEDULED: "Scheduled",
}


def parse_hearing_date(value: str) -> Optional[date]:
    """
    Parse an ISO date or datetime string.

    Returns:
        The calendar date, or None if the value is blank or unparseable
    """
    value = value.strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None


def calculate_auto_status(record: CaseRecord, today: Optional[date] = None) -> Status:
    """
    Suggest a status from the next hearing date and the evidence list.

    Rules, in order:
    - no next hearing: open
    - next hearing in the past: awaiting court
    - next hearing within SCHEDULED_WINDOW_DAYS: scheduled
    - any evidence recorded: reviewing evidence
    - otherwise: open

    An unparseable hearing date skips the date rules.

    Args:
        record: Plaintext case record
        today: Reference date (default: today)

    Returns:
        Suggested Status
    """
    if not record.next_hearing.strip():
        return Status.OPEN

    today = today or date.today()
    hearing_date = parse_hearing_date(record.next_hearing)

    if hearing_date is not None:
        days_until = (hearing_date - today).days
        if days_until < 0:
            return Status.AWAITING_COURT
        if days_until <= SCHEDULED_WINDOW_DAYS:
            return Status.SCHEDULED

    if record.evidence:
        return Status.REVIEWING_EVIDENCE
    return Status.OPEN


def get_status_label(status: Status) -> str:
    """Human-readable label for a status."""
    return STATUS_LABELS.get(status, status.value)
