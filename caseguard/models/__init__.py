"""Data models for CaseGuard."""

from .case import (
    CaseRecord,
    EncryptedCase,
    EncryptedHearing,
    Hearing,
    Status,
)
from .status import (
    STATUS_LABELS,
    calculate_auto_status,
    get_status_label,
    parse_hearing_date,
)

__all__ = [
    # Case
    "CaseRecord",
    "EncryptedCase",
    "EncryptedHearing",
    "Hearing",
    "Status",
    # Status rules
    "STATUS_LABELS",
    "calculate_auto_status",
    "get_status_label",
    "parse_hearing_date",
]
