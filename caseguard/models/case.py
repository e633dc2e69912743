"""Case record data models.

Plaintext and encrypted case records share one shape. Every text field of an
EncryptedCase holds a base64 AES-GCM blob; status and archived stay in the
clear so the case store can filter on them.

Dictionary form uses the wire names of the case store (camelCase).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..vault.exceptions import MalformedInputError


class Status(str, Enum):
    """Case and hearing status. Never encrypted."""

    OPEN = "open"
    CLOSED = "closed"
    AWAITING_COURT = "awaitingCourt"
    REVIEWING_EVIDENCE = "reviewingEvidence"
    SCHEDULED = "scheduled"


def _parse_status(value: Any) -> Status:
    try:
        return Status(value)
    except ValueError:
        raise MalformedInputError(f"Unknown status: {value!r}") from None


def _require(data: Any, name: str, kind: type) -> Any:
    if not isinstance(data, dict):
        raise MalformedInputError("Record must be a mapping")
    if name not in data:
        raise MalformedInputError(f"Record is missing field: {name}")
    value = data[name]
    if not isinstance(value, kind):
        raise MalformedInputError(f"Field {name} has the wrong type")
    return value


def _require_strings(data: dict[str, Any], name: str) -> list[str]:
    values = _require(data, name, list)
    if not all(isinstance(v, str) for v in values):
        raise MalformedInputError(f"Field {name} must contain only strings")
    return list(values)


@dataclass
class Hearing:
    """A hearing within a case."""

    date: str = ""
    outcome: str = ""
    notes: str = ""
    status: Status = Status.SCHEDULED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "date": self.date,
            "outcome": self.outcome,
            "notes": self.notes,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Hearing":
        """Create from dictionary."""
        return cls(
            date=_require(data, "date", str),
            outcome=_require(data, "outcome", str),
            notes=_require(data, "notes", str),
            status=_parse_status(_require(data, "status", str)),
        )


@dataclass
class EncryptedHearing(Hearing):
    """A hearing whose text fields are ciphertext blobs."""


@dataclass
class CaseRecord:
    """Plaintext case record, as seen by the user."""

    case_number: str
    creation_date: str = ""
    next_hearing: str = ""
    client_name: str = ""
    client_contact: str = ""
    evidence: list[str] = field(default_factory=list)
    hearings: list[Hearing] = field(default_factory=list)
    status: Status = Status.OPEN
    archived: bool = False

    hearing_cls = Hearing

    @property
    def evidence_count(self) -> int:
        """Get number of evidence entries."""
        return len(self.evidence)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = {
            "caseNumber": self.case_number,
            "creationDate": self.creation_date,
            "nextHearing": self.next_hearing,
            "clientName": self.client_name,
            "clientContact": self.client_contact,
            "evidence": list(self.evidence),
            "hearings": [h.to_dict() for h in self.hearings],
            "status": self.status.value,
        }
        if self.archived:
            data["archived"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        """
        Create from dictionary.

        Raises:
            MalformedInputError: If a field is missing or has the wrong type
        """
        hearings = _require(data, "hearings", list)
        archived = data.get("archived", False)
        if not isinstance(archived, bool):
            raise MalformedInputError("Field archived has the wrong type")

        return cls(
            case_number=_require(data, "caseNumber", str),
            creation_date=_require(data, "creationDate", str),
            next_hearing=_require(data, "nextHearing", str),
            client_name=_require(data, "clientName", str),
            client_contact=_require(data, "clientContact", str),
            evidence=_require_strings(data, "evidence"),
            hearings=[cls.hearing_cls.from_dict(h) for h in hearings],
            status=_parse_status(_require(data, "status", str)),
            archived=archived,
        )


@dataclass
class EncryptedCase(CaseRecord):
    """
    Case record as held by the case store.

    case_number is the encrypted case number and doubles as the store key.
    """

    hearing_cls = EncryptedHearing
