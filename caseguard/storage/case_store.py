"""Storage layer for encrypted case records using a YAML file.

The store only ever sees EncryptedCase values. Records are keyed by their
encrypted case number; status is the one plaintext attribute and is used for
filtering.

An optional verifier blob, a known value encrypted under the vault key, lets
callers check the passphrase before writing to an empty store.

    data_dir/cases/<identity digest>.yaml
"""

import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

import yaml

from ..models.case import EncryptedCase, EncryptedHearing, Status
from ..utils.logging import get_logger
from ..vault.exceptions import MalformedInputError

logger = get_logger(__name__)


class CaseNotFoundError(KeyError):
    """Raised when no stored case has the given encrypted case number."""

    def __str__(self) -> str:
        return "Case not found."


class CaseStore:
    """Manages encrypted case storage in a single YAML file.

    File layout:
        verifier: <blob>
        cases:
          - caseNumber: <blob>
            creationDate: <blob>
            ...
            status: open
    """

    def __init__(self, path: Path):
        """Initialize storage.

        Args:
            path: YAML file (created on first write)
        """
        self.path = Path(path)
        self._cases: Optional[list[EncryptedCase]] = None
        self._verifier: Optional[str] = None
        self._lock = threading.RLock()

    def _load(self) -> list[EncryptedCase]:
        if self._cases is not None:
            return self._cases

        if not self.path.exists():
            self._cases = []
            return self._cases

        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise MalformedInputError(f"Invalid case store file: {e}")

        if not isinstance(data, dict) or not isinstance(data.get("cases", []), list):
            raise MalformedInputError("Case store file has an unexpected layout")

        verifier = data.get("verifier")
        if verifier is not None and not isinstance(verifier, str):
            raise MalformedInputError("Case store verifier has the wrong type")

        self._verifier = verifier
        self._cases = [EncryptedCase.from_dict(c) for c in data.get("cases", [])]
        return self._cases

    def _save(self) -> None:
        cases = self._load()
        self.path.parent.mkdir(parents=True, exist_ok=True)

        data = {}
        if self._verifier is not None:
            data["verifier"] = self._verifier
        data["cases"] = [c.to_dict() for c in cases]

        fd, temp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".cases_", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.dump(
                    data,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True,
                )
            os.replace(temp_path, self.path)
        except BaseException:
            Path(temp_path).unlink(missing_ok=True)
            raise

    def _index_of(self, case_key: str) -> int:
        for i, case in enumerate(self._load()):
            if case.case_number == case_key:
                return i
        raise CaseNotFoundError(case_key)

    def reload(self) -> None:
        """Drop the in-memory cache so the next read comes from disk."""
        with self._lock:
            self._cases = None
            self._verifier = None

    def get_verifier(self) -> Optional[str]:
        """Get the stored passphrase verifier blob, if any."""
        with self._lock:
            self._load()
            return self._verifier

    def set_verifier(self, blob: str) -> None:
        """Store a passphrase verifier blob, replacing any existing one."""
        with self._lock:
            self._load()
            self._verifier = blob
            self._save()

    def list_cases(self) -> list[EncryptedCase]:
        """Get all stored cases in insertion order."""
        with self._lock:
            return list(self._load())

    def list_by_status(self, status: Status) -> list[EncryptedCase]:
        """Get stored cases with a given status."""
        with self._lock:
            return [c for c in self._load() if c.status == status]

    def get_case(self, case_key: str) -> Optional[EncryptedCase]:
        """Get a case by its encrypted case number, or None."""
        with self._lock:
            try:
                return self._load()[self._index_of(case_key)]
            except CaseNotFoundError:
                return None

    def add_case(self, case: EncryptedCase) -> None:
        """Add a new case.

        Raises:
            ValueError: If a case with the same key already exists
        """
        self.add_cases([case])

    def add_cases(self, cases: list[EncryptedCase]) -> None:
        """Add several cases in one write."""
        with self._lock:
            stored = self._load()
            existing = {c.case_number for c in stored}
            for case in cases:
                if case.case_number in existing:
                    raise ValueError("A case with this key already exists")
                existing.add(case.case_number)
            stored.extend(cases)
            self._save()
        logger.debug(f"Stored {len(cases)} case(s)")

    def update_case(self, case_key: str, case: EncryptedCase) -> None:
        """Replace the case stored under case_key.

        The replacement may carry a new key, since re-encrypting the case
        number yields a different blob.
        """
        with self._lock:
            index = self._index_of(case_key)
            self._load()[index] = case
            self._save()

    def delete_case(self, case_key: str) -> None:
        """Delete a case."""
        with self._lock:
            index = self._index_of(case_key)
            del self._load()[index]
            self._save()

    def update_status(self, case_key: str, status: Status) -> None:
        """Change the plaintext status of a stored case."""
        with self._lock:
            case = self._load()[self._index_of(case_key)]
            case.status = status
            self._save()

    def add_evidence(self, case_key: str, evidence: str) -> None:
        """Append an encrypted evidence entry to a stored case."""
        with self._lock:
            case = self._load()[self._index_of(case_key)]
            case.evidence.append(evidence)
            self._save()

    def add_hearing(self, case_key: str, hearing: EncryptedHearing) -> None:
        """Append an encrypted hearing to a stored case."""
        with self._lock:
            case = self._load()[self._index_of(case_key)]
            case.hearings.append(hearing)
            self._save()
