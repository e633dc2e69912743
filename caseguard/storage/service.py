"""Plaintext-facing access to the encrypted case store.

CaseService ties a VaultStore, a RecordCodec and a CaseStore together: all
writes are encrypted before they reach the store and all reads are decrypted
after they leave it. Because every encryption uses a fresh nonce, a case
cannot be found by encrypting its number; lookups decrypt and compare.
"""

from dataclasses import dataclass
from typing import Optional

from ..codec.record_codec import RecordCodec
from ..models.case import CaseRecord, Hearing, Status
from ..utils.logging import get_logger
from ..vault.exceptions import AuthenticationError
from ..vault.session import VaultStore
from .case_store import CaseNotFoundError, CaseStore

logger = get_logger(__name__)

# Known plaintext sealed under the vault key to check a passphrase
VERIFIER_TEXT = "caseguard-passphrase-check"


@dataclass
class StoredCase:
    """A decrypted case together with its store key."""

    key: str
    record: CaseRecord


class CaseService:
    """Encrypting façade over a CaseStore."""

    def __init__(self, vault: VaultStore, store: CaseStore, codec: RecordCodec):
        self.vault = vault
        self.store = store
        self.codec = codec

    def verify_passphrase(self) -> None:
        """
        Check the unlocked key against the store before any write.

        VaultStore.unlock() accepts any passphrase, so a mistyped one would
        otherwise encrypt new cases under the wrong key. The store's verifier
        blob is decrypted here; a store without one is checked against its
        first case and then given a verifier.

        Raises:
            AuthenticationError: If the key does not match the store
            LockedError: If the vault is locked
        """
        verifier = self.store.get_verifier()
        if verifier is not None:
            if self.vault.decrypt_text(verifier) != VERIFIER_TEXT:
                raise AuthenticationError()
            return

        cases = self.store.list_cases()
        if cases:
            self.vault.decrypt_text(cases[0].case_number)
        self.seal_verifier()

    def seal_verifier(self) -> None:
        """Write a fresh verifier blob under the current key."""
        self.store.set_verifier(self.vault.encrypt_text(VERIFIER_TEXT))
        logger.debug("Stored passphrase verifier")

    def list_cases(self, status: Optional[Status] = None) -> list[StoredCase]:
        """Decrypt all cases, optionally filtered by status in the store."""
        if status is None:
            encrypted = self.store.list_cases()
        else:
            encrypted = self.store.list_by_status(status)

        records = self.codec.decrypt_cases(encrypted, self.vault.decrypt_text)
        return [StoredCase(key=e.case_number, record=r) for e, r in zip(encrypted, records)]

    def find_case(self, case_number: str) -> Optional[StoredCase]:
        """Find a case by its plaintext case number."""
        for stored in self.list_cases():
            if stored.record.case_number == case_number:
                return stored
        return None

    def _require_case(self, case_number: str) -> StoredCase:
        stored = self.find_case(case_number)
        if stored is None:
            raise CaseNotFoundError(case_number)
        return stored

    def create_case(self, record: CaseRecord) -> StoredCase:
        """
        Encrypt and store a new case.

        Raises:
            ValueError: If a case with the same number already exists
        """
        if self.find_case(record.case_number) is not None:
            raise ValueError(f"Case {record.case_number} already exists")

        encrypted = self.codec.encrypt_case(record, self.vault.encrypt_text)
        self.store.add_case(encrypted)
        logger.info("Case created")
        return StoredCase(key=encrypted.case_number, record=record)

    def update_case(self, case_number: str, record: CaseRecord) -> StoredCase:
        """Re-encrypt a case and replace the stored copy."""
        stored = self._require_case(case_number)
        if record.case_number != case_number and self.find_case(record.case_number):
            raise ValueError(f"Case {record.case_number} already exists")

        encrypted = self.codec.encrypt_case(record, self.vault.encrypt_text)
        self.store.update_case(stored.key, encrypted)
        return StoredCase(key=encrypted.case_number, record=record)

    def delete_case(self, case_number: str) -> None:
        """Delete a case by its plaintext number."""
        stored = self._require_case(case_number)
        self.store.delete_case(stored.key)
        logger.info("Case deleted")

    def set_status(self, case_number: str, status: Status) -> None:
        """Change a case's status."""
        stored = self._require_case(case_number)
        self.store.update_status(stored.key, status)

    def add_evidence(self, case_number: str, evidence: str) -> None:
        """Encrypt and append an evidence entry."""
        stored = self._require_case(case_number)
        self.store.add_evidence(stored.key, self.vault.encrypt_text(evidence))

    def add_hearing(self, case_number: str, hearing: Hearing) -> None:
        """Encrypt and append a hearing."""
        stored = self._require_case(case_number)
        encrypted = self.codec.encrypt_hearing(hearing, self.vault.encrypt_text)
        self.store.add_hearing(stored.key, encrypted)
