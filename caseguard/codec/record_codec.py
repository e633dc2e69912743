"""Field-by-field encryption of case records.

Every text field of a case (including each evidence entry and the date,
outcome and notes of each hearing) is passed through a caller-supplied text
transform, typically VaultStore.encrypt_text or VaultStore.decrypt_text.
Status and archived flags are copied unchanged.

Transforms for all fields run concurrently on a thread pool. Results are
reassembled by position, so evidence and hearing order and length always
survive the round trip. If any field fails, the exception propagates and no
record is returned.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Optional, Sequence

from ..models.case import CaseRecord, EncryptedCase, EncryptedHearing, Hearing
from ..utils.logging import get_logger
from ..vault.config import get_vault_config

logger = get_logger(__name__)

TextTransform = Callable[[str], str]

# caseNumber, creationDate, nextHearing, clientName, clientContact
SCALAR_FIELD_COUNT = 5
HEARING_FIELD_COUNT = 3


def _flatten(record: CaseRecord) -> list[str]:
    """List every text field of a record in a fixed order."""
    values = [
        record.case_number,
        record.creation_date,
        record.next_hearing,
        record.client_name,
        record.client_contact,
    ]
    values.extend(record.evidence)
    for hearing in record.hearings:
        values.extend((hearing.date, hearing.outcome, hearing.notes))
    return values


def _field_count(record: CaseRecord) -> int:
    return (
        SCALAR_FIELD_COUNT
        + len(record.evidence)
        + HEARING_FIELD_COUNT * len(record.hearings)
    )


def _rebuild(
    source: CaseRecord,
    values: Sequence[str],
    case_cls: type[CaseRecord],
    hearing_cls: type[Hearing],
) -> CaseRecord:
    """Place transformed values back into the shape of the source record."""
    it = iter(values)
    case_number, creation_date, next_hearing, client_name, client_contact = (
        next(it) for _ in range(SCALAR_FIELD_COUNT)
    )
    evidence = [next(it) for _ in source.evidence]
    hearings = [
        hearing_cls(date=next(it), outcome=next(it), notes=next(it), status=h.status)
        for h in source.hearings
    ]

    return case_cls(
        case_number=case_number,
        creation_date=creation_date,
        next_hearing=next_hearing,
        client_name=client_name,
        client_contact=client_contact,
        evidence=evidence,
        hearings=hearings,
        status=source.status,
        archived=source.archived,
    )


class RecordCodec:
    """
    Encrypts and decrypts case records using a text transform.

    Usage:
        with RecordCodec() as codec:
            encrypted = codec.encrypt_case(record, vault.encrypt_text)
            restored = codec.decrypt_case(encrypted, vault.decrypt_text)
    """

    def __init__(self, max_workers: Optional[int] = None):
        """
        Initialize codec.

        Args:
            max_workers: Threads for field transforms (default: from vault
                config). 1 or less runs transforms inline.
        """
        if max_workers is None:
            max_workers = get_vault_config().codec_workers
        self.max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        if max_workers > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers,
                thread_name_prefix="caseguard-codec",
            )

    def __enter__(self) -> "RecordCodec":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Shut down the worker pool."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _map(self, transform: TextTransform, values: list[str]) -> list[str]:
        # map() yields in submission order and re-raises the first failure
        if self._executor is None or len(values) < 2:
            return [transform(v) for v in values]
        return list(self._executor.map(transform, values))

    def _transform_many(
        self,
        records: Sequence[CaseRecord],
        transform: TextTransform,
        case_cls: type[CaseRecord],
        hearing_cls: type[Hearing],
    ) -> list[CaseRecord]:
        values: list[str] = []
        for record in records:
            values.extend(_flatten(record))

        results = self._map(transform, values)

        rebuilt = []
        offset = 0
        for record in records:
            count = _field_count(record)
            rebuilt.append(
                _rebuild(record, results[offset:offset + count], case_cls, hearing_cls)
            )
            offset += count
        return rebuilt

    def encrypt_case(self, record: CaseRecord, encrypt_fn: TextTransform) -> EncryptedCase:
        """
        Encrypt every text field of a plaintext record.

        Args:
            record: Plaintext case
            encrypt_fn: Text encryption function, e.g. VaultStore.encrypt_text

        Returns:
            EncryptedCase
        """
        return self.encrypt_cases([record], encrypt_fn)[0]

    def decrypt_case(self, record: EncryptedCase, decrypt_fn: TextTransform) -> CaseRecord:
        """
        Decrypt every text field of an encrypted record.

        Args:
            record: Encrypted case from the store
            decrypt_fn: Text decryption function, e.g. VaultStore.decrypt_text

        Returns:
            Plaintext CaseRecord

        Raises:
            AuthenticationError: If any field fails verification
            MalformedInputError: If any field is not a valid blob
        """
        return self.decrypt_cases([record], decrypt_fn)[0]

    def encrypt_cases(
        self,
        records: Iterable[CaseRecord],
        encrypt_fn: TextTransform,
    ) -> list[EncryptedCase]:
        """Encrypt a list of records, preserving order."""
        records = list(records)
        encrypted = self._transform_many(records, encrypt_fn, EncryptedCase, EncryptedHearing)
        logger.debug(f"Encrypted {len(records)} case record(s)")
        return encrypted

    def decrypt_cases(
        self,
        records: Iterable[EncryptedCase],
        decrypt_fn: TextTransform,
    ) -> list[CaseRecord]:
        """Decrypt a list of records, preserving order."""
        records = list(records)
        decrypted = self._transform_many(records, decrypt_fn, CaseRecord, Hearing)
        logger.debug(f"Decrypted {len(records)} case record(s)")
        return decrypted

    def encrypt_hearing(self, hearing: Hearing, encrypt_fn: TextTransform) -> EncryptedHearing:
        """Encrypt a single hearing, for appending to a stored case."""
        date, outcome, notes = self._map(
            encrypt_fn, [hearing.date, hearing.outcome, hearing.notes]
        )
        return EncryptedHearing(date=date, outcome=outcome, notes=notes, status=hearing.status)


# Module-level convenience functions


def encrypt_case(record: CaseRecord, encrypt_fn: TextTransform) -> EncryptedCase:
    """Encrypt one record with a short-lived codec."""
    with RecordCodec() as codec:
        return codec.encrypt_case(record, encrypt_fn)


def decrypt_case(record: EncryptedCase, decrypt_fn: TextTransform) -> CaseRecord:
    """Decrypt one record with a short-lived codec."""
    with RecordCodec() as codec:
        return codec.decrypt_case(record, decrypt_fn)


def encrypt_cases(records: Iterable[CaseRecord], encrypt_fn: TextTransform) -> list[EncryptedCase]:
    """Encrypt many records with a short-lived codec."""
    with RecordCodec() as codec:
        return codec.encrypt_cases(records, encrypt_fn)


def decrypt_cases(records: Iterable[EncryptedCase], decrypt_fn: TextTransform) -> list[CaseRecord]:
    """Decrypt many records with a short-lived codec."""
    with RecordCodec() as codec:
        return codec.decrypt_cases(records, decrypt_fn)
