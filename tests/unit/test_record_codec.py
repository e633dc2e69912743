"""Tests for field-by-field case record encryption."""

import threading

import pytest

from caseguard.codec import RecordCodec, decrypt_case, encrypt_case
from caseguard.models import CaseRecord, EncryptedCase, EncryptedHearing, Hearing, Status
from caseguard.vault import AuthenticationError, LockedError


def tag(text: str) -> str:
    """Reversible stand-in transform."""
    return f"<{text}>"


def untag(text: str) -> str:
    return text[1:-1]


class TestStructure:
    """Shape preservation with a transparent transform."""

    def test_every_text_field_transformed(self, codec, sample_case_with_hearings):
        encrypted = codec.encrypt_case(sample_case_with_hearings, tag)

        assert isinstance(encrypted, EncryptedCase)
        assert encrypted.case_number == "<50-2025-CF-000001>"
        assert encrypted.creation_date == "<2025-01-15>"
        assert encrypted.next_hearing == "<2025-03-10>"
        assert encrypted.client_name == "<José Núñez>"
        assert encrypted.client_contact == "<+1 561 555 0100>"
        assert encrypted.evidence == [
            "<Body cam footage>",
            "<Police report>",
            "<>",
            "<Witness statement>",
        ]
        assert encrypted.hearings[0] == EncryptedHearing(
            date="<2025-02-01>",
            outcome="<Continued>",
            notes="<Defense requested more time>",
            status=Status.CLOSED,
        )

    def test_status_untouched(self, codec, sample_case_with_hearings):
        encrypted = codec.encrypt_case(sample_case_with_hearings, tag)

        assert encrypted.status == Status.REVIEWING_EVIDENCE
        assert [h.status for h in encrypted.hearings] == [Status.CLOSED, Status.SCHEDULED]

    def test_archived_untouched(self, codec, sample_case):
        sample_case.archived = True

        assert codec.encrypt_case(sample_case, tag).archived is True

    def test_source_not_mutated(self, codec, sample_case_with_hearings):
        before = sample_case_with_hearings.to_dict()

        codec.encrypt_case(sample_case_with_hearings, tag)

        assert sample_case_with_hearings.to_dict() == before

    def test_order_preserved_under_uneven_timing(self, codec):
        """Results land in their original positions regardless of completion order."""
        import time

        record = CaseRecord(case_number="CR-9", evidence=[str(i) for i in range(20)])

        def slow_first(text: str) -> str:
            if text in ("0", "1", "2"):
                time.sleep(0.05)
            return f"x{text}"

        encrypted = codec.encrypt_case(record, slow_first)

        assert encrypted.evidence == [f"x{i}" for i in range(20)]
        assert encrypted.case_number == "xCR-9"

    def test_transforms_run_concurrently(self, sample_case_with_hearings):
        """Field transforms use more than one worker thread."""
        seen = set()
        second_thread_seen = threading.Event()

        def record_thread(text: str) -> str:
            seen.add(threading.get_ident())
            if len(seen) >= 2:
                second_thread_seen.set()
            second_thread_seen.wait(timeout=5)
            return text

        with RecordCodec(max_workers=4) as codec:
            codec.encrypt_case(sample_case_with_hearings, record_thread)

        assert len(seen) >= 2

    def test_inline_mode(self, sample_case_with_hearings):
        """max_workers=1 transforms on the calling thread."""
        with RecordCodec(max_workers=1) as codec:
            encrypted = codec.encrypt_case(sample_case_with_hearings, tag)
            restored = codec.decrypt_case(encrypted, untag)

        assert restored == sample_case_with_hearings


class TestRoundTrip:
    """Round trips through a real vault."""

    def test_round_trip_with_hearings(self, codec, unlocked_vault, sample_case_with_hearings):
        encrypted = codec.encrypt_case(sample_case_with_hearings, unlocked_vault.encrypt_text)
        restored = codec.decrypt_case(encrypted, unlocked_vault.decrypt_text)

        assert isinstance(restored, CaseRecord)
        assert not isinstance(restored, EncryptedCase)
        assert restored == sample_case_with_hearings

    def test_round_trip_empty_lists(self, codec, unlocked_vault):
        record = CaseRecord(case_number="CR-0")

        encrypted = codec.encrypt_case(record, unlocked_vault.encrypt_text)
        restored = codec.decrypt_case(encrypted, unlocked_vault.decrypt_text)

        assert restored == record
        assert restored.evidence == []
        assert restored.hearings == []

    def test_ciphertext_hides_plaintext(self, codec, unlocked_vault, sample_case):
        encrypted = codec.encrypt_case(sample_case, unlocked_vault.encrypt_text)

        assert encrypted.case_number != "CR-1"
        assert "Maria Garcia" not in str(encrypted.to_dict())
        assert encrypted.evidence[0] != encrypted.evidence[1]

    def test_list_round_trip(self, codec, unlocked_vault, sample_case, sample_case_with_hearings):
        records = [sample_case, sample_case_with_hearings, CaseRecord(case_number="CR-3")]

        encrypted = codec.encrypt_cases(records, unlocked_vault.encrypt_text)
        restored = codec.decrypt_cases(encrypted, unlocked_vault.decrypt_text)

        assert restored == records

    def test_module_functions(self, unlocked_vault, sample_case):
        encrypted = encrypt_case(sample_case, unlocked_vault.encrypt_text)

        assert decrypt_case(encrypted, unlocked_vault.decrypt_text) == sample_case

    def test_encrypt_hearing(self, codec, unlocked_vault):
        hearing = Hearing(date="2025-04-01", outcome="Plea", notes="", status=Status.CLOSED)

        encrypted = codec.encrypt_hearing(hearing, unlocked_vault.encrypt_text)

        assert isinstance(encrypted, EncryptedHearing)
        assert encrypted.status == Status.CLOSED
        assert unlocked_vault.decrypt_text(encrypted.outcome) == "Plea"


class TestFailures:
    """A single failed field invalidates the whole record."""

    def test_one_bad_field_aborts(self, codec, unlocked_vault, sample_case_with_hearings):
        encrypted = codec.encrypt_case(sample_case_with_hearings, unlocked_vault.encrypt_text)
        encrypted.hearings[1].notes = unlocked_vault.encrypt_text("x")[:-8] + "AAAAAAA="

        with pytest.raises(AuthenticationError):
            codec.decrypt_case(encrypted, unlocked_vault.decrypt_text)

    def test_transform_error_propagates(self, codec, sample_case):
        def fail_on_e2(text: str) -> str:
            if text == "e2":
                raise RuntimeError("boom")
            return text

        with pytest.raises(RuntimeError, match="boom"):
            codec.encrypt_case(sample_case, fail_on_e2)

    def test_locked_vault(self, codec, unlocked_vault, sample_case):
        encrypted = codec.encrypt_case(sample_case, unlocked_vault.encrypt_text)
        unlocked_vault.lock()

        with pytest.raises(LockedError):
            codec.decrypt_case(encrypted, unlocked_vault.decrypt_text)

    def test_wrong_passphrase(self, codec, unlocked_vault, sample_case):
        encrypted = codec.encrypt_case(sample_case, unlocked_vault.encrypt_text)
        unlocked_vault.lock()
        unlocked_vault.unlock("not-the-passphrase")

        with pytest.raises(AuthenticationError):
            codec.decrypt_case(encrypted, unlocked_vault.decrypt_text)
