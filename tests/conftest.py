"""Shared pytest fixtures for CaseGuard tests."""

from pathlib import Path
from typing import Generator

import pytest

# Low iteration count keeps key derivation fast in tests
TEST_ITERATIONS = 1_000
TEST_PASSPHRASE = "correct-horse-battery"


@pytest.fixture
def fast_config():
    """Vault configuration with a cheap PBKDF2 iteration count."""
    from caseguard.vault import VaultConfig

    return VaultConfig(pbkdf2_iterations=TEST_ITERATIONS)


@pytest.fixture
def metadata_store():
    """Empty in-memory metadata store."""
    from caseguard.vault import InMemoryMetadataStore

    return InMemoryMetadataStore()


@pytest.fixture
def vault(metadata_store, fast_config):
    """Unbound VaultStore."""
    from caseguard.vault import VaultStore

    return VaultStore(metadata_store, fast_config)


@pytest.fixture
def unlocked_vault(vault):
    """VaultStore bound to identity u1, initialized and unlocked."""
    vault.bind_identity("u1")
    vault.initialize(TEST_PASSPHRASE)
    return vault


@pytest.fixture
def codec() -> Generator:
    """RecordCodec with a small thread pool."""
    from caseguard.codec import RecordCodec

    codec = RecordCodec(max_workers=4)
    yield codec
    codec.close()


@pytest.fixture
def sample_case():
    """Minimal case from the lock/unlock scenario."""
    from caseguard.models import CaseRecord, Status

    return CaseRecord(
        case_number="CR-1",
        creation_date="2025-01-15",
        next_hearing="2025-02-01",
        client_name="Maria Garcia",
        client_contact="maria@example.com",
        evidence=["e1", "e2"],
        hearings=[],
        status=Status.OPEN,
    )


@pytest.fixture
def sample_case_with_hearings():
    """Case with several evidence entries and hearings."""
    from caseguard.models import CaseRecord, Hearing, Status

    return CaseRecord(
        case_number="50-2025-CF-000001",
        creation_date="2025-01-15",
        next_hearing="2025-03-10",
        client_name="José Núñez",
        client_contact="+1 561 555 0100",
        evidence=["Body cam footage", "Police report", "", "Witness statement"],
        hearings=[
            Hearing(
                date="2025-02-01",
                outcome="Continued",
                notes="Defense requested more time",
                status=Status.CLOSED,
            ),
            Hearing(
                date="2025-03-10",
                outcome="",
                notes="",
                status=Status.SCHEDULED,
            ),
        ],
        status=Status.REVIEWING_EVIDENCE,
    )


@pytest.fixture
def case_store_path(tmp_path: Path) -> Path:
    """Location for a YAML case store."""
    return tmp_path / "cases" / "u1.yaml"


@pytest.fixture
def case_service(unlocked_vault, codec, case_store_path):
    """CaseService over an unlocked vault and an empty store."""
    from caseguard.storage import CaseService, CaseStore

    return CaseService(unlocked_vault, CaseStore(case_store_path), codec)
