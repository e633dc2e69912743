"""Persisted per-identity vault metadata.

One entry per identity, keyed by a fixed prefix plus the identity string.
The value is a flat record holding only the salt and the initialized flag:

    {"salt": "<base64>", "initialized": true}

Neither the session key nor the passphrase is ever written here.
"""

import base64
import binascii
import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from ..utils.logging import get_logger
from .crypto import PBKDF2_ITERATIONS, SALT_SIZE
from .exceptions import MalformedInputError

logger = get_logger(__name__)

STORAGE_KEY_PREFIX = "caseguard_vault_"


def storage_key(identity: str, prefix: str = STORAGE_KEY_PREFIX) -> str:
    """Build the storage key for an identity."""
    return f"{prefix}{identity}"


@dataclass(frozen=True)
class VaultMetadata:
    """Salt, initialized flag and PBKDF2 iteration count for one identity's vault.

    The iteration count is written only when it differs from the default, so
    vaults created with default settings keep the flat {salt, initialized}
    record.
    """

    salt: bytes
    initialized: bool = True
    iterations: int = PBKDF2_ITERATIONS

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            "salt": base64.b64encode(self.salt).decode("ascii"),
            "initialized": self.initialized,
        }
        if self.iterations != PBKDF2_ITERATIONS:
            data["iterations"] = self.iterations
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "VaultMetadata":
        """
        Create from dictionary, validating structure.

        Raises:
            MalformedInputError: If the record is not a valid metadata entry
        """
        if not isinstance(data, dict):
            raise MalformedInputError("Vault metadata must be a mapping")

        raw_salt = data.get("salt")
        initialized = data.get("initialized")
        iterations = data.get("iterations", PBKDF2_ITERATIONS)

        if not isinstance(raw_salt, str):
            raise MalformedInputError("Vault metadata is missing its salt")
        if not isinstance(initialized, bool):
            raise MalformedInputError("Vault metadata has an invalid initialized flag")
        if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations <= 0:
            raise MalformedInputError("Vault metadata has an invalid iteration count")

        try:
            salt = base64.b64decode(raw_salt, validate=True)
        except (binascii.Error, ValueError):
            raise MalformedInputError("Vault salt is not valid base64") from None

        if len(salt) != SALT_SIZE:
            raise MalformedInputError(
                f"Vault salt must be {SALT_SIZE} bytes, got {len(salt)}"
            )

        return cls(salt=salt, initialized=initialized, iterations=iterations)


@dataclass(frozen=True)
class MetadataPresent:
    """Lookup result when an identity has a vault."""

    metadata: VaultMetadata


@dataclass(frozen=True)
class MetadataAbsent:
    """Lookup result when an identity has no vault yet."""


MetadataLookup = Union[MetadataPresent, MetadataAbsent]


class MetadataStore(ABC):
    """Key-value store for vault metadata, one entry per identity."""

    def __init__(self, prefix: str = STORAGE_KEY_PREFIX):
        self.prefix = prefix

    def key_for(self, identity: str) -> str:
        """Storage key for an identity."""
        return storage_key(identity, self.prefix)

    @abstractmethod
    def _read(self, key: str) -> Any | None:
        """Return the raw record for a key, or None."""

    @abstractmethod
    def _write(self, key: str, record: dict[str, Any]) -> None:
        """Persist a raw record."""

    @abstractmethod
    def _delete(self, key: str) -> bool:
        """Remove a raw record."""

    def lookup(self, identity: str) -> MetadataLookup:
        """
        Look up the metadata for an identity.

        Returns:
            MetadataPresent or MetadataAbsent

        Raises:
            MalformedInputError: If the stored record is corrupted
        """
        record = self._read(self.key_for(identity))
        if record is None:
            return MetadataAbsent()
        return MetadataPresent(VaultMetadata.from_dict(record))

    def contains(self, identity: str) -> bool:
        """Check whether an entry exists without validating it."""
        return self._read(self.key_for(identity)) is not None

    def save(self, identity: str, metadata: VaultMetadata) -> None:
        """Persist metadata for an identity."""
        self._write(self.key_for(identity), metadata.to_dict())

    def remove(self, identity: str) -> bool:
        """
        Remove an identity's entry.

        Returns:
            True if an entry was removed
        """
        return self._delete(self.key_for(identity))


class InMemoryMetadataStore(MetadataStore):
    """Dictionary-backed metadata store."""

    def __init__(self, prefix: str = STORAGE_KEY_PREFIX):
        super().__init__(prefix)
        self._entries: dict[str, dict[str, Any]] = {}

    def _read(self, key: str) -> Any | None:
        return self._entries.get(key)

    def _write(self, key: str, record: dict[str, Any]) -> None:
        self._entries[key] = dict(record)

    def _delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None


class JsonFileMetadataStore(MetadataStore):
    """
    Metadata store backed by a single JSON document.

    The document maps storage keys to flat metadata records. Writes go to a
    temporary file in the same directory followed by an atomic replace.
    """

    def __init__(self, path: Path, prefix: str = STORAGE_KEY_PREFIX):
        """
        Initialize store.

        Args:
            path: JSON file holding all entries (created on first write)
            prefix: Storage key prefix
        """
        super().__init__(prefix)
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedInputError(f"Invalid vault metadata file: {e}")
        if not isinstance(data, dict):
            raise MalformedInputError("Vault metadata file must contain a JSON object")
        return data

    def _save_all(self, entries: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=".vault_", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entries, f, indent=2)
            os.replace(temp_path, self.path)
        except BaseException:
            Path(temp_path).unlink(missing_ok=True)
            raise

    def _read(self, key: str) -> Any | None:
        with self._lock:
            return self._load_all().get(key)

    def _write(self, key: str, record: dict[str, Any]) -> None:
        with self._lock:
            entries = self._load_all()
            entries[key] = record
            self._save_all(entries)
        logger.debug(f"Saved vault metadata to {self.path}")

    def _delete(self, key: str) -> bool:
        with self._lock:
            entries = self._load_all()
            if key not in entries:
                return False
            del entries[key]
            self._save_all(entries)
            return True
