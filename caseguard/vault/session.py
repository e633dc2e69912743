"""Session management for the per-identity vault.

VaultStore is the service object that owns the lock/unlock lifecycle:

    UNBOUND -> UNINITIALIZED -> LOCKED <-> UNLOCKED

One VaultStore is constructed per application session and handed to every
consumer. The derived key lives only inside it and is dropped on lock() or
on any identity change.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from ..utils.logging import get_logger, redact_identity
from .config import VaultConfig, get_vault_config
from .crypto import FieldCipher, KeyDerivation, SessionKey
from .exceptions import LockedError, PreconditionError
from .metadata import MetadataPresent, MetadataStore, VaultMetadata

logger = get_logger(__name__)


class VaultState(str, Enum):
    """Lifecycle states of a VaultStore."""

    UNBOUND = "unbound"
    UNINITIALIZED = "uninitialized"
    LOCKED = "locked"
    UNLOCKED = "unlocked"


@dataclass
class VaultSession:
    """Active vault session with cached derived key."""

    identity: str
    key: SessionKey = field(repr=False)
    created_at: datetime = field(default_factory=datetime.now)
    last_access: datetime = field(default_factory=datetime.now)
    timeout_minutes: int = 0

    def __post_init__(self):
        self.cipher = FieldCipher(self.key)

    def is_expired(self) -> bool:
        """Check if session has timed out due to inactivity."""
        if self.timeout_minutes == 0:  # No timeout
            return False
        elapsed = datetime.now() - self.last_access
        return elapsed > timedelta(minutes=self.timeout_minutes)

    def touch(self) -> None:
        """Update last access time to prevent timeout."""
        self.last_access = datetime.now()

    def time_remaining(self) -> Optional[timedelta]:
        """Get time remaining before session expires."""
        if self.timeout_minutes == 0:
            return None
        elapsed = datetime.now() - self.last_access
        remaining = timedelta(minutes=self.timeout_minutes) - elapsed
        return max(remaining, timedelta(0))


class VaultStore:
    """
    Per-identity vault metadata plus the in-memory session key.

    Usage:
        vault = VaultStore(JsonFileMetadataStore(path))
        vault.bind_identity(user_id)

        if not vault.is_initialized():
            vault.initialize(passphrase)
        elif vault.is_locked():
            vault.unlock(passphrase)

        blob = vault.encrypt_text("Jane Doe")
        vault.lock()

    unlock() does not prove the passphrase is correct. It derives a key from
    the stored salt and reports success; a wrong passphrase surfaces as an
    AuthenticationError on the first decrypt.
    """

    def __init__(self, metadata_store: MetadataStore, config: Optional[VaultConfig] = None):
        """
        Initialize an unbound vault.

        Args:
            metadata_store: Persistent metadata collaborator
            config: Vault configuration (uses global if not provided)
        """
        self.metadata_store = metadata_store
        self.config = config or get_vault_config()
        self._identity: Optional[str] = None
        self._session: Optional[VaultSession] = None
        self._lock = threading.RLock()

    @property
    def identity(self) -> Optional[str]:
        """Currently bound identity, if any."""
        return self._identity

    @property
    def state(self) -> VaultState:
        """Current lifecycle state."""
        with self._lock:
            if self._identity is None:
                return VaultState.UNBOUND
            if self._live_session() is not None:
                return VaultState.UNLOCKED
            if self.metadata_store.contains(self._identity):
                return VaultState.LOCKED
            return VaultState.UNINITIALIZED

    def _require_identity(self) -> str:
        if self._identity is None:
            raise PreconditionError()
        return self._identity

    def _live_session(self) -> Optional[VaultSession]:
        session = self._session
        if session is None or session.is_expired():
            return None
        return session

    def _drop_session(self) -> bool:
        had_session = self._session is not None
        self._session = None
        return had_session

    def _open_session(self, identity: str, key: SessionKey) -> VaultSession:
        self._session = VaultSession(
            identity=identity,
            key=key,
            timeout_minutes=self.config.session_timeout_minutes,
        )
        return self._session

    def bind_identity(self, identity: str) -> VaultState:
        """
        Bind the vault to an identity, locking any previous session.

        Args:
            identity: Stable opaque user identifier

        Returns:
            New state (UNINITIALIZED or LOCKED)

        Raises:
            PreconditionError: If identity is empty
        """
        if not identity:
            raise PreconditionError("Identity must be a non-empty string.")

        with self._lock:
            if self._drop_session():
                logger.info("Identity changed; vault locked")
            self._identity = identity
            state = self.state

        logger.debug(f"Bound vault to identity {redact_identity(identity)} ({state.value})")
        return state

    def unbind(self) -> None:
        """Drop the session key and the identity binding."""
        with self._lock:
            self._drop_session()
            self._identity = None

    def is_initialized(self) -> bool:
        """Check whether the bound identity has persisted vault metadata."""
        identity = self._identity
        if identity is None:
            return False
        return self.metadata_store.contains(identity)

    def is_locked(self) -> bool:
        """Check whether no usable session key is held."""
        return self._live_session() is None

    def initialize(self, passphrase: str) -> VaultMetadata:
        """
        Create a vault for the bound identity and unlock it.

        Args:
            passphrase: New vault passphrase

        Returns:
            Persisted VaultMetadata

        Raises:
            PreconditionError: If no identity is bound or a vault already exists
            ValueError: If passphrase is shorter than the configured minimum
        """
        with self._lock:
            identity = self._require_identity()

            if self.metadata_store.contains(identity):
                raise PreconditionError("Vault is already initialized for this identity.")

            if len(passphrase) < self.config.min_passphrase_length:
                raise ValueError(
                    f"Passphrase must be at least {self.config.min_passphrase_length} characters"
                )

            salt = KeyDerivation.generate_salt()
            key = KeyDerivation.derive_key(passphrase, salt, self.config.pbkdf2_iterations)

            metadata = VaultMetadata(
                salt=salt,
                initialized=True,
                iterations=self.config.pbkdf2_iterations,
            )
            self.metadata_store.save(identity, metadata)
            self._open_session(identity, key)

        logger.info(f"Initialized vault for identity {redact_identity(identity)}")
        return metadata

    def unlock(self, passphrase: str) -> bool:
        """
        Derive the session key from the stored salt.

        Args:
            passphrase: Vault passphrase

        Returns:
            False if the bound identity has no vault, True otherwise

        Raises:
            PreconditionError: If no identity is bound
            MalformedInputError: If the stored metadata is corrupted
        """
        with self._lock:
            identity = self._require_identity()

            lookup = self.metadata_store.lookup(identity)
            if not isinstance(lookup, MetadataPresent):
                logger.debug("Unlock requested but no vault metadata exists")
                return False

            # Iterations come from the vault, not the current config
            metadata = lookup.metadata
            key = KeyDerivation.derive_key(passphrase, metadata.salt, metadata.iterations)
            self._open_session(identity, key)

        logger.info(f"Unlocked vault for identity {redact_identity(identity)}")
        return True

    def lock(self) -> None:
        """Discard the session key. Safe to call in any state."""
        with self._lock:
            if self._drop_session():
                logger.info("Vault locked")

    def _require_session(self) -> VaultSession:
        with self._lock:
            self._require_identity()

            session = self._session
            if session is None:
                raise LockedError()

            if session.is_expired():
                self._drop_session()
                logger.info("Vault session expired; vault locked")
                raise LockedError("Session has expired. Unlock again.")

            session.touch()
            return session

    def get_key(self) -> SessionKey:
        """
        Get the session key.

        Raises:
            PreconditionError: If no identity is bound
            LockedError: If the vault is not unlocked
        """
        return self._require_session().key

    def encrypt_text(self, plaintext: str) -> str:
        """Encrypt one text field with the session key."""
        return self._require_session().cipher.encrypt(plaintext)

    def decrypt_text(self, blob: str) -> str:
        """Decrypt one text field with the session key."""
        return self._require_session().cipher.decrypt(blob)

    def time_remaining(self) -> Optional[timedelta]:
        """Time left before the idle timeout locks the vault, if one is set."""
        session = self._live_session()
        if session is None:
            return None
        return session.time_remaining()
