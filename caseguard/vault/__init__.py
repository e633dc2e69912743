"""Vault encryption module for CaseGuard.

Derives an AES-256-GCM key from a user passphrase, keeps it in memory for
the length of a session, and encrypts individual text fields so the case
store never sees plaintext.

Usage:
    from caseguard.vault import JsonFileMetadataStore, VaultStore

    vault = VaultStore(JsonFileMetadataStore(data_dir / "vault.json"))
    vault.bind_identity(user_id)

    if not vault.is_initialized():
        vault.initialize(passphrase)
    else:
        vault.unlock(passphrase)

    blob = vault.encrypt_text("Jane Doe")
    assert vault.decrypt_text(blob) == "Jane Doe"
    vault.lock()
"""

# Exceptions
from .exceptions import (
    AuthenticationError,
    LockedError,
    MalformedInputError,
    PreconditionError,
    VaultError,
    user_message,
)

# Configuration
from .config import (
    VaultConfig,
    get_vault_config,
    set_vault_config,
)

# Primitives
from .crypto import (
    FieldCipher,
    KeyDerivation,
    SessionKey,
    decrypt,
    derive_key,
    encrypt,
    generate_salt,
)

# Metadata persistence
from .metadata import (
    InMemoryMetadataStore,
    JsonFileMetadataStore,
    MetadataAbsent,
    MetadataLookup,
    MetadataPresent,
    MetadataStore,
    VaultMetadata,
    storage_key,
)

# Session management
from .session import (
    VaultSession,
    VaultState,
    VaultStore,
)

__all__ = [
    # Exceptions
    "VaultError",
    "PreconditionError",
    "LockedError",
    "AuthenticationError",
    "MalformedInputError",
    "user_message",
    # Configuration
    "VaultConfig",
    "get_vault_config",
    "set_vault_config",
    # Primitives
    "FieldCipher",
    "KeyDerivation",
    "SessionKey",
    "generate_salt",
    "derive_key",
    "encrypt",
    "decrypt",
    # Metadata
    "VaultMetadata",
    "MetadataStore",
    "InMemoryMetadataStore",
    "JsonFileMetadataStore",
    "MetadataPresent",
    "MetadataAbsent",
    "MetadataLookup",
    "storage_key",
    # Session
    "VaultSession",
    "VaultState",
    "VaultStore",
]
