"""Encrypted case storage.

The case store persists only EncryptedCase values; CaseService is the
plaintext-facing layer that encrypts on write and decrypts on read.
"""

from .case_store import CaseNotFoundError, CaseStore
from .service import CaseService, StoredCase

__all__ = [
    "CaseStore",
    "CaseNotFoundError",
    "CaseService",
    "StoredCase",
]
