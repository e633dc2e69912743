"""CaseGuard - Encrypted Vault for Legal Case Records."""

__version__ = "0.1.0"

from .models import CaseRecord, EncryptedCase, Hearing, Status
from .vault import VaultStore

__all__ = [
    "__version__",
    "CaseRecord",
    "EncryptedCase",
    "Hearing",
    "Status",
    "VaultStore",
]
