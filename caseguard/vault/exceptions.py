"""Vault exceptions for CaseGuard encryption system."""


class VaultError(Exception):
    """Base exception for vault operations."""

    pass


class PreconditionError(VaultError):
    """Raised when an operation is attempted in the wrong vault state.

    Covers a missing identity binding and initializing over an existing vault.
    """

    def __init__(self, message: str = "No identity bound to the vault."):
        super().__init__(message)


class LockedError(VaultError):
    """Raised when the session key is requested while the vault is locked."""

    def __init__(self, message: str = "Vault is locked. Unlock with passphrase first."):
        super().__init__(message)


class AuthenticationError(VaultError):
    """Raised when ciphertext fails AEAD verification.

    A wrong passphrase and tampered data raise the same error.
    """

    def __init__(self, message: str = "Decryption failed."):
        super().__init__(message)


class MalformedInputError(VaultError):
    """Raised when persisted metadata or a ciphertext blob is structurally invalid."""

    def __init__(self, message: str = "Vault data is malformed."):
        super().__init__(message)


INCORRECT_PASSPHRASE_MESSAGE = "Incorrect passphrase."
DATA_CORRUPTED_MESSAGE = "Data corrupted."
VAULT_LOCKED_MESSAGE = "Vault is locked."


def user_message(exc: BaseException) -> str:
    """
    Map a vault exception to a message safe to show an end user.

    Authentication failures never expose cryptographic detail.

    Args:
        exc: Exception raised by a vault operation

    Returns:
        Human-readable message
    """
    if isinstance(exc, AuthenticationError):
        return INCORRECT_PASSPHRASE_MESSAGE
    if isinstance(exc, MalformedInputError):
        return DATA_CORRUPTED_MESSAGE
    if isinstance(exc, LockedError):
        return VAULT_LOCKED_MESSAGE
    if isinstance(exc, VaultError):
        return str(exc)
    return "An unexpected error occurred."
