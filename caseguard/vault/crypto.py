"""Core cryptographic primitives for vault encryption.

Uses the cryptography library for:
- PBKDF2-HMAC-SHA256 key derivation (100,000 iterations)
- AES-256-GCM authenticated encryption of individual text fields

Field blob format (base64, standard alphabet):
[nonce (12 bytes)] [ciphertext] [tag (16 bytes)]

Never log plaintext, ciphertext, passphrases or key material.
"""

import base64
import os
from dataclasses import dataclass, field

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .exceptions import AuthenticationError, MalformedInputError

# Key derivation parameters
PBKDF2_ITERATIONS = 100_000
SALT_SIZE = 16  # 128 bits
KEY_SIZE = 32  # 256 bits for AES-256

# AEAD parameters
NONCE_SIZE = 12  # 96 bits for AES-GCM
TAG_SIZE = 16  # 128-bit authentication tag

ALGORITHM = "AES-256-GCM"
KEY_DERIVATION = "PBKDF2-HMAC-SHA256"


@dataclass(frozen=True)
class SessionKey:
    """
    In-memory symmetric key for one unlocked vault session.

    The key bytes are excluded from repr and the object refuses to be
    pickled, so it cannot end up in logs or on disk by accident.
    """

    material: bytes = field(repr=False)
    algorithm: str = ALGORITHM

    def __post_init__(self):
        if len(self.material) != KEY_SIZE:
            raise MalformedInputError(f"Key must be {KEY_SIZE} bytes")

    def __reduce_ex__(self, protocol):
        raise TypeError("SessionKey cannot be serialized")

    def __reduce__(self):
        raise TypeError("SessionKey cannot be serialized")


class KeyDerivation:
    """Derives session keys from a passphrase using PBKDF2."""

    @staticmethod
    def generate_salt(size: int = SALT_SIZE) -> bytes:
        """Generate cryptographically secure random salt."""
        return os.urandom(size)

    @staticmethod
    def derive_key(
        passphrase: str,
        salt: bytes,
        iterations: int = PBKDF2_ITERATIONS,
    ) -> SessionKey:
        """
        Derive a 256-bit AES-GCM key from a passphrase using PBKDF2-HMAC-SHA256.

        Deterministic for a fixed (passphrase, salt, iterations). Any passphrase
        content is accepted, including the empty string.

        Args:
            passphrase: User passphrase
            salt: Salt stored in the vault metadata
            iterations: PBKDF2 iteration count

        Returns:
            SessionKey

        Raises:
            MalformedInputError: If the salt is empty or iterations is not positive
        """
        if not salt:
            raise MalformedInputError("Salt must not be empty")
        if iterations <= 0:
            raise MalformedInputError("Iteration count must be positive")

        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_SIZE,
            salt=bytes(salt),
            iterations=iterations,
        )
        return SessionKey(kdf.derive(passphrase.encode("utf-8")))


class FieldCipher:
    """
    AES-256-GCM encryption for individual text fields.

    Every call to encrypt() draws a fresh random nonce, so encrypting the same
    text twice yields different blobs.
    """

    def __init__(self, key: SessionKey):
        """
        Initialize with a session key.

        Args:
            key: Key derived by KeyDerivation.derive_key
        """
        self.aesgcm = AESGCM(key.material)

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a text field.

        Args:
            plaintext: Text to encrypt

        Returns:
            base64(nonce + ciphertext + tag)
        """
        nonce = os.urandom(NONCE_SIZE)
        # ciphertext includes tag appended by AESGCM
        ciphertext = self.aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + ciphertext).decode("ascii")

    def decrypt(self, blob: str) -> str:
        """
        Decrypt and verify a text field.

        Args:
            blob: Value produced by encrypt()

        Returns:
            Decrypted text

        Raises:
            MalformedInputError: If the blob is not valid base64 or too short
            AuthenticationError: If the tag does not verify
        """
        try:
            combined = base64.b64decode(blob, validate=True)
        except (TypeError, ValueError):
            raise MalformedInputError("Ciphertext is not valid base64") from None

        if len(combined) < NONCE_SIZE + TAG_SIZE:
            raise MalformedInputError("Ciphertext is too short")

        nonce = combined[:NONCE_SIZE]
        ciphertext = combined[NONCE_SIZE:]
        try:
            plaintext = self.aesgcm.decrypt(nonce, ciphertext, None)
        except InvalidTag:
            raise AuthenticationError() from None

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedInputError("Decrypted field is not valid UTF-8")


# Module-level convenience functions


def generate_salt() -> bytes:
    """Generate a fresh vault salt."""
    return KeyDerivation.generate_salt()


def derive_key(passphrase: str, salt: bytes, iterations: int = PBKDF2_ITERATIONS) -> SessionKey:
    """Derive a session key from a passphrase and salt."""
    return KeyDerivation.derive_key(passphrase, salt, iterations)


def encrypt(plaintext: str, key: SessionKey) -> str:
    """Encrypt a text field under a session key."""
    return FieldCipher(key).encrypt(plaintext)


def decrypt(blob: str, key: SessionKey) -> str:
    """Decrypt a text field under a session key."""
    return FieldCipher(key).decrypt(blob)
