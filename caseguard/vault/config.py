"""Vault configuration for CaseGuard encryption system."""

import os
from dataclasses import dataclass


@dataclass
class VaultConfig:
    """Configuration for vault encryption operations."""

    # Key derivation
    pbkdf2_iterations: int = 100_000

    # Metadata storage
    storage_prefix: str = "caseguard_vault_"

    # Passphrase policy (checked on initialize only)
    min_passphrase_length: int = 8

    # Session management
    session_timeout_minutes: int = 0  # 0 = no timeout

    # Record codec
    codec_workers: int = 8

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """
        Load configuration from environment variables.

        Environment variables:
            VAULT_PBKDF2_ITERATIONS: PBKDF2 iteration count (default: 100000)
            VAULT_SESSION_TIMEOUT: Idle timeout in minutes (default: 0, disabled)
            VAULT_CODEC_WORKERS: Threads used for field transforms (default: 8)
        """
        config = cls()

        if iterations := os.getenv("VAULT_PBKDF2_ITERATIONS"):
            config.pbkdf2_iterations = int(iterations)

        if timeout := os.getenv("VAULT_SESSION_TIMEOUT"):
            config.session_timeout_minutes = int(timeout)

        if workers := os.getenv("VAULT_CODEC_WORKERS"):
            config.codec_workers = int(workers)

        return config


# Global configuration instance
_config: VaultConfig | None = None


def get_vault_config() -> VaultConfig:
    """Get the global vault configuration."""
    global _config
    if _config is None:
        _config = VaultConfig.from_env()
    return _config


def set_vault_config(config: VaultConfig) -> None:
    """Set the global vault configuration."""
    global _config
    _config = config
