"""Configuration settings for CaseGuard."""

import hashlib
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

METADATA_FILE = "vault.json"
CASES_DIR = "cases"


@dataclass
class Settings:
    """Main settings container."""

    # Paths
    data_dir: Path = field(
        default_factory=lambda: Path.home() / ".local" / "share" / "caseguard"
    )

    # Logging
    log_level: str = "WARNING"
    log_file: Optional[Path] = None

    @property
    def metadata_path(self) -> Path:
        """JSON file holding vault metadata for every identity."""
        return self.data_dir / METADATA_FILE

    def cases_path(self, identity: str) -> Path:
        """YAML case store for one identity."""
        digest = hashlib.sha256(identity.encode("utf-8")).hexdigest()
        return self.data_dir / CASES_DIR / f"{digest}.yaml"

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        settings = cls()

        if data_dir := os.getenv("CASEGUARD_DATA_DIR"):
            settings.data_dir = Path(data_dir)

        if log_level := os.getenv("LOG_LEVEL"):
            settings.log_level = log_level

        if log_file := os.getenv("CASEGUARD_LOG_FILE"):
            settings.log_file = Path(log_file)

        return settings


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def configure(settings: Optional[Settings]) -> None:
    """Set the global settings instance (None reloads from the environment)."""
    global _settings
    _settings = settings
