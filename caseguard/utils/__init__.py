"""Utility modules for CaseGuard."""

from .logging import (
    get_logger,
    redact_identity,
    setup_logging,
)


__all__ = [
    "setup_logging",
    "get_logger",
    "redact_identity",
]
