"""Command-line interface for CaseGuard."""

from .main import app, main

__all__ = ["app", "main"]
