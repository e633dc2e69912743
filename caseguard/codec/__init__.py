"""Case record encryption codec."""

from .record_codec import (
    RecordCodec,
    TextTransform,
    decrypt_case,
    decrypt_cases,
    encrypt_case,
    encrypt_cases,
)

__all__ = [
    "RecordCodec",
    "TextTransform",
    "encrypt_case",
    "decrypt_case",
    "encrypt_cases",
    "decrypt_cases",
]
