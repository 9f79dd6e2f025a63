"""Walidacja NIP."""

from .checksum import (
    NIP_WEIGHTS,
    TEST_NIPS,
    format_nip,
    is_test_nip,
    normalize_nip,
    validate_nip,
)

__all__ = [
    "NIP_WEIGHTS",
    "TEST_NIPS",
    "format_nip",
    "is_test_nip",
    "normalize_nip",
    "validate_nip",
]
