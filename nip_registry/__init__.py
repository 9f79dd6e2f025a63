"""
NIP Registry - rozwiązywanie polskiego NIP na dane firmy.

Walidacja NIP (suma kontrolna), łańcuch dostawców danych
(GUS BIR, Biała Lista VAT, ręczne uzupełnienie) i cache wyników.
"""

from .config import NIPRegistrySettings, get_settings
from .core import NIPLookupService, build_lookup_service
from .exceptions import (
    GUSProviderError,
    InvalidNIPError,
    NIPLookupError,
    NIPNotFoundError,
    ProviderError,
    TestNIPNotAllowedError,
    VatWhitelistProviderError,
)
from .models import Address, LookupResult, ProviderStatus, ResultSource, ValidationResult, VatStatus
from .validation import format_nip, is_test_nip, normalize_nip, validate_nip

__version__ = "0.1.0"

__all__ = [
    "NIPRegistrySettings",
    "get_settings",
    "NIPLookupService",
    "build_lookup_service",
    "NIPLookupError",
    "InvalidNIPError",
    "TestNIPNotAllowedError",
    "NIPNotFoundError",
    "ProviderError",
    "GUSProviderError",
    "VatWhitelistProviderError",
    "Address",
    "LookupResult",
    "ProviderStatus",
    "ResultSource",
    "ValidationResult",
    "VatStatus",
    "format_nip",
    "is_test_nip",
    "normalize_nip",
    "validate_nip",
]
