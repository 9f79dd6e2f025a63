"""Dostawcy danych firm po NIP."""

from .base import NIPProvider
from .gus_bir import GUSBirProvider
from .manual import MANUAL_PROVIDER_NAME, ManualFallbackProvider
from .vat_whitelist import VatWhitelistProvider

__all__ = [
    "NIPProvider",
    "GUSBirProvider",
    "ManualFallbackProvider",
    "MANUAL_PROVIDER_NAME",
    "VatWhitelistProvider",
]
