"""
Walidacja checksum NIP.

Algorytm:
1. Wagi: [6, 5, 7, 2, 3, 4, 5, 6, 7]
2. Suma = sum(cyfra[i] * waga[i] for i in 0..8)
3. Checksum = Suma % 11
4. Checksum nie może być 10
5. Checksum musi być równy 10-tej cyfrze
"""

import logging
import re
from typing import Any

from ..models import ValidationResult

logger = logging.getLogger(__name__)

# Wagi dla sumy kontrolnej NIP
NIP_WEIGHTS = (6, 5, 7, 2, 3, 4, 5, 6, 7)

# NIP-y z dokumentacji i przykładów - nie mogą trafić do danych produkcyjnych
TEST_NIPS = frozenset({
    "0000000000",
    "1111111111",
    "1234567890",
    "9999999999",
    "5260250274",  # przykład z oficjalnej dokumentacji
})

_SEPARATORS = re.compile(r"[\s\-.]")
_DIGITS = re.compile(r"[0-9]{10}")


def normalize_nip(nip: Any) -> str:
    """
    Normalizuje NIP - usuwa białe znaki, myślniki i kropki.

    Inne znaki zostają (np. prefiks "PL"), walidacja je odrzuci.

    Args:
        nip: NIP w dowolnym formacie (np. "123-456-78-19", "123 456 78 19")

    Returns:
        NIP bez separatorów lub "" dla pustego / nie-tekstowego wejścia
    """
    if not nip or not isinstance(nip, str):
        return ""
    return _SEPARATORS.sub("", nip)


def validate_nip(nip: Any) -> ValidationResult:
    """
    Waliduje format i sumę kontrolną NIP.

    Args:
        nip: NIP surowy lub znormalizowany

    Returns:
        ValidationResult z NIP-em znormalizowanym albo powodem odrzucenia
    """
    normalized = normalize_nip(nip)

    if not normalized:
        return ValidationResult(valid=False, reason="NIP is required")

    if len(normalized) != 10:
        return ValidationResult(valid=False, reason="NIP must be exactly 10 digits")

    # str.isdigit() przepuszcza cyfry spoza ASCII
    if not _DIGITS.fullmatch(normalized):
        return ValidationResult(valid=False, reason="NIP must contain only digits")

    digits = [int(d) for d in normalized]
    checksum = sum(d * w for d, w in zip(digits[:9], NIP_WEIGHTS)) % 11

    # Suma kontrolna 10 nie mieści się w jednej cyfrze
    if checksum == 10:
        logger.debug("Checksum: checksum == 10 dla NIP %s", normalized)
        return ValidationResult(valid=False, reason="Invalid NIP - checksum error")

    if checksum != digits[9]:
        logger.debug(
            "Checksum: NIP %s niepoprawny (oczekiwano %d, otrzymano %d)",
            normalized, checksum, digits[9],
        )
        return ValidationResult(valid=False, reason="Invalid NIP checksum")

    return ValidationResult(valid=True, normalized=normalized)


def format_nip(nip: Any) -> Any:
    """
    Formatuje NIP do postaci XXX-XXX-XX-XX.

    Wejście o innej długości niż 10 znaków zwracane jest bez zmian.
    """
    normalized = normalize_nip(nip)
    if len(normalized) != 10:
        return nip
    return f"{normalized[:3]}-{normalized[3:6]}-{normalized[6:8]}-{normalized[8:10]}"


def is_test_nip(nip: Any) -> bool:
    """Sprawdza czy NIP jest znanym NIP-em testowym / przykładowym."""
    return normalize_nip(nip) in TEST_NIPS
