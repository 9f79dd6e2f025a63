"""
Modele danych dla NIP Registry.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class VatStatus(str, Enum):
    """Status podatnika VAT."""

    ACTIVE = "active"
    EXEMPT = "exempt"
    INACTIVE = "inactive"


class ResultSource(str, Enum):
    """Źródło danych w LookupResult."""

    OFFICIAL_REGISTRY = "official_registry"
    VAT_WHITELIST = "vat_whitelist"
    MANUAL = "manual"


class _CamelModel(BaseModel):
    """Serializacja w camelCase (format oczekiwany przez frontend), wejście w obu formach."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class ValidationResult(BaseModel):
    """Wynik walidacji NIP."""

    valid: bool = Field(..., description="Czy NIP jest poprawny")
    normalized: Optional[str] = Field(None, description="NIP - tylko cyfry (10 znaków)")
    reason: Optional[str] = Field(None, description="Powód odrzucenia")

    @model_validator(mode="after")
    def check_consistency(self):
        if self.valid and (self.normalized is None or self.reason is not None):
            raise ValueError("valid result requires normalized NIP and no reason")
        if not self.valid and self.normalized is not None:
            raise ValueError("invalid result cannot carry a normalized NIP")
        return self


class Address(_CamelModel):
    """Adres siedziby."""

    street: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: str = "PL"


class LookupResult(_CamelModel):
    """Dane firmy rozwiązane po NIP."""

    nip: str = Field(..., description="NIP (10 cyfr)")
    name: Optional[str] = Field(None, description="Pełna nazwa z rejestru")
    regon: Optional[str] = Field(None, description="Numer REGON")
    krs: Optional[str] = Field(None, description="Numer KRS")
    address: Address = Field(default_factory=Address)
    vat_status: Optional[VatStatus] = Field(None, description="Status VAT")
    source: ResultSource = Field(..., description="Dostawca, który zwrócił wynik")
    requires_manual_entry: bool = Field(
        False, description="Wynik zastępczy - dane musi uzupełnić użytkownik"
    )

    @model_validator(mode="after")
    def check_placeholder(self):
        identifiers = (self.name, self.regon, self.krs)
        if self.requires_manual_entry and any(v is not None for v in identifiers):
            raise ValueError("manual-entry placeholder cannot carry name, regon or krs")
        return self

    def to_json(self) -> str:
        """Serializacja do cache / API (camelCase)."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "LookupResult":
        return cls.model_validate_json(raw)


class ProviderStatus(BaseModel):
    """Stan dostawcy - diagnostyka / health check."""

    name: str
    priority: int
    available: bool
