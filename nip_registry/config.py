"""
Konfiguracja NIP Registry.
Używa pydantic-settings dla walidacji i typowania.
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NIPRegistrySettings(BaseSettings):
    """Konfiguracja wyszukiwania danych firm po NIP."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================
    # Environment
    # ============================================

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Środowisko uruchomieniowe (production blokuje testowe NIP-y)",
        validation_alias=AliasChoices("environment", "node_env"),
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("environment", mode="before")
    @classmethod
    def normalize_environment(cls, value):
        """NODE_ENV bywa np. "test" - wszystko poza staging/production to development."""
        if isinstance(value, str):
            value = value.strip().lower()
            if value in ("staging", "production"):
                return value
        return "development"

    # ============================================
    # GUS BIR 1.1
    # ============================================

    enable_gus: bool = Field(
        default=True,
        description="Włącz dostawcę GUS BIR (wymaga klucza)"
    )
    gus_api_key: str = Field(
        default="",
        description="Klucz użytkownika GUS BIR",
        validation_alias=AliasChoices(
            "gus_api_key", "regon_api_key_token", "bir1_gus_api_key", "gus_bir1_api_key"
        ),
    )
    gus_use_test: bool = Field(
        default=False,
        description="Użyj środowiska testowego GUS (klucz publiczny)",
        validation_alias=AliasChoices("gus_use_test", "gus_use_test_api"),
    )
    gus_session_ttl_minutes: int = Field(
        default=55,
        description="Czas życia sesji GUS (upstream ~60 min, zostawiamy margines)"
    )
    gus_login_timeout_sec: float = Field(default=10.0, description="Timeout logowania GUS")
    gus_search_timeout_sec: float = Field(default=15.0, description="Timeout wyszukiwania GUS")

    # ============================================
    # Biała Lista VAT (Ministerstwo Finansów)
    # ============================================

    enable_vat_whitelist: bool = Field(
        default=False,
        description="Włącz dostawcę Białej Listy VAT"
    )
    vat_whitelist_api_url: str = Field(
        default="https://wl-api.mf.gov.pl/api/search/nip/{nip}",
        description="URL API Białej Listy VAT"
    )
    vat_whitelist_timeout_sec: float = Field(default=15.0, description="Timeout Białej Listy")

    # ============================================
    # Cache
    # ============================================

    enable_cache: bool = Field(default=True, description="Włącz cache wyników")
    cache_backend: Literal["memory", "sqlite"] = Field(
        default="memory",
        description="Backend cache: pamięć procesu lub SQLite"
    )
    cache_db_path: str = Field(
        default="nip_registry/cache.db",
        description="Ścieżka do bazy SQLite cache"
    )
    cache_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        description="Czas życia wpisu cache w sekundach"
    )

    @model_validator(mode="after")
    def drop_placeholder_keys(self):
        """Wartości typu 'your-...' z .env.example traktujemy jak brak klucza."""
        if self.gus_api_key.startswith("your-"):
            self.gus_api_key = ""
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def has_gus_credentials(self) -> bool:
        """Czy mamy klucz do GUS (produkcyjny lub testowy)."""
        return bool(self.gus_api_key) or self.gus_use_test


@lru_cache
def get_settings() -> NIPRegistrySettings:
    """Ustawienia cachowane przy pierwszym wywołaniu."""
    return NIPRegistrySettings()
