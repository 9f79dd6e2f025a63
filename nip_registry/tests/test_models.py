"""
Testy modeli (inwarianty, serializacja camelCase).
"""

import json

import pytest
from pydantic import ValidationError

from nip_registry.models import Address, LookupResult, ResultSource, ValidationResult

from .fakes import make_result


class TestValidationResult:
    def test_valid_requires_normalized(self):
        with pytest.raises(ValidationError):
            ValidationResult(valid=True)

    def test_valid_cannot_carry_reason(self):
        with pytest.raises(ValidationError):
            ValidationResult(valid=True, normalized="5260250995", reason="x")

    def test_invalid_cannot_carry_normalized(self):
        with pytest.raises(ValidationError):
            ValidationResult(valid=False, normalized="5260250995", reason="x")


class TestLookupResult:
    def test_address_defaults(self):
        result = LookupResult(nip="5260250995", source=ResultSource.MANUAL, requires_manual_entry=True)

        assert result.address == Address()
        assert result.address.country == "PL"

    def test_placeholder_cannot_carry_identifiers(self):
        with pytest.raises(ValidationError):
            LookupResult(
                nip="5260250995",
                name="MEDIDESK",
                source=ResultSource.MANUAL,
                requires_manual_entry=True,
            )

    def test_json_uses_camel_case(self):
        data = json.loads(make_result().to_json())

        assert data["vatStatus"] == "active"
        assert data["requiresManualEntry"] is False
        assert data["address"]["postalCode"] == "50-001"
        assert data["source"] == "official_registry"

    def test_json_round_trip(self):
        result = make_result(krs=None, vat_status=None)

        assert LookupResult.from_json(result.to_json()).model_dump() == result.model_dump()

    def test_accepts_snake_case_input(self):
        result = LookupResult.model_validate(
            {"nip": "5260250995", "source": "vat_whitelist", "vat_status": "exempt"}
        )

        assert result.vat_status == "exempt"
        assert result.source == ResultSource.VAT_WHITELIST
