"""Tests for the vehicle registration code lookup."""

import pytest

from location_registry.vehicle_codes import (
    COUNTRY_CODES,
    all_country_codes,
    get_vehicle_code,
    is_valid_vehicle_code,
)


class TestGetVehicleCode:
    @pytest.mark.parametrize(
        "country,code",
        [
            ("Germany", "D"),
            ("  DEUTSCHLAND ", "D"),
            ("Österreich", "A"),
            ("Switzerland", "CH"),
            ("United Kingdom", "GB"),
            ("usa", "USA"),
            ("Türkiye", "TR"),
        ],
    )
    def test_direct_lookup(self, country, code):
        assert get_vehicle_code(country) == code

    def test_partial_match(self):
        assert get_vehicle_code("Federal Republic of Germany") == "D"

    def test_unknown(self):
        assert get_vehicle_code("Atlantis") is None

    def test_empty(self):
        assert get_vehicle_code("") is None
        assert get_vehicle_code("   ") is None
        assert get_vehicle_code(None) is None


class TestAllCountryCodes:
    def test_one_entry_per_code(self):
        entries = all_country_codes()
        codes = [e["code"] for e in entries]
        assert len(codes) == len(set(codes))
        assert set(codes) == set(COUNTRY_CODES.values())

    def test_first_listed_country_capitalised(self):
        entries = {e["code"]: e["country"] for e in all_country_codes()}
        assert entries["D"] == "Germany"
        assert entries["USA"] == "United states"

    def test_sorted_by_country(self):
        names = [e["country"] for e in all_country_codes()]
        assert names == sorted(names)


class TestIsValidVehicleCode:
    def test_valid(self):
        assert is_valid_vehicle_code("D")
        assert is_valid_vehicle_code("usa")

    def test_invalid(self):
        assert not is_valid_vehicle_code("XX")
        assert not is_valid_vehicle_code("")
        assert not is_valid_vehicle_code(None)
