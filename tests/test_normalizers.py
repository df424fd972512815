"""
Tests for value normalizers

Run with: pytest tests/ -v
"""

from datetime import date, datetime

import pytest

from shipment_crosscheck.parser.normalizers import (
    CurrencyNormalizer,
    DateNormalizer,
    NumberNormalizer,
    TextNormalizer,
    UnitNormalizer,
)


class TestDateNormalizer:
    """Tests for date normalization."""

    def setup_method(self):
        self.normalizer = DateNormalizer()

    def test_iso_format(self):
        assert self.normalizer.normalize("2024-01-15") == "2024-01-15"

    def test_day_first(self):
        assert self.normalizer.normalize("05/01/2024") == "2024-01-05"

    def test_month_name(self):
        assert self.normalizer.normalize("15-Jan-2024") == "2024-01-15"

    def test_long_format(self):
        assert self.normalizer.normalize("January 15, 2024") == "2024-01-15"

    def test_date_objects(self):
        assert self.normalizer.parse(date(2024, 1, 15)) == date(2024, 1, 15)
        assert self.normalizer.parse(datetime(2024, 1, 15, 9, 30)) == date(2024, 1, 15)

    def test_invalid_date(self):
        assert self.normalizer.normalize("not a date") is None

    def test_empty_input(self):
        assert self.normalizer.normalize("") is None
        assert self.normalizer.normalize(None) is None


class TestNumberNormalizer:
    """Tests for number normalization."""

    def setup_method(self):
        self.normalizer = NumberNormalizer()

    def test_numbers_pass_through(self):
        assert self.normalizer.normalize(37) == 37.0
        assert self.normalizer.normalize(37.3) == 37.3

    def test_weight_with_unit(self):
        assert self.normalizer.normalize("37.000KGS") == 37.0

    def test_currency_amount(self):
        assert self.normalizer.normalize("USD 1,234.50") == 1234.5

    def test_european_format(self):
        assert self.normalizer.normalize("1.234,56") == 1234.56

    def test_as_integer(self):
        assert self.normalizer.normalize("3 CTNS", as_integer=True) == 3

    def test_not_a_number(self):
        assert self.normalizer.normalize("three") is None

    def test_bool_and_none(self):
        assert self.normalizer.normalize(True) is None
        assert self.normalizer.normalize(None) is None

    def test_non_finite(self):
        assert self.normalizer.normalize(float('nan')) is None
        assert self.normalizer.normalize(float('inf')) is None

    def test_abbreviation_before_number(self):
        assert self.normalizer.normalize("Rs. 1,000") == 1000.0
        assert self.normalizer.normalize("Approx. 37 kg") == 37.0

    def test_indian_grouping(self):
        assert self.normalizer.normalize("INR 1,23,456.00") == 123456.0

    def test_negative(self):
        assert self.normalizer.normalize("-12.5") == -12.5


class TestCurrencyNormalizer:
    """Tests for currency code extraction."""

    def setup_method(self):
        self.normalizer = CurrencyNormalizer()

    def test_code(self):
        assert self.normalizer.extract_currency_code("usd") == "USD"

    def test_symbol(self):
        assert self.normalizer.extract_currency_code("₹ 5,000") == "INR"

    def test_nothing(self):
        assert self.normalizer.extract_currency_code("5000") is None


class TestTextNormalizer:
    """Tests for text normalization."""

    def test_whitespace_normalization(self):
        assert TextNormalizer.normalize_whitespace("  Acme \n Electronics  ") == "Acme Electronics"

    def test_for_comparison(self):
        assert TextNormalizer.for_comparison("  ACME  Ltd ") == "acme ltd"
        assert TextNormalizer.for_comparison(None) == ""

    def test_digits_only(self):
        assert TextNormalizer.digits_only("8471.30.10") == "84713010"


class TestUnitNormalizer:
    """Tests for unit handling."""

    def test_package_family(self):
        assert UnitNormalizer.package_family("CTNS") == "carton"
        assert UnitNormalizer.package_family("Pcs.") == "piece"
        assert UnitNormalizer.package_family("bags") is None
        assert UnitNormalizer.package_family(None) is None

    def test_to_kilograms(self):
        assert UnitNormalizer.to_kilograms(37, "KG") == 37.0
        assert UnitNormalizer.to_kilograms(500, "g") == pytest.approx(0.5)
        assert UnitNormalizer.to_kilograms("2", "MT") == 2000.0

    def test_unknown_unit_is_kilograms(self):
        assert UnitNormalizer.to_kilograms(12.5, None) == 12.5

    def test_unit_written_after_number(self):
        assert UnitNormalizer.to_kilograms("82 lbs") == pytest.approx(37.195, abs=0.001)
        assert UnitNormalizer.to_kilograms("37.000KGS") == 37.0
        assert UnitNormalizer.to_kilograms("Approx. 37 kg") == 37.0

    def test_explicit_unit_wins(self):
        assert UnitNormalizer.to_kilograms("82", "LBS") == pytest.approx(37.195, abs=0.001)
        assert UnitNormalizer.to_kilograms("82 lbs", "KG") == 82.0

    def test_weight_unit(self):
        assert UnitNormalizer.weight_unit("82 lbs") == "lbs"
        assert UnitNormalizer.weight_unit(37.0, "KGS") == "kgs"
        assert UnitNormalizer.weight_unit(37.0, " ") is None
        assert UnitNormalizer.weight_unit("37 bags") is None
        assert UnitNormalizer.weight_unit(37.0) is None
