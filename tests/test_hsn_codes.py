"""
Tests for HSN code validation and mapping
"""

import pytest

from shipment_crosscheck.validation.hsn_codes import (
    CodeLevel,
    HSNCodeValidator,
    HSNDiscrepancy,
    extract_product_keywords,
    map_codes,
    product_category,
    validate_code,
)


class TestValidateCode:
    """Tests for single-code validation."""

    def setup_method(self):
        self.validator = HSNCodeValidator()

    def test_known_heading(self):
        result = self.validator.validate_code("8471.30.10")
        assert result.is_valid
        assert result.standardized_code == "84713010"
        assert result.code_level == CodeLevel.TARIFF
        assert result.confidence == pytest.approx(0.9)
        assert result.product_category.startswith("Machinery")
        assert "This appears to be: Automatic data processing machines" in result.suggestions

    def test_subheading(self):
        result = self.validator.validate_code("950300")
        assert result.is_valid
        assert result.code_level == CodeLevel.SUBHEADING

    def test_too_short(self):
        result = self.validator.validate_code("8471")
        assert not result.is_valid
        assert result.standardized_code is None
        assert result.code_level == CodeLevel.HEADING
        assert "HSN code too short (4 digits, minimum 6)" in result.issues

    def test_too_long(self):
        result = self.validator.validate_code("84713010123")
        assert not result.is_valid
        assert "HSN code too long (11 digits, maximum 10)" in result.issues

    def test_invalid_chapter(self):
        result = self.validator.validate_code("99123456")
        assert not result.is_valid
        assert result.confidence == pytest.approx(0.3)
        assert "Invalid chapter code: 99 (should be 01-97)" in result.issues

    def test_placeholder(self):
        result = self.validator.validate_code("84000000")
        assert not result.is_valid
        assert result.confidence == pytest.approx(0.1)
        assert "HSN code appears to be placeholder zeros" in result.issues

    def test_empty(self):
        result = validate_code("  ")
        assert not result.is_valid
        assert result.confidence == 0.0
        assert result.code_level == CodeLevel.INVALID


class TestMapCodes:
    """Tests for commercial vs customs code comparison."""

    def setup_method(self):
        self.validator = HSNCodeValidator()

    def test_exact(self):
        result = self.validator.map_codes("84713010", "8471 30 10")
        assert result.is_consistent
        assert result.discrepancy_type == HSNDiscrepancy.NONE
        assert result.explanation == "Exact HSN code match: 84713010"

    def test_subheading_level(self):
        result = self.validator.map_codes("84713010", "84713090")
        assert result.is_consistent
        assert result.discrepancy_type == HSNDiscrepancy.LEVEL_DIFFERENCE
        assert result.mapping_confidence == pytest.approx(0.9 * 0.9 * 0.95)

    def test_heading_level(self):
        result = self.validator.map_codes("84713010", "84714100")
        assert result.is_consistent
        assert "heading level (4 digits)" in result.explanation

    def test_chapter_level(self):
        result = self.validator.map_codes("84713010", "84099100")
        assert not result.is_consistent
        assert result.discrepancy_type == HSNDiscrepancy.CATEGORY_DIFFERENCE
        assert "Manual review recommended to ensure correct classification" in result.recommendations

    def test_major_mismatch(self):
        result = map_codes("84713010", "61091000", "Laptop computer")
        assert not result.is_consistent
        assert result.discrepancy_type == HSNDiscrepancy.MAJOR_MISMATCH
        assert result.recommendations[-1] == (
            "Product description contains: electronic - verify HSN classification matches"
        )

    def test_only_commercial(self):
        result = self.validator.map_codes("84713010", None)
        assert not result.is_consistent
        assert result.customs_code is None
        assert result.explanation == "HSN code only found in commercial document"
        assert result.mapping_confidence == pytest.approx(0.45)

    def test_neither(self):
        result = self.validator.map_codes(None, "")
        assert result.mapping_confidence == 0.1
        assert result.explanation == "No HSN codes found in either document"


class TestSuggestions:
    """Tests for description-based hints."""

    def setup_method(self):
        self.validator = HSNCodeValidator()

    def test_keywords(self):
        assert extract_product_keywords("Laptop computer") == ['electronic']
        assert extract_product_keywords(None) == []

    def test_suggest_codes(self):
        suggestions, reasoning = self.validator.suggest_codes("Steel bolts")
        assert [s.code for s in suggestions] == ['7326', '7318']
        assert reasoning == ["Product appears to be metal goods"]

    def test_no_suggestions(self):
        suggestions, reasoning = self.validator.suggest_codes("Handmade pottery")
        assert suggestions == []
        assert len(reasoning) == 2

    def test_product_category(self):
        assert product_category("6109") == 'Textiles and textile articles'
        assert product_category("9") is None
