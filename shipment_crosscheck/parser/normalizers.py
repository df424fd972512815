"""
Normalizers Module

This module turns extracted values into forms that can be compared.
Normalization is the bridge between what each document's extractor produced
and the comparison and rule layers.

What normalization does:
- Numbers → float ("37.000KGS" → 37.0, "1.234,56" → 1234.56)
- Dates → date objects, day-first ("05/03/2024" is 5 March)
- Text → trimmed, lower-cased, whitespace collapsed
- Weights → kilograms for cross-document comparison
- Units → counting families (CTN, CARTON, CARTONS → carton)

Why this matters:
The same shipment is described by an invoice, a waybill and a bill of entry
written by different parties. "37 KGS", "37.000" and "37,0" are the same
gross weight; "R.A. LABONE & CO LTD" and "r.a. labone & co ltd " are the same
shipper.
"""

import re
from datetime import date, datetime
from typing import Any, Optional, Union

from dateutil import parser as date_parser
from loguru import logger

# Digits with thousands/decimal separators, starting and ending on a digit
NUMBER_TOKEN = re.compile(r'-?\d(?:[\d., ]*\d)?')

# Trailing unit word of a value such as "82 lbs" or "37.000KGS"
TRAILING_UNIT = re.compile(r'([A-Za-z]+)\.?\s*$')


class TextNormalizer:
    """Normalizes text values."""

    @staticmethod
    def normalize_whitespace(text: str) -> str:
        """
        Normalize whitespace in text.

        - Collapse runs of whitespace (including newlines) to a single space
        - Strip leading/trailing whitespace
        """
        if not text:
            return ""
        return re.sub(r'\s+', ' ', str(text)).strip()

    @staticmethod
    def for_comparison(value: Any) -> str:
        """Trim and lower-case a value for text comparison."""
        if value is None:
            return ""
        return TextNormalizer.normalize_whitespace(str(value)).lower()

    @staticmethod
    def digits_only(value: Any) -> str:
        """Keep only the digits of a value (HSN codes, phone numbers)."""
        if value is None:
            return ""
        return re.sub(r'\D', '', str(value))


class DateNormalizer:
    """Normalizes date values, day-first."""

    def __init__(self, formats: Optional[list[str]] = None):
        """
        Initialize date normalizer.

        Args:
            formats: List of input date formats to try (in order of priority)
        """
        # Trade documents in this domain are written day-first
        self.formats = formats or [
            "%Y-%m-%d",
            "%d/%m/%Y",
            "%d-%m-%Y",
            "%d.%m.%Y",
            "%d-%b-%Y",
            "%d %b %Y",
            "%d %B %Y",
            "%b %d, %Y",
            "%B %d, %Y",
            "%Y/%m/%d",
            "%d/%m/%y",
            "%d-%b-%y",
            "%d%b%Y",
            "%Y%m%d",
        ]

    def parse(self, value: Any) -> Optional[date]:
        """
        Parse a date value.

        Args:
            value: date, datetime or date string

        Returns:
            Parsed date or None if parsing fails
        """
        if value is None or value == '':
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value

        text = str(value).strip()

        # Try each format
        for fmt in self.formats:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue

        # Try dateutil as fallback
        try:
            return date_parser.parse(text, dayfirst=True, fuzzy=True).date()
        except (ValueError, OverflowError):
            pass

        logger.warning(f"Could not parse date: {text}")
        return None

    def normalize(self, value: Any, output_format: str = "%Y-%m-%d") -> Optional[str]:
        """Normalize a date to a formatted string (ISO by default)."""
        parsed = self.parse(value)
        return parsed.strftime(output_format) if parsed else None


class CurrencyNormalizer:
    """Normalizes currency codes and number separators."""

    SYMBOL_TO_CODE = {
        '$': 'USD',
        '€': 'EUR',
        '£': 'GBP',
        '¥': 'JPY',
        '₹': 'INR',
        'Rs': 'INR',
    }

    def extract_currency_code(self, value: Any) -> Optional[str]:
        """
        Extract currency code from a value string.

        Returns 3-letter ISO currency code if found.
        """
        if value is None:
            return None
        text = str(value).strip()
        match = re.search(r'\b([A-Za-z]{3})\b', text)
        if match:
            return match.group(1).upper()
        for symbol, code in self.SYMBOL_TO_CODE.items():
            if symbol in text:
                return code
        return None

    @staticmethod
    def normalize_number_format(value: str) -> str:
        """
        Handle different thousand/decimal separator conventions.

        - US/UK: 1,234.56 (comma=thousands, dot=decimal)
        - Europe: 1.234,56 (dot=thousands, comma=decimal)
        - Some: 1 234,56 (space=thousands, comma=decimal)
        """
        # Remove spaces (space as thousands separator)
        value = value.replace(' ', '')

        dots = value.count('.')
        commas = value.count(',')

        if dots == 0 and commas == 0:
            return value

        if dots == 1 and commas == 0:
            # Single dot - decimal separator (37.000 is 37.0, not 37000)
            return value

        if commas == 1 and dots == 0:
            # Single comma - decimal (123,45) or thousands (1,234)
            after_comma = len(value) - value.index(',') - 1
            if after_comma <= 2:
                return value.replace(',', '.')
            return value.replace(',', '')

        if dots > 0 and commas > 0:
            if value.rfind(',') > value.rfind('.'):
                # European format (1.234,56)
                return value.replace('.', '').replace(',', '.')
            # US format (1,234.56)
            return value.replace(',', '')

        if dots > 1:
            return value.replace('.', '')

        if commas > 1:
            return value.replace(',', '')

        return value


class NumberNormalizer:
    """Normalizes numeric values."""

    def normalize(
        self,
        value: Any,
        decimal_places: Optional[int] = None,
        as_integer: bool = False,
    ) -> Optional[Union[int, float]]:
        """
        Normalize a number value.

        Args:
            value: Number or number string ("37.000KGS", "USD 1,234.50")
            decimal_places: Round to this many decimals (None = keep original)
            as_integer: Force conversion to integer

        Returns:
            Normalized number or None
        """
        if value is None or isinstance(value, bool):
            return None

        if isinstance(value, (int, float)):
            result = float(value)
        else:
            text = str(value).strip()
            if not text:
                return None

            # First numeric token; "Rs. 1,000" and "Approx. 37 kg" carry dots that are not decimals
            match = NUMBER_TOKEN.search(text)
            if not match:
                logger.warning(f"Could not parse number: {text}")
                return None

            cleaned = CurrencyNormalizer.normalize_number_format(match.group(0))
            try:
                result = float(cleaned)
            except ValueError:
                logger.warning(f"Could not parse number: {text}")
                return None

        if result != result or result in (float('inf'), float('-inf')):
            logger.warning(f"Ignoring non-finite number: {value}")
            return None

        if as_integer:
            return int(result)
        if decimal_places is not None:
            result = round(result, decimal_places)
        return result


class UnitNormalizer:
    """Maps weight and package units onto canonical forms."""

    WEIGHT_TO_KG = {
        'kg': 1.0,
        'kgs': 1.0,
        'kilo': 1.0,
        'kilos': 1.0,
        'kilogram': 1.0,
        'kilograms': 1.0,
        'g': 0.001,
        'gm': 0.001,
        'gms': 0.001,
        'gram': 0.001,
        'grams': 0.001,
        'lb': 0.45359237,
        'lbs': 0.45359237,
        'pound': 0.45359237,
        'pounds': 0.45359237,
        't': 1000.0,
        'mt': 1000.0,
        'ton': 1000.0,
        'tonne': 1000.0,
    }

    PACKAGE_FAMILIES = {
        'package': ('pkg', 'pkgs', 'package', 'packages', 'pk', 'pcs pkg', 'colli', 'pieces pkg'),
        'carton': ('ctn', 'ctns', 'carton', 'cartons', 'box', 'boxes', 'bx', 'cs', 'case', 'cases'),
        'piece': ('pc', 'pcs', 'piece', 'pieces', 'nos', 'no', 'unit', 'units', 'ea', 'each'),
        'pallet': ('plt', 'plts', 'pallet', 'pallets', 'skid', 'skids'),
    }

    @classmethod
    def package_family(cls, unit: Any) -> Optional[str]:
        """Get the counting family of a package unit, None if unknown."""
        key = TextNormalizer.for_comparison(unit).rstrip('.')
        if not key:
            return None
        for family, aliases in cls.PACKAGE_FAMILIES.items():
            if key in aliases:
                return family
        return None

    @classmethod
    def weight_unit(cls, value: Any, unit: Any = None) -> Optional[str]:
        """
        Get the weight unit of a value, None if unknown.

        An explicit unit wins; otherwise the unit written after the number
        ("82 lbs") is used.
        """
        if unit is None or not str(unit).strip():
            match = TRAILING_UNIT.search(str(value)) if isinstance(value, str) else None
            unit = match.group(1) if match else None
        key = TextNormalizer.for_comparison(unit).rstrip('.')
        return key if key in cls.WEIGHT_TO_KG else None

    @classmethod
    def to_kilograms(cls, value: Any, unit: Any = None) -> Optional[float]:
        """
        Convert a weight to kilograms.

        Unknown or missing units are assumed to be kilograms.
        """
        number = NumberNormalizer().normalize(value)
        if number is None:
            return None
        key = cls.weight_unit(value, unit)
        factor = cls.WEIGHT_TO_KG[key] if key else 1.0
        return number * factor


def normalize_number(value: Any) -> Optional[float]:
    """Normalize a number."""
    return NumberNormalizer().normalize(value)


def normalize_date(value: Any) -> Optional[date]:
    """Parse a date, day-first."""
    return DateNormalizer().parse(value)


def normalize_text(value: Any) -> str:
    """Normalize text for comparison."""
    return TextNormalizer.for_comparison(value)
