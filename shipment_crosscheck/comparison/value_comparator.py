"""
Value Comparator

Decides whether the values one field takes across several documents agree.

    analyze(["098-80828764", "098-80828764"], ComparisonType.EXACT)
        -> ValueAnalysis(True, EXACT_MATCH, "All documents have the same value: ...")

    analyze([37.0, 37.3], ComparisonType.WEIGHT, tolerance=0.5)
        -> ValueAnalysis(True, ACCEPTABLE_VARIANCE, "Values within acceptable tolerance ...")

Conventions:
- No values at all is MISSING_DATA (inconsistent).
- A single value is an EXACT_MATCH (nothing to disagree with).
- A value that cannot be read as a number under a numeric comparison is a
  MAJOR_DISCREPANCY, never an exception.
- Weights are compared in kilograms ("82 lbs" is 37.19). A bare number is
  taken to be kilograms.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from itertools import combinations
from typing import Any, Callable, Dict, List, Optional, Sequence

from loguru import logger
from rapidfuzz.distance import Levenshtein

from ..parser.field_mapper import ComparisonType
from ..parser.normalizers import NumberNormalizer, TextNormalizer, UnitNormalizer


class DiscrepancyType(Enum):
    """Outcome of comparing one field's values."""
    EXACT_MATCH = 'exact_match'
    ACCEPTABLE_VARIANCE = 'acceptable_variance'
    MAJOR_DISCREPANCY = 'major_discrepancy'
    MISSING_DATA = 'missing_data'


@dataclass(frozen=True)
class ValueAnalysis:
    """Verdict for one field."""
    is_consistent: bool
    discrepancy_type: DiscrepancyType
    explanation: str


def text_similarity(a: Any, b: Any) -> float:
    """
    Normalized Levenshtein similarity of two values.

    similarity = (longer_len - edit_distance) / longer_len, computed on the
    trimmed, lower-cased text. Two empty strings are identical (1.0).
    """
    left = TextNormalizer.for_comparison(a)
    right = TextNormalizer.for_comparison(b)
    longer = max(len(left), len(right))
    if longer == 0:
        return 1.0
    distance = Levenshtein.distance(left, right)
    return (longer - distance) / longer


def format_number(value: float) -> str:
    """Format a number without a trailing '.0' for integers."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def _distinct(values: Sequence[str]) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def _analyze_exact(values: Sequence[Any], **_: Any) -> ValueAnalysis:
    distinct = _distinct([str(v).strip() for v in values])
    if len(distinct) == 1:
        return ValueAnalysis(
            True,
            DiscrepancyType.EXACT_MATCH,
            f"All documents have the same value: {distinct[0]}",
        )
    return ValueAnalysis(
        False,
        DiscrepancyType.MAJOR_DISCREPANCY,
        f"Different values found: {', '.join(distinct)}",
    )


def _analyze_numeric(
    values: Sequence[Any],
    tolerance: Optional[float] = None,
    **_: Any,
) -> ValueAnalysis:
    normalizer = NumberNormalizer()
    numbers = [normalizer.normalize(v) for v in values]
    if any(n is None for n in numbers):
        bad = [str(v) for v, n in zip(values, numbers) if n is None]
        logger.warning(f"Non-numeric values in numeric comparison: {bad}")
        return ValueAnalysis(
            False,
            DiscrepancyType.MAJOR_DISCREPANCY,
            f"Some values are not numeric: {', '.join(bad)}",
        )

    tolerance = tolerance or 0.0
    low, high = min(numbers), max(numbers)
    spread = high - low

    if spread == 0:
        return ValueAnalysis(
            True,
            DiscrepancyType.EXACT_MATCH,
            f"All documents have the same value: {format_number(low)}",
        )
    # Round the spread so 37.3 - 37.0 does not fail a 0.3 tolerance on float noise
    if round(spread, 9) <= tolerance:
        return ValueAnalysis(
            True,
            DiscrepancyType.ACCEPTABLE_VARIANCE,
            f"Values within acceptable tolerance (±{format_number(tolerance)}): "
            f"{format_number(low)} - {format_number(high)}",
        )
    return ValueAnalysis(
        False,
        DiscrepancyType.MAJOR_DISCREPANCY,
        f"Values exceed tolerance (±{format_number(tolerance)}): "
        f"{format_number(low)} - {format_number(high)}",
    )


def _analyze_weight(
    values: Sequence[Any],
    tolerance: Optional[float] = None,
    **_: Any,
) -> ValueAnalysis:
    kilograms = [UnitNormalizer.to_kilograms(v) for v in values]
    # Unreadable values pass through so the numeric check reports them
    return _analyze_numeric(
        [kg if kg is not None else v for kg, v in zip(kilograms, values)],
        tolerance=tolerance,
    )


def _analyze_text(
    values: Sequence[Any],
    similarity_threshold: float = 0.8,
    **_: Any,
) -> ValueAnalysis:
    normalized = [TextNormalizer.for_comparison(v) for v in values]
    if len(set(normalized)) == 1:
        return ValueAnalysis(
            True,
            DiscrepancyType.EXACT_MATCH,
            f"All documents have the same value: {str(values[0]).strip()}",
        )

    scores = [text_similarity(a, b) for a, b in combinations(normalized, 2)]
    average = sum(scores) / len(scores)
    if average > similarity_threshold:
        return ValueAnalysis(
            True,
            DiscrepancyType.ACCEPTABLE_VARIANCE,
            f"Text values are similar ({average:.0%} similarity)",
        )
    distinct = _distinct([str(v).strip() for v in values])
    return ValueAnalysis(
        False,
        DiscrepancyType.MAJOR_DISCREPANCY,
        f"Text values are significantly different ({average:.0%} similarity): "
        f"{', '.join(distinct)}",
    )


_ANALYZERS: Dict[ComparisonType, Callable[..., ValueAnalysis]] = {
    ComparisonType.EXACT: _analyze_exact,
    ComparisonType.NUMERIC: _analyze_numeric,
    ComparisonType.WEIGHT: _analyze_weight,
    ComparisonType.TEXT_SIMILARITY: _analyze_text,
}


def analyze(
    values: Sequence[Any],
    comparison_type: ComparisonType,
    tolerance: Optional[float] = None,
    similarity_threshold: float = 0.8,
) -> ValueAnalysis:
    """
    Compare the values a field takes across documents.

    Args:
        values: Bare values, one per contributing document
        comparison_type: How to compare them
        tolerance: Allowed spread for numeric and weight comparisons
        similarity_threshold: Average similarity a text comparison must exceed

    Returns:
        ValueAnalysis with consistency verdict and explanation
    """
    analyzer = _ANALYZERS.get(comparison_type)
    if analyzer is None:
        raise ValueError(f"Unsupported comparison type: {comparison_type}")

    if len(values) == 0:
        return ValueAnalysis(False, DiscrepancyType.MISSING_DATA, "Field not found in any document")
    if len(values) == 1:
        return ValueAnalysis(True, DiscrepancyType.EXACT_MATCH, "Field found in only one document")

    return analyzer(values, tolerance=tolerance, similarity_threshold=similarity_threshold)
