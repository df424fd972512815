"""
HSN Code Validation

Checks Harmonized System Nomenclature codes for structural validity and
compares the classification a commercial invoice declares with the one the
customs bill of entry assessed.

HSN structure:
    84 71 30 10
    │  │  │  └─ tariff item (8+ digits, national)
    │  │  └──── subheading (6 digits, international)
    │  └─────── heading (4 digits)
    └────────── chapter (2 digits, 01-97)

Two codes that share a subheading describe substantially the same goods.
Codes from different chapters point to a classification error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from ..parser.normalizers import TextNormalizer


class CodeLevel(Enum):
    """Classification granularity of an HSN code."""
    CHAPTER = 'chapter'
    HEADING = 'heading'
    SUBHEADING = 'subheading'
    TARIFF = 'tariff'
    INVALID = 'invalid'

    @classmethod
    def for_length(cls, length: int) -> 'CodeLevel':
        if length >= 8:
            return cls.TARIFF
        if length >= 6:
            return cls.SUBHEADING
        if length >= 4:
            return cls.HEADING
        if length >= 2:
            return cls.CHAPTER
        return cls.INVALID


class HSNDiscrepancy(Enum):
    """How two HSN codes differ."""
    NONE = 'none'
    LEVEL_DIFFERENCE = 'level_difference'
    CATEGORY_DIFFERENCE = 'category_difference'
    MAJOR_MISMATCH = 'major_mismatch'


# Chapter ranges (inclusive) to broad product sections
CHAPTER_CATEGORIES: Tuple[Tuple[int, int, str], ...] = (
    (1, 5, 'Live animals and animal products'),
    (6, 14, 'Vegetable products'),
    (15, 15, 'Animal or vegetable fats and oils'),
    (16, 24, 'Prepared foodstuffs, beverages, spirits, vinegar, tobacco'),
    (25, 27, 'Mineral products'),
    (28, 38, 'Products of chemical or allied industries'),
    (39, 40, 'Plastics and rubber'),
    (41, 43, 'Raw hides, skins, leather, furskins'),
    (44, 46, 'Wood and articles of wood, cork, basketware'),
    (47, 49, 'Pulp, paper, paperboard and articles thereof'),
    (50, 63, 'Textiles and textile articles'),
    (64, 67, 'Footwear, headgear, umbrellas, walking sticks'),
    (68, 70, 'Articles of stone, plaster, cement, asbestos, mica, glass'),
    (71, 71, 'Natural or cultured pearls, precious stones, metals, coins'),
    (72, 83, 'Base metals and articles of base metal'),
    (84, 85, 'Machinery, mechanical appliances, electrical equipment'),
    (86, 89, 'Vehicles, aircraft, vessels and transport equipment'),
    (90, 92, 'Optical, photographic, measuring and musical instruments'),
    (93, 93, 'Arms and ammunition'),
    (94, 96, 'Miscellaneous manufactured articles'),
    (97, 97, 'Works of art, collectors pieces and antiques'),
)

# Frequently seen headings
KNOWN_HEADINGS: Dict[str, str] = {
    '8471': 'Automatic data processing machines',
    '8517': 'Telephone sets, other apparatus for transmission',
    '8528': 'Monitors and projectors',
    '8544': 'Insulated wire, cable and other conductors',
    '8708': 'Parts and accessories of motor vehicles',
    '8409': 'Parts for internal combustion engines',
    '4011': 'New pneumatic tyres',
    '6109': 'T-shirts, singlets and other vests, knitted',
    '6203': "Men's suits, ensembles, jackets, trousers",
    '5208': 'Woven fabrics of cotton',
    '3204': 'Synthetic organic colouring matter',
    '3808': 'Insecticides, rodenticides, fungicides',
    '3926': 'Other articles of plastics',
    '7326': 'Other articles of iron or steel',
    '7318': 'Screws, bolts, nuts, washers',
    '7323': 'Table, kitchen or other household articles of iron or steel',
}

PRODUCT_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    'electronic': ('electronic', 'digital', 'computer', 'software', 'circuit'),
    'textile': ('fabric', 'cloth', 'cotton', 'polyester', 'yarn', 'garment'),
    'metal': ('steel', 'iron', 'aluminum', 'aluminium', 'brass', 'copper', 'alloy'),
    'plastic': ('plastic', 'polymer', 'synthetic', 'resin'),
    'chemical': ('chemical', 'acid', 'compound', 'solution', 'reagent'),
    'machinery': ('machine', 'equipment', 'tool', 'apparatus', 'device'),
    'automotive': ('car', 'vehicle', 'auto', 'engine', 'brake', 'tire', 'tyre'),
}

# Keyword group -> (heading, confidence) suggestions
KEYWORD_SUGGESTIONS: Dict[str, Tuple[Tuple[str, float], ...]] = {
    'electronic': (('8517', 0.6), ('8471', 0.5)),
    'textile': (('6109', 0.6), ('5208', 0.5)),
    'metal': (('7326', 0.6), ('7318', 0.5)),
    'plastic': (('3926', 0.5),),
    'chemical': (('3204', 0.4), ('3808', 0.4)),
    'automotive': (('8708', 0.6), ('4011', 0.4)),
}

MIN_DIGITS = 6
MAX_DIGITS = 10


@dataclass
class HSNValidationResult:
    """Result of validating one HSN code."""
    is_valid: bool
    confidence: float
    code_level: CodeLevel
    standardized_code: Optional[str] = None
    product_category: Optional[str] = None
    issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'is_valid': self.is_valid,
            'confidence': round(self.confidence, 3),
            'code_level': self.code_level.value,
            'standardized_code': self.standardized_code,
            'product_category': self.product_category,
            'issues': list(self.issues),
            'suggestions': list(self.suggestions),
        }


@dataclass
class HSNMappingResult:
    """Comparison of a commercial and a customs HSN code."""
    commercial_code: Optional[str]
    customs_code: Optional[str]
    is_consistent: bool
    mapping_confidence: float
    discrepancy_type: HSNDiscrepancy
    explanation: str
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'commercial_code': self.commercial_code,
            'customs_code': self.customs_code,
            'is_consistent': self.is_consistent,
            'mapping_confidence': round(self.mapping_confidence, 3),
            'discrepancy_type': self.discrepancy_type.value,
            'explanation': self.explanation,
            'recommendations': list(self.recommendations),
        }


@dataclass
class HSNSuggestion:
    """A heading suggested from a product description."""
    code: str
    description: str
    confidence: float


def product_category(code: str) -> Optional[str]:
    """Broad product section for a code's chapter."""
    digits = TextNormalizer.digits_only(code)
    if len(digits) < 2:
        return None
    chapter = int(digits[:2])
    for start, end, category in CHAPTER_CATEGORIES:
        if start <= chapter <= end:
            return category
    return None


def extract_product_keywords(description: Optional[str]) -> List[str]:
    """Keyword groups found in a product description."""
    text = TextNormalizer.for_comparison(description)
    return [
        group for group, words in PRODUCT_KEYWORDS.items()
        if any(word in text for word in words)
    ]


class HSNCodeValidator:
    """
    Validates HSN codes and compares them across documents.

    Usage:
        validator = HSNCodeValidator()
        result = validator.validate_code('8471.30.10')
        mapping = validator.map_codes('84713010', '84713090')
    """

    def validate_code(self, code: Any) -> HSNValidationResult:
        """
        Validate a single HSN code.

        Punctuation and spaces are ignored. A code is valid when it has
        6 to 10 digits, a chapter between 01 and 97, and is not a run of
        placeholder zeros.
        """
        if code is None or not str(code).strip():
            return HSNValidationResult(
                is_valid=False,
                confidence=0.0,
                code_level=CodeLevel.INVALID,
                issues=['HSN code is empty'],
                suggestions=['Provide a valid HSN code'],
            )

        digits = TextNormalizer.digits_only(code)
        issues: List[str] = []
        suggestions: List[str] = []
        is_valid = True

        if len(digits) < MIN_DIGITS:
            is_valid = False
            confidence = 0.1
            issues.append(f"HSN code too short ({len(digits)} digits, minimum {MIN_DIGITS})")
            suggestions.append('HSN codes should carry at least the 6-digit subheading')
        elif len(digits) > MAX_DIGITS:
            is_valid = False
            confidence = 0.2
            issues.append(f"HSN code too long ({len(digits)} digits, maximum {MAX_DIGITS})")
            suggestions.append(f'HSN codes should not exceed {MAX_DIGITS} digits')
        else:
            confidence = 0.7

        category = product_category(digits)
        if category:
            confidence += 0.1

        heading = digits[:4]
        if heading in KNOWN_HEADINGS:
            confidence += 0.1
            suggestions.append(f"This appears to be: {KNOWN_HEADINGS[heading]}")

        if len(digits) >= 2:
            chapter = int(digits[:2])
            if not 1 <= chapter <= 97:
                is_valid = False
                confidence = min(confidence, 0.3)
                issues.append(f"Invalid chapter code: {digits[:2]} (should be 01-97)")
                suggestions.append('HSN chapter codes range from 01 to 97')

        if digits and ('00000' in digits or set(digits) == {'0'}):
            is_valid = False
            confidence = 0.1
            issues.append('HSN code appears to be placeholder zeros')
            suggestions.append('Provide the actual HSN code, not a placeholder value')

        return HSNValidationResult(
            is_valid=is_valid,
            confidence=max(0.1, min(confidence, 1.0)),
            code_level=CodeLevel.for_length(len(digits)),
            standardized_code=digits if is_valid else None,
            product_category=category,
            issues=issues,
            suggestions=suggestions,
        )

    def map_codes(
        self,
        commercial_code: Any,
        customs_code: Any,
        product_description: Optional[str] = None,
    ) -> HSNMappingResult:
        """
        Compare the HSN code on a commercial document with the customs one.

        Args:
            commercial_code: Code from the invoice or packing list
            customs_code: Code from the bill of entry
            product_description: Optional goods description for hints

        Returns:
            HSNMappingResult
        """
        commercial_digits = TextNormalizer.digits_only(commercial_code)
        customs_digits = TextNormalizer.digits_only(customs_code)

        if not commercial_digits and not customs_digits:
            return HSNMappingResult(
                commercial_code=None,
                customs_code=None,
                is_consistent=False,
                mapping_confidence=0.1,
                discrepancy_type=HSNDiscrepancy.MAJOR_MISMATCH,
                explanation='No HSN codes found in either document',
                recommendations=['HSN codes are required for customs compliance'],
            )

        if not commercial_digits:
            customs = self.validate_code(customs_digits)
            return HSNMappingResult(
                commercial_code=None,
                customs_code=customs.standardized_code,
                is_consistent=False,
                mapping_confidence=customs.confidence * 0.5,
                discrepancy_type=HSNDiscrepancy.MAJOR_MISMATCH,
                explanation='HSN code only found in customs document',
                recommendations=['Commercial documents should also include HSN codes for verification'],
            )

        if not customs_digits:
            commercial = self.validate_code(commercial_digits)
            return HSNMappingResult(
                commercial_code=commercial.standardized_code,
                customs_code=None,
                is_consistent=False,
                mapping_confidence=commercial.confidence * 0.5,
                discrepancy_type=HSNDiscrepancy.MAJOR_MISMATCH,
                explanation='HSN code only found in commercial document',
                recommendations=['Customs documents should include HSN codes for duty calculation'],
            )

        commercial = self.validate_code(commercial_digits)
        customs = self.validate_code(customs_digits)

        if commercial_digits == customs_digits:
            return HSNMappingResult(
                commercial_code=commercial_digits,
                customs_code=customs_digits,
                is_consistent=True,
                mapping_confidence=min(commercial.confidence, customs.confidence),
                discrepancy_type=HSNDiscrepancy.NONE,
                explanation=f"Exact HSN code match: {commercial_digits}",
                recommendations=['HSN codes are consistent across documents'],
            )

        confidence = (commercial.confidence + customs.confidence) / 2
        pair = f"Commercial({commercial_digits}) vs Customs({customs_digits})"
        recommendations: List[str] = []

        if commercial_digits[:2] == customs_digits[:2]:
            confidence *= 0.9
            if len(commercial_digits) >= 6 and commercial_digits[:6] == customs_digits[:6]:
                is_consistent = True
                discrepancy = HSNDiscrepancy.LEVEL_DIFFERENCE
                confidence *= 0.95
                explanation = f"HSN codes match at subheading level (6 digits): {pair}"
                recommendations.append(
                    'HSN codes are substantially consistent - minor difference in tariff classification'
                )
            elif len(commercial_digits) >= 4 and commercial_digits[:4] == customs_digits[:4]:
                is_consistent = True
                discrepancy = HSNDiscrepancy.LEVEL_DIFFERENCE
                confidence *= 0.85
                explanation = f"HSN codes match at heading level (4 digits): {pair}"
                recommendations.append(
                    'HSN codes represent the same product category but different sub-classifications'
                )
            else:
                is_consistent = False
                discrepancy = HSNDiscrepancy.CATEGORY_DIFFERENCE
                confidence *= 0.6
                explanation = f"HSN codes match only at chapter level (2 digits): {pair}"
                recommendations.append(
                    'HSN codes are in the same broad category but represent different products'
                )
                recommendations.append('Manual review recommended to ensure correct classification')
        else:
            is_consistent = False
            discrepancy = HSNDiscrepancy.MAJOR_MISMATCH
            confidence *= 0.3
            explanation = f"HSN codes represent completely different product categories: {pair}"
            recommendations.append('Major HSN code discrepancy detected - immediate review required')
            recommendations.append('Verify product descriptions and correct classification')

        keywords = extract_product_keywords(product_description)
        if keywords:
            recommendations.append(
                f"Product description contains: {', '.join(keywords)} - verify HSN classification matches"
            )

        logger.debug(f"HSN mapping {pair}: {discrepancy.value}")

        return HSNMappingResult(
            commercial_code=commercial_digits,
            customs_code=customs_digits,
            is_consistent=is_consistent,
            mapping_confidence=max(0.1, confidence),
            discrepancy_type=discrepancy,
            explanation=explanation,
            recommendations=recommendations,
        )

    def suggest_codes(self, description: Optional[str]) -> Tuple[List[HSNSuggestion], List[str]]:
        """
        Suggest headings from a product description.

        Returns:
            (suggestions, reasoning)
        """
        suggestions: List[HSNSuggestion] = []
        reasoning: List[str] = []

        for group in extract_product_keywords(description):
            for code, confidence in KEYWORD_SUGGESTIONS.get(group, ()):
                suggestions.append(HSNSuggestion(code, KNOWN_HEADINGS[code], confidence))
            if group in KEYWORD_SUGGESTIONS:
                reasoning.append(f"Product appears to be {group} goods")

        if not suggestions:
            reasoning.append('Unable to determine a specific HSN code from the product description')
            reasoning.append('Manual classification recommended based on detailed product specifications')

        return suggestions, reasoning


def validate_code(code: Any) -> HSNValidationResult:
    """Validate an HSN code."""
    return HSNCodeValidator().validate_code(code)


def map_codes(commercial_code: Any, customs_code: Any, product_description: Optional[str] = None) -> HSNMappingResult:
    """Compare a commercial and a customs HSN code."""
    return HSNCodeValidator().map_codes(commercial_code, customs_code, product_description)
