"""
Document Quality Assessment

Scores how trustworthy one extracted document is before it is compared with
the rest of the shipment:

    score = 0.3 * identifier_consistency
          + 0.3 * data_completion
          + 0.2 * format_validation
          + 0.2 * business_rule_compliance

Weights come from CrosscheckConfig.quality_weights.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from ..config import CrosscheckConfig
from ..doctypes.document import Document
from ..parser.field_mapper import Category, FieldMappingRegistry, DEFAULT_REGISTRY
from ..parser.validators import check_format
from .business_rules import BusinessRuleEngine, BusinessRuleResult, rule_compliance

# Identifier paths and the format each must satisfy
IDENTIFIER_FORMATS: Tuple[Tuple[str, str], ...] = (
    ('identifiers.awbNumber', 'awb_number'),
    ('identifiers.hawbNumber', 'reference_number'),
    ('identifiers.invoiceNumber', 'invoice_number'),
    ('identifiers.beNumber', 'reference_number'),
    ('identifiers.jobNumber', 'reference_number'),
    ('identifiers.deliveryNoteNumber', 'reference_number'),
    ('identifiers.packingListNumber', 'reference_number'),
    ('identifiers.customerPO', 'reference_number'),
    ('identifiers.shipmentID', 'reference_number'),
)

# Other paths with a checkable format
VALUE_FORMATS: Tuple[Tuple[str, str], ...] = (
    ('product.hsnCode', 'hsn_code'),
    ('customs.hsnCode', 'hsn_code'),
    ('parties.shipper.email', 'email'),
    ('parties.consignee.email', 'email'),
    ('parties.shipper.phone', 'phone'),
    ('parties.consignee.phone', 'phone'),
    ('commercial.invoiceValue.currency', 'currency'),
    ('commercial.freight.currency', 'currency'),
    ('commercial.insurance.currency', 'currency'),
    ('customs.assessedValue.currency', 'currency'),
)

NO_IDENTIFIERS_SCORE = 0.1
NOTHING_TO_FORMAT_CHECK_SCORE = 0.8
WEAK_FACTOR = 0.5


@dataclass
class QualityAssessment:
    """Quality score of one document with its contributing factors."""
    document_name: str
    score: float
    factors: Dict[str, float]
    recommendations: List[str] = field(default_factory=list)
    rule_results: List[BusinessRuleResult] = field(default_factory=list)

    @property
    def weakest_factor(self) -> str:
        """Name of the lowest-scoring factor."""
        return min(self.factors, key=lambda name: self.factors[name])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'document_name': self.document_name,
            'score': round(self.score, 3),
            'factors': {k: round(v, 3) for k, v in self.factors.items()},
            'recommendations': list(self.recommendations),
            'rule_results': [r.to_dict() for r in self.rule_results],
        }


def _fraction_passing(document: Document, checks: Tuple[Tuple[str, str], ...]) -> Tuple[Optional[float], List[str]]:
    checked = 0
    failures = []
    for path, kind in checks:
        value = document.value(path)
        if value is None:
            continue
        checked += 1
        if not check_format(kind, value):
            failures.append(path)
    if checked == 0:
        return None, failures
    return (checked - len(failures)) / checked, failures


def assess_document_quality(
    document: Document,
    config: Optional[CrosscheckConfig] = None,
    registry: FieldMappingRegistry = DEFAULT_REGISTRY,
) -> QualityAssessment:
    """
    Score one document's extraction quality.

    Args:
        document: Extracted document
        config: Weights and rule thresholds (defaults if None)
        registry: Field mapping registry (defines the critical fields)

    Returns:
        QualityAssessment with score in [0, 1]
    """
    config = config or CrosscheckConfig()

    identifier_score, bad_identifiers = _fraction_passing(document, IDENTIFIER_FORMATS)
    if identifier_score is None:
        identifier_score = NO_IDENTIFIERS_SCORE

    critical = [m for m in registry.by_category(Category.CRITICAL) if m.applies_to(document.doc_type)]
    missing_critical = [m.display_name for m in critical if registry.resolve(document, m.name) is None]
    completion_score = (len(critical) - len(missing_critical)) / len(critical) if critical else 1.0

    format_score, bad_formats = _fraction_passing(document, VALUE_FORMATS)
    if format_score is None:
        format_score = NOTHING_TO_FORMAT_CHECK_SCORE

    rule_results = BusinessRuleEngine(config).evaluate_document(document)
    compliance_score = rule_compliance(rule_results)

    factors = {
        'identifier_consistency': identifier_score,
        'data_completion': completion_score,
        'format_validation': format_score,
        'business_rule_compliance': compliance_score,
    }
    weights = config.quality_weights
    score = sum(weights.get(name, 0.0) * value for name, value in factors.items())

    advice = {
        'identifier_consistency': (
            f"Verify identifier formats against the source document: {', '.join(bad_identifiers)}"
            if bad_identifiers else "Capture shipment identifiers (AWB, HAWB, invoice number)"
        ),
        'data_completion': (
            f"Capture missing critical fields: {', '.join(missing_critical)}"
            if missing_critical else "Capture missing critical fields"
        ),
        'format_validation': (
            f"Correct malformed values: {', '.join(bad_formats)}"
            if bad_formats else "Check HSN codes, contact details and currency codes"
        ),
        'business_rule_compliance': (
            "Resolve failed business rules: "
            + ', '.join(r.rule_name for r in rule_results if r.failed)
            if any(r.failed for r in rule_results)
            else "Capture weights, dates and duties so business rules can be checked"
        ),
    }

    weakest = min(factors, key=lambda name: factors[name])
    recommendations = []
    if factors[weakest] < 1.0:
        recommendations.append(advice[weakest])
    for name, value in factors.items():
        if name != weakest and value < WEAK_FACTOR:
            recommendations.append(advice[name])

    logger.debug(f"{document.name}: quality {score:.2f} (weakest: {weakest})")

    return QualityAssessment(
        document_name=document.name,
        score=score,
        factors=factors,
        recommendations=recommendations,
        rule_results=rule_results,
    )
