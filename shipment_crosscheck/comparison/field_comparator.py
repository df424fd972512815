"""
Field Comparator

Runs every canonical field through the value comparator across a set of
documents and aggregates the results into a ConsistencyReport.

Usage:
    documents = [Document.from_dict(p) for p in payloads]
    report = compare_documents(documents)
    print(report.summary.risk_level)

The function is deterministic: the same ordered documents (and the same
timestamp argument) always produce an equal report. Callers that want a
wall-clock timestamp pass one in; the CLI does.
"""

from __future__ import annotations

import math
from typing import Any, List, Optional, Sequence

from loguru import logger

from ..config import CrosscheckConfig
from ..doctypes.document import Document
from ..doctypes.document_type import DocumentType
from ..parser.field_mapper import Category, ComparisonType, FieldMapping, FieldMappingRegistry, DEFAULT_REGISTRY
from ..parser.normalizers import NumberNormalizer, UnitNormalizer
from .models import (
    ConsistencyReport,
    CriticalIssue,
    DocumentConfidence,
    FieldComparisonResult,
    FieldValue,
    IssueSource,
    ReportMetadata,
    ReportSummary,
    RiskLevel,
)
from .value_comparator import analyze, format_number

_JSON_SCALARS = (str, int, float, bool, type(None))


class InsufficientDocumentsError(ValueError):
    """Raised when fewer than two documents are supplied for comparison."""

    def __init__(self, count: int):
        self.count = count
        super().__init__(
            f"At least two successfully extracted documents are required for comparison "
            f"(got {count})"
        )


def _json_safe(value: Any) -> Any:
    # NaN and infinity are not JSON
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, _JSON_SCALARS):
        return value
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    return str(value)


def _unit_path(path: str) -> str:
    """shipment.grossWeight.value -> shipment.grossWeight.unit"""
    parent, _, _ = path.rpartition('.')
    return f"{parent}.unit" if parent else 'unit'


def _format_value(value: Any, mapping: FieldMapping) -> str:
    if mapping.comparison_type.is_numeric:
        number = NumberNormalizer().normalize(value)
        if number is not None:
            return format_number(number)
    return str(value).strip()


def compare_field(
    mapping: FieldMapping,
    documents: Sequence[Document],
    registry: FieldMappingRegistry = DEFAULT_REGISTRY,
    config: Optional[CrosscheckConfig] = None,
) -> FieldComparisonResult:
    """
    Compare one canonical field across documents.

    Args:
        mapping: Field mapping row
        documents: Documents in caller order
        registry: Registry used to resolve values
        config: Thresholds (defaults if None)

    Returns:
        FieldComparisonResult for the field
    """
    config = config or CrosscheckConfig()

    values: List[FieldValue] = []
    compared: List[Any] = []
    for document in documents:
        located = registry.locate(document, mapping.name)
        if located is None:
            continue
        path, extracted = located
        raw_value = _json_safe(extracted.value)
        formatted = _format_value(extracted.value, mapping)
        compared_value = raw_value

        if mapping.comparison_type == ComparisonType.WEIGHT:
            unit = UnitNormalizer.weight_unit(extracted.value, document.value(_unit_path(path)))
            kilograms = UnitNormalizer.to_kilograms(extracted.value, unit)
            if kilograms is not None:
                compared_value = kilograms
                if unit:
                    formatted = f"{formatted} {unit.upper()}"

        values.append(FieldValue(
            document_name=document.name,
            document_type=document.doc_type,
            raw_value=raw_value,
            formatted_value=formatted,
        ))
        compared.append(compared_value)

    analysis = analyze(
        compared,
        mapping.comparison_type,
        tolerance=config.tolerance_for(mapping.name, mapping.tolerance),
        similarity_threshold=config.similarity_threshold,
    )

    logger.debug(
        f"{mapping.name}: {analysis.discrepancy_type.value} "
        f"({len(values)} value{'s' if len(values) != 1 else ''})"
    )

    return FieldComparisonResult(
        field_name=mapping.name,
        display_name=mapping.display_name,
        category=mapping.category,
        values=values,
        is_consistent=analysis.is_consistent,
        discrepancy_type=analysis.discrepancy_type,
        impact=mapping.category.impact,
        explanation=analysis.explanation,
        recommended_action=None if analysis.is_consistent else mapping.category.recommended_action,
    )


def assess_risk(comparisons: Sequence[FieldComparisonResult]) -> RiskLevel:
    """
    Risk from the number of inconsistent critical fields.

    More than two is HIGH, one or two is MEDIUM, none is LOW.
    """
    critical = sum(
        1 for c in comparisons
        if c.category == Category.CRITICAL and not c.is_consistent
    )
    if critical > 2:
        return RiskLevel.HIGH
    if critical > 0:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def build_recommendations(
    comparisons: Sequence[FieldComparisonResult],
    documents: Sequence[Document],
    score: float,
    config: CrosscheckConfig,
) -> List[str]:
    """Heuristic recommendations for a set of field comparisons."""
    recommendations: List[str] = []

    critical = [c for c in comparisons if c.category == Category.CRITICAL and not c.is_consistent]
    if critical:
        recommendations.append(
            f"URGENT: Resolve {len(critical)} critical discrepanc"
            f"{'y' if len(critical) == 1 else 'ies'} before processing the shipment"
        )
        for comparison in critical:
            recommendations.append(f"Review {comparison.display_name}: {comparison.explanation}")

    important = [c for c in comparisons if c.category == Category.IMPORTANT and not c.is_consistent]
    if important:
        names = ', '.join(c.display_name for c in important)
        recommendations.append(
            f"Review {len(important)} important field discrepanc"
            f"{'y' if len(important) == 1 else 'ies'} with stakeholders: {names}"
        )

    present = {d.doc_type for d in documents}
    missing = []
    for type_name in config.expected_document_types:
        doc_type = DocumentType.parse(type_name)
        if doc_type is not None and doc_type not in present:
            missing.append(doc_type.display_name)
    if missing:
        recommendations.append(f"Consider obtaining missing documents: {', '.join(missing)}")

    if score >= config.ready_threshold:
        recommendations.append("Documents show high consistency - ready for processing")
    elif score >= config.review_threshold:
        recommendations.append("Documents show moderate consistency - review flagged items")
    else:
        recommendations.append("Documents show low consistency - comprehensive review required")

    return recommendations


def compare_documents(
    documents: Sequence[Document],
    config: Optional[CrosscheckConfig] = None,
    timestamp: Optional[str] = None,
    registry: FieldMappingRegistry = DEFAULT_REGISTRY,
) -> ConsistencyReport:
    """
    Compare all canonical fields across documents.

    Args:
        documents: At least two extracted documents, in a stable order
        config: Thresholds (defaults if None)
        timestamp: Value for metadata.timestamp (None keeps it empty)
        registry: Field mapping registry

    Returns:
        ConsistencyReport

    Raises:
        InsufficientDocumentsError: if fewer than two documents are given
    """
    documents = list(documents)
    if len(documents) < 2:
        raise InsufficientDocumentsError(len(documents))

    config = config or CrosscheckConfig()
    logger.info(f"Comparing {len(registry)} fields across {len(documents)} documents")

    comparisons = [compare_field(m, documents, registry, config) for m in registry]

    total = len(comparisons)
    consistent = sum(1 for c in comparisons if c.is_consistent)
    missing = sum(1 for c in comparisons if c.is_missing)
    discrepant = sum(1 for c in comparisons if c.is_discrepant)
    score = consistent / total if total else 0.0
    risk = assess_risk(comparisons)

    critical_issues = []
    for comparison in comparisons:
        if comparison.category != Category.CRITICAL or comparison.is_consistent:
            continue
        mapping = registry.get(comparison.field_name)
        critical_issues.append(CriticalIssue(
            description=f"{comparison.display_name}: {comparison.explanation}",
            affected_documents=comparison.document_names,
            impact=mapping.business_impact,
            recommended_action=comparison.recommended_action,
            source=IssueSource.FIELD_COMPARISON,
            field_name=comparison.field_name,
        ))

    summary = ReportSummary(
        total_documents=len(documents),
        documents_compared=[d.label for d in documents],
        total_fields_compared=total,
        consistent_fields=consistent,
        discrepant_fields=discrepant,
        missing_fields=missing,
        overall_consistency_score=score,
        risk_level=risk,
    )

    metadata = ReportMetadata(
        timestamp=timestamp,
        per_document_confidence=[
            DocumentConfidence(d.name, d.doc_type, d.overall_confidence) for d in documents
        ],
    )

    logger.info(
        f"Consistency {score:.0%} ({consistent}/{total}), "
        f"{discrepant} discrepant, {missing} missing, risk {risk.value}"
    )

    return ConsistencyReport(
        summary=summary,
        field_comparisons=comparisons,
        critical_issues=critical_issues,
        recommendations=build_recommendations(comparisons, documents, score, config),
        metadata=metadata,
    )
