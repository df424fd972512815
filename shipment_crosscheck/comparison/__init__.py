"""
Field Comparison Package

Compares every canonical field across a shipment's documents and rolls the
results up into a ConsistencyReport.

Usage:
    from shipment_crosscheck.comparison import compare_documents

    report = compare_documents(documents)
    for comparison in report.discrepancies:
        print(f"{comparison.display_name}: {comparison.explanation}")
"""

from .value_comparator import (
    DiscrepancyType,
    ValueAnalysis,
    analyze,
    text_similarity,
)
from .models import (
    RiskLevel,
    IssueSource,
    FieldValue,
    FieldComparisonResult,
    CriticalIssue,
    ReportSummary,
    DocumentConfidence,
    ReportMetadata,
    ConsistencyReport,
)
from .field_comparator import (
    InsufficientDocumentsError,
    compare_field,
    compare_documents,
    assess_risk,
    build_recommendations,
)

__all__ = [
    'DiscrepancyType',
    'ValueAnalysis',
    'analyze',
    'text_similarity',
    'RiskLevel',
    'IssueSource',
    'FieldValue',
    'FieldComparisonResult',
    'CriticalIssue',
    'ReportSummary',
    'DocumentConfidence',
    'ReportMetadata',
    'ConsistencyReport',
    'InsufficientDocumentsError',
    'compare_field',
    'compare_documents',
    'assess_risk',
    'build_recommendations',
]
