"""
Plain Text Report

Renders a ConsistencyReport for terminals, e-mail and log attachments.
Sections appear in a fixed order: summary, critical issues, field details,
recommendations.
"""

from __future__ import annotations

from typing import List

from ..comparison.models import ConsistencyReport, FieldComparisonResult

RULE = '=' * 60


def _heading(title: str) -> List[str]:
    return [title, '-' * len(title)]


def _field_block(comparison: FieldComparisonResult) -> List[str]:
    status = 'OK' if comparison.is_consistent else 'ISSUE'
    lines = [
        f"[{comparison.category.value.upper()}] {comparison.display_name}: "
        f"{comparison.discrepancy_type.value.replace('_', ' ').upper()} ({status})"
    ]
    if comparison.values:
        lines.append('  Values:')
        for value in comparison.values:
            lines.append(f"    - {value.document_name} ({value.document_type.value}): {value.formatted_value}")
    lines.append(f"  Explanation: {comparison.explanation}")
    if comparison.recommended_action:
        lines.append(f"  Action: {comparison.recommended_action}")
    return lines


def render_text(report: ConsistencyReport) -> str:
    """Render a report as plain text."""
    summary = report.summary
    lines = [RULE, 'SHIPMENT DOCUMENT CONSISTENCY REPORT', RULE]
    if report.metadata.timestamp:
        lines.append(f"Generated: {report.metadata.timestamp}")
    lines.append('')

    lines.extend(_heading('SUMMARY'))
    lines.append(f"Documents analyzed: {summary.total_documents}")
    for label in summary.documents_compared:
        lines.append(f"  - {label}")
    lines.extend([
        f"Fields compared: {summary.total_fields_compared}",
        f"Consistent fields: {summary.consistent_fields}",
        f"Discrepant fields: {summary.discrepant_fields}",
        f"Missing fields: {summary.missing_fields}",
        f"Overall consistency: {summary.overall_consistency_score:.1%}",
        f"Risk level: {summary.risk_level.display_name}",
    ])
    if report.metadata.per_document_confidence:
        lines.append('Extraction confidence:')
        for entry in report.metadata.per_document_confidence:
            lines.append(f"  - {entry.document_name}: {entry.extraction_confidence:.0%}")
    lines.append('')

    lines.extend(_heading('CRITICAL ISSUES'))
    if not report.critical_issues:
        lines.append('None')
    for number, issue in enumerate(report.critical_issues, 1):
        lines.append(f"{number}. {issue.description}")
        if issue.affected_documents:
            lines.append(f"   Affected documents: {', '.join(issue.affected_documents)}")
        lines.append(f"   Impact: {issue.impact}")
        lines.append(f"   Action: {issue.recommended_action}")
    lines.append('')

    lines.extend(_heading('FIELD DETAILS'))
    for comparison in report.field_comparisons:
        lines.extend(_field_block(comparison))
        lines.append('')

    lines.extend(_heading('RECOMMENDATIONS'))
    if not report.recommendations:
        lines.append('None')
    for number, recommendation in enumerate(report.recommendations, 1):
        lines.append(f"{number}. {recommendation}")

    return '\n'.join(lines) + '\n'
