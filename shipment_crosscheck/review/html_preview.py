"""
HTML Report Generator

Renders a ConsistencyReport as a self-contained HTML page for reviewers.
All extracted values are escaped; documents are untrusted input.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import List, Optional

from ..comparison.models import ConsistencyReport, FieldComparisonResult, RiskLevel


@dataclass
class PreviewConfig:
    """Configuration for HTML report generation."""

    title: str = 'Shipment Document Consistency Report'
    verified_color: str = '#4caf50'   # Green
    warning_color: str = '#ff9800'    # Orange
    error_color: str = '#f44336'      # Red
    show_confidence: bool = True


def _e(value: object) -> str:
    return html.escape(str(value), quote=True)


class HTMLReportGenerator:
    """
    Generates an HTML page from a consistency report.

    Usage:
        generator = HTMLReportGenerator()
        page = generator.generate(report)
    """

    def __init__(self, config: Optional[PreviewConfig] = None):
        self.config = config or PreviewConfig()

    def generate(self, report: ConsistencyReport) -> str:
        """Render the full page."""
        sections = [
            self._summary_section(report),
            self._critical_section(report),
            self._fields_section(report),
            self._recommendations_section(report),
        ]
        generated = ''
        if report.metadata.timestamp:
            generated = f'<p class="generated">Generated: {_e(report.metadata.timestamp)}</p>'

        return f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{_e(self.config.title)}</title>
    <style>{self._get_styles()}</style>
</head>
<body>
    <h1>{_e(self.config.title)}</h1>
    {generated}
    {''.join(sections)}
</body>
</html>
'''

    def _risk_color(self, risk: RiskLevel) -> str:
        return {
            RiskLevel.LOW: self.config.verified_color,
            RiskLevel.MEDIUM: self.config.warning_color,
            RiskLevel.HIGH: self.config.error_color,
        }[risk]

    def _summary_section(self, report: ConsistencyReport) -> str:
        summary = report.summary
        documents = ''.join(f'<li>{_e(label)}</li>' for label in summary.documents_compared)
        confidence = ''
        if self.config.show_confidence and report.metadata.per_document_confidence:
            rows = ''.join(
                f'<li>{_e(d.document_name)}: {d.extraction_confidence:.0%}</li>'
                for d in report.metadata.per_document_confidence
            )
            confidence = f'<h3>Extraction confidence</h3><ul>{rows}</ul>'

        cards = [
            ('Documents', summary.total_documents),
            ('Fields compared', summary.total_fields_compared),
            ('Consistent', summary.consistent_fields),
            ('Discrepant', summary.discrepant_fields),
            ('Missing', summary.missing_fields),
            ('Consistency', f'{summary.overall_consistency_score:.1%}'),
        ]
        card_html = ''.join(
            f'<div class="summary-card"><h3>{_e(label)}</h3><div class="value">{_e(value)}</div></div>'
            for label, value in cards
        )
        return f'''
    <section id="summary">
        <h2>Summary</h2>
        <p class="risk" style="background: {self._risk_color(summary.risk_level)}">
            Risk level: {_e(summary.risk_level.display_name)}
        </p>
        <div class="summary-cards">{card_html}</div>
        <h3>Documents compared</h3>
        <ul>{documents}</ul>
        {confidence}
    </section>'''

    def _critical_section(self, report: ConsistencyReport) -> str:
        if not report.critical_issues:
            body = '<p class="none">No critical issues.</p>'
        else:
            items: List[str] = []
            for issue in report.critical_issues:
                affected = ', '.join(issue.affected_documents)
                items.append(f'''
            <li class="issue">
                <strong>{_e(issue.description)}</strong>
                <div>Affected documents: {_e(affected) if affected else '-'}</div>
                <div>Impact: {_e(issue.impact)}</div>
                <div>Action: {_e(issue.recommended_action)}</div>
            </li>''')
            body = f'<ol>{"".join(items)}</ol>'
        return f'''
    <section id="critical-issues">
        <h2>Critical Issues</h2>
        {body}
    </section>'''

    def _field_row(self, comparison: FieldComparisonResult) -> str:
        status_class = 'consistent' if comparison.is_consistent else 'inconsistent'
        values = ''.join(
            f'<li>{_e(v.document_name)} ({_e(v.document_type.value)}): {_e(v.formatted_value)}</li>'
            for v in comparison.values
        )
        return f'''
            <tr class="{status_class}">
                <td>{_e(comparison.display_name)}</td>
                <td>{_e(comparison.category.value)}</td>
                <td>{_e(comparison.discrepancy_type.value)}</td>
                <td><ul>{values}</ul></td>
                <td>{_e(comparison.explanation)}</td>
                <td>{_e(comparison.recommended_action or '')}</td>
            </tr>'''

    def _fields_section(self, report: ConsistencyReport) -> str:
        rows = ''.join(self._field_row(c) for c in report.field_comparisons)
        return f'''
    <section id="field-details">
        <h2>Field Details</h2>
        <table class="fields">
            <thead>
                <tr><th>Field</th><th>Category</th><th>Result</th><th>Values</th>
                <th>Explanation</th><th>Action</th></tr>
            </thead>
            <tbody>{rows}
            </tbody>
        </table>
    </section>'''

    def _recommendations_section(self, report: ConsistencyReport) -> str:
        items = ''.join(f'<li>{_e(r)}</li>' for r in report.recommendations)
        body = f'<ol>{items}</ol>' if items else '<p class="none">No recommendations.</p>'
        return f'''
    <section id="recommendations">
        <h2>Recommendations</h2>
        {body}
    </section>'''

    def _get_styles(self) -> str:
        """Get CSS styles."""
        return f'''
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            margin: 0 auto;
            max-width: 1100px;
            padding: 20px;
            color: #333;
            background: #f5f5f5;
        }}

        section {{
            background: white;
            padding: 20px;
            margin-bottom: 20px;
            border-radius: 8px;
            box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        }}

        .risk {{
            color: white;
            padding: 8px 12px;
            border-radius: 4px;
            font-weight: 600;
            display: inline-block;
        }}

        .summary-cards {{
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(150px, 1fr));
            gap: 12px;
            margin: 16px 0;
        }}

        .summary-card h3 {{
            margin: 0 0 6px 0;
            color: #666;
            font-size: 13px;
        }}

        .summary-card .value {{
            font-size: 26px;
            font-weight: 600;
        }}

        .issue {{
            border-left: 4px solid {self.config.error_color};
            padding: 8px 12px;
            margin-bottom: 10px;
        }}

        table.fields {{
            width: 100%;
            border-collapse: collapse;
        }}

        table.fields th, table.fields td {{
            padding: 8px;
            text-align: left;
            vertical-align: top;
            border-bottom: 1px solid #ddd;
        }}

        table.fields th {{
            background: #f5f5f5;
        }}

        tr.consistent td:first-child {{
            border-left: 4px solid {self.config.verified_color};
        }}

        tr.inconsistent td:first-child {{
            border-left: 4px solid {self.config.error_color};
        }}

        .none, .generated {{
            color: #666;
        }}
        '''


def render_html(report: ConsistencyReport, config: Optional[PreviewConfig] = None) -> str:
    """Render a report as HTML."""
    return HTMLReportGenerator(config).generate(report)
