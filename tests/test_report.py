"""
Tests for report building and rendering
"""

import json

import pytest

from shipment_crosscheck.comparison.models import ConsistencyReport, IssueSource, RiskLevel
from shipment_crosscheck.parser.field_mapper import get_field_mapping
from shipment_crosscheck.review.export import (
    ReportExporter,
    ReportFormat,
    generate_summary_report,
    render,
)
from shipment_crosscheck.review.html_preview import PreviewConfig, render_html
from shipment_crosscheck.review.report_builder import ReportBuilder
from shipment_crosscheck.review.text_report import render_text
from shipment_crosscheck.validation.relationships import EntityConflict, RelationshipValidator

from conftest import BOE_PAYLOAD, HAWB_PAYLOAD, INVOICE_PAYLOAD, build


def _shipment(boe_changes=None):
    return [
        build(INVOICE_PAYLOAD),
        build(HAWB_PAYLOAD),
        build(BOE_PAYLOAD, **(boe_changes or {})),
    ]


class TestReportBuilder:
    """Tests for merging the checks into one report."""

    def setup_method(self):
        self.builder = ReportBuilder()

    def test_consistent_shipment(self, shipment):
        report = self.builder.build(shipment)
        assert report.summary.risk_level == RiskLevel.LOW
        assert report.critical_issues == []
        assert report.recommendations == [
            "Consider obtaining missing documents: Air Waybill",
            "Documents show high consistency - ready for processing",
        ]

    def test_rule_error_is_critical(self):
        report = self.builder.build(_shipment({'shipment.netWeight': {'value': 40.0, 'unit': 'KG'}}))
        rule_issues = [i for i in report.critical_issues if i.source == IssueSource.BUSINESS_RULE]
        assert len(rule_issues) == 1
        assert rule_issues[0].description == "boe.pdf: Gross weight (37 KG) is less than net weight (40 KG)"
        assert rule_issues[0].affected_documents == ['boe.pdf']
        assert "boe.pdf: Gross weight cannot be less than net weight" in report.recommendations

    def test_rule_warning_is_recommendation(self):
        report = self.builder.build(_shipment({'customs.duties.totalDuty': 900.0}))
        assert report.critical_issues == []
        assert "boe.pdf: Duty is 90.0% of invoice value 1000 USD (expected 0% to 50%)" in report.recommendations

    def test_party_conflict_reported_once(self):
        report = self.builder.build(_shipment({'parties.consignee': {'name': 'Different Company Inc'}}))
        consignee = [i for i in report.critical_issues if 'Consignee' in i.description]
        assert len(consignee) == 1
        assert consignee[0].source == IssueSource.FIELD_COMPARISON

    def test_party_conflict_below_entity_threshold(self):
        report = self.builder.build(_shipment({'parties.shipper': {'name': 'ACME Electronic Limited'}}))
        assert report.get_comparison('shipper_name').is_consistent
        assert len(report.critical_issues) == 1
        issue = report.critical_issues[0]
        assert issue.source == IssueSource.RELATIONSHIP
        assert issue.field_name == 'shipper_name'
        assert issue.description == "Shipper name inconsistency: Acme Electronics Ltd vs ACME Electronic Limited"
        assert report.summary.risk_level == RiskLevel.LOW

    def test_party_conflict_is_keyed_by_field(self, monkeypatch, shipment):
        conflict = EntityConflict('shipper', 'shipper_name', ('Acme', 'Akme'), 'Shippers differ: Acme / Akme')
        monkeypatch.setattr(RelationshipValidator, '_entity_consistency', lambda self: ([conflict], []))
        report = self.builder.build(shipment)
        assert len(report.critical_issues) == 1
        issue = report.critical_issues[0]
        assert issue.field_name == 'shipper_name'
        assert issue.description == 'Shippers differ: Acme / Akme'
        assert issue.impact == get_field_mapping('shipper_name').business_impact

    def test_recommendations_are_unique(self):
        report = self.builder.build(_shipment({
            'customs.hsnCode': '61091000',
            'shipment.netWeight': {'value': 40.0, 'unit': 'KG'},
        }))
        assert len(report.recommendations) == len(set(report.recommendations))

    def test_assemble(self, shipment):
        assessment = self.builder.assemble(shipment)
        assert assessment.relationship.is_valid
        assert [q.document_name for q in assessment.quality] == ['invoice.pdf', 'hawb.pdf', 'boe.pdf']
        assert assessment.document_type_issues == {}
        data = assessment.to_dict()
        assert set(data) == {
            'report', 'relationship', 'quality', 'document_rule_results', 'document_type_issues',
        }

    def test_deterministic(self, shipment):
        first = render(self.builder.build(shipment), 'json')
        second = render(self.builder.build(shipment), 'json')
        assert first == second


class TestRenderers:
    """Tests for text, HTML and JSON output."""

    def setup_method(self):
        self.report = ReportBuilder().build(
            _shipment({'identifiers.awbNumber': '099-80828764', 'customs.hsnCode': '85171200'}),
            timestamp='2024-01-21T10:00:00',
        )

    def test_text_section_order(self):
        text = render_text(self.report)
        positions = [
            text.index('\nSUMMARY\n'),
            text.index('\nCRITICAL ISSUES\n'),
            text.index('\nFIELD DETAILS\n'),
            text.index('\nRECOMMENDATIONS\n'),
        ]
        assert positions == sorted(positions)

    def test_text_content(self):
        text = render_text(self.report)
        assert 'Generated: 2024-01-21T10:00:00' in text
        assert 'Risk level: MEDIUM' in text
        assert '1. AWB Number: Different values found: 098-80828764, 099-80828764' in text
        assert '    - boe.pdf (bill_of_entry): 099-80828764' in text
        assert '  Action: Review and clarify discrepancy with stakeholders' in text

    def test_html_section_order(self):
        page = render_html(self.report)
        positions = [
            page.index('id="summary"'),
            page.index('id="critical-issues"'),
            page.index('id="field-details"'),
            page.index('id="recommendations"'),
        ]
        assert positions == sorted(positions)

    def test_html_escapes_values(self):
        report = ReportBuilder().build(_shipment({'parties.shipper': {'name': '<script>alert(1)</script>'}}))
        page = render_html(report)
        assert '<script>' not in page
        assert '&lt;script&gt;alert(1)&lt;/script&gt;' in page

    def test_html_title(self):
        page = render_html(self.report, PreviewConfig(title='Shipment 42 & Co'))
        assert '<title>Shipment 42 &amp; Co</title>' in page

    def test_json_round_trip(self):
        data = json.loads(render(self.report, 'json'))
        assert ConsistencyReport.from_dict(data) == self.report

    def test_json_keeps_every_field(self):
        data = json.loads(render(self.report, ReportFormat.JSON))
        assert set(data) == {'summary', 'field_comparisons', 'critical_issues', 'recommendations', 'metadata'}
        assert data['summary']['overall_consistency_score'] == self.report.summary.overall_consistency_score
        assert data['critical_issues'][0]['source'] == 'field_comparison'

    def test_unknown_format(self):
        with pytest.raises(ValueError, match='Unsupported format'):
            render(self.report, 'pdf')

    def test_format_aliases(self):
        assert ReportFormat.parse('TXT') == ReportFormat.TEXT
        assert ReportFormat.HTML.extension == '.html'

    def test_summary_report_defaults_to_text(self):
        assert generate_summary_report(self.report) == render_text(self.report)


class TestReportExporter:
    """Tests for writing reports to disk."""

    def test_export(self, tmp_path, shipment):
        report = ReportBuilder().build(shipment)
        path = tmp_path / 'out' / 'report.html'
        written = ReportExporter().export(report, str(path), 'html')
        assert written == str(path)
        assert path.read_text(encoding='utf-8').startswith('<!DOCTYPE html>')
