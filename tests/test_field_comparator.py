"""
Tests for the field comparator and report aggregation
"""

import json

import pytest

from shipment_crosscheck.comparison.field_comparator import (
    InsufficientDocumentsError,
    assess_risk,
    compare_documents,
    compare_field,
)
from shipment_crosscheck.comparison.models import ConsistencyReport, IssueSource, RiskLevel
from shipment_crosscheck.comparison.value_comparator import DiscrepancyType
from shipment_crosscheck.config import CrosscheckConfig
from shipment_crosscheck.doctypes.document_type import DocumentType
from shipment_crosscheck.parser.field_mapper import (
    Category,
    DEFAULT_REGISTRY,
    FIELD_MAPPINGS,
    Impact,
    get_field_mapping,
)
from shipment_crosscheck.review.export import render_json

from conftest import BOE_PAYLOAD, HAWB_PAYLOAD, INVOICE_PAYLOAD, build


def _shipment(invoice_changes=None, hawb_changes=None, boe_changes=None):
    return [
        build(INVOICE_PAYLOAD, **(invoice_changes or {})),
        build(HAWB_PAYLOAD, **(hawb_changes or {})),
        build(BOE_PAYLOAD, **(boe_changes or {})),
    ]


class TestFieldMappingRegistry:
    """Tests for the canonical field table."""

    def test_every_category_present(self):
        assert len(DEFAULT_REGISTRY) == len(FIELD_MAPPINGS) == 14
        assert len(DEFAULT_REGISTRY.by_category(Category.CRITICAL)) == 5

    def test_lookup(self):
        mapping = get_field_mapping('gross_weight')
        assert mapping.tolerance == 0.5
        assert mapping.category.impact == Impact.HIGH
        assert 'awb_number' in DEFAULT_REGISTRY
        assert get_field_mapping('colour') is None

    def test_per_type_paths(self, invoice, boe):
        assert DEFAULT_REGISTRY.resolve(invoice, 'invoice_value').value == 1000.0
        assert DEFAULT_REGISTRY.resolve(boe, 'invoice_value').value == 1000.0
        assert DEFAULT_REGISTRY.resolve(boe, 'hsn_code').value == '84713010'

    def test_fallback_path(self):
        boe = build(BOE_PAYLOAD, **{'customs.hsnCode': None, 'product.hsnCode': '84713010'})
        assert DEFAULT_REGISTRY.resolve(boe, 'hsn_code').value == '84713010'

    def test_type_without_field(self, hawb):
        assert not get_field_mapping('invoice_value').applies_to(DocumentType.HOUSE_WAYBILL)
        assert DEFAULT_REGISTRY.resolve(hawb, 'invoice_value') is None

    def test_unknown_field(self, invoice):
        with pytest.raises(KeyError):
            DEFAULT_REGISTRY.resolve(invoice, 'colour')


class TestCompareDocuments:
    """Tests for the full comparison."""

    def test_requires_two_documents(self, invoice):
        with pytest.raises(InsufficientDocumentsError) as excinfo:
            compare_documents([invoice])
        assert excinfo.value.count == 1
        with pytest.raises(InsufficientDocumentsError):
            compare_documents([])

    def test_insufficient_documents_is_value_error(self):
        assert issubclass(InsufficientDocumentsError, ValueError)

    def test_consistent_shipment(self, shipment):
        report = compare_documents(shipment)
        summary = report.summary
        assert summary.total_documents == 3
        assert summary.total_fields_compared == 14
        assert summary.consistent_fields == 14
        assert summary.overall_consistency_score == 1.0
        assert summary.risk_level == RiskLevel.LOW
        assert report.critical_issues == []
        assert report.recommendations == [
            "Consider obtaining missing documents: Air Waybill",
            "Documents show high consistency - ready for processing",
        ]

    def test_field_order_follows_registry(self, shipment):
        report = compare_documents(shipment)
        assert [c.field_name for c in report.field_comparisons] == [m.name for m in FIELD_MAPPINGS]

    def test_values_in_document_order(self, shipment):
        comparison = compare_documents(shipment).get_comparison('gross_weight')
        assert comparison.document_names == ['invoice.pdf', 'hawb.pdf', 'boe.pdf']
        assert [v.formatted_value for v in comparison.values] == ['37 KG', '37.3 KG', '37 KG']
        assert comparison.discrepancy_type == DiscrepancyType.ACCEPTABLE_VARIANCE
        assert comparison.recommended_action is None

    def test_weights_compared_in_kilograms(self):
        # 81.57 lb is 37.0 kg
        documents = _shipment(hawb_changes={'shipment.grossWeight': {'value': 81.57, 'unit': 'LBS'}})
        comparison = compare_documents(documents).get_comparison('gross_weight')
        assert comparison.is_consistent
        assert [v.formatted_value for v in comparison.values] == ['37 KG', '81.57 LBS', '37 KG']
        assert [v.raw_value for v in comparison.values] == [37.0, 81.57, 37.0]

    def test_weight_unit_mismatch_is_a_discrepancy(self):
        documents = _shipment(hawb_changes={'shipment.grossWeight': {'value': 37.0, 'unit': 'LBS'}})
        comparison = compare_documents(documents).get_comparison('gross_weight')
        assert not comparison.is_consistent
        assert comparison.discrepancy_type == DiscrepancyType.MAJOR_DISCREPANCY

    def test_weight_without_unit(self):
        documents = _shipment(boe_changes={'shipment.grossWeight': {'value': '37 kgs'}})
        comparison = compare_documents(documents).get_comparison('gross_weight')
        assert comparison.is_consistent
        assert comparison.values[2].formatted_value == '37 KGS'

    def test_nan_value_survives_json(self):
        documents = _shipment(hawb_changes={'shipment.grossWeight': {'value': float('nan'), 'unit': 'KG'}})
        report = compare_documents(documents)
        comparison = report.get_comparison('gross_weight')
        assert comparison.values[1].raw_value == 'nan'
        assert not comparison.is_consistent
        data = json.loads(render_json(report))
        assert ConsistencyReport.from_dict(data) == report

    def test_single_document_field_is_consistent(self, shipment):
        comparison = compare_documents(shipment).get_comparison('invoice_number')
        assert len(comparison.values) == 1
        assert comparison.is_consistent
        assert comparison.discrepancy_type == DiscrepancyType.EXACT_MATCH

    def test_missing_field(self):
        documents = _shipment(
            invoice_changes={'route.countryOfOrigin': None},
            boe_changes={'route.countryOfOrigin': None},
        )
        report = compare_documents(documents)
        comparison = report.get_comparison('country_of_origin')
        assert comparison.is_missing
        assert not comparison.is_consistent
        assert comparison.recommended_action == Category.MINOR.recommended_action
        assert report.summary.missing_fields == 1
        assert report.summary.discrepant_fields == 0
        assert report.discrepancies == []

    def test_hsn_code_disagreement(self):
        documents = _shipment(boe_changes={'customs.hsnCode': '85171200'})
        report = compare_documents(documents)

        critical = [
            c for c in report.field_comparisons
            if c.category == Category.CRITICAL and not c.is_consistent
        ]
        assert critical == []
        assert report.summary.risk_level != RiskLevel.HIGH
        hsn = [c for c in report.field_comparisons if c.field_name == 'hsn_code']
        assert len(hsn) == 1
        assert hsn[0].discrepancy_type == DiscrepancyType.MAJOR_DISCREPANCY
        assert hsn[0].recommended_action
        assert report.discrepancies == hsn
        assert "Review 1 important field discrepancy with stakeholders: HSN Code" in report.recommendations

    def test_critical_discrepancy(self):
        documents = _shipment(boe_changes={'identifiers.awbNumber': '099-80828764'})
        report = compare_documents(documents)

        assert report.summary.risk_level == RiskLevel.MEDIUM
        assert len(report.critical_issues) == 1
        issue = report.critical_issues[0]
        assert issue.field_name == 'awb_number'
        assert issue.source == IssueSource.FIELD_COMPARISON
        assert issue.affected_documents == ['invoice.pdf', 'hawb.pdf', 'boe.pdf']
        assert issue.recommended_action == "URGENT: Resolve discrepancy before shipment"
        assert report.recommendations[0] == "URGENT: Resolve 1 critical discrepancy before processing the shipment"
        assert report.recommendations[1].startswith("Review AWB Number: Different values found")

    def test_three_critical_discrepancies_is_high_risk(self):
        documents = _shipment(boe_changes={
            'identifiers.awbNumber': '099-80828764',
            'parties.shipper': {'name': 'SKI MANUFACTURING'},
            'shipment.grossWeight': {'value': 45.0, 'unit': 'KG'},
        })
        report = compare_documents(documents)
        assert report.summary.risk_level == RiskLevel.HIGH
        assert len(report.critical_issues) == 3

    @pytest.mark.parametrize("boe_changes", [
        {},
        {'customs.hsnCode': '85171200'},
        {'identifiers.awbNumber': '099-80828764', 'route.countryOfOrigin': None},
        {'shipment.packageCount': {'value': 'three'}},
    ])
    def test_score_is_consistent_over_total(self, boe_changes):
        summary = compare_documents(_shipment(boe_changes=boe_changes)).summary
        assert summary.overall_consistency_score == summary.consistent_fields / summary.total_fields_compared
        assert 0.0 <= summary.overall_consistency_score <= 1.0
        assert (
            summary.consistent_fields + summary.discrepant_fields + summary.missing_fields
            == summary.total_fields_compared
        )

    def test_idempotent(self, shipment):
        assert compare_documents(shipment) == compare_documents(shipment)

    def test_timestamp_is_passed_through(self, shipment):
        report = compare_documents(shipment, timestamp='2024-01-21T10:00:00')
        assert report.metadata.timestamp == '2024-01-21T10:00:00'
        assert compare_documents(shipment).metadata.timestamp is None

    def test_per_document_confidence(self, shipment):
        confidence = compare_documents(shipment).metadata.per_document_confidence
        assert [c.document_name for c in confidence] == ['invoice.pdf', 'hawb.pdf', 'boe.pdf']
        assert confidence[1].extraction_confidence == 0.88

    def test_tolerance_override(self, shipment):
        config = CrosscheckConfig(field_tolerances={'gross_weight': 0.1})
        report = compare_documents(shipment, config=config)
        assert not report.get_comparison('gross_weight').is_consistent
        assert report.summary.risk_level == RiskLevel.MEDIUM

    def test_low_consistency_band(self):
        documents = _shipment(boe_changes={
            'identifiers.awbNumber': '099-80828764',
            'identifiers.hawbNumber': 'HAWB99999',
            'customs.hsnCode': '85171200',
            'shipment.netWeight': {'value': 20.0, 'unit': 'KG'},
            'shipment.packageCount': {'value': 5, 'unit': 'CTN'},
        })
        report = compare_documents(documents)
        assert report.summary.overall_consistency_score < 0.7
        assert report.recommendations[-1] == "Documents show low consistency - comprehensive review required"


class TestCompareField:
    """Tests for single-field comparison and risk."""

    def test_compare_field(self, invoice, hawb):
        result = compare_field(get_field_mapping('package_count'), [invoice, hawb])
        assert result.is_consistent
        assert [v.raw_value for v in result.values] == [3, 3]

    def test_assess_risk_counts_only_critical(self):
        documents = _shipment(boe_changes={
            'customs.hsnCode': '85171200',
            'identifiers.hawbNumber': 'HAWB99999',
            'identifiers.invoiceNumber': 'INV-9',
        })
        report = compare_documents(documents)
        assert assess_risk(report.field_comparisons) == RiskLevel.LOW
