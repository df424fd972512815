"""
Business Validation Package

Checks that go beyond field-by-field comparison: single-document business
rules, HSN code plausibility, document-type requirements, quality scoring
and cross-document relationships.

Key Principle: a well-formed value can still be wrong. A gross weight
below the net weight passes every format check and is rejected at customs.

Usage:
    from shipment_crosscheck.validation import validate_shipment_consistency

    result = validate_shipment_consistency({'invoice': invoice, 'bill_of_entry': boe})
    for issue in result.issues:
        print(issue)
"""

from .business_rules import (
    RuleSeverity,
    BusinessRuleResult,
    BusinessRuleEngine,
    package_count_consistency,
    weight_consistency,
    hsn_code_mapping,
    date_sequence_validation,
    financial_consistency,
    rule_compliance,
)
from .hsn_codes import (
    CodeLevel,
    HSNDiscrepancy,
    HSNValidationResult,
    HSNMappingResult,
    HSNSuggestion,
    HSNCodeValidator,
)
from .document_rules import validate_document_type_data
from .quality import QualityAssessment, assess_document_quality
from .relationships import (
    ShipmentDocuments,
    ConsolidatedValue,
    RelationshipAnalysis,
    EntityConflict,
    CrossDocumentValidationResult,
    RelationshipValidator,
    validate_shipment_consistency,
)

__all__ = [
    'RuleSeverity',
    'BusinessRuleResult',
    'BusinessRuleEngine',
    'package_count_consistency',
    'weight_consistency',
    'hsn_code_mapping',
    'date_sequence_validation',
    'financial_consistency',
    'rule_compliance',
    'CodeLevel',
    'HSNDiscrepancy',
    'HSNValidationResult',
    'HSNMappingResult',
    'HSNSuggestion',
    'HSNCodeValidator',
    'validate_document_type_data',
    'QualityAssessment',
    'assess_document_quality',
    'ShipmentDocuments',
    'ConsolidatedValue',
    'RelationshipAnalysis',
    'EntityConflict',
    'CrossDocumentValidationResult',
    'RelationshipValidator',
    'validate_shipment_consistency',
]
