"""
Shipment Crosscheck

Compares structured data extracted from the documents of one shipment
(commercial invoice, air waybill, house waybill, bill of entry) and reports
where they disagree.

Features:
- Canonical field registry with per-document-type paths
- Exact, numeric, weight and fuzzy text comparison
- Risk assessment and prioritized recommendations
- Business rules for packages, weights, HSN codes, dates and duty
- Cross-document relationship validation and data consolidation
- Text, HTML and JSON reports

Quick Start:
    from shipment_crosscheck import Document, ReportBuilder, render

    documents = [Document.from_dict(payload) for payload in payloads]
    report = ReportBuilder().build(documents)
    print(report.summary.risk_level)
    print(render(report, 'text'))

CLI Usage:
    shipment-crosscheck compare invoice.json hawb.json boe.json -f html -o report.html
    shipment-crosscheck validate invoice.json boe.json
    shipment-crosscheck hsn 84713010 84713090
    shipment-crosscheck fields
"""

__version__ = '0.1.0'

from .config import ConfigError, CrosscheckConfig, load_config
from .doctypes import Document, DocumentType, ExtractedValue
from .parser import DocumentFormatError, DEFAULT_REGISTRY, FieldMappingRegistry
from .comparison import (
    ConsistencyReport,
    InsufficientDocumentsError,
    RiskLevel,
    compare_documents,
)
from .validation import (
    BusinessRuleEngine,
    HSNCodeValidator,
    assess_document_quality,
    validate_document_type_data,
    validate_shipment_consistency,
)
from .review import ReportBuilder, ReportExporter, ReportFormat, render

__all__ = [
    '__version__',
    'ConfigError',
    'CrosscheckConfig',
    'load_config',
    'Document',
    'DocumentType',
    'ExtractedValue',
    'DocumentFormatError',
    'DEFAULT_REGISTRY',
    'FieldMappingRegistry',
    'ConsistencyReport',
    'InsufficientDocumentsError',
    'RiskLevel',
    'compare_documents',
    'BusinessRuleEngine',
    'HSNCodeValidator',
    'assess_document_quality',
    'validate_document_type_data',
    'validate_shipment_consistency',
    'ReportBuilder',
    'ReportExporter',
    'ReportFormat',
    'render',
]
