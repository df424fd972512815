"""
Consistency Report Model

Dataclasses for the cross-document consistency report. Every class has a
to_dict() for serialization and a from_dict() that rebuilds an equal object,
so a report written as JSON can be read back unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..doctypes.document_type import DocumentType
from ..parser.field_mapper import Category, Impact
from .value_comparator import DiscrepancyType


class RiskLevel(Enum):
    """Overall shipment risk."""
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.value.upper()


class IssueSource(Enum):
    """Which check raised a critical issue."""
    FIELD_COMPARISON = 'field_comparison'
    BUSINESS_RULE = 'business_rule'
    RELATIONSHIP = 'relationship'


@dataclass
class FieldValue:
    """A field's value as read from one document."""
    document_name: str
    document_type: DocumentType
    raw_value: Any
    formatted_value: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'document_name': self.document_name,
            'document_type': self.document_type.value,
            'raw_value': self.raw_value,
            'formatted_value': self.formatted_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FieldValue':
        return cls(
            document_name=data['document_name'],
            document_type=DocumentType(data['document_type']),
            raw_value=data['raw_value'],
            formatted_value=data['formatted_value'],
        )


@dataclass
class FieldComparisonResult:
    """
    Comparison of one canonical field across all supplied documents.
    """
    field_name: str
    display_name: str
    category: Category
    values: List[FieldValue]
    is_consistent: bool
    discrepancy_type: DiscrepancyType
    impact: Impact
    explanation: str
    recommended_action: Optional[str] = None

    @property
    def is_missing(self) -> bool:
        """No document carried this field."""
        return self.discrepancy_type == DiscrepancyType.MISSING_DATA

    @property
    def is_discrepant(self) -> bool:
        """Inconsistent, with values present."""
        return not self.is_consistent and not self.is_missing

    @property
    def document_names(self) -> List[str]:
        """Names of documents contributing a value."""
        return [v.document_name for v in self.values]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'field_name': self.field_name,
            'display_name': self.display_name,
            'category': self.category.value,
            'values': [v.to_dict() for v in self.values],
            'is_consistent': self.is_consistent,
            'discrepancy_type': self.discrepancy_type.value,
            'impact': self.impact.value,
            'explanation': self.explanation,
            'recommended_action': self.recommended_action,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FieldComparisonResult':
        return cls(
            field_name=data['field_name'],
            display_name=data['display_name'],
            category=Category(data['category']),
            values=[FieldValue.from_dict(v) for v in data['values']],
            is_consistent=data['is_consistent'],
            discrepancy_type=DiscrepancyType(data['discrepancy_type']),
            impact=Impact(data['impact']),
            explanation=data['explanation'],
            recommended_action=data.get('recommended_action'),
        )


@dataclass
class CriticalIssue:
    """An issue that must be resolved before the shipment is processed."""
    description: str
    affected_documents: List[str]
    impact: str
    recommended_action: str
    source: IssueSource = IssueSource.FIELD_COMPARISON
    field_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'description': self.description,
            'affected_documents': list(self.affected_documents),
            'impact': self.impact,
            'recommended_action': self.recommended_action,
            'source': self.source.value,
            'field_name': self.field_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CriticalIssue':
        return cls(
            description=data['description'],
            affected_documents=list(data['affected_documents']),
            impact=data['impact'],
            recommended_action=data['recommended_action'],
            source=IssueSource(data.get('source', IssueSource.FIELD_COMPARISON.value)),
            field_name=data.get('field_name'),
        )


@dataclass
class ReportSummary:
    """Aggregate statistics of a consistency report."""
    total_documents: int
    documents_compared: List[str]
    total_fields_compared: int
    consistent_fields: int
    discrepant_fields: int
    missing_fields: int
    overall_consistency_score: float
    risk_level: RiskLevel

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'total_documents': self.total_documents,
            'documents_compared': list(self.documents_compared),
            'total_fields_compared': self.total_fields_compared,
            'consistent_fields': self.consistent_fields,
            'discrepant_fields': self.discrepant_fields,
            'missing_fields': self.missing_fields,
            'overall_consistency_score': self.overall_consistency_score,
            'risk_level': self.risk_level.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReportSummary':
        return cls(
            total_documents=data['total_documents'],
            documents_compared=list(data['documents_compared']),
            total_fields_compared=data['total_fields_compared'],
            consistent_fields=data['consistent_fields'],
            discrepant_fields=data['discrepant_fields'],
            missing_fields=data['missing_fields'],
            overall_consistency_score=data['overall_consistency_score'],
            risk_level=RiskLevel(data['risk_level']),
        )


@dataclass
class DocumentConfidence:
    """Extraction confidence of one document."""
    document_name: str
    document_type: DocumentType
    extraction_confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'document_name': self.document_name,
            'document_type': self.document_type.value,
            'extraction_confidence': self.extraction_confidence,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DocumentConfidence':
        return cls(
            document_name=data['document_name'],
            document_type=DocumentType(data['document_type']),
            extraction_confidence=data['extraction_confidence'],
        )


@dataclass
class ReportMetadata:
    """When the report was produced and how confident each extraction was."""
    timestamp: Optional[str] = None
    per_document_confidence: List[DocumentConfidence] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'per_document_confidence': [d.to_dict() for d in self.per_document_confidence],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReportMetadata':
        return cls(
            timestamp=data.get('timestamp'),
            per_document_confidence=[
                DocumentConfidence.from_dict(d) for d in data.get('per_document_confidence', [])
            ],
        )


@dataclass
class ConsistencyReport:
    """
    Complete cross-document consistency report.

    Contains per-field comparisons, the issues that block processing and the
    recommendations for the reviewer.
    """
    summary: ReportSummary
    field_comparisons: List[FieldComparisonResult]
    critical_issues: List[CriticalIssue] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    metadata: ReportMetadata = field(default_factory=ReportMetadata)

    @property
    def discrepancies(self) -> List[FieldComparisonResult]:
        """Fields with conflicting values."""
        return [c for c in self.field_comparisons if c.is_discrepant]

    def get_comparison(self, field_name: str) -> Optional[FieldComparisonResult]:
        """Get the comparison for a canonical field."""
        for comparison in self.field_comparisons:
            if comparison.field_name == field_name:
                return comparison
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'summary': self.summary.to_dict(),
            'field_comparisons': [c.to_dict() for c in self.field_comparisons],
            'critical_issues': [i.to_dict() for i in self.critical_issues],
            'recommendations': list(self.recommendations),
            'metadata': self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConsistencyReport':
        """Rebuild a report from to_dict() output."""
        return cls(
            summary=ReportSummary.from_dict(data['summary']),
            field_comparisons=[FieldComparisonResult.from_dict(c) for c in data['field_comparisons']],
            critical_issues=[CriticalIssue.from_dict(i) for i in data.get('critical_issues', [])],
            recommendations=list(data.get('recommendations', [])),
            metadata=ReportMetadata.from_dict(data.get('metadata', {})),
        )
