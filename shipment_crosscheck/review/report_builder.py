"""
Report Builder

Combines the field comparison with the business rule, relationship, quality
and document-type checks into the single report a reviewer works from.

Field comparison decides the summary and risk level. The other checks
contribute:
- failed ERROR-severity rules and party-name conflicts → critical issues
- everything else that failed → recommendations
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from ..comparison.field_comparator import compare_documents
from ..comparison.models import ConsistencyReport, CriticalIssue, IssueSource
from ..config import CrosscheckConfig
from ..doctypes.document import Document
from ..parser.field_mapper import Category, FieldMappingRegistry, DEFAULT_REGISTRY
from ..validation.business_rules import BusinessRuleEngine, BusinessRuleResult, RuleSeverity
from ..validation.document_rules import validate_document_type_data
from ..validation.quality import QualityAssessment, assess_document_quality
from ..validation.relationships import (
    CrossDocumentValidationResult,
    ShipmentDocuments,
    RelationshipValidator,
)

RULE_ERROR_IMPACT = 'Contradictory values on a single document will be rejected at customs'
RULE_ERROR_ACTION = 'URGENT: Correct the extracted values before shipment'


@dataclass
class ShipmentAssessment:
    """Everything the builder computed for one shipment."""
    report: ConsistencyReport
    relationship: CrossDocumentValidationResult
    quality: List[QualityAssessment] = field(default_factory=list)
    document_rule_results: Dict[str, List[BusinessRuleResult]] = field(default_factory=dict)
    document_type_issues: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'report': self.report.to_dict(),
            'relationship': self.relationship.to_dict(),
            'quality': [q.to_dict() for q in self.quality],
            'document_rule_results': {
                name: [r.to_dict() for r in results]
                for name, results in self.document_rule_results.items()
            },
            'document_type_issues': {k: list(v) for k, v in self.document_type_issues.items()},
        }


def _dedupe(items: Sequence[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


class ReportBuilder:
    """
    Builds the consistency report for a set of documents.

    Usage:
        builder = ReportBuilder()
        report = builder.build(documents)
        print(render(report, 'text'))

        # Or keep the intermediate results too
        assessment = builder.assemble(documents)
        print(assessment.relationship.document_pairings)
    """

    def __init__(
        self,
        config: Optional[CrosscheckConfig] = None,
        registry: FieldMappingRegistry = DEFAULT_REGISTRY,
    ):
        self.config = config or CrosscheckConfig()
        self.registry = registry

    def build(self, documents: Sequence[Document], timestamp: Optional[str] = None) -> ConsistencyReport:
        """
        Build the merged consistency report.

        Raises:
            InsufficientDocumentsError: if fewer than two documents are given
        """
        return self.assemble(documents, timestamp).report

    def assemble(self, documents: Sequence[Document], timestamp: Optional[str] = None) -> ShipmentAssessment:
        """Run every check and merge the results."""
        documents = list(documents)
        base = compare_documents(documents, config=self.config, timestamp=timestamp, registry=self.registry)

        engine = BusinessRuleEngine(self.config)
        rule_results = {d.name: engine.evaluate_document(d) for d in documents}
        quality = [assess_document_quality(d, self.config, self.registry) for d in documents]
        type_issues = {}
        for document in documents:
            _, issues = validate_document_type_data(document)
            if issues:
                type_issues[document.name] = issues

        relationship = RelationshipValidator(
            ShipmentDocuments.from_documents(documents), self.config,
        ).validate_shipment_consistency()

        critical_issues = list(base.critical_issues)
        critical_issues.extend(self._rule_errors(documents, rule_results))
        critical_issues.extend(self._entity_issues(base, documents, relationship))
        critical_issues = self._dedupe_issues(critical_issues)

        recommendations = list(base.recommendations)
        for document in documents:
            for result in rule_results[document.name]:
                if result.failed and result.severity != RuleSeverity.ERROR:
                    recommendations.append(f"{document.name}: {result.message}")
        recommendations.extend(relationship.recommendations)
        recommendations.extend(relationship.relationship_analysis.recommendations)
        for assessment in quality:
            if assessment.score < self.config.review_threshold:
                recommendations.extend(f"{assessment.document_name}: {r}" for r in assessment.recommendations)
        for name, issues in type_issues.items():
            recommendations.extend(f"{name}: {issue}" for issue in issues)

        report = ConsistencyReport(
            summary=base.summary,
            field_comparisons=base.field_comparisons,
            critical_issues=critical_issues,
            recommendations=_dedupe(recommendations),
            metadata=base.metadata,
        )

        logger.info(
            f"Report built: {len(report.critical_issues)} critical issue(s), "
            f"{len(report.recommendations)} recommendation(s)"
        )

        return ShipmentAssessment(
            report=report,
            relationship=relationship,
            quality=quality,
            document_rule_results=rule_results,
            document_type_issues=type_issues,
        )

    def _rule_errors(
        self,
        documents: Sequence[Document],
        rule_results: Dict[str, List[BusinessRuleResult]],
    ) -> List[CriticalIssue]:
        issues = []
        for document in documents:
            for result in rule_results[document.name]:
                if result.failed and result.severity == RuleSeverity.ERROR:
                    issues.append(CriticalIssue(
                        description=f"{document.name}: {result.message}",
                        affected_documents=[document.name],
                        impact=RULE_ERROR_IMPACT,
                        recommended_action=RULE_ERROR_ACTION,
                        source=IssueSource.BUSINESS_RULE,
                    ))
        return issues

    def _entity_issues(
        self,
        base: ConsistencyReport,
        documents: Sequence[Document],
        relationship: CrossDocumentValidationResult,
    ) -> List[CriticalIssue]:
        issues = []
        for conflict in relationship.entity_conflicts:
            comparison = base.get_comparison(conflict.field_name)
            # Already reported by the field comparison
            if comparison is not None and not comparison.is_consistent:
                continue
            mapping = self.registry.get(conflict.field_name)
            affected = comparison.document_names if comparison else [d.name for d in documents]
            issues.append(CriticalIssue(
                description=conflict.description,
                affected_documents=affected,
                impact=mapping.business_impact if mapping else RULE_ERROR_IMPACT,
                recommended_action=Category.CRITICAL.recommended_action,
                source=IssueSource.RELATIONSHIP,
                field_name=conflict.field_name,
            ))
        return issues

    @staticmethod
    def _dedupe_issues(issues: List[CriticalIssue]) -> List[CriticalIssue]:
        seen: set = set()
        result = []
        for issue in issues:
            key: Tuple[str, str] = (issue.source.value, issue.description)
            if key not in seen:
                seen.add(key)
                result.append(issue)
        return result
