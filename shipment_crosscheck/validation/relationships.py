"""
Shipment Relationship Validation

Reasons about the documents of one shipment as a set: does the invoice's
package count match the house waybill's, does the customs HSN code match
the invoice's, do the parties and route agree, and which value of each
field is the most trustworthy overall.

The validator works on a ShipmentDocuments collection, which holds at most
one document per type. It is built once per validation session and never
changes afterwards; adding a document produces a new collection.

Confidence model:
- overall confidence starts at 0.7 and each failed check takes a fixed
  penalty off it (never below 0.1)
- the relationship score starts at 0.5 and moves with identifier and
  route agreement (clamped to [0.1, 1.0])
- each pair of document types gets a match score from AWB number and
  party name agreement
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from loguru import logger

from ..comparison.value_comparator import format_number, text_similarity
from ..config import CrosscheckConfig
from ..doctypes.document import Document
from ..doctypes.document_type import DocumentType
from ..parser.normalizers import TextNormalizer, UnitNormalizer
from .business_rules import (
    BusinessRuleResult,
    date_sequence_validation,
    financial_consistency,
    find_exchange_rate,
    hsn_code_mapping,
    package_count_consistency,
    weight_consistency,
)

BASE_CONFIDENCE = 0.7
MIN_CONFIDENCE = 0.1

PENALTIES = {
    'package_count': 0.2,
    'weight': 0.15,
    'hsn_code': 0.25,
    'dates': 0.1,
    'financial': 0.1,
    'entity': 0.05,      # Per inconsistent party
}

# (key, label, path, canonical field)
PARTIES = (
    ('shipper', 'Shipper', 'parties.shipper.name', 'shipper_name'),
    ('consignee', 'Consignee', 'parties.consignee.name', 'consignee_name'),
)


class ShipmentDocuments:
    """
    Immutable collection of one shipment's documents, one per type.

    Documents are stored in a tuple in canonical type order and looked up
    through a read-only type index. When two documents share a type the
    later one wins.

    Usage:
        shipment = ShipmentDocuments.from_documents([invoice, hawb, boe])
        shipment.get(DocumentType.INVOICE)
    """

    __slots__ = ('_documents', '_index')

    def __init__(self, documents: Mapping[DocumentType, Document]):
        ordered = sorted(documents.items(), key=lambda item: item[0].order)
        self._documents: Tuple[Document, ...] = tuple(doc for _, doc in ordered)
        self._index: Mapping[DocumentType, int] = MappingProxyType(
            {doc_type: position for position, (doc_type, _) in enumerate(ordered)}
        )

    @classmethod
    def from_documents(cls, documents: Sequence[Document]) -> 'ShipmentDocuments':
        """Build from documents in any order (later documents win per type)."""
        by_type: Dict[DocumentType, Document] = {}
        for document in documents:
            if document.doc_type in by_type:
                logger.warning(
                    f"Replacing {by_type[document.doc_type].name} with {document.name} "
                    f"as the {document.doc_type.display_name}"
                )
            by_type[document.doc_type] = document
        return cls(by_type)

    @classmethod
    def from_mapping(cls, documents_by_type: Mapping[Any, Document]) -> 'ShipmentDocuments':
        """Build from a {type: document} mapping; keys may be enum members or names."""
        by_type: Dict[DocumentType, Document] = {}
        for key, document in documents_by_type.items():
            doc_type = DocumentType.parse(key)
            if doc_type is None:
                raise ValueError(f"Unknown document type: {key}")
            if document.doc_type != doc_type:
                raise ValueError(
                    f"{document.name} is a {document.doc_type.value}, not a {doc_type.value}"
                )
            by_type[doc_type] = document
        return cls(by_type)

    def with_document(self, document: Document) -> 'ShipmentDocuments':
        """New collection with a document added or replaced."""
        by_type = {doc.doc_type: doc for doc in self._documents}
        by_type[document.doc_type] = document
        return ShipmentDocuments(by_type)

    def get(self, doc_type: DocumentType) -> Optional[Document]:
        position = self._index.get(doc_type)
        return self._documents[position] if position is not None else None

    @property
    def types(self) -> Tuple[DocumentType, ...]:
        return tuple(doc.doc_type for doc in self._documents)

    def __contains__(self, doc_type: object) -> bool:
        return doc_type in self._index

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __repr__(self) -> str:
        return f"ShipmentDocuments({', '.join(t.value for t in self.types)})"


@dataclass
class ConsolidatedValue:
    """The most confident value of one path across the shipment."""
    value: Any
    confidence: Optional[float]
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {'value': self.value, 'confidence': self.confidence, 'source': self.source}


@dataclass
class RelationshipAnalysis:
    """Identifier and route agreement across the shipment."""
    relationship_score: float
    consistency_issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'relationship_score': round(self.relationship_score, 3),
            'consistency_issues': list(self.consistency_issues),
            'recommendations': list(self.recommendations),
        }


@dataclass(frozen=True)
class EntityConflict:
    """Party names that disagree across the shipment."""
    party: str
    field_name: str         # Canonical field, e.g. 'shipper_name'
    names: Tuple[str, ...]
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'party': self.party,
            'field_name': self.field_name,
            'names': list(self.names),
            'description': self.description,
        }


@dataclass
class CrossDocumentValidationResult:
    """
    Result of validating one shipment's documents against each other.
    """
    is_valid: bool
    issues: List[str]
    confidence: float
    business_rule_results: List[BusinessRuleResult]
    document_pairings: Dict[str, float]
    relationship_analysis: RelationshipAnalysis
    recommendations: List[str] = field(default_factory=list)
    consolidated_data: Dict[str, ConsolidatedValue] = field(default_factory=dict)
    entity_conflicts: List[EntityConflict] = field(default_factory=list)

    @property
    def entity_issues(self) -> List[str]:
        """Descriptions of the party-name conflicts."""
        return [c.description for c in self.entity_conflicts]

    @property
    def failed_rules(self) -> List[BusinessRuleResult]:
        return [r for r in self.business_rule_results if r.failed]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'is_valid': self.is_valid,
            'issues': list(self.issues),
            'confidence': round(self.confidence, 3),
            'business_rule_results': [r.to_dict() for r in self.business_rule_results],
            'document_pairings': {k: round(v, 3) for k, v in self.document_pairings.items()},
            'relationship_analysis': self.relationship_analysis.to_dict(),
            'recommendations': list(self.recommendations),
            'consolidated_data': {k: v.to_dict() for k, v in self.consolidated_data.items()},
            'entity_issues': list(self.entity_issues),
            'entity_conflicts': [c.to_dict() for c in self.entity_conflicts],
        }


def pairing_key(first: DocumentType, second: DocumentType) -> str:
    """Key of a document type pair, e.g. 'invoice:house_waybill'."""
    return f"{first.value}:{second.value}"


class RelationshipValidator:
    """
    Validates the documents of one shipment against each other.

    Usage:
        validator = RelationshipValidator(ShipmentDocuments.from_documents(docs))
        result = validator.validate_shipment_consistency()
        if not result.is_valid:
            for issue in result.issues:
                print(issue)
    """

    def __init__(self, shipment: ShipmentDocuments, config: Optional[CrosscheckConfig] = None):
        self.shipment = shipment
        self.config = config or CrosscheckConfig()

    def validate_shipment_consistency(self) -> CrossDocumentValidationResult:
        """Run every cross-document check."""
        logger.info(f"Validating shipment relationships: {self.shipment!r}")

        invoice = self.shipment.get(DocumentType.INVOICE)
        hawb = self.shipment.get(DocumentType.HOUSE_WAYBILL)
        boe = self.shipment.get(DocumentType.BILL_OF_ENTRY)

        issues: List[str] = []
        recommendations: List[str] = []
        rule_results: List[BusinessRuleResult] = []
        confidence = BASE_CONFIDENCE

        def record(result: BusinessRuleResult, penalty: str, advice: str) -> bool:
            nonlocal confidence
            rule_results.append(result)
            if result.failed:
                issues.append(result.message)
                recommendations.append(advice)
                confidence -= PENALTIES[penalty]
                return True
            return False

        if invoice and hawb:
            record(
                package_count_consistency(
                    invoice.value('shipment.packageCount.value'),
                    hawb.value('shipment.packageCount.value'),
                    invoice.value('shipment.packageCount.unit'),
                    hawb.value('shipment.packageCount.unit'),
                ),
                'package_count',
                'Review package counting method - commercial documents may count boxes '
                'while shipping documents count pieces',
            )

        weight_failed = False
        for document in (invoice, hawb, boe):
            if document is None:
                continue
            result = weight_consistency(
                document.value('shipment.grossWeight.value'),
                document.value('shipment.netWeight.value'),
                document.value('shipment.grossWeight.unit'),
                max_packaging_ratio=self.config.max_packaging_ratio,
                net_unit=document.value('shipment.netWeight.unit'),
            )
            rule_results.append(result)
            if result.failed:
                weight_failed = True
                issues.append(f"{document.name}: {result.message}")
        spread_issue = self._weight_spread_issue([d for d in (invoice, hawb, boe) if d is not None])
        if spread_issue:
            weight_failed = True
            issues.append(spread_issue)
        if weight_failed:
            confidence -= PENALTIES['weight']
            recommendations.append(
                'Verify weight measurements - different scales or measurement methods may cause variations'
            )

        if invoice and boe:
            record(
                hsn_code_mapping(
                    invoice.value('product.hsnCode'),
                    boe.value('customs.hsnCode', boe.value('product.hsnCode')),
                ),
                'hsn_code',
                'HSN code discrepancy detected - commercial and customs classifications '
                'may differ for the same product',
            )

        ship_source = hawb or self.shipment.get(DocumentType.AIR_WAYBILL)
        record(
            date_sequence_validation(
                invoice.value('dates.invoiceDate') if invoice else None,
                ship_source.value('dates.shipDate', ship_source.value('dates.awbDate')) if ship_source else None,
                boe.value('dates.entryDate', boe.value('customs.beDate')) if boe else None,
                max_gap_days=self.config.max_invoice_to_ship_days,
            ),
            'dates',
            'Review document dates - ensure logical sequence of commercial, shipping and customs events',
        )

        if invoice and boe:
            currency = invoice.value('commercial.invoiceValue.currency')
            record(
                financial_consistency(
                    invoice.value('commercial.invoiceValue.amount'),
                    boe.value('customs.duties.totalDuty'),
                    currency,
                    exchange_rate=find_exchange_rate(boe.value('customs.exchangeRates'), currency),
                    min_ratio=self.config.min_duty_ratio,
                    max_ratio=self.config.max_duty_ratio,
                ),
                'financial',
                'Review duty calculation - rate seems unusual for the declared invoice value',
            )

        entity_conflicts, entity_advice = self._entity_consistency()
        if entity_conflicts:
            issues.extend(c.description for c in entity_conflicts)
            recommendations.extend(entity_advice)
            confidence -= PENALTIES['entity'] * len(entity_conflicts)

        analysis = self._analyze_relationships()
        pairings = self._document_pairings()
        consolidated = self._consolidate()

        result = CrossDocumentValidationResult(
            is_valid=not issues,
            issues=issues,
            confidence=max(MIN_CONFIDENCE, round(confidence, 4)),
            business_rule_results=rule_results,
            document_pairings=pairings,
            relationship_analysis=analysis,
            recommendations=recommendations,
            consolidated_data=consolidated,
            entity_conflicts=entity_conflicts,
        )

        logger.info(
            f"Shipment relationships: {len(issues)} issue(s), confidence {result.confidence:.2f}, "
            f"relationship score {analysis.relationship_score:.2f}"
        )
        return result

    def _weight_spread_issue(self, documents: List[Document]) -> Optional[str]:
        weights = []
        for document in documents:
            kg = UnitNormalizer.to_kilograms(
                document.value('shipment.grossWeight.value'),
                document.value('shipment.grossWeight.unit'),
            )
            if kg is not None:
                weights.append(kg)
        if len(weights) < 2:
            return None

        low, high = min(weights), max(weights)
        if high == low:
            return None
        if low <= 0 or (high - low) / low > self.config.max_weight_spread:
            return (
                f"Weight inconsistency across documents: Range "
                f"{format_number(round(low, 3))}kg - {format_number(round(high, 3))}kg"
            )
        return None

    def _entity_consistency(self) -> Tuple[List[EntityConflict], List[str]]:
        conflicts: List[EntityConflict] = []
        advice: List[str] = []

        for key, label, path, field_name in PARTIES:
            names: List[str] = []
            seen = set()
            for document in self.shipment:
                name = document.value(path)
                if name is None:
                    continue
                normalized = TextNormalizer.for_comparison(name)
                if normalized not in seen:
                    seen.add(normalized)
                    names.append(TextNormalizer.normalize_whitespace(str(name)))
            if len(names) < 2:
                continue

            inconsistent = any(
                text_similarity(a, b) < self.config.entity_similarity_threshold
                for a, b in combinations(names, 2)
            )
            if inconsistent:
                conflicts.append(EntityConflict(
                    party=key,
                    field_name=field_name,
                    names=tuple(names),
                    description=f"{label} name inconsistency: {' vs '.join(names)}",
                ))
                advice.append(f"Verify {key} entity - names should be consistent across documents")

        return conflicts, advice

    def _distinct_values(self, path: str) -> Tuple[int, List[str]]:
        present = 0
        distinct: List[str] = []
        for document in self.shipment:
            value = document.value(path)
            if value is None:
                continue
            present += 1
            normalized = TextNormalizer.for_comparison(value)
            if normalized not in distinct:
                distinct.append(normalized)
        return present, distinct

    def _analyze_relationships(self) -> RelationshipAnalysis:
        score = 0.5
        issues: List[str] = []
        advice: List[str] = []

        present, awbs = self._distinct_values('identifiers.awbNumber')
        if present > 1:
            if len(awbs) == 1:
                score += 0.2
            else:
                score -= 0.1
                issues.append(f"Multiple AWB numbers found across documents: {', '.join(awbs)}")
                advice.append('Confirm the master AWB number with the carrier')

        present, origins = self._distinct_values('route.origin')
        if present > 1:
            if len(origins) == 1:
                score += 0.1
            else:
                issues.append('Origin locations vary across documents')
                advice.append('Confirm the port of origin on the transport documents')

        present, destinations = self._distinct_values('route.destination')
        if present > 1:
            if len(destinations) == 1:
                score += 0.1
            else:
                issues.append('Destination locations vary across documents')
                advice.append('Confirm the destination on the transport documents')

        return RelationshipAnalysis(
            relationship_score=min(1.0, max(MIN_CONFIDENCE, round(score, 4))),
            consistency_issues=issues,
            recommendations=advice,
        )

    def _pairing_score(self, first: Document, second: Document) -> float:
        matches = 0
        checked = 0

        awb_a = first.value('identifiers.awbNumber')
        awb_b = second.value('identifiers.awbNumber')
        if awb_a is not None and awb_b is not None:
            checked += 1
            if str(awb_a).strip() == str(awb_b).strip():
                matches += 1

        for _, _, path, _ in PARTIES:
            name_a, name_b = first.value(path), second.value(path)
            if name_a is not None and name_b is not None:
                checked += 1
                if text_similarity(name_a, name_b) > self.config.entity_similarity_threshold:
                    matches += 1

        if checked == 0:
            return 0.5
        return max(MIN_CONFIDENCE, matches / checked)

    def _document_pairings(self) -> Dict[str, float]:
        return {
            pairing_key(first.doc_type, second.doc_type): self._pairing_score(first, second)
            for first, second in combinations(self.shipment, 2)
        }

    def _consolidate(self) -> Dict[str, ConsolidatedValue]:
        best: Dict[str, ConsolidatedValue] = {}
        for document in self.shipment:
            for path in document.paths():
                extracted = document.get(path)
                current = best.get(path)
                score = extracted.confidence if extracted.confidence is not None else -1.0
                if current is None:
                    best[path] = ConsolidatedValue(extracted.value, extracted.confidence, document.name)
                    continue
                current_score = current.confidence if current.confidence is not None else -1.0
                if score > current_score:
                    best[path] = ConsolidatedValue(extracted.value, extracted.confidence, document.name)
        return dict(sorted(best.items()))


def validate_shipment_consistency(
    documents_by_type: Union[Mapping[Any, Document], Sequence[Document], ShipmentDocuments],
    config: Optional[CrosscheckConfig] = None,
) -> CrossDocumentValidationResult:
    """
    Validate a shipment's documents against each other.

    Args:
        documents_by_type: {type: document} mapping, a list of documents or
            a ShipmentDocuments collection
        config: Thresholds (defaults if None)

    Returns:
        CrossDocumentValidationResult
    """
    if isinstance(documents_by_type, ShipmentDocuments):
        shipment = documents_by_type
    elif isinstance(documents_by_type, Mapping):
        shipment = ShipmentDocuments.from_mapping(documents_by_type)
    else:
        shipment = ShipmentDocuments.from_documents(list(documents_by_type))
    return RelationshipValidator(shipment, config).validate_shipment_consistency()
