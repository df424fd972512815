"""
Field Mapper Module

This module maps canonical shipment fields onto the schema paths where each
document type carries them.

Architecture:
1. FIELD_MAPPINGS is a static table, one row per canonical field
2. Each row names its category, comparison type, tolerance and the
   path(s) to read per document type
3. FieldMappingRegistry resolves a field against a Document

Why a table and not per-document code:
An AWB number sits under identifiers.awbNumber everywhere, but the declared
value of goods is commercial.invoiceValue.amount on an invoice and
customs.assessedValue.amount on a bill of entry. Adding a document type or a
field is a new row (or a new path in a row), never a new branch.

A document type with an empty path tuple does not carry the field. Several
paths for one type are alternatives, tried in order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from loguru import logger

from ..doctypes.document import Document, ExtractedValue
from ..doctypes.document_type import DocumentType


class Category(Enum):
    """Business-impact tier of a field."""
    CRITICAL = 'critical'
    IMPORTANT = 'important'
    MINOR = 'minor'

    @property
    def impact(self) -> 'Impact':
        """Impact of a discrepancy in this category."""
        return {
            Category.CRITICAL: Impact.HIGH,
            Category.IMPORTANT: Impact.MEDIUM,
            Category.MINOR: Impact.LOW,
        }[self]

    @property
    def recommended_action(self) -> str:
        """Action to take when a field in this category is inconsistent."""
        return {
            Category.CRITICAL: 'URGENT: Resolve discrepancy before shipment',
            Category.IMPORTANT: 'Review and clarify discrepancy with stakeholders',
            Category.MINOR: 'Note discrepancy for future reference',
        }[self]


class Impact(Enum):
    """Impact of a discrepancy."""
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


class ComparisonType(Enum):
    """How values of a field are compared across documents."""
    EXACT = 'exact'
    NUMERIC = 'numeric'
    WEIGHT = 'weight'
    TEXT_SIMILARITY = 'text_similarity'

    @property
    def is_numeric(self) -> bool:
        """Whether values are compared as numbers."""
        return self in (ComparisonType.NUMERIC, ComparisonType.WEIGHT)


ALL_TYPES = tuple(DocumentType)


@dataclass(frozen=True)
class FieldMapping:
    """
    One row of the field mapping table.
    """
    name: str                                   # Canonical name (snake_case)
    display_name: str                           # Human-readable name
    category: Category
    comparison_type: ComparisonType
    business_impact: str
    paths: Dict[DocumentType, Tuple[str, ...]] = field(default_factory=dict)
    tolerance: Optional[float] = None

    def paths_for(self, doc_type: DocumentType) -> Tuple[str, ...]:
        """Paths to try for a document type (empty if not carried)."""
        return self.paths.get(doc_type, ())

    def applies_to(self, doc_type: DocumentType) -> bool:
        """Check whether a document type carries this field."""
        return bool(self.paths_for(doc_type))


def _same_path(path: str, types: Tuple[DocumentType, ...] = ALL_TYPES) -> Dict[DocumentType, Tuple[str, ...]]:
    return {doc_type: (path,) for doc_type in types}


FIELD_MAPPINGS: Tuple[FieldMapping, ...] = (
    # Critical
    FieldMapping(
        name='awb_number',
        display_name='AWB Number',
        category=Category.CRITICAL,
        comparison_type=ComparisonType.EXACT,
        business_impact='Shipment tracking and customs clearance depend on a single AWB number',
        paths=_same_path('identifiers.awbNumber'),
    ),
    FieldMapping(
        name='shipper_name',
        display_name='Shipper Name',
        category=Category.CRITICAL,
        comparison_type=ComparisonType.TEXT_SIMILARITY,
        business_impact='Legal responsibility and customs declarations name the shipper',
        paths=_same_path('parties.shipper.name'),
    ),
    FieldMapping(
        name='consignee_name',
        display_name='Consignee Name',
        category=Category.CRITICAL,
        comparison_type=ComparisonType.TEXT_SIMILARITY,
        business_impact='Delivery and import clearance depend on the consignee',
        paths=_same_path('parties.consignee.name'),
    ),
    FieldMapping(
        name='gross_weight',
        display_name='Gross Weight',
        category=Category.CRITICAL,
        comparison_type=ComparisonType.WEIGHT,
        business_impact='Freight charges and carrier safety limits are based on gross weight',
        paths=_same_path('shipment.grossWeight.value'),
        tolerance=0.5,
    ),
    FieldMapping(
        name='package_count',
        display_name='Package Count',
        category=Category.CRITICAL,
        comparison_type=ComparisonType.NUMERIC,
        business_impact='Missing or extra packages are detected by the package count',
        paths=_same_path('shipment.packageCount.value'),
    ),
    # Important
    FieldMapping(
        name='invoice_value',
        display_name='Invoice Value',
        category=Category.IMPORTANT,
        comparison_type=ComparisonType.NUMERIC,
        business_impact='Customs duty is assessed on the declared value',
        paths={
            DocumentType.INVOICE: ('commercial.invoiceValue.amount',),
            DocumentType.BILL_OF_ENTRY: ('customs.assessedValue.amount',),
        },
        tolerance=0.01,
    ),
    FieldMapping(
        name='hsn_code',
        display_name='HSN Code',
        category=Category.IMPORTANT,
        comparison_type=ComparisonType.EXACT,
        business_impact='Duty rates and import restrictions follow the HSN classification',
        paths={
            DocumentType.INVOICE: ('product.hsnCode',),
            DocumentType.PACKING_LIST: ('product.hsnCode',),
            DocumentType.BILL_OF_ENTRY: ('customs.hsnCode', 'product.hsnCode'),
        },
    ),
    FieldMapping(
        name='net_weight',
        display_name='Net Weight',
        category=Category.IMPORTANT,
        comparison_type=ComparisonType.WEIGHT,
        business_impact='Net weight drives weight-based duties and packing declarations',
        paths=_same_path('shipment.netWeight.value', (
            DocumentType.INVOICE,
            DocumentType.HOUSE_WAYBILL,
            DocumentType.BILL_OF_ENTRY,
            DocumentType.PACKING_LIST,
        )),
        tolerance=0.5,
    ),
    FieldMapping(
        name='hawb_number',
        display_name='HAWB Number',
        category=Category.IMPORTANT,
        comparison_type=ComparisonType.EXACT,
        business_impact='Consolidated cargo is released against the house waybill number',
        paths=_same_path('identifiers.hawbNumber', (
            DocumentType.INVOICE,
            DocumentType.HOUSE_WAYBILL,
            DocumentType.BILL_OF_ENTRY,
            DocumentType.DELIVERY_NOTE,
        )),
    ),
    # Minor
    FieldMapping(
        name='invoice_number',
        display_name='Invoice Number',
        category=Category.MINOR,
        comparison_type=ComparisonType.EXACT,
        business_impact='Invoice references link documents for audit purposes',
        paths=_same_path('identifiers.invoiceNumber'),
    ),
    FieldMapping(
        name='origin',
        display_name='Origin',
        category=Category.MINOR,
        comparison_type=ComparisonType.TEXT_SIMILARITY,
        business_impact='Routing and transit records use the origin',
        paths=_same_path('route.origin', (
            DocumentType.INVOICE,
            DocumentType.AIR_WAYBILL,
            DocumentType.HOUSE_WAYBILL,
        )),
    ),
    FieldMapping(
        name='destination',
        display_name='Destination',
        category=Category.MINOR,
        comparison_type=ComparisonType.TEXT_SIMILARITY,
        business_impact='Routing and final delivery use the destination',
        paths=_same_path('route.destination', (
            DocumentType.INVOICE,
            DocumentType.AIR_WAYBILL,
            DocumentType.HOUSE_WAYBILL,
            DocumentType.DELIVERY_NOTE,
        )),
    ),
    FieldMapping(
        name='country_of_origin',
        display_name='Country of Origin',
        category=Category.MINOR,
        comparison_type=ComparisonType.TEXT_SIMILARITY,
        business_impact='Preferential duty and origin rules depend on the country of origin',
        paths=_same_path('route.countryOfOrigin', (
            DocumentType.INVOICE,
            DocumentType.BILL_OF_ENTRY,
            DocumentType.PACKING_LIST,
        )),
    ),
    FieldMapping(
        name='product_description',
        display_name='Product Description',
        category=Category.MINOR,
        comparison_type=ComparisonType.TEXT_SIMILARITY,
        business_impact='Goods descriptions support the HSN classification',
        paths=_same_path('product.description', (
            DocumentType.INVOICE,
            DocumentType.BILL_OF_ENTRY,
            DocumentType.PACKING_LIST,
        )),
    ),
)


class FieldMappingRegistry:
    """
    Read-only lookup over the field mapping table.

    Usage:
        registry = FieldMappingRegistry()
        value = registry.resolve(document, 'gross_weight')
        if value is not None:
            print(value.value, value.confidence)
    """

    def __init__(self, mappings: Tuple[FieldMapping, ...] = FIELD_MAPPINGS):
        self._mappings = tuple(mappings)
        self._by_name = {m.name: m for m in self._mappings}
        if len(self._by_name) != len(self._mappings):
            raise ValueError("Duplicate canonical field names in mapping table")

    def __iter__(self) -> Iterator[FieldMapping]:
        return iter(self._mappings)

    def __len__(self) -> int:
        return len(self._mappings)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def get(self, name: str) -> Optional[FieldMapping]:
        """Get a mapping by canonical name."""
        return self._by_name.get(name)

    def by_category(self, category: Category) -> List[FieldMapping]:
        """Get all mappings in a category, in table order."""
        return [m for m in self._mappings if m.category == category]

    def resolve(self, document: Document, name: str) -> Optional[ExtractedValue]:
        """
        Resolve a canonical field against a document.

        Returns None when the document type does not carry the field or the
        document lacks a value at every configured path.
        """
        located = self.locate(document, name)
        return located[1] if located is not None else None

    def locate(self, document: Document, name: str) -> Optional[Tuple[str, ExtractedValue]]:
        """Like resolve(), but also return the path the value was found at."""
        mapping = self._by_name.get(name)
        if mapping is None:
            raise KeyError(f"Unknown field: {name}")

        for path in mapping.paths_for(document.doc_type):
            extracted = document.get(path)
            if extracted is not None:
                return path, extracted

        logger.debug(f"{name}: no value in {document.name}")
        return None


DEFAULT_REGISTRY = FieldMappingRegistry()


def get_field_mapping(name: str) -> Optional[FieldMapping]:
    """Get a mapping from the default registry."""
    return DEFAULT_REGISTRY.get(name)
