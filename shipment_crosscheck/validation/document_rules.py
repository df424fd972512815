"""
Document Type Requirements

Each document type must carry a minimum set of fields to be useful for
cross-checking. An invoice without an invoice value, or a bill of entry
without an HSN code, is flagged here before any comparison runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from loguru import logger

from ..doctypes.document import Document
from ..doctypes.document_type import DocumentType
from ..parser.normalizers import NumberNormalizer, UnitNormalizer


@dataclass(frozen=True)
class Requirement:
    """A required field, satisfied by any one of its paths."""
    label: str
    paths: Tuple[str, ...]

    def is_met(self, document: Document) -> bool:
        return any(document.has(path) for path in self.paths)


SHIPPER = Requirement('Shipper name', ('parties.shipper.name',))
CONSIGNEE = Requirement('Consignee name', ('parties.consignee.name',))
GROSS_WEIGHT = Requirement('Gross weight', ('shipment.grossWeight.value',))
PACKAGE_COUNT = Requirement('Package count', ('shipment.packageCount.value',))
ORIGIN = Requirement('Origin', ('route.origin',))
DESTINATION = Requirement('Destination', ('route.destination',))

REQUIREMENTS: Dict[DocumentType, Tuple[Requirement, ...]] = {
    DocumentType.INVOICE: (
        Requirement('Invoice number', ('identifiers.invoiceNumber',)),
        Requirement('Invoice value', ('commercial.invoiceValue.amount',)),
        SHIPPER,
        CONSIGNEE,
        Requirement('Invoice date', ('dates.invoiceDate',)),
    ),
    DocumentType.HOUSE_WAYBILL: (
        Requirement('HAWB number', ('identifiers.hawbNumber',)),
        Requirement('Master AWB number', ('identifiers.awbNumber',)),
        SHIPPER,
        CONSIGNEE,
        ORIGIN,
        DESTINATION,
        GROSS_WEIGHT,
    ),
    DocumentType.AIR_WAYBILL: (
        Requirement('AWB number', ('identifiers.awbNumber',)),
        SHIPPER,
        CONSIGNEE,
        ORIGIN,
        DESTINATION,
        GROSS_WEIGHT,
        Requirement('Carrier information', ('route.carrier',)),
    ),
    DocumentType.BILL_OF_ENTRY: (
        Requirement('BE number', ('identifiers.beNumber',)),
        Requirement('Duty information', (
            'customs.duties.totalDuty',
            'customs.duties.bcd',
            'customs.duties.igst',
        )),
        Requirement('Importer name', ('parties.consignee.name', 'parties.importer.name')),
        Requirement('BE date', ('dates.entryDate', 'customs.beDate')),
        Requirement('HSN code', ('customs.hsnCode', 'product.hsnCode')),
    ),
    DocumentType.PACKING_LIST: (
        Requirement('Packing list number', ('identifiers.packingListNumber',)),
        SHIPPER,
        CONSIGNEE,
        PACKAGE_COUNT,
        GROSS_WEIGHT,
        Requirement('Net weight', ('shipment.netWeight.value',)),
    ),
    DocumentType.DELIVERY_NOTE: (
        Requirement('Delivery note number', ('identifiers.deliveryNoteNumber',)),
        SHIPPER,
        CONSIGNEE,
        Requirement('Delivery date', ('dates.deliveryDate', 'shipment.deliveryDate')),
        PACKAGE_COUNT,
    ),
}


def _business_logic_issues(document: Document) -> List[str]:
    issues = []
    number = NumberNormalizer().normalize

    gross = UnitNormalizer.to_kilograms(
        document.value('shipment.grossWeight.value'), document.value('shipment.grossWeight.unit'),
    )
    net = UnitNormalizer.to_kilograms(
        document.value('shipment.netWeight.value'), document.value('shipment.netWeight.unit'),
    )
    if gross is not None and net is not None and gross < net:
        issues.append('Gross weight cannot be less than net weight')

    if document.doc_type == DocumentType.PACKING_LIST:
        count = number(document.value('shipment.packageCount.value'))
        dimensions = document.value('shipment.dimensions.dimensions', document.value('shipment.dimensions'))
        if count is not None and isinstance(dimensions, list) and dimensions and count != len(dimensions):
            issues.append('Package count should match the number of dimension entries')

    if document.doc_type == DocumentType.BILL_OF_ENTRY:
        assessed = number(document.value('customs.assessedValue.amount'))
        invoice = number(document.value('commercial.invoiceValue.amount'))
        if assessed is not None and invoice is not None and assessed < invoice:
            issues.append('Assessable value is less than invoice value, which is unusual')

    return issues


def validate_document_type_data(document: Document) -> Tuple[bool, List[str]]:
    """
    Check a document against the requirements of its type.

    Returns:
        (is_valid, issues)
    """
    type_name = document.doc_type.display_name.lower()
    issues = [
        f"{requirement.label} is required for {type_name} documents"
        for requirement in REQUIREMENTS.get(document.doc_type, ())
        if not requirement.is_met(document)
    ]
    issues.extend(_business_logic_issues(document))

    if issues:
        logger.debug(f"{document.name}: {len(issues)} document type issue(s)")
    return not issues, issues
