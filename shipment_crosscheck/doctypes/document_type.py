"""
Document Type Definition

The kinds of trade and logistics documents a shipment file can carry.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class DocumentType(Enum):
    """Types of shipment documents, in canonical order."""

    INVOICE = 'invoice'
    AIR_WAYBILL = 'air_waybill'
    HOUSE_WAYBILL = 'house_waybill'
    BILL_OF_ENTRY = 'bill_of_entry'
    PACKING_LIST = 'packing_list'
    DELIVERY_NOTE = 'delivery_note'

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return {
            DocumentType.INVOICE: 'Commercial Invoice',
            DocumentType.AIR_WAYBILL: 'Air Waybill',
            DocumentType.HOUSE_WAYBILL: 'House Waybill',
            DocumentType.BILL_OF_ENTRY: 'Bill of Entry',
            DocumentType.PACKING_LIST: 'Packing List',
            DocumentType.DELIVERY_NOTE: 'Delivery Note',
        }[self]

    @property
    def order(self) -> int:
        """Position in canonical order."""
        return list(DocumentType).index(self)

    @property
    def is_waybill(self) -> bool:
        """Whether this is a carrier transport document."""
        return self in (DocumentType.AIR_WAYBILL, DocumentType.HOUSE_WAYBILL)

    @classmethod
    def parse(cls, value: str) -> Optional['DocumentType']:
        """
        Look up a document type by value, name or a common alias.

        Returns None for unknown types.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace('-', '_').replace(' ', '_')
        key = _ALIASES.get(key, key)
        for doc_type in cls:
            if doc_type.value == key:
                return doc_type
        return None


_ALIASES = {
    'commercial_invoice': 'invoice',
    'awb': 'air_waybill',
    'airway_bill': 'air_waybill',
    'hawb': 'house_waybill',
    'house_airway_bill': 'house_waybill',
    'boe': 'bill_of_entry',
    'be': 'bill_of_entry',
    'packinglist': 'packing_list',
    'delivery_order': 'delivery_note',
}
