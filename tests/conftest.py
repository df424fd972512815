"""
Shared fixtures: one consistent air shipment as extracted payloads.

The invoice, house waybill and bill of entry below agree on every
canonical field, so tests change one value and check what moves.
"""

import copy

import pytest

from shipment_crosscheck.doctypes.document import Document


INVOICE_PAYLOAD = {
    'documentName': 'invoice.pdf',
    'documentType': 'invoice',
    'fields': {
        'identifiers': {
            'awbNumber': {'value': '098-80828764', 'confidence': 0.95},
            'hawbNumber': {'value': 'HAWB12345', 'confidence': 0.9},
            'invoiceNumber': {'value': 'INV-2024-001', 'confidence': 0.9},
        },
        'parties': {
            'shipper': {'name': {'value': 'Acme Electronics Ltd', 'confidence': 0.9}},
            'consignee': {'name': {'value': 'Global Imports Pvt Ltd', 'confidence': 0.85}},
        },
        'shipment': {
            'grossWeight': {'value': 37.0, 'unit': 'KG'},
            'netWeight': {'value': 34.0, 'unit': 'KG'},
            'packageCount': {'value': 3, 'unit': 'CTN'},
        },
        'commercial': {
            'invoiceValue': {'amount': 1000.0, 'currency': 'USD'},
        },
        'product': {
            'hsnCode': '84713010',
            'description': 'Laptop computer',
        },
        'route': {
            'origin': 'Shenzhen',
            'destination': 'Mumbai',
            'countryOfOrigin': 'China',
        },
        'dates': {
            'invoiceDate': '2024-01-10',
        },
    },
}

HAWB_PAYLOAD = {
    'documentName': 'hawb.pdf',
    'documentType': 'house_waybill',
    'extractionConfidence': 0.88,
    'fields': {
        'identifiers': {
            'awbNumber': {'value': '098-80828764', 'confidence': 0.97},
            'hawbNumber': {'value': 'HAWB12345', 'confidence': 0.95},
        },
        'parties': {
            'shipper': {'name': 'Acme Electronics Ltd'},
            'consignee': {'name': 'Global Imports Pvt Ltd'},
        },
        'shipment': {
            'grossWeight': {'value': 37.3, 'unit': 'KG'},
            'netWeight': {'value': 34.0, 'unit': 'KG'},
            'packageCount': {'value': 3, 'unit': 'CTN'},
        },
        'route': {
            'origin': 'Shenzhen',
            'destination': 'Mumbai',
        },
        'dates': {
            'shipDate': '2024-01-15',
        },
    },
}

BOE_PAYLOAD = {
    'documentName': 'boe.pdf',
    'documentType': 'bill_of_entry',
    'fields': {
        'identifiers': {
            'awbNumber': '098-80828764',
            'hawbNumber': 'HAWB12345',
            'beNumber': 'BE1234567',
        },
        'parties': {
            'shipper': {'name': 'Acme Electronics Ltd'},
            'consignee': {'name': 'Global Imports Pvt Ltd'},
        },
        'shipment': {
            'grossWeight': {'value': 37.0, 'unit': 'KG'},
            'netWeight': {'value': 34.0, 'unit': 'KG'},
            'packageCount': {'value': 3, 'unit': 'CTN'},
        },
        'customs': {
            'hsnCode': '84713010',
            'assessedValue': {'amount': 1000.0, 'currency': 'USD'},
            'duties': {'totalDuty': 180.0},
        },
        'product': {
            'description': 'Laptop computer',
        },
        'route': {
            'countryOfOrigin': 'China',
        },
        'dates': {
            'entryDate': '2024-01-20',
        },
    },
}


def build(payload, **changes):
    """
    Build a Document from a copy of a payload.

    Keyword arguments set dotted field paths, e.g.
    build(BOE_PAYLOAD, **{'customs.hsnCode': '85171200'}).
    A value of None removes the path.
    """
    data = copy.deepcopy(payload)
    for path, value in changes.items():
        node = data['fields']
        *parents, leaf = path.split('.')
        for key in parents:
            node = node.setdefault(key, {})
        if value is None:
            node.pop(leaf, None)
        else:
            node[leaf] = value
    return Document.from_dict(data)


@pytest.fixture
def invoice():
    return build(INVOICE_PAYLOAD)


@pytest.fixture
def hawb():
    return build(HAWB_PAYLOAD)


@pytest.fixture
def boe():
    return build(BOE_PAYLOAD)


@pytest.fixture
def shipment(invoice, hawb, boe):
    return [invoice, hawb, boe]


@pytest.fixture
def payloads():
    return copy.deepcopy([INVOICE_PAYLOAD, HAWB_PAYLOAD, BOE_PAYLOAD])
