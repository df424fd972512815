"""
Parsing Package

Payload validation, value normalization and the canonical field registry
that says where each comparable field lives on each document type.
"""

from .validators import (
    DocumentFormatError,
    DocumentPayload,
    parse_payload,
    check_format,
)
from .normalizers import (
    TextNormalizer,
    DateNormalizer,
    CurrencyNormalizer,
    NumberNormalizer,
    UnitNormalizer,
    normalize_number,
    normalize_date,
    normalize_text,
)
from .field_mapper import (
    Category,
    Impact,
    ComparisonType,
    FieldMapping,
    FieldMappingRegistry,
    FIELD_MAPPINGS,
    DEFAULT_REGISTRY,
    get_field_mapping,
)

__all__ = [
    'DocumentFormatError',
    'DocumentPayload',
    'parse_payload',
    'check_format',
    'TextNormalizer',
    'DateNormalizer',
    'CurrencyNormalizer',
    'NumberNormalizer',
    'UnitNormalizer',
    'normalize_number',
    'normalize_date',
    'normalize_text',
    'Category',
    'Impact',
    'ComparisonType',
    'FieldMapping',
    'FieldMappingRegistry',
    'FIELD_MAPPINGS',
    'DEFAULT_REGISTRY',
    'get_field_mapping',
]
