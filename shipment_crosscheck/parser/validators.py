"""
Validators Module

Validation at the ingestion boundary and format checks for individual values.

Two levels:
1. Payload validation - every document handed to the engine must carry a
   name, a known document type and a mapping of fields. Pydantic does the
   type coercion; failures surface as DocumentFormatError.
2. Format validation - regex checks for identifiers and contact details
   (HSN code, AWB number, e-mail, phone, currency code). These feed the
   document quality score; they never reject a document.
"""

import re
from typing import Any, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..doctypes.document_type import DocumentType


class DocumentFormatError(ValueError):
    """Raised when a document payload does not match the expected shape."""


class DocumentPayload(BaseModel):
    """
    Pydantic model for one extracted document as handed to the engine.

    Accepts both camelCase keys (as produced by the extraction service) and
    snake_case keys.
    """
    model_config = ConfigDict(populate_by_name=True)

    document_name: str = Field(alias='documentName')
    document_type: DocumentType = Field(alias='documentType')
    fields: dict[str, Any] = Field(default_factory=dict)
    extraction_confidence: Optional[float] = Field(default=None, alias='extractionConfidence')

    @field_validator('document_name')
    @classmethod
    def validate_name(cls, v):
        """Document names must be non-empty."""
        v = str(v).strip()
        if not v:
            raise ValueError('Document name is empty')
        return v

    @field_validator('document_type', mode='before')
    @classmethod
    def validate_document_type(cls, v):
        """Accept enum values, names and common aliases."""
        doc_type = DocumentType.parse(v) if v is not None else None
        if doc_type is None:
            raise ValueError(f'Unknown document type: {v}')
        return doc_type

    @field_validator('fields', mode='before')
    @classmethod
    def validate_fields(cls, v):
        """Missing fields are treated as an empty record."""
        if v is None:
            return {}
        return v

    @field_validator('extraction_confidence')
    @classmethod
    def validate_confidence(cls, v):
        """Confidence must be within [0, 1]."""
        if v is not None and not 0.0 <= v <= 1.0:
            raise ValueError('Extraction confidence must be between 0 and 1')
        return v


def parse_payload(data: Any) -> DocumentPayload:
    """
    Validate a raw payload.

    Raises:
        DocumentFormatError: if the payload is malformed
    """
    if not isinstance(data, dict):
        raise DocumentFormatError(f"Document payload must be an object, got {type(data).__name__}")
    try:
        return DocumentPayload.model_validate(data)
    except ValidationError as e:
        name = data.get('documentName') or data.get('document_name') or '<unnamed>'
        problems = '; '.join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        logger.warning(f"Rejected document {name}: {problems}")
        raise DocumentFormatError(f"Invalid document {name}: {problems}") from e


# Format checks used by the quality score
FORMAT_PATTERNS = {
    'hsn_code': re.compile(r'^\d{6,8}$'),
    'awb_number': re.compile(r'^\d{3}[-\s]?\d{8,}$'),
    'email': re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$'),
    'phone': re.compile(r'^\+?[\d\s\-().]{7,20}$'),
    'currency': re.compile(r'^[A-Z]{3}$'),
    'invoice_number': re.compile(r'^[A-Za-z0-9][A-Za-z0-9\-/._ ]{1,49}$'),
    'reference_number': re.compile(r'^[A-Za-z0-9][A-Za-z0-9\-/._ ]{2,49}$'),
}


def check_format(kind: str, value: Any) -> bool:
    """
    Check a value against a named format.

    Args:
        kind: Key of FORMAT_PATTERNS
        value: Value to check (converted to a stripped string)

    Returns:
        True if the value matches
    """
    pattern = FORMAT_PATTERNS.get(kind)
    if pattern is None:
        raise ValueError(f"Unsupported format: {kind}")
    if value is None:
        return False
    return bool(pattern.match(str(value).strip()))
