"""
Document Types

Closed set of shipment document types and the immutable Document model
that holds one document's extracted fields.
"""

from .document_type import DocumentType
from .document import Document, ExtractedValue, flatten_fields

__all__ = [
    'DocumentType',
    'Document',
    'ExtractedValue',
    'flatten_fields',
]
