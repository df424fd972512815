"""
Extracted Document Model

A Document is one extracted shipment document as the engine sees it: a name,
a type and a flat map from dotted schema paths to ExtractedValue.

The extraction service produces nested records whose leaves may be bare
values or {"value": ..., "confidence": ...} wrappers. Unwrapping happens
exactly once, here, so nothing downstream has to guess which shape a value
arrived in:

    {"shipment": {"grossWeight": {"value": 37.0, "unit": "KG"}}}
        -> "shipment.grossWeight.value" = ExtractedValue(37.0, None)
           "shipment.grossWeight.unit"  = ExtractedValue("KG", None)

    {"identifiers": {"awbNumber": {"value": "098-80828764", "confidence": 0.95}}}
        -> "identifiers.awbNumber" = ExtractedValue("098-80828764", 0.95)

A mapping that carries a numeric "confidence" next to other keys lends that
confidence to all leaves below it. Lists are kept as single leaf values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from statistics import mean
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional

from loguru import logger

from .document_type import DocumentType

_WRAPPER_KEYS = frozenset({'value', 'confidence'})


def _is_confidence(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _finite(value: Any) -> Optional[float]:
    """The value as a float, None for NaN and infinity."""
    number = float(value)
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class ExtractedValue:
    """A bare extracted value with the extractor's confidence, if given."""
    value: Any
    confidence: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        """True for None and blank strings."""
        if self.value is None:
            return True
        return isinstance(self.value, str) and not self.value.strip()


@dataclass(frozen=True)
class Document:
    """
    One extracted document, immutable once built.

    Use Document.from_dict() to build from an extraction payload.
    """
    name: str
    doc_type: DocumentType
    fields: Mapping[str, ExtractedValue] = field(default_factory=dict)
    extraction_confidence: Optional[float] = None

    def __post_init__(self):
        # Freeze the field map so a Document cannot change after ingestion
        object.__setattr__(self, 'fields', MappingProxyType(dict(self.fields)))

    def __hash__(self) -> int:
        return hash((self.name, self.doc_type))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return (
            self.name == other.name
            and self.doc_type == other.doc_type
            and dict(self.fields) == dict(other.fields)
            and self.extraction_confidence == other.extraction_confidence
        )

    @property
    def label(self) -> str:
        """Name with type, e.g. 'invoice.pdf (invoice)'."""
        return f"{self.name} ({self.doc_type.value})"

    def get(self, path: str) -> Optional[ExtractedValue]:
        """Get the wrapped value at a path, None when absent or empty."""
        extracted = self.fields.get(path)
        if extracted is None or extracted.is_empty:
            return None
        return extracted

    def value(self, path: str, default: Any = None) -> Any:
        """Get the bare value at a path."""
        extracted = self.get(path)
        return extracted.value if extracted is not None else default

    def has(self, path: str) -> bool:
        """Check whether a path holds a non-empty value."""
        return self.get(path) is not None

    def paths(self) -> Iterator[str]:
        """Iterate populated paths in sorted order."""
        return iter(sorted(p for p in self.fields if self.get(p) is not None))

    @property
    def overall_confidence(self) -> float:
        """
        Declared extraction confidence, else the mean field confidence.

        Returns 0.0 when neither is known.
        """
        if self.extraction_confidence is not None:
            return float(self.extraction_confidence)
        scores = [v.confidence for v in self.fields.values() if v.confidence is not None]
        return round(mean(scores), 4) if scores else 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Document':
        """
        Create a Document from an extraction payload.

        Args:
            data: {"documentName", "documentType", "fields", optional "extractionConfidence"}

        Raises:
            DocumentFormatError: if the payload is malformed
        """
        from ..parser.validators import parse_payload

        payload = parse_payload(data)
        flat: Dict[str, ExtractedValue] = {}
        flatten_fields(payload.fields, flat)

        confidence = payload.extraction_confidence
        if confidence is None:
            declared = flat.get('metadata.extractionConfidence')
            if declared is not None and _is_confidence(declared.value):
                confidence = _finite(declared.value)

        logger.debug(
            f"Ingested {payload.document_name} ({payload.document_type.value}) "
            f"with {len(flat)} fields"
        )
        return cls(
            name=payload.document_name,
            doc_type=payload.document_type,
            fields=flat,
            extraction_confidence=confidence,
        )


def flatten_fields(
    node: Any,
    out: Dict[str, ExtractedValue],
    prefix: str = '',
    confidence: Optional[float] = None,
) -> None:
    """
    Flatten a nested field record into dotted paths.

    Args:
        node: Nested record (or leaf)
        out: Target dict, filled in place
        prefix: Path of node
        confidence: Confidence inherited from an enclosing mapping
    """
    if node is None:
        return

    if isinstance(node, dict):
        if node and set(node) == _WRAPPER_KEYS and (
            node['confidence'] is None or _is_confidence(node['confidence'])
        ):
            inner_conf = confidence
            if node['confidence'] is not None:
                inner_conf = _finite(node['confidence'])
            flatten_fields(node['value'], out, prefix, inner_conf)
            return

        local_conf = confidence
        lends_confidence = _is_confidence(node.get('confidence'))
        if lends_confidence:
            local_conf = _finite(node['confidence'])

        for key, child in node.items():
            if key == 'confidence' and lends_confidence:
                continue
            child_path = f"{prefix}.{key}" if prefix else str(key)
            flatten_fields(child, out, child_path, local_conf)
        return

    if not prefix:
        logger.warning(f"Ignoring bare value at document root: {node!r}")
        return

    out[prefix] = ExtractedValue(node, confidence)
