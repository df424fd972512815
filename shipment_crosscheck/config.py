"""
Crosscheck Configuration

Every threshold the comparison and validation layers use lives here, with
defaults calibrated on real shipment document sets. A YAML file can override
any subset of them:

    similarity_threshold: 0.85
    max_invoice_to_ship_days: 45
    field_tolerances:
      gross_weight: 1.0

Usage:
    config = load_config(Path("crosscheck.yaml"))
    report = compare_documents(documents, config=config)
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from loguru import logger


class ConfigError(ValueError):
    """Raised when a configuration file cannot be used."""


@dataclass
class CrosscheckConfig:
    """Thresholds for comparison, business rules and scoring."""

    # Text comparison
    similarity_threshold: float = 0.8       # Average pairwise similarity for "similar"
    entity_similarity_threshold: float = 0.8

    # Overall consistency bands
    ready_threshold: float = 0.9
    review_threshold: float = 0.7

    # Business rules
    max_packaging_ratio: float = 0.2        # Packaging weight vs net weight
    max_weight_spread: float = 0.1          # Gross weight spread across documents
    min_duty_ratio: float = 0.0
    max_duty_ratio: float = 0.5
    max_invoice_to_ship_days: int = 30

    # Documents every shipment file is expected to carry
    expected_document_types: Tuple[str, ...] = (
        'invoice',
        'air_waybill',
        'house_waybill',
        'bill_of_entry',
    )

    # Document quality blend
    quality_weights: Dict[str, float] = field(default_factory=lambda: {
        'identifier_consistency': 0.3,
        'data_completion': 0.3,
        'format_validation': 0.2,
        'business_rule_compliance': 0.2,
    })

    # Per-field tolerance overrides, keyed by canonical field name
    field_tolerances: Dict[str, float] = field(default_factory=dict)

    def tolerance_for(self, field_name: str, default: Optional[float]) -> Optional[float]:
        """Get the tolerance for a field, honouring overrides."""
        return self.field_tolerances.get(field_name, default)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CrosscheckConfig':
        """Create a config from a plain dict, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        values = dict(data)
        if 'expected_document_types' in values:
            values['expected_document_types'] = tuple(values['expected_document_types'])
        if 'quality_weights' in values:
            weights = cls().quality_weights
            weights.update(values['quality_weights'] or {})
            values['quality_weights'] = weights
        if 'field_tolerances' in values:
            values['field_tolerances'] = {
                str(k): float(v) for k, v in (values['field_tolerances'] or {}).items()
            }
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            f.name: list(getattr(self, f.name)) if f.name == 'expected_document_types'
            else getattr(self, f.name)
            for f in fields(self)
        }


def load_config(config_path: Optional[Path] = None) -> CrosscheckConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to YAML config file (None = built-in defaults)

    Returns:
        CrosscheckConfig with overrides applied
    """
    if config_path is None:
        return CrosscheckConfig()

    logger.info(f"Loading configuration from: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to load config: {e}")
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {config_path}")

    config = CrosscheckConfig.from_dict(data)
    logger.info(f"Loaded {len(data)} configuration overrides")
    return config
