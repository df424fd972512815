"""
Business Rules

Checks that a shipment's values make business sense, not just that they
agree between documents.

Rules:
1. Package count - counts agree when their units are comparable
2. Weight - gross weight covers net weight with plausible packaging
3. HSN mapping - two classifications of the same goods agree
4. Date sequence - invoice, shipment and customs entry happen in order
5. Financial - duty is a plausible share of the invoice value

Every rule is a plain function that never raises. A rule that lacks the
inputs it needs returns a passing result marked not applicable, so callers
building compliance percentages can leave it out of the denominator.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from ..config import CrosscheckConfig
from ..doctypes.document import Document
from ..parser.normalizers import (
    CurrencyNormalizer,
    DateNormalizer,
    NumberNormalizer,
    TextNormalizer,
    UnitNormalizer,
)
from ..comparison.value_comparator import format_number

# Compliance reported when no rule could be evaluated
NEUTRAL_COMPLIANCE = 0.7


class RuleSeverity(Enum):
    """Severity of a business rule result."""
    ERROR = 'error'
    WARNING = 'warning'
    INFO = 'info'


@dataclass(frozen=True)
class BusinessRuleResult:
    """Outcome of one business rule."""
    rule_name: str
    passed: bool
    severity: RuleSeverity
    message: str
    confidence: float = 1.0
    applicable: bool = True

    @property
    def failed(self) -> bool:
        return not self.passed

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'rule_name': self.rule_name,
            'passed': self.passed,
            'severity': self.severity.value,
            'message': self.message,
            'confidence': round(self.confidence, 3),
            'applicable': self.applicable,
        }


def _not_applicable(rule_name: str, message: str) -> BusinessRuleResult:
    return BusinessRuleResult(
        rule_name=rule_name,
        passed=True,
        severity=RuleSeverity.INFO,
        message=message,
        confidence=0.1,
        applicable=False,
    )


def _number(value: Any) -> Optional[float]:
    return NumberNormalizer().normalize(value)


def package_count_consistency(
    count_a: Any,
    count_b: Any,
    unit_a: Any = None,
    unit_b: Any = None,
) -> BusinessRuleResult:
    """
    Check that two package counts agree.

    Differing counts only fail when the units count the same thing: 10
    cartons and 120 pieces describe the same consignment at different
    levels.
    """
    rule = 'package_count_consistency'
    a, b = _number(count_a), _number(count_b)
    if a is None or b is None:
        return _not_applicable(rule, 'Package count missing in one or both documents')

    label_a = f"{format_number(a)} {unit_a or ''}".strip()
    label_b = f"{format_number(b)} {unit_b or ''}".strip()

    if a == b:
        return BusinessRuleResult(
            rule, True, RuleSeverity.INFO, f"Package counts match: {label_a}", 0.95,
        )

    family_a = UnitNormalizer.package_family(unit_a)
    family_b = UnitNormalizer.package_family(unit_b)
    same_text = TextNormalizer.for_comparison(unit_a) == TextNormalizer.for_comparison(unit_b)
    comparable = family_a is None or family_b is None or family_a == family_b or same_text

    if not comparable:
        return BusinessRuleResult(
            rule,
            True,
            RuleSeverity.INFO,
            f"Package counts differ ({label_a} vs {label_b}) but count different units "
            f"({family_a} vs {family_b})",
            0.6,
        )

    ratio = min(a, b) / max(a, b) if max(a, b) > 0 else 0.0
    return BusinessRuleResult(
        rule,
        False,
        RuleSeverity.WARNING,
        f"Package count mismatch: {label_a} vs {label_b}",
        round(max(0.1, ratio * 0.5), 3),
    )


def weight_consistency(
    gross: Any,
    net: Any,
    unit: Any = None,
    max_packaging_ratio: float = 0.2,
    net_unit: Any = None,
) -> BusinessRuleResult:
    """
    Check gross weight against net weight.

    Gross below net is impossible and fails with ERROR severity. Packaging
    heavier than max_packaging_ratio of the net weight fails as a WARNING.

    unit is the gross weight's unit and net_unit the net weight's (same as
    unit when omitted). Weights in different units are compared in kilograms.
    """
    rule = 'weight_consistency'
    g, n = _number(gross), _number(net)
    if g is None or n is None:
        return _not_applicable(rule, 'Gross or net weight missing')

    gross_unit = UnitNormalizer.weight_unit(gross, unit)
    net_weight_unit = UnitNormalizer.weight_unit(net, net_unit if net_unit is not None else unit)
    if gross_unit and net_weight_unit and (
        UnitNormalizer.WEIGHT_TO_KG[gross_unit] != UnitNormalizer.WEIGHT_TO_KG[net_weight_unit]
    ):
        g = round(UnitNormalizer.to_kilograms(g, gross_unit), 3)
        n = round(UnitNormalizer.to_kilograms(n, net_weight_unit), 3)
        unit = 'kg'

    suffix = f" {unit}" if unit else ''
    if g < n:
        return BusinessRuleResult(
            rule,
            False,
            RuleSeverity.ERROR,
            f"Gross weight ({format_number(g)}{suffix}) is less than net weight "
            f"({format_number(n)}{suffix})",
            0.1,
        )

    if n > 0:
        packaging_ratio = (g - n) / n
        if packaging_ratio > max_packaging_ratio:
            return BusinessRuleResult(
                rule,
                False,
                RuleSeverity.WARNING,
                f"Packaging weight is {packaging_ratio:.0%} of net weight "
                f"(expected at most {max_packaging_ratio:.0%})",
                0.6,
            )

    return BusinessRuleResult(
        rule,
        True,
        RuleSeverity.INFO,
        f"Gross weight ({format_number(g)}{suffix}) is consistent with net weight "
        f"({format_number(n)}{suffix})",
        0.95,
    )


def hsn_code_mapping(code_a: Any, code_b: Any) -> BusinessRuleResult:
    """
    Check that two HSN codes classify the same goods.

    Confidence reflects how deep the codes agree: exact 0.99, subheading
    0.9, heading 0.7. Agreement only on the chapter (0.4) or not at all
    (0.1) fails.
    """
    rule = 'hsn_code_mapping'
    a = TextNormalizer.digits_only(code_a)
    b = TextNormalizer.digits_only(code_b)
    if not a or not b:
        return _not_applicable(rule, 'HSN code missing in one or both documents')

    if a == b:
        return BusinessRuleResult(rule, True, RuleSeverity.INFO, f"HSN codes match: {a}", 0.99)
    if len(a) >= 6 and len(b) >= 6 and a[:6] == b[:6]:
        return BusinessRuleResult(
            rule, True, RuleSeverity.INFO, f"HSN codes match at subheading level: {a} vs {b}", 0.9,
        )
    if len(a) >= 4 and len(b) >= 4 and a[:4] == b[:4]:
        return BusinessRuleResult(
            rule, True, RuleSeverity.INFO, f"HSN codes match at heading level: {a} vs {b}", 0.7,
        )
    if a[:2] == b[:2]:
        return BusinessRuleResult(
            rule,
            False,
            RuleSeverity.WARNING,
            f"HSN codes match only at chapter level: {a} vs {b}",
            0.4,
        )
    return BusinessRuleResult(
        rule, False, RuleSeverity.WARNING, f"HSN codes do not match: {a} vs {b}", 0.1,
    )


def date_sequence_validation(
    invoice_date: Any,
    ship_date: Any,
    entry_date: Any,
    max_gap_days: int = 30,
) -> BusinessRuleResult:
    """
    Check that invoice, shipment and customs entry dates are in order.

    Only the dates present are compared. The invoice-to-shipment gap is also
    limited to max_gap_days.
    """
    rule = 'date_sequence_validation'
    normalizer = DateNormalizer()
    labelled = [
        ('invoice date', normalizer.parse(invoice_date)),
        ('ship date', normalizer.parse(ship_date)),
        ('entry date', normalizer.parse(entry_date)),
    ]
    present = [(label, d) for label, d in labelled if d is not None]
    if len(present) < 2:
        return _not_applicable(rule, 'Fewer than two dates available for sequencing')

    issues = []
    for (label_a, date_a), (label_b, date_b) in zip(present, present[1:]):
        if date_b < date_a:
            issues.append(f"{label_b} ({date_b.isoformat()}) is before {label_a} ({date_a.isoformat()})")

    invoice, ship = labelled[0][1], labelled[1][1]
    if invoice is not None and ship is not None:
        gap = (ship - invoice).days
        if gap > max_gap_days:
            issues.append(f"{gap} days between invoice and shipment (expected at most {max_gap_days})")

    if issues:
        return BusinessRuleResult(
            rule, False, RuleSeverity.WARNING, f"Date sequence issue: {'; '.join(issues)}", 0.5,
        )
    sequence = ' <= '.join(f"{label} {d.isoformat()}" for label, d in present)
    return BusinessRuleResult(rule, True, RuleSeverity.INFO, f"Dates in order: {sequence}", 0.9)


def financial_consistency(
    invoice_amount: Any,
    duty_amount: Any,
    currency: Any = None,
    exchange_rate: Any = None,
    min_ratio: float = 0.0,
    max_ratio: float = 0.5,
) -> BusinessRuleResult:
    """
    Check that duty is a plausible share of the invoice value.

    Args:
        invoice_amount: Invoice value in the invoice currency
        duty_amount: Total duty in the customs currency
        currency: Invoice currency (for messages)
        exchange_rate: Invoice currency to customs currency rate, if they differ
        min_ratio: Lowest plausible duty/value ratio
        max_ratio: Highest plausible duty/value ratio
    """
    rule = 'financial_consistency'
    invoice = _number(invoice_amount)
    duty = _number(duty_amount)
    if invoice is None or duty is None:
        return _not_applicable(rule, 'Invoice value or duty amount missing')
    if invoice <= 0:
        return _not_applicable(rule, 'Invoice value is not positive')

    rate = _number(exchange_rate)
    base = invoice * rate if rate else invoice
    ratio = duty / base
    code = CurrencyNormalizer().extract_currency_code(currency) if currency else None
    value_label = f"{format_number(invoice)} {code}" if code else format_number(invoice)

    if not min_ratio <= ratio <= max_ratio:
        return BusinessRuleResult(
            rule,
            False,
            RuleSeverity.WARNING,
            f"Duty is {ratio:.1%} of invoice value {value_label} "
            f"(expected {min_ratio:.0%} to {max_ratio:.0%})",
            0.4,
        )
    return BusinessRuleResult(
        rule,
        True,
        RuleSeverity.INFO,
        f"Duty is {ratio:.1%} of invoice value {value_label}",
        0.85,
    )


def find_exchange_rate(rates: Any, currency: Any) -> Optional[float]:
    """
    Pick the rate converting a currency from a list of {from, to, rate}.

    Returns None when the list has no usable entry.
    """
    if not isinstance(rates, list) or not currency:
        return None
    code = str(currency).strip().upper()
    for entry in rates:
        if not isinstance(entry, dict):
            continue
        source = str(entry.get('from') or entry.get('currency') or '').strip().upper()
        if source == code:
            rate = _number(entry.get('rate'))
            if rate:
                return rate
    return None


def rule_compliance(results: Sequence[BusinessRuleResult]) -> float:
    """
    Fraction of applicable rules that passed.

    Rules that could not be evaluated are left out. With nothing
    applicable the neutral NEUTRAL_COMPLIANCE is returned.
    """
    applicable = [r for r in results if r.applicable]
    if not applicable:
        return NEUTRAL_COMPLIANCE
    return sum(1 for r in applicable if r.passed) / len(applicable)


class BusinessRuleEngine:
    """
    Evaluates the business rules against one document's own fields.

    Usage:
        engine = BusinessRuleEngine()
        results = engine.evaluate_document(document)
        compliance = rule_compliance(results)
    """

    def __init__(self, config: Optional[CrosscheckConfig] = None):
        self.config = config or CrosscheckConfig()

    def evaluate_document(self, document: Document) -> List[BusinessRuleResult]:
        """
        Run every single-document rule.

        Returns:
            One result per rule, in a fixed order
        """
        value = document.value

        # Duty is assessed in the customs currency; only an invoice value needs converting
        amount = value('commercial.invoiceValue.amount')
        currency = value('commercial.invoiceValue.currency')
        exchange_rate = find_exchange_rate(value('customs.exchangeRates'), currency)
        if amount is None:
            amount = value('customs.assessedValue.amount')
            currency = value('customs.assessedValue.currency')
            exchange_rate = None

        # Product quantity is only a package count when its unit says so
        quantity_unit = value('product.quantity.unit', value('product.unit'))
        quantity = None
        if UnitNormalizer.package_family(quantity_unit) is not None:
            quantity = value('product.quantity.value', value('product.quantity'))

        results = [
            package_count_consistency(
                value('shipment.packageCount.value'),
                quantity,
                value('shipment.packageCount.unit'),
                quantity_unit,
            ),
            weight_consistency(
                value('shipment.grossWeight.value'),
                value('shipment.netWeight.value'),
                value('shipment.grossWeight.unit'),
                max_packaging_ratio=self.config.max_packaging_ratio,
                net_unit=value('shipment.netWeight.unit'),
            ),
            hsn_code_mapping(value('product.hsnCode'), value('customs.hsnCode')),
            date_sequence_validation(
                value('dates.invoiceDate'),
                value('dates.shipDate', value('dates.awbDate')),
                value('dates.entryDate'),
                max_gap_days=self.config.max_invoice_to_ship_days,
            ),
            financial_consistency(
                amount,
                value('customs.duties.totalDuty'),
                currency,
                exchange_rate=exchange_rate,
                min_ratio=self.config.min_duty_ratio,
                max_ratio=self.config.max_duty_ratio,
            ),
        ]

        failed = [r.rule_name for r in results if r.failed]
        logger.debug(
            f"{document.name}: {len(results) - len(failed)}/{len(results)} rules passed"
            + (f", failed: {', '.join(failed)}" if failed else '')
        )
        return results
