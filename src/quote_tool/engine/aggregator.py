"""
Quote Aggregator - Subtotal, tax, minimum charge and final rounding.

The same pipeline applies to service, goods and hand-written lines.
"""
import json
import logging
from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP
from pathlib import Path
from typing import Iterable

from .errors import ConfigurationError
from .models import LineItem, QuoteTotals
from .parsing import parse_number

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def round_to_step(value: float, step: float, rounding: str = ROUND_HALF_UP) -> float:
    """Round to a multiple of step, by default to the nearest with halves rounding up."""
    step_dec = Decimal(str(step))
    units = (Decimal(str(value)) / step_dec).quantize(Decimal('1'), rounding=rounding)
    return float(units * step_dec)


def round_currency(value: float) -> float:
    """Round an amount to cents, halves rounding up."""
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


@dataclass
class QuotePolicy:
    """Quote-level policy: tax, minimum chargeable total and rounding granularity."""
    tax_rate: float = 0.20
    minimum_charge: float = 500.0
    rounding_step: float = 10.0
    currency: str = "MAD"

    def __post_init__(self):
        validate_policy(self.tax_rate, self.minimum_charge, self.rounding_step)

    @classmethod
    def from_dict(cls, data: dict) -> 'QuotePolicy':
        return cls(
            tax_rate=parse_number(data.get('tax_rate'), default=0.20),
            minimum_charge=parse_number(data.get('minimum_charge'), default=500.0),
            rounding_step=parse_number(data.get('rounding_step'), default=10.0),
            currency=str(data.get('currency') or 'MAD'),
        )

    @classmethod
    def from_json(cls, path: Path) -> 'QuotePolicy':
        """Load the policy from a JSON file."""
        if not path.exists():
            raise ConfigurationError(f"Quote policy not found at {path}")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Quote policy at {path} is not valid JSON: {e}") from e
        policy = cls.from_dict(data)
        logger.info("Loaded quote policy from %s: %s", path, asdict(policy))
        return policy

    def to_dict(self) -> dict:
        return asdict(self)


def validate_policy(tax_rate: float, minimum_charge: float, rounding_step: float):
    if tax_rate < 0:
        raise ConfigurationError(f"tax_rate must be >= 0, got {tax_rate}")
    if minimum_charge < 0:
        raise ConfigurationError(f"minimum_charge must be >= 0, got {minimum_charge}")
    if rounding_step <= 0:
        raise ConfigurationError(f"rounding_step must be > 0, got {rounding_step}")


class QuoteAggregator:
    """Turns line items into QuoteTotals under a given policy."""

    def __init__(self, policy: QuotePolicy = None):
        self.policy = policy or QuotePolicy()

    @staticmethod
    def totals(
        items: Iterable[LineItem],
        tax_rate: float,
        minimum_charge: float,
        rounding_step: float,
    ) -> QuoteTotals:
        """
        Compute totals for a set of line items.

        1. sub_total = sum of line totals (0 when empty)
        2. tax = sub_total × tax_rate
        3. total_with_tax = sub_total + tax
        4. floored_total = max(total_with_tax, minimum_charge)
        5. final_price = floored_total rounded half-up to a multiple of rounding_step,
           or rounded up when that would land below minimum_charge
        """
        validate_policy(tax_rate, minimum_charge, rounding_step)

        sub_total = sum((item.total_price for item in items), 0.0)
        tax = sub_total * tax_rate
        total_with_tax = sub_total + tax
        floored_total = max(total_with_tax, minimum_charge)
        final_price = round_to_step(floored_total, rounding_step)
        if final_price < minimum_charge:
            final_price = round_to_step(floored_total, rounding_step, rounding=ROUND_CEILING)

        if floored_total > total_with_tax:
            logger.debug("Minimum charge %.2f applied (computed %.2f)", minimum_charge, total_with_tax)

        return QuoteTotals(
            sub_total=sub_total,
            tax=tax,
            total_with_tax=total_with_tax,
            floored_total=floored_total,
            final_price=final_price,
            tax_rate=tax_rate,
            minimum_charge=minimum_charge,
            rounding_step=rounding_step,
        )

    def for_items(self, items: Iterable[LineItem]) -> QuoteTotals:
        """Compute totals with this aggregator's policy."""
        return self.totals(
            items,
            tax_rate=self.policy.tax_rate,
            minimum_charge=self.policy.minimum_charge,
            rounding_step=self.policy.rounding_step,
        )
