"""
Line Builders - Turn requested services and goods into priced line items.
"""
import logging
from typing import Iterable, Optional

from .aggregator import round_currency
from .coefficients import CoefficientResolver
from .models import ServiceSpec, GoodsItem, LineItem, LineSource
from .rate_table import RateTable

logger = logging.getLogger(__name__)


def _fmt(number: float) -> str:
    """Format 50.0 as '50' and 37.44 as '37.44'."""
    return f"{number:g}" if float(number).is_integer() else f"{number:.2f}"


class ServiceLineBuilder:
    """
    Prices one service from its total area, tiered base rate and multipliers.

    final_rate = base_rate × distance × access × urgency × difficulty
    total      = total_area × final_rate, rounded half-up to cents

    Only the quote's final price is rounded to whole rounding steps.
    """

    def __init__(self, rate_table: RateTable, resolver: CoefficientResolver):
        self.rate_table = rate_table
        self.resolver = resolver

    def build(self, spec: ServiceSpec) -> LineItem:
        total_area = spec.total_area
        rate = self.rate_table.base_rate(spec.category, total_area)
        coefficients = self.resolver.coefficients(spec)
        final_rate = rate * coefficients.combined
        total = round_currency(total_area * final_rate)

        detail_parts = [f"{_fmt(spec.area)}m²"]
        if spec.levels > 1:
            detail_parts.append(f"{spec.levels} levels ({_fmt(total_area)}m² total)")
        if coefficients.distance > 1.0:
            detail_parts.append(f"{_fmt(spec.travel_distance_km)}km")
        detail_parts.append(f"{_fmt(round_currency(final_rate))}/m²")

        line = LineItem(
            description=f"{spec.category} - {_fmt(total_area)}m²",
            detail=" • ".join(detail_parts),
            quantity=1,
            unit_price=total,
            total_price=total,
            editable=False,
            source=LineSource.SERVICE.value,
            category=spec.category,
            computed_total=total,
        )

        line.add_trace("Area", f"{_fmt(spec.area)}m² × {spec.levels} level(s)", f"{_fmt(total_area)}m²")
        line.add_trace("Base Rate", f"Tier rate for {spec.category}", f"{rate:.2f}/m²")
        for name in ('distance', 'access', 'urgency', 'difficulty'):
            factor = getattr(coefficients, name)
            if factor != 1.0:
                line.add_trace("Coefficient", name.capitalize(), f"×{factor:g}")
        line.add_trace("Effective Rate", "Base rate × coefficients", f"{final_rate:.4f}/m²")
        line.add_trace("Extension", f"{_fmt(total_area)}m² × {final_rate:.4f}", f"{total:.2f}")

        logger.debug("Priced service %s area=%s rate=%s total=%s", spec.category, total_area, final_rate, total)
        return line

    def build_all(self, specs: Iterable[ServiceSpec]) -> list[LineItem]:
        return [self.build(spec) for spec in specs]


class GoodsLineBuilder:
    """Prices goods as quantity × unit price. Incomplete rows are dropped, not rejected."""

    @staticmethod
    def is_complete(item: GoodsItem) -> bool:
        return bool(item.name and item.name.strip()) and item.quantity > 0 and item.unit_price > 0

    def build(self, item: GoodsItem) -> Optional[LineItem]:
        if not self.is_complete(item):
            logger.debug("Skipping incomplete goods row: %r", item)
            return None

        total = item.quantity * item.unit_price
        line = LineItem(
            description=item.name.strip(),
            detail=item.description or (f"Ref. {item.reference}" if item.reference else ""),
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=total,
            editable=True,
            source=LineSource.GOODS.value,
            reference=item.reference,
        )
        line.add_trace("Extension", f"Quantity {item.quantity} × {item.unit_price:.2f}", f"{total:.2f}")
        return line

    def build_all(self, items: Iterable[GoodsItem]) -> list[LineItem]:
        lines = []
        for item in items:
            line = self.build(item)
            if line:
                lines.append(line)
        return lines
