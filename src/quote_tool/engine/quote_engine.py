"""
Quote Engine - Wires rate table, coefficients, builders, store and aggregator.

Configuration is loaded from the data files named in Settings:
- Rate table (category tiers)
- Coefficient table (distance, access, urgency, difficulty)
- Quote policy (tax rate, minimum charge, rounding step)

A policy workbook, when present, replaces the two CSV tables.
"""
import logging
import random
from datetime import date
from typing import Iterable, Optional, Union

from ..config.settings import get_settings, Settings
from .aggregator import QuoteAggregator, QuotePolicy
from .coefficients import CoefficientResolver
from .line_builders import ServiceLineBuilder, GoodsLineBuilder
from .line_item_store import LineItemStore
from .models import QuoteRequest, QuoteResult, QuoteTotals, LineItem
from .rate_table import RateTable

logger = logging.getLogger(__name__)


def generate_quote_number(prefix: str = "SERVICE", today: Optional[date] = None, sequence: Optional[int] = None) -> str:
    """Quote numbers look like DV-SER-2026-0042."""
    today = today or date.today()
    if sequence is None:
        sequence = random.randint(0, 9999)
    return f"DV-{prefix[:3].upper()}-{today.year}-{sequence:04d}"


class QuoteEngine:
    """
    Prices quote requests.

    Pipeline:
    1. Services → ServiceLineBuilder (tiered rate × coefficients)
    2. Goods → GoodsLineBuilder (incomplete rows dropped)
    3. Custom lines appended as-is
    4. Lines stored in a LineItemStore (ids assigned)
    5. QuoteAggregator → subtotal, tax, minimum charge, rounding
    """

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize engine with rate table, coefficients and quote policy from disk."""
        self.settings = settings or get_settings()

        workbook = self.settings.policy_workbook
        if workbook is not None and workbook.exists():
            rate_table = RateTable.from_excel(workbook)
            resolver = CoefficientResolver.from_excel(workbook)
        else:
            rate_table = RateTable.from_csv(self.settings.rate_table_csv)
            resolver = CoefficientResolver.from_csv(self.settings.coefficients_csv)

        policy = QuotePolicy.from_json(self.settings.quote_policy_json)
        self._wire(rate_table, resolver, policy)

    @classmethod
    def from_components(
        cls,
        rate_table: RateTable,
        resolver: Optional[CoefficientResolver] = None,
        policy: Optional[QuotePolicy] = None,
    ) -> 'QuoteEngine':
        """Build an engine from explicit configuration objects instead of files."""
        engine = cls.__new__(cls)
        engine.settings = None
        engine._wire(rate_table, resolver or CoefficientResolver.default(), policy or QuotePolicy())
        return engine

    def _wire(self, rate_table: RateTable, resolver: CoefficientResolver, policy: QuotePolicy):
        self.rate_table = rate_table
        self.resolver = resolver
        self.policy = policy
        self.service_builder = ServiceLineBuilder(rate_table, resolver)
        self.goods_builder = GoodsLineBuilder()
        self.aggregator = QuoteAggregator(policy)

    def reload_data(self):
        """Reload all configuration files from disk."""
        if self.settings is None:
            logger.warning("Engine was built from explicit components; nothing to reload")
            return
        self.__init__(self.settings)

    def build_lines(self, request: QuoteRequest) -> tuple[list[LineItem], list[str]]:
        """
        Build line items for a request.

        Returns (lines, warnings). Incomplete service and goods rows are
        skipped with a warning; configuration and parameter errors propagate.
        """
        lines = []
        warnings = []

        for index, spec in enumerate(request.services, start=1):
            if spec.area <= 0:
                warnings.append(f"Service row {index} ({spec.category or 'no category'}) skipped: area must be > 0")
                continue
            lines.append(self.service_builder.build(spec))

        for index, item in enumerate(request.goods, start=1):
            line = self.goods_builder.build(item)
            if line is None:
                warnings.append(f"Goods row {index} ({item.name or 'unnamed'}) skipped: incomplete")
                continue
            lines.append(line)

        lines.extend(request.custom_items)

        for warning in warnings:
            logger.debug(warning)
        return lines, warnings

    def new_draft(self, request: Optional[QuoteRequest] = None) -> LineItemStore:
        """Open a drafting session seeded with the request's computed lines."""
        store = LineItemStore()
        if request is not None:
            lines, _ = self.build_lines(request)
            store.extend(lines)
        return store

    def totals(self, items: Union[LineItemStore, Iterable[LineItem]]) -> QuoteTotals:
        """Totals for a draft or any list of lines under this engine's policy."""
        return self.aggregator.for_items(list(items))

    def calculate(self, request: QuoteRequest, quote_number: Optional[str] = None) -> QuoteResult:
        """
        Calculate a quote with full traceability.

        Args:
            request: QuoteRequest with services, goods and custom lines
            quote_number: Optional number to stamp on the result

        Returns:
            QuoteResult with lines, totals, trace and warnings
        """
        lines, warnings = self.build_lines(request)
        store = LineItemStore(lines)
        totals = self.totals(store)

        result = QuoteResult(
            lines=store.items(),
            totals=totals,
            final_price_override=request.final_price_override,
            quote_number=quote_number,
        )
        for warning in warnings:
            result.add_warning(warning)

        result.add_trace("Lines", "Priced line items", len(result.lines))
        result.add_trace("Subtotal", "Sum of line totals", f"{totals.sub_total:.2f}")
        result.add_trace("Tax", f"{totals.tax_rate:.0%} of subtotal", f"{totals.tax:.2f}")
        if totals.minimum_applied:
            result.add_trace("Minimum Charge", "Total raised to minimum charge", f"{totals.minimum_charge:.2f}")
        result.add_trace("Rounding", f"Nearest {totals.rounding_step:g}", f"{totals.final_price:.2f}")
        if request.final_price_override is not None:
            result.add_trace("Override", "Final price set manually", f"{request.final_price_override:.2f}")
            if request.final_price_override < totals.minimum_charge:
                result.add_warning(
                    f"Final price override {request.final_price_override:.2f} is below the minimum charge "
                    f"{totals.minimum_charge:.2f}"
                )

        logger.info(
            "Calculated quote %s: %d lines, final price %.2f",
            quote_number or "(unnumbered)", len(result.lines), totals.final_price,
        )
        return result
