"""
Draft Service - In-memory quote drafting sessions.

Each draft owns one LineItemStore. Drafts are not persisted and assume a
single editor; the last write wins.
"""
import itertools
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..engine import QuoteEngine, QuoteRequest, LineItem, LineItemStore, generate_quote_number
from ..engine.parsing import parse_number

logger = logging.getLogger(__name__)

PRICE_FIELDS = ('quantity', 'unit_price', 'total_price', 'adjust_factor')


@dataclass
class Draft:
    """A quote being edited."""
    draft_id: str
    quote_number: str
    store: LineItemStore
    final_price_override: Optional[float] = None
    warnings: list[str] = field(default_factory=list)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat(timespec='seconds'))


class DraftService:
    """Service for managing quote drafts."""

    def __init__(self, engine: QuoteEngine):
        self.engine = engine
        self._drafts: dict[str, Draft] = {}
        self._sequence = itertools.count(1)

    def create_draft(self, request: Optional[QuoteRequest] = None, prefix: str = "SERVICE") -> Draft:
        """Open a draft seeded with the computed lines of request."""
        request = request or QuoteRequest()
        lines, warnings = self.engine.build_lines(request)

        sequence = next(self._sequence)
        draft = Draft(
            draft_id=f"draft-{sequence}",
            quote_number=generate_quote_number(prefix, date.today(), sequence),
            store=LineItemStore(lines),
            final_price_override=request.final_price_override,
            warnings=warnings,
        )
        self._drafts[draft.draft_id] = draft
        logger.info("Opened draft %s (%s) with %d lines", draft.draft_id, draft.quote_number, len(draft.store))
        return draft

    def list_drafts(self) -> list[Draft]:
        return list(self._drafts.values())

    def get_draft(self, draft_id: str) -> Draft:
        draft = self._drafts.get(draft_id)
        if draft is None:
            raise ValueError(f"Draft '{draft_id}' not found")
        return draft

    def delete_draft(self, draft_id: str) -> bool:
        if self._drafts.pop(draft_id, None) is None:
            raise ValueError(f"Draft '{draft_id}' not found")
        logger.info("Discarded draft %s", draft_id)
        return True

    def add_line(self, draft_id: str, description: str = "Custom service", detail: str = "",
                 quantity: float = 1, unit_price: float = 0.0) -> LineItem:
        """Add a custom line, then price it through the store's edit methods."""
        store = self.get_draft(draft_id).store
        line = store.add_custom(description=description, detail=detail)
        store.update_quantity(line.id, quantity)
        store.update_unit_price(line.id, unit_price)
        return line

    def edit_line(self, draft_id: str, line_id: str, updates: dict) -> LineItem:
        """
        Apply one edit to a line.

        At most one of quantity / unit_price / total_price / adjust_factor per
        edit so the derived field is never ambiguous.
        """
        store = self.get_draft(draft_id).store
        if line_id not in store:
            raise ValueError(f"Line '{line_id}' not found in draft '{draft_id}'")

        price_fields = [f for f in PRICE_FIELDS if updates.get(f) is not None]
        if len(price_fields) > 1:
            raise ValueError(f"Edit one of {', '.join(PRICE_FIELDS)} at a time, got {', '.join(price_fields)}")

        if updates.get('description') is not None:
            store.update_description(line_id, updates['description'])
        if updates.get('detail') is not None:
            store.update_detail(line_id, updates['detail'])

        if price_fields == ['quantity']:
            store.update_quantity(line_id, updates['quantity'])
        elif price_fields == ['unit_price']:
            store.update_unit_price(line_id, updates['unit_price'])
        elif price_fields == ['total_price']:
            store.update_total(line_id, updates['total_price'])
        elif price_fields == ['adjust_factor']:
            store.adjust_unit_price(line_id, updates['adjust_factor'])

        return store.get(line_id)

    def remove_line(self, draft_id: str, line_id: str) -> bool:
        """Remove a line; unknown line ids are ignored."""
        return self.get_draft(draft_id).store.remove(line_id) is not None

    def set_final_price_override(self, draft_id: str, amount: Optional[float]) -> Draft:
        draft = self.get_draft(draft_id)
        draft.final_price_override = None if amount is None else max(0.0, parse_number(amount))
        return draft

    def summarize(self, draft_id: str) -> dict:
        """JSON-ready view of a draft with freshly computed totals."""
        draft = self.get_draft(draft_id)
        totals = self.engine.totals(draft.store)
        payable = draft.final_price_override if draft.final_price_override is not None else totals.final_price
        return {
            "draft_id": draft.draft_id,
            "quote_number": draft.quote_number,
            "created_at": draft.created_at,
            "lines": draft.store.to_list(),
            "totals": totals.to_dict(),
            "final_price_override": draft.final_price_override,
            "payable_price": payable,
            "warnings": list(draft.warnings),
        }
