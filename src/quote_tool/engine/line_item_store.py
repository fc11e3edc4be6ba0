"""
Line Item Store - The editable line items of one quote-drafting session.

Quantity, unit price and total can each be edited. Every edit method names
the field the user changed; the store derives the other one:

    update_quantity   -> total = quantity × unit_price
    update_unit_price -> total = quantity × unit_price
    update_total      -> unit_price = total / quantity   (quantity is the anchor)

Single editor per draft. Not thread-safe.
"""
import copy
import itertools
import logging
from typing import Any, Iterable, Iterator, Optional, Union

from .models import LineItem, LineSource
from .parsing import parse_number

logger = logging.getLogger(__name__)


def _as_quantity(value: Any) -> Union[int, float]:
    quantity = max(1.0, parse_number(value, default=1.0))
    return int(quantity) if quantity.is_integer() else quantity


class LineItemStore:
    """Ordered, in-memory collection of line items keyed by generated ids."""

    def __init__(self, items: Iterable[LineItem] = ()):
        self._items: dict[str, LineItem] = {}
        self._ids = itertools.count(1)
        self.extend(items)

    def _next_id(self) -> str:
        while True:
            line_id = f"line-{next(self._ids)}"
            if line_id not in self._items:
                return line_id

    def add(self, item: LineItem) -> LineItem:
        """Append a copy of item under a fresh id and return the stored copy."""
        stored = copy.deepcopy(item)
        stored.id = self._next_id()
        self._items[stored.id] = stored
        return stored

    def add_custom(self, description: str = "Custom service", detail: str = "") -> LineItem:
        """Append a blank, fully editable line."""
        return self.add(LineItem(
            description=description,
            detail=detail,
            quantity=1,
            unit_price=0.0,
            total_price=0.0,
            editable=True,
            source=LineSource.CUSTOM.value,
        ))

    def extend(self, items: Iterable[LineItem]) -> list[LineItem]:
        return [self.add(item) for item in items]

    def remove(self, line_id: str) -> Optional[LineItem]:
        """Remove by id. Unknown ids are ignored."""
        return self._items.pop(line_id, None)

    def clear(self):
        self._items.clear()

    def get(self, line_id: str) -> Optional[LineItem]:
        return self._items.get(line_id)

    def items(self) -> list[LineItem]:
        return list(self._items.values())

    def __iter__(self) -> Iterator[LineItem]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, line_id: str) -> bool:
        return line_id in self._items

    def update_quantity(self, line_id: str, quantity: Any) -> Optional[LineItem]:
        """Set quantity (at least 1) and derive the total."""
        line = self.get(line_id)
        if line is None:
            return None
        if not line.editable:
            # Generated service lines are priced as a single unit
            logger.warning("Ignoring quantity edit on non-editable line %s", line_id)
            return line

        line.quantity = _as_quantity(quantity)
        line.total_price = line.quantity * line.unit_price
        line.add_trace("Edit", f"Quantity set to {line.quantity}", f"{line.total_price:.2f}")
        return line

    def update_unit_price(self, line_id: str, unit_price: Any) -> Optional[LineItem]:
        """Set unit price (at least 0) and derive the total."""
        line = self.get(line_id)
        if line is None:
            return None

        line.unit_price = max(0.0, parse_number(unit_price))
        line.total_price = line.quantity * line.unit_price
        line.add_trace("Edit", f"Unit price set to {line.unit_price:.2f}", f"{line.total_price:.2f}")
        return line

    def update_total(self, line_id: str, amount: Any) -> Optional[LineItem]:
        """Set the total (at least 0) and back-derive the unit price from the quantity."""
        line = self.get(line_id)
        if line is None:
            return None

        line.total_price = max(0.0, parse_number(amount))
        if line.quantity > 0:
            line.unit_price = line.total_price / line.quantity
        line.add_trace("Edit", "Total set manually", f"{line.total_price:.2f}")
        if line.is_adjusted:
            logger.info("Line %s adjusted by %.2f from its computed total", line_id, line.adjustment)
        return line

    def adjust_unit_price(self, line_id: str, factor: Any) -> Optional[LineItem]:
        """Scale the unit price, e.g. 1.1 for +10 % or 0.9 for -10 %."""
        line = self.get(line_id)
        if line is None:
            return None
        return self.update_unit_price(line_id, line.unit_price * parse_number(factor, default=1.0))

    def update_description(self, line_id: str, description: str) -> Optional[LineItem]:
        line = self.get(line_id)
        if line is None:
            return None
        line.description = str(description or '').strip()
        return line

    def update_detail(self, line_id: str, detail: str) -> Optional[LineItem]:
        line = self.get(line_id)
        if line is None:
            return None
        line.detail = str(detail or '').strip()
        return line

    def to_list(self) -> list[dict]:
        return [line.to_dict() for line in self._items.values()]
