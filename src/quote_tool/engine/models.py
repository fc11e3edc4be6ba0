"""
Data models for the quote engine.

Uses dataclasses for structured, type-safe data representation.
"""
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Optional

from .parsing import parse_number, parse_int, parse_optional_str


class FloorAccess(str, Enum):
    GROUND = "ground"
    ELEVATOR = "elevator"
    NO_ELEVATOR = "no-elevator"


class Urgency(str, Enum):
    STANDARD = "standard"
    URGENT = "urgent"
    IMMEDIATE = "immediate"


class Difficulty(str, Enum):
    STANDARD = "standard"
    DIFFICULT = "difficult"
    EXTREME = "extreme"


class LineSource(str, Enum):
    SERVICE = "service"
    GOODS = "goods"
    CUSTOM = "custom"


@dataclass
class TraceStep:
    """A single step in the pricing or editing trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class ServiceSpec:
    """One requested service task priced by area."""
    category: str
    area: float
    levels: int = 1
    travel_distance_km: float = 0.0
    floor_access: str = FloorAccess.GROUND.value
    urgency: str = Urgency.STANDARD.value
    difficulty: str = Difficulty.STANDARD.value

    def __post_init__(self):
        # Negative area or distance prices as 0; at least one level
        self.area = max(0.0, self.area)
        self.levels = max(1, self.levels)
        self.travel_distance_km = max(0.0, self.travel_distance_km)

    @property
    def total_area(self) -> float:
        return self.area * self.levels

    @classmethod
    def from_dict(cls, raw: dict) -> 'ServiceSpec':
        """
        Build a spec from a loosely-shaped form row.

        Garbage numbers become 0, levels is at least 1, absent enums
        fall back to ground/standard. Enum values are validated later
        by the coefficient resolver.
        """
        return cls(
            category=str(raw.get('category') or raw.get('type') or '').strip(),
            area=max(0.0, parse_number(raw.get('area', raw.get('surface')))),
            levels=max(1, parse_int(raw.get('levels'), default=1)),
            travel_distance_km=max(0.0, parse_number(raw.get('travel_distance_km', raw.get('distance')))),
            floor_access=parse_optional_str(raw.get('floor_access', raw.get('etage'))) or FloorAccess.GROUND.value,
            urgency=parse_optional_str(raw.get('urgency', raw.get('delai'))) or Urgency.STANDARD.value,
            difficulty=parse_optional_str(raw.get('difficulty', raw.get('difficulte'))) or Difficulty.STANDARD.value,
        )


@dataclass
class GoodsItem:
    """One requested physical item priced as quantity × unit price."""
    name: str
    quantity: int
    unit_price: float
    reference: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: dict) -> 'GoodsItem':
        """Build an item from a form row; garbage numbers become 0."""
        return cls(
            name=str(raw.get('name') or '').strip(),
            quantity=parse_int(raw.get('quantity', raw.get('qty'))),
            unit_price=parse_number(raw.get('unit_price', raw.get('unitPrice'))),
            reference=parse_optional_str(raw.get('reference')),
            description=parse_optional_str(raw.get('description')),
        )


@dataclass
class LineItem:
    """A single priced row within a quotation."""
    description: str
    quantity: int
    unit_price: float
    total_price: float
    detail: str = ""
    editable: bool = True
    source: str = LineSource.CUSTOM.value
    id: Optional[str] = None
    category: Optional[str] = None
    reference: Optional[str] = None
    computed_total: Optional[float] = None  # system-derived total for generated lines
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace for this line item."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    @property
    def is_adjusted(self) -> bool:
        """True when a generated line's total was manually moved off its computed value."""
        if self.computed_total is None:
            return False
        return abs(self.total_price - self.computed_total) > 1e-9

    @property
    def adjustment(self) -> float:
        if self.computed_total is None:
            return 0.0
        return self.total_price - self.computed_total

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        data = asdict(self)
        data['is_adjusted'] = self.is_adjusted
        data['adjustment'] = self.adjustment
        return data

    @classmethod
    def from_dict(cls, raw: dict) -> 'LineItem':
        """Build a manually-authored line from a form row."""
        quantity = max(1, parse_int(raw.get('quantity'), default=1))
        unit_price = max(0.0, parse_number(raw.get('unit_price', raw.get('unitPrice'))))
        return cls(
            description=str(raw.get('description') or '').strip(),
            detail=str(raw.get('detail') or '').strip(),
            quantity=quantity,
            unit_price=unit_price,
            total_price=quantity * unit_price,
            editable=True,
            source=LineSource.CUSTOM.value,
        )


@dataclass
class QuoteTotals:
    """Totals derived from a set of line items. Recomputed on demand."""
    sub_total: float
    tax: float
    total_with_tax: float
    floored_total: float
    final_price: float
    tax_rate: float
    minimum_charge: float
    rounding_step: float

    @property
    def minimum_applied(self) -> bool:
        return self.floored_total > self.total_with_tax

    def to_dict(self) -> dict:
        data = asdict(self)
        data['minimum_applied'] = self.minimum_applied
        return data


@dataclass
class QuoteRequest:
    """A pricing request: services, goods and manually-authored lines."""
    services: list[ServiceSpec] = field(default_factory=list)
    goods: list[GoodsItem] = field(default_factory=list)
    custom_items: list[LineItem] = field(default_factory=list)
    final_price_override: Optional[float] = None

    @classmethod
    def from_dict(cls, raw: dict) -> 'QuoteRequest':
        override = raw.get('final_price_override')
        return cls(
            services=[ServiceSpec.from_dict(s) for s in raw.get('services') or []],
            goods=[GoodsItem.from_dict(g) for g in raw.get('goods') or []],
            custom_items=[LineItem.from_dict(c) for c in raw.get('custom_items') or []],
            final_price_override=None if override in (None, '') else max(0.0, parse_number(override)),
        )


@dataclass
class QuoteResult:
    """Complete result of a quote calculation."""
    lines: list[LineItem]
    totals: QuoteTotals
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)
    final_price_override: Optional[float] = None
    quote_number: Optional[str] = None

    @property
    def payable_price(self) -> float:
        """The override when one is set, otherwise the computed final price."""
        if self.final_price_override is not None:
            return self.final_price_override
        return self.totals.final_price

    def add_trace(self, step: str, description: str, value: Any = None):
        """Add a step to the result-level trace."""
        self.trace.append(TraceStep(step=step, description=description, value=None if value is None else str(value)))

    def add_warning(self, warning: str):
        """Add a result-level warning."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable result trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "quote_number": self.quote_number,
            "lines": [line.to_dict() for line in self.lines],
            "totals": self.totals.to_dict(),
            "final_price_override": self.final_price_override,
            "payable_price": self.payable_price,
            "warnings": list(self.warnings),
            "trace": [asdict(t) for t in self.trace],
        }
