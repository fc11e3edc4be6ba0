"""
Rate Table - Tiered base rates per service category.

Each category holds (max_area, rate) tiers sorted by threshold. Larger
surfaces fall into cheaper tiers (volume discount).
"""
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

RATE_TABLE_COLUMNS = ['category', 'max_area', 'rate']


@dataclass(frozen=True)
class RateTier:
    """Rate applied to total areas up to and including max_area."""
    max_area: float
    rate: float


class RateTable:
    """
    Pure lookup from (category, total area) to a base unit rate.

    Lookup picks the smallest threshold >= total area. Areas above every
    threshold get the last (lowest) rate.
    """

    def __init__(self, tiers: dict[str, list[tuple[float, float]]]):
        self._tiers: dict[str, list[RateTier]] = {}
        for category, pairs in tiers.items():
            self._tiers[category.strip()] = self._validate(category, pairs)

    @staticmethod
    def _validate(category: str, pairs: list[tuple[float, float]]) -> list[RateTier]:
        if not pairs:
            raise ConfigurationError(f"Category '{category}' has no rate tiers")

        tiers = sorted((RateTier(float(a), float(r)) for a, r in pairs), key=lambda t: t.max_area)
        previous: Optional[RateTier] = None
        for tier in tiers:
            if tier.max_area <= 0:
                raise ConfigurationError(f"Category '{category}': tier threshold must be > 0, got {tier.max_area}")
            if tier.rate < 0:
                raise ConfigurationError(f"Category '{category}': rate must be >= 0, got {tier.rate}")
            if previous is not None:
                if tier.max_area == previous.max_area:
                    raise ConfigurationError(f"Category '{category}': duplicate tier threshold {tier.max_area}")
                if tier.rate > previous.rate:
                    raise ConfigurationError(
                        f"Category '{category}': rate rises from {previous.rate} to {tier.rate} "
                        f"at {tier.max_area} m² (rates must not increase with area)"
                    )
            previous = tier
        return tiers

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> 'RateTable':
        """Build from a DataFrame with category, max_area and rate columns."""
        df = df.copy()
        df.columns = [str(c).strip().lower() for c in df.columns]
        missing = [c for c in RATE_TABLE_COLUMNS if c not in df.columns]
        if missing:
            raise ConfigurationError(f"Rate table is missing columns: {', '.join(missing)}")

        df = df.dropna(how='all')
        df['category'] = df['category'].astype(str).str.strip()

        errors = []
        tiers: dict[str, list[tuple[float, float]]] = {}
        # +2: header line and 1-based numbering, matching the source file
        for line_num, row in zip(df.index + 2, df.itertuples(index=False)):
            max_area = pd.to_numeric(row.max_area, errors='coerce')
            rate = pd.to_numeric(row.rate, errors='coerce')
            if not row.category or row.category == 'nan':
                errors.append(f"Line {line_num}: category is required")
                continue
            if pd.isna(max_area) or pd.isna(rate):
                errors.append(f"Line {line_num}: max_area and rate must be numeric")
                continue
            tiers.setdefault(row.category, []).append((float(max_area), float(rate)))

        if errors:
            raise ConfigurationError("Invalid rate table:\n" + "\n".join(errors))

        return cls(tiers)

    @classmethod
    def from_csv(cls, path: Path) -> 'RateTable':
        """Load a rate table CSV (category,max_area,rate)."""
        if not path.exists():
            raise ConfigurationError(f"Rate table not found at {path}")
        table = cls.from_frame(pd.read_csv(path, dtype=str, encoding='utf-8'))
        logger.info("Loaded rate table from %s (%d categories)", path, len(table.categories()))
        return table

    @classmethod
    def from_excel(cls, path: Path, sheet_name: str = 'Rate Table') -> 'RateTable':
        """Load the rate table sheet of a pricing policy workbook."""
        table = cls.from_frame(pd.read_excel(path, sheet_name=sheet_name, dtype=str))
        logger.info("Loaded rate table from %s[%s] (%d categories)", path, sheet_name, len(table.categories()))
        return table

    def categories(self) -> list[str]:
        return list(self._tiers.keys())

    def tiers(self, category: str) -> list[RateTier]:
        try:
            return list(self._tiers[category.strip()])
        except KeyError:
            raise ConfigurationError(f"No rate tiers configured for category '{category}'") from None

    def __contains__(self, category: str) -> bool:
        return category.strip() in self._tiers

    def base_rate(self, category: str, total_area: float) -> float:
        """
        Resolve the base unit rate for a category and total area.

        Raises ConfigurationError for unpriced categories.
        """
        tiers = self.tiers(category)
        for tier in tiers:
            if total_area <= tier.max_area:
                return tier.rate
        return tiers[-1].rate

    def to_dict(self) -> dict:
        return {
            category: [{"max_area": t.max_area, "rate": t.rate} for t in tiers]
            for category, tiers in self._tiers.items()
        }
