"""
Coefficient Resolver - Multipliers for travel distance, floor access,
urgency and task difficulty.

Every factor is a plain table lookup. Nothing is interpolated.
"""
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Any, Optional

import pandas as pd

from .errors import ConfigurationError, InvalidParameterError
from .models import ServiceSpec, FloorAccess, Urgency, Difficulty
from .parsing import parse_enum_key

logger = logging.getLogger(__name__)

COEFFICIENT_COLUMNS = ['factor', 'option', 'multiplier']
ENUM_FACTORS = ('access', 'urgency', 'difficulty')

# Labels used by the legacy quote forms, mapped onto canonical options
ALIASES = {
    'access': {
        'rdc': FloorAccess.GROUND.value,
        'ground-floor': FloorAccess.GROUND.value,
        'avecascenseur': FloorAccess.ELEVATOR.value,
        'avec-ascenseur': FloorAccess.ELEVATOR.value,
        'sansascenseur': FloorAccess.NO_ELEVATOR.value,
        'sans-ascenseur': FloorAccess.NO_ELEVATOR.value,
        'no-lift': FloorAccess.NO_ELEVATOR.value,
    },
    'urgency': {
        'immediat': Urgency.IMMEDIATE.value,
        'express': Urgency.URGENT.value,
    },
    'difficulty': {
        'difficile': Difficulty.DIFFICULT.value,
        'complex': Difficulty.DIFFICULT.value,
        'high-difficulty': Difficulty.EXTREME.value,
    },
}

SPEC_FIELDS = {
    'access': 'floor_access',
    'urgency': 'urgency',
    'difficulty': 'difficulty',
}


@dataclass(frozen=True)
class DistanceBand:
    """Multiplier applied to distances strictly greater than above_km."""
    above_km: float
    multiplier: float


@dataclass(frozen=True)
class Coefficients:
    """The four independent multipliers for one service."""
    distance: float = 1.0
    access: float = 1.0
    urgency: float = 1.0
    difficulty: float = 1.0

    @property
    def combined(self) -> float:
        return self.distance * self.access * self.urgency * self.difficulty


class CoefficientResolver:
    """Resolves the multiplier set for a ServiceSpec from configured tables."""

    def __init__(
        self,
        access: dict[str, float],
        urgency: dict[str, float],
        difficulty: dict[str, float],
        distance_bands: Optional[list[tuple[float, float]]] = None,
    ):
        self.tables = {
            'access': self._validate_table('access', access),
            'urgency': self._validate_table('urgency', urgency),
            'difficulty': self._validate_table('difficulty', difficulty),
        }
        bands = [DistanceBand(float(km), float(m)) for km, m in (distance_bands or [])]
        for band in bands:
            if band.above_km < 0:
                raise ConfigurationError(f"Distance band threshold must be >= 0, got {band.above_km}")
            self._check_multiplier('distance', f"> {band.above_km}km", band.multiplier)
        self.distance_bands = sorted(bands, key=lambda b: b.above_km)

    @staticmethod
    def _check_multiplier(factor: str, option: str, value: float):
        if value < 1.0:
            raise ConfigurationError(f"{factor} multiplier for '{option}' must be >= 1.0, got {value}")

    @classmethod
    def _validate_table(cls, factor: str, table: dict[str, float]) -> dict[str, float]:
        if not table:
            raise ConfigurationError(f"No {factor} multipliers configured")
        normalized = {}
        for option, value in table.items():
            key = parse_enum_key(option)
            cls._check_multiplier(factor, key, float(value))
            normalized[key] = float(value)
        return normalized

    @classmethod
    def default(cls) -> 'CoefficientResolver':
        """The reference policy table."""
        return cls(
            access={'ground': 1.0, 'elevator': 1.1, 'no-elevator': 1.3},
            urgency={'standard': 1.0, 'urgent': 1.4, 'immediate': 1.8},
            difficulty={'standard': 1.0, 'difficult': 1.2, 'extreme': 1.5},
            distance_bands=[(10.0, 1.15)],
        )

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> 'CoefficientResolver':
        """
        Build from a factor/option/multiplier table.

        Distance rows use the km threshold as option: "10" means "> 10 km".
        """
        df = df.copy()
        df.columns = [str(c).strip().lower() for c in df.columns]
        missing = [c for c in COEFFICIENT_COLUMNS if c not in df.columns]
        if missing:
            raise ConfigurationError(f"Coefficient table is missing columns: {', '.join(missing)}")

        df = df.dropna(how='all').fillna('')
        tables: dict[str, dict[str, float]] = {f: {} for f in ENUM_FACTORS}
        bands: list[tuple[float, float]] = []
        errors = []

        for line_num, row in zip(df.index + 2, df.itertuples(index=False)):
            factor = str(row.factor).strip().lower()
            option = str(row.option).strip()
            multiplier = pd.to_numeric(row.multiplier, errors='coerce')
            if pd.isna(multiplier):
                errors.append(f"Line {line_num}: multiplier must be numeric")
                continue
            if factor == 'distance':
                threshold = pd.to_numeric(option, errors='coerce')
                if pd.isna(threshold):
                    errors.append(f"Line {line_num}: distance option must be a km threshold")
                    continue
                bands.append((float(threshold), float(multiplier)))
            elif factor in tables:
                if not option:
                    errors.append(f"Line {line_num}: option is required")
                    continue
                tables[factor][option] = float(multiplier)
            else:
                errors.append(f"Line {line_num}: unknown factor '{row.factor}'")

        if errors:
            raise ConfigurationError("Invalid coefficient table:\n" + "\n".join(errors))

        return cls(distance_bands=bands, **tables)

    @classmethod
    def from_csv(cls, path: Path) -> 'CoefficientResolver':
        if not path.exists():
            raise ConfigurationError(f"Coefficient table not found at {path}")
        resolver = cls.from_frame(pd.read_csv(path, dtype=str, encoding='utf-8'))
        logger.info("Loaded coefficient table from %s", path)
        return resolver

    @classmethod
    def from_excel(cls, path: Path, sheet_name: str = 'Coefficients') -> 'CoefficientResolver':
        resolver = cls.from_frame(pd.read_excel(path, sheet_name=sheet_name, dtype=str))
        logger.info("Loaded coefficient table from %s[%s]", path, sheet_name)
        return resolver

    def distance(self, km: float) -> float:
        multiplier = 1.0
        for band in self.distance_bands:
            if km > band.above_km:
                multiplier = band.multiplier
        return multiplier

    def lookup(self, factor: str, value: Any) -> float:
        """
        Look up one enumerated factor.

        Blank values resolve to "standard" (or "ground" for access).
        Raises InvalidParameterError for anything outside the table.
        """
        table = self.tables[factor]
        key = parse_enum_key(value)
        if key is None:
            key = FloorAccess.GROUND.value if factor == 'access' else 'standard'
        key = ALIASES[factor].get(key, key)
        if key not in table:
            raise InvalidParameterError(SPEC_FIELDS[factor], value, sorted(table))
        return table[key]

    def coefficients(self, spec: ServiceSpec) -> Coefficients:
        return Coefficients(
            distance=self.distance(spec.travel_distance_km),
            access=self.lookup('access', spec.floor_access),
            urgency=self.lookup('urgency', spec.urgency),
            difficulty=self.lookup('difficulty', spec.difficulty),
        )

    def to_dict(self) -> dict:
        data = {factor: dict(table) for factor, table in self.tables.items()}
        data['distance'] = [{"above_km": b.above_km, "multiplier": b.multiplier} for b in self.distance_bands]
        return data
