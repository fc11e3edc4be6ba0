import os
import sys

import pandas as pd
import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from quote_tool.engine import (
    CoefficientResolver, ServiceSpec, FloorAccess, Urgency, Difficulty,
    ConfigurationError, InvalidParameterError,
)


@pytest.fixture
def resolver():
    return CoefficientResolver.default()


def spec(**overrides):
    fields = dict(category="X", area=50, levels=1, travel_distance_km=0)
    fields.update(overrides)
    return ServiceSpec(**fields)


def test_standard_spec_has_neutral_coefficients(resolver):
    """Ground floor, standard urgency and difficulty, short distance → all 1.0."""
    c = resolver.coefficients(spec())
    assert (c.distance, c.access, c.urgency, c.difficulty) == (1.0, 1.0, 1.0, 1.0)
    assert c.combined == 1.0


def test_reference_policy_table(resolver):
    """Each enumerated option maps to its documented multiplier."""
    assert resolver.lookup('access', FloorAccess.ELEVATOR) == 1.1
    assert resolver.lookup('access', FloorAccess.NO_ELEVATOR) == 1.3
    assert resolver.lookup('urgency', Urgency.URGENT) == 1.4
    assert resolver.lookup('urgency', Urgency.IMMEDIATE) == 1.8
    assert resolver.lookup('difficulty', Difficulty.DIFFICULT) == 1.2
    assert resolver.lookup('difficulty', Difficulty.EXTREME) == 1.5


def test_distance_surcharge_starts_strictly_above_10km(resolver):
    assert resolver.distance(0) == 1.0
    assert resolver.distance(10) == 1.0
    assert resolver.distance(10.01) == 1.15
    assert resolver.distance(250) == 1.15


def test_combined_multiplies_all_factors(resolver):
    """Every factor contributes; order is irrelevant."""
    c = resolver.coefficients(spec(
        travel_distance_km=20, floor_access="no-elevator", urgency="immediate", difficulty="extreme",
    ))
    assert c.combined == pytest.approx(1.15 * 1.3 * 1.8 * 1.5)


def test_labels_are_normalized_and_legacy_aliases_accepted(resolver):
    """Case, underscores and the legacy form labels resolve to canonical options."""
    assert resolver.lookup('access', "NO_ELEVATOR") == 1.3
    assert resolver.lookup('access', "SansAscenseur") == 1.3
    assert resolver.lookup('access', "AvecAscenseur") == 1.1
    assert resolver.lookup('access', "RDC") == 1.0
    assert resolver.lookup('urgency', "IMMEDIAT") == 1.8
    assert resolver.lookup('difficulty', "DIFFICILE") == 1.2


def test_blank_values_fall_back_to_defaults(resolver):
    assert resolver.lookup('access', None) == 1.0
    assert resolver.lookup('urgency', "") == 1.0
    assert resolver.lookup('difficulty', "   ") == 1.0


def test_unknown_option_raises_invalid_parameter(resolver):
    """Out-of-table values propagate instead of being guessed."""
    with pytest.raises(InvalidParameterError) as exc_info:
        resolver.coefficients(spec(urgency="yesterday"))

    assert exc_info.value.field == "urgency"
    assert exc_info.value.value == "yesterday"
    assert "immediate" in exc_info.value.allowed


def test_multiplier_below_one_is_configuration_error():
    with pytest.raises(ConfigurationError, match=">= 1.0"):
        CoefficientResolver(
            access={'ground': 0.9},
            urgency={'standard': 1.0},
            difficulty={'standard': 1.0},
        )


def test_from_frame_builds_tables_and_distance_bands():
    """Distance rows use the km threshold as option; bands are tiered."""
    df = pd.DataFrame({
        "factor": ["distance", "distance", "access", "urgency", "difficulty", "difficulty"],
        "option": ["10", "30", "ground", "standard", "standard", "extreme"],
        "multiplier": ["1.15", "1.3", "1.0", "1.0", "1.0", "1.5"],
    })
    resolver = CoefficientResolver.from_frame(df)

    assert resolver.distance(5) == 1.0
    assert resolver.distance(20) == 1.15
    assert resolver.distance(31) == 1.3
    assert resolver.lookup('difficulty', 'extreme') == 1.5
    with pytest.raises(InvalidParameterError):
        resolver.lookup('access', 'elevator')


def test_from_frame_rejects_unknown_factor_and_bad_numbers():
    df = pd.DataFrame({
        "factor": ["weather", "access"],
        "option": ["rain", "ground"],
        "multiplier": ["1.2", "cheap"],
    })
    with pytest.raises(ConfigurationError) as exc_info:
        CoefficientResolver.from_frame(df)

    message = str(exc_info.value)
    assert "Line 2: unknown factor 'weather'" in message
    assert "Line 3: multiplier must be numeric" in message
