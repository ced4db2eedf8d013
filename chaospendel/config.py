"""
Constants and configuration for the double pendulum simulation.

Lengths and masses are in sketch units (pixels and arbitrary mass units), the
clock runs in simulated time units. Gravity is tuned to these units and is not
meant to be changed by the user.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Tuple

GRAVITY = 0.9
STEP = 0.5
TOLERANCE = 1e-8

INITIAL_STATE: Tuple[float, float, float, float] = (math.pi / 2, math.pi / 3.8, 0.0, 0.0)

LENGTH_RANGE: Tuple[float, float] = (1.0, 300.0)
MASS_RANGE: Tuple[float, float] = (1.0, 20.0)

DEFAULT_LENGTH = 150.0
DEFAULT_MASS = 10.0

TRACE_CAPACITY = 2000
TRACE_INITIAL_AGE = 150.0
TRACE_DECAY = 0.5


@dataclass(frozen=True)
class ParameterRange:
    """Closed interval a parameter is clamped to."""

    low: float
    high: float

    def clamp(self, value: float) -> float:
        return min(self.high, max(self.low, float(value)))


@dataclass(frozen=True)
class SimulationConfig:
    """Fixed settings of one simulation session."""

    step: float = STEP
    tolerance: float = TOLERANCE
    gravity: float = GRAVITY
    initial_state: Tuple[float, float, float, float] = INITIAL_STATE

    length_range: ParameterRange = ParameterRange(*LENGTH_RANGE)
    mass_range: ParameterRange = ParameterRange(*MASS_RANGE)
    defaults: Dict[str, float] = field(
        default_factory=lambda: {
            "l1": DEFAULT_LENGTH,
            "l2": DEFAULT_LENGTH,
            "m1": DEFAULT_MASS,
            "m2": DEFAULT_MASS,
        }
    )

    trace_capacity: int = TRACE_CAPACITY
    trace_initial_age: float = TRACE_INITIAL_AGE
    trace_decay: float = TRACE_DECAY

    def range_for(self, name: str) -> ParameterRange:
        """Return the allowed range for parameter ``name`` ("l1", "l2", "m1" or "m2")."""
        if name in ("l1", "l2"):
            return self.length_range
        if name in ("m1", "m2"):
            return self.mass_range
        raise ValueError(f"unknown parameter: {name!r}")
