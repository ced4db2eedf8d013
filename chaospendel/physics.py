"""
Physics of the double pendulum.

This module provides:
- The parameter snapshot passed alongside the state to the derivative function
- The coupled equations of motion for two rods in series under gravity
- Position helpers for visualization
- Energy and finiteness checks used as diagnostics

State layout is [a1, a2, w1, w2]: both angles first, measured from the
downward vertical, then both angular velocities. Angles are never wrapped.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from chaospendel.config import GRAVITY

State = List[float]
Point = Tuple[float, float]


@dataclass(frozen=True)
class PendulumParams:
    """Lengths, masses and gravity held constant for one integration step."""

    l1: float
    l2: float
    m1: float
    m2: float
    g: float = GRAVITY


def double_pendulum_derivatives(t: float, state: Sequence[float], params: PendulumParams) -> State:
    """Return derivatives [da1, da2, dw1, dw2] for a double pendulum.

    ``t`` is unused; it is part of the signature the integrator calls with.
    The denominators are not guarded: degenerate parameters give inf/nan.
    """
    a1, a2, w1, w2 = state
    l1 = params.l1
    l2 = params.l2
    m1 = params.m1
    m2 = params.m2
    g = params.g

    delta = a2 - a1
    sin_delta = math.sin(delta)
    cos_delta = math.cos(delta)
    m12 = m1 + m2

    den1 = m12 * l1 - m2 * l1 * cos_delta * cos_delta
    num1 = m2 * l1 * w1 * w1 * sin_delta * cos_delta
    num1 += m2 * g * math.sin(a2) * cos_delta
    num1 += m2 * l2 * w2 * w2 * sin_delta
    num1 -= m12 * g * math.sin(a1)

    den2 = (l2 / l1) * den1
    num2 = -m2 * l2 * w2 * w2 * sin_delta * cos_delta
    num2 += m12 * g * math.sin(a1) * cos_delta
    num2 -= m12 * l1 * w1 * w1 * sin_delta
    num2 -= m12 * g * math.sin(a2)

    return [w1, w2, num1 / den1, num2 / den2]


def positions_from_state(state: Sequence[float], params: PendulumParams) -> Tuple[Point, Point]:
    """Compute bob positions relative to the pivot at (0, 0).

    Returns ((x1, y1), (x2, y2)). Positive y is downwards, as on a canvas.
    """
    a1, a2 = state[0], state[1]
    x1 = params.l1 * math.sin(a1)
    y1 = params.l1 * math.cos(a1)
    x2 = x1 + params.l2 * math.sin(a2)
    y2 = y1 + params.l2 * math.cos(a2)
    return (x1, y1), (x2, y2)


def total_energy(state: Sequence[float], params: PendulumParams) -> float:
    """Total mechanical energy (kinetic + potential).

    Reference height is the pivot; positive y points down, so potential
    energy is -m*g*y.
    """
    a1, a2, w1, w2 = state
    (_, y1), (_, y2) = positions_from_state(state, params)
    # velocities
    x1dot = params.l1 * w1 * math.cos(a1)
    y1dot = -params.l1 * w1 * math.sin(a1)
    x2dot = x1dot + params.l2 * w2 * math.cos(a2)
    y2dot = y1dot - params.l2 * w2 * math.sin(a2)
    KE = 0.5 * params.m1 * (x1dot * x1dot + y1dot * y1dot) + 0.5 * params.m2 * (x2dot * x2dot + y2dot * y2dot)
    PE = -params.g * (params.m1 * y1 + params.m2 * y2)
    return KE + PE


def is_finite_state(state: Sequence[float]) -> bool:
    """True when every component of ``state`` is a finite number."""
    return all(math.isfinite(v) for v in state)
