"""
Adaptive Dormand-Prince 5(4) integrator.

The frame loop asks for the state at ``t + h`` only. Internally the interval
is covered by as many adaptive sub-steps as the error tolerance demands; the
intermediate samples are discarded. Nothing is carried over between calls.

Error control uses the embedded 4th order solution. Each component of the
error estimate is scaled by ``tol + tol * max(|y_old|, |y_new|)`` and the
step is accepted when the largest scaled component is <= 1.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, List, Sequence, Tuple

from chaospendel.config import TOLERANCE

logger = logging.getLogger(__name__)

State = List[float]
DerivFunc = Callable[..., Sequence[float]]

MAX_STEPS = 1000
SAFETY = 0.9
FAC_MIN = 0.2
FAC_MAX = 5.0

# Butcher tableau
C2, C3, C4, C5 = 1 / 5, 3 / 10, 4 / 5, 8 / 9
A21 = 1 / 5
A31, A32 = 3 / 40, 9 / 40
A41, A42, A43 = 44 / 45, -56 / 15, 32 / 9
A51, A52, A53, A54 = 19372 / 6561, -25360 / 2187, 64448 / 6561, -212 / 729
A61, A62, A63, A64, A65 = 9017 / 3168, -355 / 33, 46732 / 5247, 49 / 176, -5103 / 18656
# 5th order weights; also the last stage row (FSAL)
B1, B3, B4, B5, B6 = 35 / 384, 500 / 1113, 125 / 192, -2187 / 6784, 11 / 84
# 5th minus embedded 4th order weights
E1, E3, E4, E5, E6, E7 = (
    71 / 57600,
    -71 / 16695,
    71 / 1920,
    -17253 / 339200,
    22 / 525,
    -1 / 40,
)


@dataclass
class DopriResult:
    """Outcome of one call to :func:`dopri`."""

    t: float
    y: State
    nfev: int = 0
    naccept: int = 0
    nreject: int = 0
    success: bool = True
    finite: bool = True
    message: str = ""


def _evaluate(fun: DerivFunc, t: float, y: Sequence[float], args: Tuple[Any, ...]) -> State:
    dy = list(fun(t, y, *args))
    if len(dy) != len(y):
        raise ValueError(f"derivative has {len(dy)} components, state has {len(y)}")
    return dy


def _trial_step(
    fun: DerivFunc, t: float, y: State, k1: State, h: float, args: Tuple[Any, ...]
) -> Tuple[State, State, State]:
    """One Dormand-Prince step of size h. Returns (y_new, k7, error estimate)."""
    n = len(y)
    s = [y[i] + h * A21 * k1[i] for i in range(n)]
    k2 = _evaluate(fun, t + C2 * h, s, args)
    s = [y[i] + h * (A31 * k1[i] + A32 * k2[i]) for i in range(n)]
    k3 = _evaluate(fun, t + C3 * h, s, args)
    s = [y[i] + h * (A41 * k1[i] + A42 * k2[i] + A43 * k3[i]) for i in range(n)]
    k4 = _evaluate(fun, t + C4 * h, s, args)
    s = [y[i] + h * (A51 * k1[i] + A52 * k2[i] + A53 * k3[i] + A54 * k4[i]) for i in range(n)]
    k5 = _evaluate(fun, t + C5 * h, s, args)
    s = [y[i] + h * (A61 * k1[i] + A62 * k2[i] + A63 * k3[i] + A64 * k4[i] + A65 * k5[i]) for i in range(n)]
    k6 = _evaluate(fun, t + h, s, args)
    y_new = [y[i] + h * (B1 * k1[i] + B3 * k3[i] + B4 * k4[i] + B5 * k5[i] + B6 * k6[i]) for i in range(n)]
    k7 = _evaluate(fun, t + h, y_new, args)
    err = [
        h * (E1 * k1[i] + E3 * k3[i] + E4 * k4[i] + E5 * k5[i] + E6 * k6[i] + E7 * k7[i])
        for i in range(n)
    ]
    return y_new, k7, err


def _scaled_error(err: Sequence[float], y_old: Sequence[float], y_new: Sequence[float], tol: float) -> float:
    return max(
        abs(err[i]) / (tol + tol * max(abs(y_old[i]), abs(y_new[i])))
        for i in range(len(err))
    )


def dopri(
    t0: float,
    t1: float,
    y0: Sequence[float],
    fun: DerivFunc,
    args: Tuple[Any, ...] = (),
    tol: float = TOLERANCE,
    max_steps: int = MAX_STEPS,
) -> DopriResult:
    """Integrate ``dy/dt = fun(t, y, *args)`` from t0 to t1.

    ``t1`` may be smaller than ``t0``. The returned result holds the state at
    the last time reached, which is ``t1`` unless ``success`` is False.

    Numerical trouble is reported through the result, not raised:
    - a non-finite state or error estimate stops integration and the
      non-finite state is returned;
    - step size underflow or running out of ``max_steps`` stops integration
      at the last accepted state.
    """
    if not tol > 0:
        raise ValueError(f"tolerance must be positive, got {tol!r}")
    y = [float(v) for v in y0]
    t = float(t0)
    span = float(t1) - t
    if span == 0.0:
        return DopriResult(t=t, y=y)

    direction = 1.0 if span > 0 else -1.0
    k1 = _evaluate(fun, t, y, args)
    result = DopriResult(t=t, y=y, nfev=1)

    h = span / 10.0
    rejected = False
    steps = 0
    while direction * (t1 - t) > 0:
        if steps >= max_steps:
            result.success = False
            result.message = f"maximum number of steps ({max_steps}) reached at t={t!r}"
            break
        steps += 1

        last = direction * (t + h - t1) >= 0
        if last:
            h = t1 - t

        y_new, k7, err_vec = _trial_step(fun, t, y, k1, h, args)
        result.nfev += 6

        if not all(math.isfinite(v) for v in y_new + err_vec):
            t = t1 if last else t + h
            y = y_new
            result.naccept += 1
            result.success = False
            result.finite = False
            result.message = f"non-finite state at t={t!r}"
            break

        err = _scaled_error(err_vec, y, y_new, tol)
        if err <= 1.0:
            t = t1 if last else t + h
            y = y_new
            k1 = k7
            result.naccept += 1
            factor = FAC_MAX if err == 0.0 else min(FAC_MAX, max(FAC_MIN, SAFETY * err ** -0.2))
            if rejected:
                factor = min(1.0, factor)
            rejected = False
            h *= factor
        else:
            result.nreject += 1
            rejected = True
            h *= max(FAC_MIN, SAFETY * err ** -0.2)
            if t + h == t:
                result.success = False
                result.message = f"step size became too small at t={t!r}"
                break

    result.t = t
    result.y = y
    if not result.finite:
        # the session warns once per run of non-finite frames
        logger.debug("dopri stopped early: %s", result.message)
    elif not result.success:
        logger.warning("dopri stopped early: %s", result.message)
    else:
        logger.debug(
            "dopri %r -> %r: %d accepted, %d rejected, %d evaluations",
            t0, t1, result.naccept, result.nreject, result.nfev,
        )
    return result


def integrate(
    t0: float,
    t1: float,
    state0: Sequence[float],
    fun: DerivFunc,
    args: Tuple[Any, ...] = (),
    tol: float = TOLERANCE,
) -> State:
    """Return the state at ``t1`` starting from ``state0`` at ``t0``.

    Integrating over an empty interval returns an unchanged copy of ``state0``.
    """
    return dopri(t0, t1, state0, fun, args=args, tol=tol).y
