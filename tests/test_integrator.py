import logging
import math

import numpy as np
import pytest
from scipy.integrate import solve_ivp

from chaospendel.integrator import dopri, integrate
from chaospendel.physics import double_pendulum_derivatives, is_finite_state

from conftest import assert_close


def decay(t, y, rate=1.0):
    return [-rate * v for v in y]


def oscillator(t, y):
    return [y[1], -y[0]]


def reference_solution(y0, t_end, params):
    sol = solve_ivp(
        double_pendulum_derivatives,
        (0.0, t_end),
        y0,
        method="DOP853",
        args=(params,),
        rtol=1e-12,
        atol=1e-12,
    )
    assert sol.success
    return sol.y[:, -1]


# --- Basic laws ---


def test_zero_interval_is_identity(initial_state, default_params):
    out = integrate(0.5, 0.5, initial_state, double_pendulum_derivatives, args=(default_params,))
    assert out == initial_state
    assert out is not initial_state


def test_zero_interval_does_not_evaluate():
    def fail(t, y):
        raise AssertionError("derivative should not be called")

    res = dopri(1.0, 1.0, [1.0, 2.0], fail)
    assert res.success
    assert res.nfev == 0
    assert res.y == [1.0, 2.0]


def test_exponential_decay():
    out = integrate(0.0, 1.0, [1.0, 2.0], decay)
    assert_close(out, [math.exp(-1.0), 2.0 * math.exp(-1.0)], 1e-7)


def test_extra_args_are_forwarded():
    out = integrate(0.0, 1.0, [1.0], decay, args=(2.0,))
    assert out[0] == pytest.approx(math.exp(-2.0), abs=1e-7)


def test_harmonic_oscillator_full_period():
    out = integrate(0.0, 2 * math.pi, [1.0, 0.0], oscillator)
    assert_close(out, [1.0, 0.0], 1e-6)


def test_backward_direction():
    out = integrate(1.0, 0.0, [math.exp(-1.0)], decay)
    assert out[0] == pytest.approx(1.0, abs=1e-7)


def test_forward_then_backward_round_trip(initial_state, default_params):
    args = (default_params,)
    forward = integrate(0.0, 0.5, initial_state, double_pendulum_derivatives, args=args)
    back = integrate(0.5, 0.0, forward, double_pendulum_derivatives, args=args)
    assert_close(back, initial_state, 1e-6)


def test_lands_exactly_on_end_time():
    res = dopri(0.0, 0.3, [1.0], decay)
    assert res.success
    assert res.t == 0.3


def test_stateless_between_calls(initial_state, default_params):
    args = (default_params,)
    first = integrate(0.0, 0.5, initial_state, double_pendulum_derivatives, args=args)
    integrate(0.0, 0.5, [0.1, 0.2, 0.3, 0.4], double_pendulum_derivatives, args=args)
    again = integrate(0.0, 0.5, initial_state, double_pendulum_derivatives, args=args)
    assert first == again


def test_counters_are_consistent():
    res = dopri(0.0, 10.0, [1.0, 0.0], oscillator)
    assert res.success
    assert res.naccept >= 1
    # one evaluation up front, six per trial step (FSAL)
    assert res.nfev == 1 + 6 * (res.naccept + res.nreject)


def test_tighter_tolerance_takes_more_steps():
    loose = dopri(0.0, 10.0, [1.0, 0.0], oscillator, tol=1e-4)
    tight = dopri(0.0, 10.0, [1.0, 0.0], oscillator, tol=1e-10)
    assert tight.naccept > loose.naccept


# --- Pendulum trajectories ---


def test_one_frame_matches_reference(initial_state, default_params):
    out = integrate(0.0, 0.5, initial_state, double_pendulum_derivatives, args=(default_params,))
    expected = reference_solution(initial_state, 0.5, default_params)
    np.testing.assert_allclose(out, expected, rtol=0, atol=1e-6)

    # starting from rest: a1 moves by about a1'' * h**2 / 2 = -0.006 * 0.125
    shift = out[0] - math.pi / 2
    assert -1e-3 < shift < -5e-4


# fine-step RK4 (h = 5e-6) of the default pendulum from rest over one frame
ONE_FRAME_STATE = [1.570046230704908, 0.826735170017621, -0.003000768782452, 0.000002089459614]


def test_one_frame_matches_recorded_state(initial_state, default_params):
    out = integrate(0.0, 0.5, initial_state, double_pendulum_derivatives, args=(default_params,))
    assert_close(out, ONE_FRAME_STATE, 1e-6)


def test_one_frame_is_reproducible(initial_state, default_params):
    runs = [
        integrate(0.0, 0.5, initial_state, double_pendulum_derivatives, args=(default_params,))
        for _ in range(3)
    ]
    assert runs[0] == runs[1] == runs[2]


def test_ten_frames_match_reference(initial_state, default_params):
    state = initial_state
    t = 0.0
    for _ in range(10):
        state = integrate(t, t + 0.5, state, double_pendulum_derivatives, args=(default_params,))
        t += 0.5
    expected = reference_solution(initial_state, 5.0, default_params)
    np.testing.assert_allclose(state, expected, rtol=0, atol=1e-6)


# --- Failure modes ---


def test_non_finite_derivative_propagates_without_raising():
    def blow_up(t, y):
        return [math.inf for _ in y]

    res = dopri(0.0, 0.5, [1.0, 1.0], blow_up)
    assert not res.success
    assert not res.finite
    assert "non-finite" in res.message
    assert not is_finite_state(res.y)


def test_non_finite_state_is_returned_by_integrate():
    def nan_after_start(t, y):
        return [math.nan if t > 0 else 0.0 for _ in y]

    out = integrate(0.0, 0.5, [1.0, 2.0], nan_after_start)
    assert len(out) == 2
    assert not is_finite_state(out)


def test_max_steps_exhausted_returns_last_state():
    res = dopri(0.0, 1000.0, [1.0, 0.0], oscillator, max_steps=3)
    assert not res.success
    assert "maximum number of steps" in res.message
    assert res.t < 1000.0
    assert len(res.y) == 2


def test_only_stalled_integration_warns(caplog):
    with caplog.at_level(logging.DEBUG, logger="chaospendel.integrator"):
        dopri(0.0, 0.5, [1.0, 1.0], lambda t, y: [math.nan, math.nan])
        stalled = dopri(0.0, 1000.0, [1.0, 0.0], oscillator, max_steps=3)
    assert stalled.finite
    levels = [r.levelno for r in caplog.records if "stopped early" in r.getMessage()]
    assert levels == [logging.DEBUG, logging.WARNING]


def test_invalid_tolerance():
    with pytest.raises(ValueError):
        dopri(0.0, 1.0, [1.0], decay, tol=0.0)


def test_derivative_size_mismatch():
    with pytest.raises(ValueError):
        integrate(0.0, 1.0, [1.0, 2.0], lambda t, y: [0.0])
