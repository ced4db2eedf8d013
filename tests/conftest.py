import math

import pytest

from chaospendel.config import INITIAL_STATE, SimulationConfig
from chaospendel.physics import PendulumParams
from chaospendel.sim_session import SimulationSession


@pytest.fixture
def default_params():
    return PendulumParams(l1=150.0, l2=150.0, m1=10.0, m2=10.0)


@pytest.fixture
def initial_state():
    return list(INITIAL_STATE)


@pytest.fixture
def session():
    return SimulationSession()


@pytest.fixture
def small_swing_session():
    return SimulationSession(SimulationConfig(initial_state=(0.01, 0.01, 0.0, 0.0)))


def assert_close(actual, expected, tol):
    assert len(actual) == len(expected)
    for a, e in zip(actual, expected):
        assert math.isclose(a, e, rel_tol=0.0, abs_tol=tol), (actual, expected)
