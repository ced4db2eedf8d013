"""
Double pendulum simulation with a fading trail.

The frame loop lives in :class:`SimulationSession`; the Streamlit front end in
``chaospendel.app_streamlit`` only feeds it commands and draws its snapshots.
"""

from .commands import CommandQueue, ParameterKind, Reset, SetParameter
from .config import SimulationConfig
from .integrator import DopriResult, dopri, integrate
from .physics import (
    PendulumParams,
    double_pendulum_derivatives,
    is_finite_state,
    positions_from_state,
    total_energy,
)
from .sim_session import FrameSnapshot, SimulationSession
from .trace import TraceBuffer, TracePoint, TraceSegment

__all__ = [
    # Commands
    "CommandQueue",
    "ParameterKind",
    "Reset",
    "SetParameter",
    # Config
    "SimulationConfig",
    # Integrator
    "DopriResult",
    "dopri",
    "integrate",
    # Physics
    "PendulumParams",
    "double_pendulum_derivatives",
    "is_finite_state",
    "positions_from_state",
    "total_energy",
    # Session
    "FrameSnapshot",
    "SimulationSession",
    # Trace
    "TraceBuffer",
    "TracePoint",
    "TraceSegment",
]
