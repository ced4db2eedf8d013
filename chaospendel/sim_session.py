from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union

from chaospendel.commands import CommandQueue, ParameterKind, Reset, SetParameter
from chaospendel.config import SimulationConfig
from chaospendel.integrator import integrate
from chaospendel.physics import (
    PendulumParams,
    double_pendulum_derivatives,
    is_finite_state,
    positions_from_state,
    total_energy,
)
from chaospendel.trace import TraceBuffer, TraceSegment

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

LABELS = {
    ParameterKind.LENGTH1: "Length of Pendulum 1",
    ParameterKind.LENGTH2: "Length of Pendulum 2",
    ParameterKind.MASS1: "Mass of Pendulum 1",
    ParameterKind.MASS2: "Mass of Pendulum 2",
}


@dataclass(frozen=True)
class FrameSnapshot:
    """Everything the renderer needs for one frame."""

    t: float
    state: Tuple[float, float, float, float]
    bob1: Point
    bob2: Point
    segments: List[TraceSegment]
    params: PendulumParams
    labels: List[str]
    finite: bool
    was_reset: bool = False


@dataclass
class SimulationSession:
    """Holds the simulation state, its parameters and the motion trail.

    Input arrives as commands (:meth:`set_parameter`, :meth:`request_reset`)
    and takes effect at the start of the next :meth:`step`, or on
    :meth:`apply_pending` while the animation is paused.
    """

    config: SimulationConfig = field(default_factory=SimulationConfig)
    state: List[float] = field(init=False)
    params: Dict[str, float] = field(init=False)
    sim_time: float = field(init=False, default=0.0)
    trace: TraceBuffer = field(init=False)
    commands: CommandQueue = field(init=False, default_factory=CommandQueue)
    _warned_non_finite: bool = field(init=False, default=False, repr=False)

    def __post_init__(self) -> None:
        self.state = list(self.config.initial_state)
        self.params = dict(self.config.defaults)
        self.trace = TraceBuffer(
            capacity=self.config.trace_capacity,
            initial_age=self.config.trace_initial_age,
            decay=self.config.trace_decay,
        )

    # -- input ------------------------------------------------------------

    def set_parameter(self, kind: Union[ParameterKind, str], value: float) -> None:
        """Queue a parameter change. Raises ValueError for an unknown kind."""
        self.commands.put(SetParameter(ParameterKind(kind), value))

    def request_reset(self) -> None:
        self.commands.put(Reset())

    def _apply_parameter(self, kind: ParameterKind, value: float) -> None:
        try:
            value = float(value)
        except (TypeError, ValueError):
            logger.warning("ignoring non-numeric %s=%r", kind.value, value)
            return
        if not math.isfinite(value):
            logger.warning("ignoring non-finite %s=%r", kind.value, value)
            return
        rng = self.config.range_for(kind.value)
        clamped = rng.clamp(value)
        if clamped != value:
            logger.warning("%s=%r out of range [%g, %g], clamped to %g", kind.value, value, rng.low, rng.high, clamped)
        self.params[kind.value] = clamped

    def apply_pending(self) -> bool:
        """Apply queued commands without advancing. Returns True if one was a reset."""
        was_reset = False
        for command in self.commands.drain():
            if isinstance(command, Reset):
                self.reset()
                was_reset = True
            else:
                self._apply_parameter(command.kind, command.value)
        return was_reset

    # -- simulation -------------------------------------------------------

    def current_params(self) -> PendulumParams:
        return PendulumParams(
            l1=self.params["l1"],
            l2=self.params["l2"],
            m1=self.params["m1"],
            m2=self.params["m2"],
            g=self.config.gravity,
        )

    def step(self) -> FrameSnapshot:
        """Advance the simulation by one frame and run the trail draw pass."""
        was_reset = self.apply_pending()

        params = self.current_params()
        t_next = self.sim_time + self.config.step
        self.state = integrate(
            self.sim_time,
            t_next,
            self.state,
            double_pendulum_derivatives,
            args=(params,),
            tol=self.config.tolerance,
        )
        self.sim_time = t_next

        finite = is_finite_state(self.state)
        if not finite and not self._warned_non_finite:
            logger.warning("state became non-finite at t=%g: %r", self.sim_time, self.state)
            self._warned_non_finite = True

        bob1, bob2 = positions_from_state(self.state, params)
        self.trace.append(bob2)
        segments = self.trace.draw_segments()

        return FrameSnapshot(
            t=self.sim_time,
            state=tuple(self.state),
            bob1=bob1,
            bob2=bob2,
            segments=segments,
            params=params,
            labels=self.labels(),
            finite=finite,
            was_reset=was_reset,
        )

    def positions(self) -> Tuple[Point, Point]:
        return positions_from_state(self.state, self.current_params())

    def energy(self) -> float:
        return total_energy(self.state, self.current_params())

    def labels(self) -> List[str]:
        return [f"{LABELS[kind]}: {self.params[kind.value]:g}" for kind in ParameterKind]

    def reset(self) -> None:
        """Return to the initial condition and default parameters.

        The trail is kept.
        """
        self.state = list(self.config.initial_state)
        self.sim_time = 0.0
        self.params = dict(self.config.defaults)
        self._warned_non_finite = False
        logger.debug("simulation reset")
