from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional, Tuple

import plotly.graph_objects as go
import streamlit as st

from chaospendel.commands import ParameterKind
from chaospendel.sim_session import LABELS, FrameSnapshot, SimulationSession
from chaospendel.trace import TraceSegment

logger = logging.getLogger(__name__)

FRAME_INTERVAL = 1.0 / 30.0
ALPHA_LEVELS = 16
MAX_ALPHA = 255.0

SLIDERS = list(LABELS.items())


def _ensure_session() -> SimulationSession:
    if "sim" not in st.session_state:
        st.session_state.sim = SimulationSession()
    if "running" not in st.session_state:
        st.session_state.running = True
    if "last_frame" not in st.session_state:
        st.session_state.last_frame = None
    for kind, _ in SLIDERS:
        if kind.value not in st.session_state:
            st.session_state[kind.value] = float(st.session_state.sim.params[kind.value])
    return st.session_state.sim


def _on_reset() -> None:
    sim: SimulationSession = st.session_state.sim
    sim.request_reset()
    # widgets follow the reset defaults on the rerun this callback triggers
    for kind, _ in SLIDERS:
        st.session_state[kind.value] = float(sim.config.defaults[kind.value])


def _on_slider(kind: ParameterKind) -> None:
    st.session_state.sim.set_parameter(kind, st.session_state[kind.value])


def _queue_params_from_sidebar(sim: SimulationSession) -> None:
    for kind, label in SLIDERS:
        rng = sim.config.range_for(kind.value)
        st.sidebar.slider(label, min_value=rng.low, max_value=rng.high, step=1.0, key=kind.value, on_change=_on_slider, args=(kind,))
    st.sidebar.button("Reset", key="reset", on_click=_on_reset)


def _segments_by_alpha(segments: List[TraceSegment], levels: int = ALPHA_LEVELS) -> Dict[int, Tuple[list, list]]:
    """Group trail segments into opacity buckets, one plot trace per bucket.

    Coordinates are flipped to y-up; segments are separated by None gaps.
    """
    buckets: Dict[int, Tuple[list, list]] = {}
    for seg in segments:
        level = int(round(seg.alpha / MAX_ALPHA * (levels - 1)))
        if level <= 0:
            continue
        xs, ys = buckets.setdefault(level, ([], []))
        xs.extend([seg.start[0], seg.end[0], None])
        ys.extend([-seg.start[1], -seg.end[1], None])
    return buckets


def _build_figure(sim: SimulationSession, frame: Optional[FrameSnapshot], levels: int = ALPHA_LEVELS) -> go.Figure:
    # the pendulum always shows the live state; the trail comes from the last frame drawn
    (x1, y1), (x2, y2) = sim.positions()
    params = sim.current_params()
    segments = frame.segments if frame is not None else []
    # canvas y points down, the plot y up
    y1, y2 = -y1, -y2

    max_len = max(1.0, params.l1 + params.l2)
    pad = max_len * 0.2

    fig = go.Figure()

    # trail, faded per segment
    for level, (xs, ys) in sorted(_segments_by_alpha(segments, levels).items()):
        opacity = level / (levels - 1)
        fig.add_trace(go.Scatter(x=xs, y=ys, mode="lines", line=dict(color=f"rgba(0,0,0,{opacity:.3f})", width=2), hoverinfo="skip", showlegend=False))

    # rods
    fig.add_trace(go.Scatter(x=[0.0, x1, x2], y=[0.0, y1, y2], mode="lines", line=dict(color="#000000", width=2), hoverinfo="skip", showlegend=False))

    # bobs, sized by mass
    fig.add_trace(
        go.Scatter(
            x=[x1, x2],
            y=[y1, y2],
            mode="markers",
            marker=dict(size=[params.m1, params.m2], color="#7F7F7F", line=dict(color="#000000", width=2)),
            hoverinfo="skip",
            showlegend=False,
        )
    )

    extent = [-max_len - pad, max_len + pad]
    fig.update_layout(
        template="simple_white",
        margin=dict(l=10, r=10, t=10, b=10),
        xaxis=dict(range=extent, scaleanchor="y", scaleratio=1.0, visible=False),
        yaxis=dict(range=extent, visible=False),
        dragmode=False,
        height=700,
    )
    return fig


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    st.set_page_config(page_title="Double Pendulum", layout="wide")
    sim = _ensure_session()

    st.title("Double Pendulum")

    _queue_params_from_sidebar(sim)

    if st.session_state.running:
        if st.sidebar.button("Stop"):
            st.session_state.running = False
    else:
        if st.sidebar.button("Start", type="primary"):
            st.session_state.running = True

    if st.session_state.running:
        try:
            st.session_state.last_frame = sim.step()
        except Exception:
            # a failing frame would fail again on every rerun
            logger.exception("simulation step failed, pausing")
            st.session_state.running = False
    else:
        # paused: slider moves and resets still show up without advancing
        sim.apply_pending()

    frame = st.session_state.last_frame
    for label in sim.labels():
        st.sidebar.text(label)

    st.plotly_chart(_build_figure(sim, frame), use_container_width=True, config={"staticPlot": False, "displayModeBar": False})

    with st.expander("Details (State)", expanded=False):
        st.write({
            "t": sim.sim_time,
            "state": sim.state,
            "params": sim.params,
            "energy": sim.energy(),
            "finite": frame.finite if frame is not None else True,
            "trace_len": len(sim.trace),
        })

    if st.session_state.running:
        time.sleep(FRAME_INTERVAL)
        st.rerun()


if __name__ == "__main__":
    main()
