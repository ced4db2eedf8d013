"""Figure building of the Streamlit front end; no Streamlit runtime needed."""
import pytest

from chaospendel.app_streamlit import ALPHA_LEVELS, _build_figure, _segments_by_alpha
from chaospendel.trace import TraceSegment


def test_segments_grouped_by_opacity():
    segments = [
        TraceSegment((0.0, 0.0), (1.0, 1.0), 255.0),
        TraceSegment((1.0, 1.0), (2.0, 2.0), 255.0),
        TraceSegment((2.0, 2.0), (3.0, 3.0), 0.0),
    ]
    buckets = _segments_by_alpha(segments, levels=ALPHA_LEVELS)
    # fully faded segments are not drawn
    assert list(buckets) == [ALPHA_LEVELS - 1]
    xs, ys = buckets[ALPHA_LEVELS - 1]
    assert xs == [0.0, 1.0, None, 1.0, 2.0, None]
    # y is flipped for plotting
    assert ys == [-0.0, -1.0, None, -1.0, -2.0, None]


def test_figure_before_first_frame(session):
    fig = _build_figure(session, None)
    # rods and bobs only
    assert len(fig.data) == 2
    rods = fig.data[0]
    assert rods.x[0] == 0.0
    assert rods.x[1] == pytest.approx(150.0)


def test_figure_draws_trail(session):
    frame = None
    for _ in range(3):
        frame = session.step()
    fig = _build_figure(session, frame)
    # one trail bucket (all alphas close to 150), rods, bobs
    assert len(fig.data) == 3
    bobs = fig.data[-1]
    assert list(bobs.marker.size) == [10.0, 10.0]
    assert bobs.y[1] == pytest.approx(-frame.bob2[1])


def _paused_app():
    from chaospendel.app_streamlit import main

    main()


@pytest.fixture
def paused_app():
    from streamlit.testing.v1 import AppTest

    at = AppTest.from_function(_paused_app)
    at.session_state["running"] = False
    at.run()
    return at


def test_paused_slider_change_applies_once(paused_app):
    paused_app.slider(key="l1").set_value(80.0).run()
    for _ in range(5):
        paused_app.run()
    sim = paused_app.session_state["sim"]
    assert len(sim.commands) == 0
    assert sim.params["l1"] == 80.0
    assert sim.sim_time == 0.0


def test_paused_reset_takes_effect(paused_app):
    paused_app.slider(key="m2").set_value(3.0).run()
    paused_app.button(key="reset").click().run()
    sim = paused_app.session_state["sim"]
    assert len(sim.commands) == 0
    assert sim.params == {"l1": 150.0, "l2": 150.0, "m1": 10.0, "m2": 10.0}
    assert paused_app.slider(key="m2").value == 10.0
    assert "Mass of Pendulum 2: 10" in [t.value for t in paused_app.text]
