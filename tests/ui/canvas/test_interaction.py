"""Tests for hover tooltips, dragging and double-click activation."""

from unittest.mock import MagicMock

import pytest

from music_today.ui.canvas.engine import VisualizationEngine
from music_today.ui.canvas.interaction import (
    IDLE,
    DoubleClickDetector,
    HoverTracker,
    InteractionLayer,
    Pending,
    Shown,
)


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def opener():
    return MagicMock()


@pytest.fixture
def engine():
    engine = VisualizationEngine()
    # Keep bodies where the tests put them
    engine.world.gravity = 0.0
    return engine


@pytest.fixture
def layer(engine, clock, opener):
    return InteractionLayer(engine, clock=clock, opener=opener)


def _spawn_at(engine, track, x, y):
    slot = engine.spawn(track)
    body = engine.world.bodies[slot]
    body.set_position(x, y)
    body.stop()
    return slot


class TestHoverTracker:
    """Unit tests for the dwell state machine."""

    def test_starts_idle(self):
        assert HoverTracker().state is IDLE

    def test_hit_starts_pending(self, track):
        tracker = HoverTracker()
        state = tracker.update((3, track), (10, 10), False, now=1.0)
        assert state == Pending(3, track, 1.0)
        assert tracker.tooltip is None

    def test_shows_after_dwell(self, track):
        tracker = HoverTracker()
        tracker.update((3, track), (10, 10), False, now=1.0)
        state = tracker.update((3, track), (12, 11), False, now=1.5)
        assert state == Shown(3, "Song One by Artist A, Artist B", (12, 11))

    def test_not_shown_before_dwell(self, track):
        tracker = HoverTracker()
        tracker.update((3, track), (10, 10), False, now=1.0)
        tracker.update((3, track), (10, 10), False, now=1.499)
        assert tracker.tooltip is None

    def test_leaving_body_hides(self, track):
        tracker = HoverTracker()
        tracker.update((3, track), (10, 10), False, now=1.0)
        tracker.update((3, track), (10, 10), False, now=2.0)
        assert tracker.update(None, (500, 500), False, now=2.1) is IDLE

    def test_leaving_before_dwell_cancels(self, track):
        tracker = HoverTracker()
        tracker.update((3, track), (10, 10), False, now=1.0)
        tracker.update(None, (500, 500), False, now=1.2)
        tracker.update((3, track), (10, 10), False, now=1.3)
        # Timer restarted on re-entry
        assert tracker.update((3, track), (10, 10), False, now=1.6) == Pending(3, track, 1.3)

    def test_moving_to_another_body_restarts(self, track, other_track):
        tracker = HoverTracker()
        tracker.update((3, track), (10, 10), False, now=1.0)
        tracker.update((3, track), (10, 10), False, now=2.0)
        state = tracker.update((4, other_track), (20, 20), False, now=2.1)
        assert state == Pending(4, other_track, 2.1)
        assert tracker.tooltip is None

    def test_pressed_button_suppresses(self, track):
        tracker = HoverTracker()
        tracker.update((3, track), (10, 10), True, now=1.0)
        assert tracker.update((3, track), (10, 10), True, now=2.0) is IDLE
        # Consumed until the pointer finds another body
        assert tracker.update((3, track), (10, 10), False, now=3.0) is IDLE

    def test_shown_stays_put(self, track):
        tracker = HoverTracker()
        tracker.update((3, track), (10, 10), False, now=1.0)
        tracker.update((3, track), (10, 10), False, now=1.5)
        state = tracker.update((3, track), (30, 30), False, now=5.0)
        assert state.position == (10, 10)


class TestDoubleClickDetector:
    def test_two_quick_presses(self):
        detector = DoubleClickDetector()
        assert not detector.press(10, 10, now=1.0)
        assert detector.press(12, 11, now=1.3)

    def test_too_slow(self):
        detector = DoubleClickDetector()
        detector.press(10, 10, now=1.0)
        assert not detector.press(10, 10, now=1.5)

    def test_too_far(self):
        detector = DoubleClickDetector()
        detector.press(10, 10, now=1.0)
        assert not detector.press(30, 10, now=1.1)

    def test_third_press_starts_over(self):
        detector = DoubleClickDetector()
        detector.press(10, 10, now=1.0)
        assert detector.press(10, 10, now=1.1)
        assert not detector.press(10, 10, now=1.2)


class TestHoverThroughLayer:
    """Tooltip behaviour driven by simulation steps."""

    def test_tooltip_after_half_second(self, layer, engine, clock, track):
        _spawn_at(engine, track, 400, 400)
        layer.pointer_move(410, 405)
        engine.step()
        clock.now = 100.49
        engine.step()
        assert layer.tooltip is None

        clock.now = 100.5
        engine.step()
        assert layer.tooltip.text == "Song One by Artist A, Artist B"
        assert layer.tooltip.position == (410, 405)

    def test_body_moving_away_hides_tooltip(self, layer, engine, clock, track):
        slot = _spawn_at(engine, track, 400, 400)
        layer.pointer_move(400, 400)
        engine.step()
        clock.now += 1.0
        engine.step()
        assert layer.tooltip is not None

        engine.world.bodies[slot].set_position(900, 900)
        engine.step()
        assert layer.tooltip is None

    def test_no_tooltip_while_dragging(self, layer, engine, clock, track):
        _spawn_at(engine, track, 400, 400)
        layer.pointer_move(400, 400)
        layer.pointer_down(400, 400)
        engine.step()
        clock.now += 1.0
        engine.step()
        assert layer.tooltip is None

    def test_secondary_button_suppresses_tooltip(self, layer, engine, clock, track):
        _spawn_at(engine, track, 400, 400)
        layer.pointer_move(400, 400)
        layer.pointer_down(400, 400, button=3)
        engine.step()
        clock.now += 1.0
        engine.step()
        assert layer.tooltip is None
        assert not engine.dragging

    def test_tooltip_after_all_buttons_released(self, layer, engine, clock, track, other_track):
        _spawn_at(engine, track, 400, 400)
        _spawn_at(engine, other_track, 800, 800)
        layer.pointer_down(400, 400, button=3)
        layer.pointer_down(400, 400, button=2)
        layer.pointer_up(button=3)
        assert layer.button_pressed
        layer.pointer_up(button=2)
        assert not layer.button_pressed

        layer.pointer_move(800, 800)
        engine.step()
        clock.now += 1.0
        engine.step()
        assert layer.tooltip.text == "Song Two by Artist C"

    def test_pointer_leave_hides_tooltip(self, layer, engine, clock, track):
        _spawn_at(engine, track, 400, 400)
        layer.pointer_move(400, 400)
        engine.step()
        clock.now += 1.0
        engine.step()
        layer.pointer_leave()
        engine.step()
        assert layer.tooltip is None

    def test_empty_space(self, layer, engine, clock):
        layer.pointer_move(400, 400)
        engine.step()
        clock.now += 1.0
        engine.step()
        assert layer.tooltip is None


class TestDragThroughLayer:
    def test_press_grabs_and_release_drops(self, layer, engine, track):
        slot = _spawn_at(engine, track, 400, 400)
        layer.pointer_down(400, 400)
        assert engine.world.spring.slot == slot
        layer.pointer_move(500, 400)
        assert (engine.world.spring.target_x, engine.world.spring.target_y) == (500, 400)
        layer.pointer_up()
        assert not engine.dragging

    def test_leave_releases(self, layer, engine, track):
        _spawn_at(engine, track, 400, 400)
        layer.pointer_down(400, 400)
        layer.pointer_leave()
        assert not engine.dragging


class TestActivation:
    """Double-click opens exactly the track under the pointer."""

    def test_double_click_opens_url(self, layer, engine, clock, opener, track, other_track):
        _spawn_at(engine, track, 400, 400)
        _spawn_at(engine, other_track, 800, 800)

        layer.pointer_down(400, 400)
        layer.pointer_up()
        clock.now += 0.2
        layer.pointer_down(401, 400)

        opener.assert_called_once_with("https://open.spotify.com/track/t1")

    def test_double_click_does_not_grab(self, layer, engine, clock, track):
        _spawn_at(engine, track, 400, 400)
        layer.pointer_down(400, 400)
        layer.pointer_up()
        clock.now += 0.2
        layer.pointer_down(400, 400)
        assert not engine.dragging

    def test_secondary_double_click_does_not_open(self, layer, engine, clock, opener, track):
        _spawn_at(engine, track, 400, 400)
        layer.pointer_down(400, 400, button=3)
        layer.pointer_up(button=3)
        clock.now += 0.2
        layer.pointer_down(400, 400, button=3)
        opener.assert_not_called()

    def test_double_click_empty_space(self, layer, clock, opener):
        layer.pointer_down(400, 400)
        layer.pointer_up()
        clock.now += 0.2
        layer.pointer_down(400, 400)
        opener.assert_not_called()

    def test_slow_clicks_do_not_open(self, layer, engine, clock, opener, track):
        _spawn_at(engine, track, 400, 400)
        layer.pointer_down(400, 400)
        layer.pointer_up()
        clock.now += 1.0
        layer.pointer_down(400, 400)
        opener.assert_not_called()

    def test_activate_returns_url(self, layer, engine, opener, track):
        _spawn_at(engine, track, 400, 400)
        assert layer.activate(400, 400) == track.url
        assert layer.activate(50, 50) is None
        opener.assert_called_once_with(track.url)
