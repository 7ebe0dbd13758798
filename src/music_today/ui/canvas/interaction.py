"""
Pointer interaction on the track canvas.

Hover tooltips and double-click detection are explicit state machines fed
by discrete events (pointer move/down/up/leave and simulation steps) and a
logical clock, so they can be exercised without real delays.
"""

import math
import time
import webbrowser
from dataclasses import dataclass
from typing import Callable, Optional, Set, Tuple, Union

from loguru import logger

from music_today.domain.tracking.models import Track

from .engine import VisualizationEngine

HOVER_DWELL = 0.5  # seconds
DOUBLE_CLICK_INTERVAL = 0.4  # seconds
DOUBLE_CLICK_DISTANCE = 8.0  # canvas units
PRIMARY_BUTTON = 1

Point = Tuple[float, float]


@dataclass(frozen=True)
class Idle:
    """No tooltip, nothing pending."""


@dataclass(frozen=True)
class Pending:
    """Pointer rests on a body; tooltip shows once the dwell elapses."""

    slot: int
    track: Track
    started_at: float


@dataclass(frozen=True)
class Shown:
    """Tooltip visible."""

    slot: int
    text: str
    position: Point


HoverState = Union[Idle, Pending, Shown]
IDLE = Idle()


class HoverTracker:
    """Dwell-based tooltip state machine."""

    def __init__(self, dwell: float = HOVER_DWELL):
        self.dwell = dwell
        self.state: HoverState = IDLE
        self._last_slot: Optional[int] = None

    def update(
        self,
        hit: Optional[Tuple[int, Track]],
        pointer: Optional[Point],
        button_pressed: bool,
        now: float,
    ) -> HoverState:
        """Advance with the body currently under the pointer.

        Args:
            hit: (slot, track) under the pointer, or None
            pointer: Current pointer position
            button_pressed: Whether any pointer button is held
            now: Logical clock reading in seconds

        Returns:
            The new state
        """
        slot = hit[0] if hit else None

        if slot != self._last_slot:
            self._last_slot = slot
            if hit is None:
                self.state = IDLE
            else:
                self.state = Pending(slot, hit[1], now)

        state = self.state
        if isinstance(state, Pending) and now - state.started_at >= self.dwell:
            if button_pressed or pointer is None:
                # A drag swallows the tooltip until the pointer finds another body
                self.state = IDLE
            else:
                self.state = Shown(state.slot, state.track.label, pointer)

        return self.state

    @property
    def tooltip(self) -> Optional[Shown]:
        return self.state if isinstance(self.state, Shown) else None


class DoubleClickDetector:
    """Recognises two presses close together in time and space."""

    def __init__(
        self,
        interval: float = DOUBLE_CLICK_INTERVAL,
        distance: float = DOUBLE_CLICK_DISTANCE,
    ):
        self.interval = interval
        self.distance = distance
        self._last: Optional[Tuple[float, float, float]] = None

    def press(self, x: float, y: float, now: float) -> bool:
        """Register a press. Returns True if it completes a double click."""
        last = self._last
        if (
            last is not None
            and now - last[2] <= self.interval
            and math.hypot(x - last[0], y - last[1]) <= self.distance
        ):
            self._last = None
            return True
        self._last = (x, y, now)
        return False


class InteractionLayer:
    """Routes pointer input to hover, drag and link opening."""

    def __init__(
        self,
        engine: VisualizationEngine,
        clock: Callable[[], float] = time.monotonic,
        opener: Callable[[str], object] = webbrowser.open_new_tab,
        dwell: float = HOVER_DWELL,
    ):
        self.engine = engine
        self.clock = clock
        self.opener = opener
        self.hover = HoverTracker(dwell)
        self.clicks = DoubleClickDetector()
        self.pointer: Optional[Point] = None
        self._held: Set[int] = set()
        engine.on_step(self.update)

    # Input events -----------------------------------------------------------

    def pointer_move(self, x: float, y: float) -> None:
        self.pointer = (x, y)
        if self.engine.dragging:
            self.engine.drag_to(x, y)

    def pointer_down(self, x: float, y: float, button: int = PRIMARY_BUTTON) -> None:
        """Press ``button``; only the primary button grabs or activates."""
        self.pointer = (x, y)
        self._held.add(button)
        if button != PRIMARY_BUTTON:
            return
        if self.clicks.press(x, y, self.clock()):
            self.activate(x, y)
            return
        self.engine.grab(x, y)

    def pointer_up(self, button: int = PRIMARY_BUTTON) -> None:
        self._held.discard(button)
        if button == PRIMARY_BUTTON:
            self.engine.release()

    def pointer_leave(self) -> None:
        self.pointer = None
        self._held.clear()
        self.engine.release()

    @property
    def button_pressed(self) -> bool:
        """Whether any pointer button is held."""
        return bool(self._held)

    # Per-step ---------------------------------------------------------------

    def update(self) -> HoverState:
        """Re-run the hover query at the current pointer position."""
        hit = self.engine.track_at(*self.pointer) if self.pointer else None
        return self.hover.update(hit, self.pointer, self.button_pressed, self.clock())

    @property
    def tooltip(self) -> Optional[Shown]:
        return self.hover.tooltip

    # Double activation ------------------------------------------------------

    def activate(self, x: float, y: float) -> Optional[str]:
        """Open the link of the track body at (x, y), if any.

        Returns:
            The opened URL, or None when nothing was hit
        """
        hit = self.engine.track_at(x, y)
        if hit is None or not hit[1].url:
            return None
        url = hit[1].url
        logger.info(f"Opening {hit[1].label}: {url}")
        self.opener(url)
        return url
