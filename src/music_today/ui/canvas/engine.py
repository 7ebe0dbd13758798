"""
Visualization engine for the track canvas.

Owns the physics world and keeps it populated with one body per track of
today's ledger. The track-to-body association is a plain table keyed by
world slot.
"""

import random
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from loguru import logger

from music_today.core.config import CanvasConfig
from music_today.domain.tracking.models import Track

from .feed import FeedWorker
from .physics import FIXED_DT, Body, World

# Upper bound on catch-up steps after a long frame
MAX_STEPS_PER_FRAME = 5


class VisualizationEngine:
    """Physics arena with one movable body per displayed track."""

    def __init__(
        self,
        width: float = 1280,
        height: float = 1280,
        body_size: float = 120.0,
        restitution: float = 0.8,
        margin: float = 200.0,
        drag_stiffness: float = 0.2,
        worker: Optional[FeedWorker] = None,
        rng: Optional[random.Random] = None,
    ):
        self.world = World(width, height, margin=margin, cell_size=body_size)
        self.world.add_walls()
        self.body_size = body_size
        self.restitution = restitution
        self.drag_stiffness = drag_stiffness
        self.worker = worker
        self.rng = rng or random.Random()

        self.displayed_ids: Set[str] = set()
        self.tracks_by_slot: Dict[int, Track] = {}
        # Cover image bytes keyed by imgsrc
        self.covers: Dict[str, bytes] = {}

        self._accumulator = 0.0
        self._step_listeners: List[Callable[[], None]] = []

    @classmethod
    def from_config(
        cls, config: CanvasConfig, worker: Optional[FeedWorker] = None
    ) -> "VisualizationEngine":
        return cls(
            width=config.width,
            height=config.height,
            body_size=config.body_size,
            restitution=config.restitution,
            margin=config.out_of_bounds_margin,
            drag_stiffness=config.drag_stiffness,
            worker=worker,
        )

    # Population sync --------------------------------------------------------

    def spawn(self, track: Track) -> int:
        """Drop a body for ``track`` at a random x along the top edge."""
        width = self.world.width
        x = self.rng.random() * (width - 100) + 50
        body = Body(
            x=x,
            y=0.0,
            width=self.body_size,
            height=self.body_size,
            restitution=self.restitution,
        )
        slot = self.world.add(body)
        self.tracks_by_slot[slot] = track
        self.displayed_ids.add(track.id)
        logger.debug(f"Spawned {track.id} in slot {slot} at x={x:.0f}")
        return slot

    def sync_population(self, tracks: Iterable[Track]) -> List[int]:
        """Spawn bodies for tracks not displayed yet.

        Returns:
            Slots of the new bodies
        """
        spawned = []
        for track in tracks:
            if track.id not in self.displayed_ids:
                spawned.append(self.spawn(track))
        if spawned:
            logger.info(f"Added {len(spawned)} tracks to the canvas")
        return spawned

    def pump_feed(self) -> List[int]:
        """Move whatever the feed worker fetched into the world."""
        if not self.worker:
            return []
        items = self.worker.drain()
        for item in items:
            if item.cover and item.track.imgsrc:
                self.covers[item.track.imgsrc] = item.cover
        return self.sync_population(item.track for item in items)

    # Stepping ---------------------------------------------------------------

    def on_step(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` after every simulation step."""
        self._step_listeners.append(listener)

    def step(self) -> None:
        recycled = self.world.step(FIXED_DT)
        if recycled:
            logger.debug(f"Recycled out-of-bounds bodies: {recycled}")
        for listener in self._step_listeners:
            listener()

    def advance(self, frame_dt: float) -> int:
        """Run as many fixed steps as ``frame_dt`` seconds cover.

        Returns:
            Number of steps taken
        """
        self._accumulator += max(frame_dt, 0.0)
        steps = 0
        while self._accumulator >= FIXED_DT and steps < MAX_STEPS_PER_FRAME:
            self.step()
            self._accumulator -= FIXED_DT
            steps += 1
        if steps == MAX_STEPS_PER_FRAME:
            # Drop the backlog rather than spiral
            self._accumulator = 0.0
        return steps

    # Queries ----------------------------------------------------------------

    def track_at(self, x: float, y: float) -> Optional[Tuple[int, Track]]:
        """Topmost track-bearing body containing the point."""
        for slot in self.world.query_point(x, y):
            track = self.tracks_by_slot.get(slot)
            if track is not None:
                return slot, track
        return None

    def track_bodies(self) -> Iterator[Tuple[int, Body, Track]]:
        for slot, track in self.tracks_by_slot.items():
            yield slot, self.world.bodies[slot], track

    # Pointer drag -----------------------------------------------------------

    def grab(self, x: float, y: float) -> bool:
        """Attach the pointer spring to the track body under (x, y)."""
        hit = self.track_at(x, y)
        if hit is None:
            return False
        self.world.attach_spring(hit[0], x, y, self.drag_stiffness)
        return True

    def drag_to(self, x: float, y: float) -> None:
        self.world.move_spring(x, y)

    def release(self) -> None:
        self.world.detach_spring()

    @property
    def dragging(self) -> bool:
        return self.world.spring is not None

    # Teardown ---------------------------------------------------------------

    def close(self) -> None:
        """Stop the feed worker, drop the pointer spring and empty the world."""
        if self.worker:
            self.worker.stop()
        self.world.detach_spring()
        self.world.clear()
        self.tracks_by_slot.clear()
        self.displayed_ids.clear()
        self._step_listeners.clear()
        logger.debug("Canvas engine closed")
