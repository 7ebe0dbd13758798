"""Physics canvas of today's tracks.

``app`` needs pygame and a display; the other modules are headless.
"""

from .engine import VisualizationEngine
from .feed import FeedItem, FeedWorker, TrackFeed
from .interaction import HoverTracker, InteractionLayer

__all__ = [
    "FeedItem",
    "FeedWorker",
    "HoverTracker",
    "InteractionLayer",
    "TrackFeed",
    "VisualizationEngine",
]
