"""
Pygame window hosting the track canvas.

The simulation, hover logic and link opening live in engine/interaction;
this module only pumps events, draws and tears everything down.
"""

import io
import math
from typing import Dict, Optional

import pygame
from loguru import logger

from music_today.core.config import CanvasConfig

from .engine import VisualizationEngine
from .feed import FeedWorker, TrackFeed
from .interaction import InteractionLayer, Shown

BACKGROUND = (12, 12, 16)
PLACEHOLDER = (70, 70, 90)
TOOLTIP_BG = (0, 0, 0, 204)
TOOLTIP_TEXT = (255, 255, 255)
TOOLTIP_OFFSET = 12


class TextureCache:
    """Scaled cover surfaces keyed by imgsrc."""

    def __init__(self, size: int):
        self.size = size
        self._surfaces: Dict[str, Optional[pygame.Surface]] = {}

    def get(self, key: str, data: Optional[bytes]) -> Optional[pygame.Surface]:
        if key in self._surfaces:
            return self._surfaces[key]
        if not data:
            return None

        surface = None
        try:
            image = pygame.image.load(io.BytesIO(data)).convert_alpha()
            surface = pygame.transform.smoothscale(image, (self.size, self.size))
        except (pygame.error, ValueError) as e:
            logger.warning(f"Unusable cover image {key}: {e}")
        self._surfaces[key] = surface
        return surface


def _draw_bodies(screen: pygame.Surface, engine: VisualizationEngine, textures: TextureCache) -> None:
    size = int(engine.body_size)
    for _slot, body, track in engine.track_bodies():
        surface = textures.get(track.imgsrc, engine.covers.get(track.imgsrc))
        if surface is None:
            surface = pygame.Surface((size, size), pygame.SRCALPHA)
            surface.fill(PLACEHOLDER)
        rotated = pygame.transform.rotate(surface, -math.degrees(body.angle))
        screen.blit(rotated, rotated.get_rect(center=(int(body.x), int(body.y))))


def _draw_tooltip(screen: pygame.Surface, font: pygame.font.Font, tooltip: Shown) -> None:
    text = font.render(tooltip.text, True, TOOLTIP_TEXT)
    pad_x, pad_y = 8, 4
    box = pygame.Surface(
        (text.get_width() + 2 * pad_x, text.get_height() + 2 * pad_y), pygame.SRCALPHA
    )
    box.fill(TOOLTIP_BG)
    box.blit(text, (pad_x, pad_y))
    x, y = tooltip.position
    screen.blit(box, (int(x) + TOOLTIP_OFFSET, int(y) + TOOLTIP_OFFSET))


def _handle_event(event: pygame.event.Event, interaction: InteractionLayer) -> bool:
    """Route one pygame event. Returns False when the window should close."""
    if event.type == pygame.QUIT:
        return False
    if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
        return False
    if event.type == pygame.MOUSEMOTION:
        interaction.pointer_move(*event.pos)
    elif event.type == pygame.MOUSEBUTTONDOWN:
        interaction.pointer_down(*event.pos, button=event.button)
    elif event.type == pygame.MOUSEBUTTONUP:
        interaction.pointer_up(button=event.button)
    elif event.type == pygame.WINDOWLEAVE:
        interaction.pointer_leave()
    return True


def run_viewer(config: CanvasConfig) -> None:
    """Open the canvas window and run until it is closed."""
    feed = TrackFeed(config.feed_url, timeout=config.request_timeout)
    worker = FeedWorker(feed, interval=config.sync_interval)
    engine = VisualizationEngine.from_config(config, worker=worker)
    interaction = InteractionLayer(engine, dwell=config.hover_dwell)

    pygame.init()
    try:
        screen = pygame.display.set_mode((config.width, config.height))
        pygame.display.set_caption("Music Today")
        clock = pygame.time.Clock()
        font = pygame.font.Font(None, 24)
        textures = TextureCache(int(config.body_size))

        worker.start()
        logger.info(f"Viewer started, syncing from {config.feed_url}")

        running = True
        while running:
            dt = clock.tick(config.fps) / 1000.0

            for event in pygame.event.get():
                if not _handle_event(event, interaction):
                    running = False

            engine.pump_feed()
            engine.advance(dt)

            screen.fill(BACKGROUND)
            _draw_bodies(screen, engine, textures)
            if interaction.tooltip:
                _draw_tooltip(screen, font, interaction.tooltip)
            pygame.display.flip()
    finally:
        engine.close()
        pygame.quit()
        logger.info("Viewer closed")
