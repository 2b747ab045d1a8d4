from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import IO

from PIL import Image, ImageDraw

from .logging_utils import log_event
from .models import Coordinate, RenderPoints
from .settings import settings

ImageSource = str | os.PathLike[str] | IO[bytes]

# Size of a canvas that has never been given explicit dimensions.
DEFAULT_SURFACE_SIZE: tuple[int, int] = (300, 150)


class RendererState(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"


def _open_image(source: ImageSource) -> Image.Image:
    with Image.open(source) as img:
        img.load()
        return img.convert("RGBA")


class MapCanvasRenderer:
    """Sole owner of the drawing surface: map background plus the path overlay.

    The renderer starts Unloaded. ``load_background`` decodes the map off the
    event loop and moves it to Loaded exactly once; from then on every redraw
    sizes the surface to the image's natural size so nothing is scaled.

    Redraws happen only on the Loaded transition and on ``set_path``. While
    still Unloaded, ``set_path`` draws the polyline on a blank default-sized
    surface, so a path can be visible before the map behind it.
    """

    def __init__(self, *, stroke_color: str | None = None, stroke_width: int | None = None) -> None:
        self.stroke_color = stroke_color or settings.stroke_color
        self.stroke_width = int(stroke_width or settings.stroke_width)

        self._state = RendererState.UNLOADED
        self._background: Image.Image | None = None
        self._points: RenderPoints = ()
        self._surface = Image.new("RGBA", DEFAULT_SURFACE_SIZE, (0, 0, 0, 0))
        self._loaded = asyncio.Event()
        self._loading = False
        self._render_count = 0

    @property
    def state(self) -> RendererState:
        return self._state

    @property
    def current_points(self) -> RenderPoints:
        return self._points

    @property
    def size(self) -> tuple[int, int]:
        return self._surface.size

    @property
    def render_count(self) -> int:
        return self._render_count

    async def load_background(self, source: ImageSource | None = None) -> None:
        if self._state is RendererState.LOADED or self._loading:
            raise RuntimeError("background image already loaded")
        self._loading = True
        try:
            image = await asyncio.to_thread(_open_image, source or settings.map_image_path)
        finally:
            self._loading = False
        self._on_background_loaded(image)

    async def wait_loaded(self) -> None:
        await self._loaded.wait()

    def _on_background_loaded(self, image: Image.Image) -> None:
        self._background = image
        self._state = RendererState.LOADED
        self._loaded.set()
        log_event("background_loaded", width=image.width, height=image.height)
        self._render()

    def set_path(self, points: Sequence[Coordinate]) -> None:
        self._points = tuple(points)
        self._render()

    def _render(self) -> None:
        if self._background is not None:
            surface = Image.new("RGBA", self._background.size)
            surface.paste(self._background, (0, 0))
        else:
            surface = Image.new("RGBA", DEFAULT_SURFACE_SIZE, (0, 0, 0, 0))

        # A polyline needs at least two points.
        if len(self._points) >= 2:
            draw = ImageDraw.Draw(surface)
            draw.line(
                [p.as_tuple() for p in self._points],
                fill=self.stroke_color,
                width=self.stroke_width,
                joint="curve",
            )

        self._surface = surface
        self._render_count += 1
        log_event(
            "canvas_rendered",
            level=logging.DEBUG,
            state=self._state.value,
            point_count=len(self._points),
            width=surface.width,
            height=surface.height,
        )

    def snapshot(self) -> Image.Image:
        return self._surface.copy()

    def save(self, dest: str | os.PathLike[str]) -> Path:
        out = Path(dest)
        out.parent.mkdir(parents=True, exist_ok=True)
        image = self._surface
        if out.suffix.lower() in (".jpg", ".jpeg"):
            image = image.convert("RGB")
        image.save(out)
        return out
