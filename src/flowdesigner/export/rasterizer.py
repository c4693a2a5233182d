"""Rasterization of the rendered surface with Pillow."""

from __future__ import annotations

import asyncio
import io
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from PIL import Image, ImageDraw

from flowdesigner.core.types import Position, Viewport
from flowdesigner.designer.nodes import draw_node
from flowdesigner.designer.surface import RenderSurface
from flowdesigner.export.models import RasterImage
from flowdesigner.graph.models import DEFAULT_EDGE_STROKE, MarkerType, Node


@runtime_checkable
class Rasterizer(Protocol):
    """Converts a rendered surface into a PNG image."""

    async def rasterize(
        self,
        surface: RenderSurface,
        *,
        pixel_ratio: float,
        width: int,
        height: int,
        background: str,
    ) -> RasterImage: ...


@dataclass(frozen=True)
class _NodeShape:
    node: Node
    position: Position
    width: float
    height: float


@dataclass(frozen=True)
class _EdgeShape:
    start: Position
    end: Position
    stroke: str
    stroke_width: float
    arrow: bool


class PillowRasterizer:
    """Paints the surface into a Pillow image in a worker thread.

    The surface is read on the calling thread; only the painting runs
    off-loop.
    """

    async def rasterize(
        self,
        surface: RenderSurface,
        *,
        pixel_ratio: float,
        width: int,
        height: int,
        background: str,
    ) -> RasterImage:
        nodes, edges = self._collect(surface)
        return await asyncio.to_thread(
            self.paint,
            nodes,
            edges,
            surface.viewport.model_copy(),
            pixel_ratio,
            width,
            height,
            background,
        )

    def _collect(self, surface: RenderSurface) -> tuple[list[_NodeShape], list[_EdgeShape]]:
        nodes = [
            _NodeShape(node=e.node, position=e.position, width=e.width, height=e.height)
            for e in surface.elements()
        ]
        edges = []
        for path in surface.edge_paths():
            source = surface.element(path.edge.source)
            target = surface.element(path.edge.target)
            if source is None or target is None:
                continue
            edges.append(
                _EdgeShape(
                    start=source.center_bottom(),
                    end=target.center_top(),
                    stroke=path.attrs.get("stroke") or DEFAULT_EDGE_STROKE,
                    stroke_width=float(path.attrs.get("stroke-width") or 1),
                    arrow=path.edge.marker_end.type == MarkerType.ARROW_CLOSED,
                )
            )
        return nodes, edges

    def paint(
        self,
        nodes: list[_NodeShape],
        edges: list[_EdgeShape],
        viewport: Viewport,
        pixel_ratio: float,
        width: int,
        height: int,
        background: str,
    ) -> RasterImage:
        px_width = max(1, round(width * pixel_ratio))
        px_height = max(1, round(height * pixel_ratio))
        scale = pixel_ratio * viewport.zoom

        image = Image.new("RGB", (px_width, px_height), background)
        draw = ImageDraw.Draw(image)

        def to_pixels(point: Position) -> tuple[float, float]:
            on_surface = viewport.apply(point)
            return on_surface.x * pixel_ratio, on_surface.y * pixel_ratio

        for edge in edges:
            self._paint_edge(draw, edge, to_pixels, scale)
        for shape in nodes:
            x0, y0 = to_pixels(shape.position)
            box = (x0, y0, x0 + shape.width * scale, y0 + shape.height * scale)
            draw_node(draw, shape.node, box, scale)

        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return RasterImage(data=buffer.getvalue(), width=px_width, height=px_height)

    @staticmethod
    def _paint_edge(draw: ImageDraw.ImageDraw, edge: _EdgeShape, to_pixels, scale: float) -> None:
        sx, sy = to_pixels(edge.start)
        tx, ty = to_pixels(edge.end)
        mid_y = (sy + ty) / 2
        line_width = max(1, round(edge.stroke_width * scale))
        # Stepped connector: down, across, down.
        draw.line([(sx, sy), (sx, mid_y), (tx, mid_y), (tx, ty)], fill=edge.stroke, width=line_width, joint="curve")
        if not edge.arrow:
            return
        size = 8 * scale
        direction = 1 if ty >= mid_y else -1
        base_y = ty - direction * size
        draw.polygon([(tx, ty), (tx - size / 2, base_y), (tx + size / 2, base_y)], fill=edge.stroke)
