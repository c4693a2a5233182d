"""Core type definitions shared across all flow designer modules."""

from __future__ import annotations

from pydantic import BaseModel


class Position(BaseModel):
    """A 2D coordinate, either in diagram space or in screen pixels."""

    x: float = 0.0
    y: float = 0.0


class Bounds(BaseModel):
    """Screen-space bounding box of a rendered element."""

    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0


class Viewport(BaseModel):
    """Pan/zoom transform applied to diagram space when rendering.

    A diagram point ``p`` is drawn at ``p * zoom + (x, y)`` relative to the
    surface's top-left corner.
    """

    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0

    def project(self, point: Position) -> Position:
        """Map a surface-relative screen point back into diagram space."""
        return Position(
            x=(point.x - self.x) / self.zoom,
            y=(point.y - self.y) / self.zoom,
        )

    def apply(self, point: Position) -> Position:
        """Map a diagram point onto surface-relative screen coordinates."""
        return Position(
            x=point.x * self.zoom + self.x,
            y=point.y * self.zoom + self.y,
        )
