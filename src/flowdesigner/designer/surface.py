"""In-memory model of the rendered diagram surface.

The surface mirrors what a browser would hold for the canvas: one element per
node (with inline style), one path per edge (with stroke attributes), the
surface's own style, its layout box and the pan/zoom viewport. The drag fast
path writes element styles here directly, and the rasterizer paints from here,
never from the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from flowdesigner.core.types import Bounds, Position, Viewport
from flowdesigner.designer.nodes import node_size
from flowdesigner.graph.models import DEFAULT_EDGE_STROKE, Edge, Node
from flowdesigner.graph.store import FlowGraphStore, GraphSnapshot

logger = logging.getLogger(__name__)

_DRAG_STYLE_KEYS = ("transition", "will-change")


class DragState:
    """Shared flag telling surface and controller that a node drag is in progress."""

    def __init__(self) -> None:
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def begin(self) -> None:
        self._active = True

    def end(self) -> None:
        self._active = False


def translate(position: Position) -> str:
    return f"translate({position.x:g}px, {position.y:g}px)"


@dataclass
class SurfaceElement:
    """The rendered wrapper of one node."""

    node: Node
    position: Position
    width: float
    height: float
    style: dict[str, str] = field(default_factory=dict)

    @property
    def node_id(self) -> str:
        return self.node.id

    def center_top(self) -> Position:
        return Position(x=self.position.x + self.width / 2, y=self.position.y)

    def center_bottom(self) -> Position:
        return Position(x=self.position.x + self.width / 2, y=self.position.y + self.height)


@dataclass
class EdgePath:
    """The rendered path of one edge, with SVG-style stroke attributes."""

    edge: Edge
    attrs: dict[str, str] = field(default_factory=dict)

    @property
    def edge_id(self) -> str:
        return self.edge.id


class RenderSurface:
    """Rendered state of one designer canvas."""

    def __init__(
        self,
        width: int,
        height: int,
        drag_state: DragState | None = None,
        bounds: Bounds | None = None,
        viewport: Viewport | None = None,
    ) -> None:
        self.width = width
        self.height = height
        self.drag_state = drag_state or DragState()
        self.bounds = bounds or Bounds(width=width, height=height)
        self.viewport = viewport or Viewport()
        self.style: dict[str, str] = {"background-color": "transparent", "overflow": "hidden"}
        self._elements: dict[str, SurfaceElement] = {}
        self._paths: dict[str, EdgePath] = {}
        self._unsubscribe = None

    # --- Store binding ---

    def attach(self, store: FlowGraphStore) -> None:
        """Re-render on every store change."""
        self.detach()
        self._unsubscribe = store.subscribe(self.sync)
        self.sync(store.snapshot())

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def sync(self, snapshot: GraphSnapshot) -> None:
        """Rebuild elements from ``snapshot``.

        Edge paths stay as they are while a drag is active; they follow the
        node elements visually and are refreshed once the drag commits.
        """
        elements: dict[str, SurfaceElement] = {}
        for node in snapshot.nodes:
            width, height = node_size(node)
            previous = self._elements.get(node.id)
            style = dict(previous.style) if previous else {}
            style["transform"] = translate(node.position)
            elements[node.id] = SurfaceElement(
                node=node,
                position=node.position,
                width=width,
                height=height,
                style=style,
            )
        self._elements = elements

        if self.drag_state.active:
            return
        paths: dict[str, EdgePath] = {}
        for edge in snapshot.edges:
            previous_path = self._paths.get(edge.id)
            if previous_path is not None:
                attrs = dict(previous_path.attrs)
            else:
                attrs = {
                    "stroke": (edge.style.stroke if edge.style and edge.style.stroke else DEFAULT_EDGE_STROKE),
                    "stroke-width": "1",
                }
            paths[edge.id] = EdgePath(edge=edge, attrs=attrs)
        self._paths = paths

    # --- Element access ---

    def element(self, node_id: str) -> SurfaceElement | None:
        return self._elements.get(node_id)

    def elements(self) -> list[SurfaceElement]:
        return list(self._elements.values())

    def edge_paths(self) -> list[EdgePath]:
        return list(self._paths.values())

    def translate_element(self, node_id: str, position: Position) -> bool:
        """Move a node's element without touching the store."""
        element = self._elements.get(node_id)
        if element is None:
            logger.debug("translate_element: no element for node %s", node_id)
            return False
        element.position = position
        element.style["transform"] = translate(position)
        element.style["transition"] = "none"
        element.style["will-change"] = "transform"
        return True

    def clear_drag_style(self, node_id: str) -> None:
        element = self._elements.get(node_id)
        if element is None:
            return
        for key in _DRAG_STYLE_KEYS:
            element.style.pop(key, None)

    # --- Coordinates ---

    def project(self, client_x: float, client_y: float) -> Position:
        """Convert screen coordinates into diagram coordinates."""
        local = Position(x=client_x - self.bounds.left, y=client_y - self.bounds.top)
        return self.viewport.project(local)
