"""Interaction controller: turns canvas gestures into store mutations.

Two gestures get special handling:

* Dragging a node never goes through the store while the pointer moves. Each
  move is written straight onto the node's surface element and the store sees
  a single position update when the drag ends.
* A click only selects a node after a short delay, so the start of a drag or
  a second click can cancel it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from flowdesigner.core.types import Position
from flowdesigner.designer.dialogs import NodeEditDialog
from flowdesigner.designer.palette import DRAG_LABEL_KEY, DRAG_TYPE_KEY
from flowdesigner.designer.surface import DragState, RenderSurface
from flowdesigner.graph.models import Edge, Node, NodeType
from flowdesigner.graph.store import FlowGraphStore
from flowdesigner.notifications.models import ToastVariant
from flowdesigner.notifications.service import Notifier

logger = logging.getLogger(__name__)

DROP_NODE_STYLE = {"border": "1px solid #ddd", "borderRadius": "4px", "padding": "10px"}


# --- Gesture events ---


class NodePositionChange(BaseModel):
    type: Literal["position"] = "position"
    id: str
    position: Position | None = None
    dragging: bool | None = None


class NodeRemoveChange(BaseModel):
    type: Literal["remove"] = "remove"
    id: str


class NodeSelectChange(BaseModel):
    type: Literal["select"] = "select"
    id: str
    selected: bool = True


class NodeDimensionsChange(BaseModel):
    type: Literal["dimensions"] = "dimensions"
    id: str
    width: float | None = None
    height: float | None = None


NodeChange = Annotated[
    NodePositionChange | NodeRemoveChange | NodeSelectChange | NodeDimensionsChange,
    Field(discriminator="type"),
]


class EdgeRemoveChange(BaseModel):
    type: Literal["remove"] = "remove"
    id: str


class EdgeSelectChange(BaseModel):
    type: Literal["select"] = "select"
    id: str
    selected: bool = True


EdgeChange = Annotated[EdgeRemoveChange | EdgeSelectChange, Field(discriminator="type")]


class Connection(BaseModel):
    source: str | None = None
    target: str | None = None
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target_handle: str | None = Field(default=None, alias="targetHandle")

    model_config = {"populate_by_name": True}


class DropEvent(BaseModel):
    """A palette item released over the canvas."""

    payload: dict[str, str] = Field(default_factory=dict)
    client_x: float = 0.0
    client_y: float = 0.0


class ContextMenuAction(StrEnum):
    ADD_STEP = "add_step"
    ADD_DECISION = "add_decision"
    CLEAR_CANVAS = "clear_canvas"
    EXPORT_PDF = "export_pdf"


# --- Controller ---


class InteractionController:
    """Applies canvas gestures to a :class:`FlowGraphStore`."""

    def __init__(
        self,
        store: FlowGraphStore,
        notifier: Notifier,
        drag_state: DragState,
        surface: RenderSurface | None = None,
        click_delay: float = 0.05,
        on_clear: Callable[[], None] | None = None,
        on_export: Callable[[], Awaitable[bool]] | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._drag_state = drag_state
        self._surface = surface
        self._click_delay = click_delay
        self._on_clear = on_clear or store.reset
        self._on_export = on_export
        self._dragged: dict[str, Position] = {}
        self._pending_click: asyncio.TimerHandle | None = None
        self._menu_position: Position | None = None
        self.edit_dialog = NodeEditDialog(store, notifier)

    @property
    def selected_node(self) -> Node | None:
        return self.edit_dialog.draft

    @property
    def context_menu_open(self) -> bool:
        return self._menu_position is not None

    def attach_surface(self, surface: RenderSurface | None) -> None:
        self._surface = surface

    def clear_selection(self) -> None:
        self._cancel_pending_click()
        self.edit_dialog.close()

    # --- Node and edge changes ---

    def on_nodes_change(self, changes: Sequence[NodeChange]) -> None:
        drag_moves = [
            c for c in changes if isinstance(c, NodePositionChange) and c.dragging is True
        ]
        if drag_moves:
            self._drag(drag_moves)

        drag_ends = [
            c for c in changes if isinstance(c, NodePositionChange) and c.dragging is False
        ]
        # The drag stays active while any node in the batch is still moving.
        if drag_ends and not drag_moves:
            self._drag_state.end()

        for change in changes:
            if isinstance(change, NodePositionChange):
                if change.dragging:
                    continue
                self._commit_position(change)
            elif isinstance(change, NodeRemoveChange):
                self._store.delete_node(change.id)

    def _drag(self, moves: Sequence[NodePositionChange]) -> None:
        self._cancel_pending_click()
        self._drag_state.begin()
        for change in moves:
            if change.position is None:
                continue
            self._dragged[change.id] = change.position
            if self._surface is not None:
                self._surface.translate_element(change.id, change.position)

    def _commit_position(self, change: NodePositionChange) -> None:
        position = self._dragged.pop(change.id, None)
        if change.position is not None:
            position = change.position
        if position is None:
            return
        self._store.move_node(change.id, position)
        if self._surface is not None:
            self._surface.clear_drag_style(change.id)

    def on_edges_change(self, changes: Sequence[EdgeChange]) -> None:
        if self._drag_state.active:
            return
        removed = [c.id for c in changes if isinstance(c, EdgeRemoveChange)]
        if removed:
            self._store.remove_edges(removed)

    def on_connect(self, connection: Connection) -> Edge | None:
        if not connection.source or not connection.target:
            return None
        return self._store.add_edge(
            connection.source,
            connection.target,
            source_handle=connection.source_handle,
            target_handle=connection.target_handle,
        )

    # --- Click to edit ---

    def on_node_click(self, node_id: str) -> None:
        """Select ``node_id`` and open the edit dialog after the click delay."""
        self._cancel_pending_click()
        loop = asyncio.get_running_loop()
        self._pending_click = loop.call_later(self._click_delay, self._select, node_id)

    def _select(self, node_id: str) -> None:
        self._pending_click = None
        node = self._store.get_node(node_id)
        if node is None:
            logger.debug("Clicked node %s no longer exists", node_id)
            return
        self.edit_dialog.open(node)

    def _cancel_pending_click(self) -> None:
        if self._pending_click is not None:
            self._pending_click.cancel()
            self._pending_click = None

    # --- Drop to create ---

    def on_drop(self, event: DropEvent) -> Node | None:
        node_type = event.payload.get(DRAG_TYPE_KEY)
        label = event.payload.get(DRAG_LABEL_KEY)
        if not node_type or not label or self._surface is None:
            self._reject_drop("The dropped item is missing a node type or label.")
            return None
        try:
            node_type = NodeType(node_type)
        except ValueError:
            self._reject_drop(f"Unknown node type {node_type!r}.")
            return None

        position = self._surface.project(event.client_x, event.client_y)
        return self._store.add_node(node_type, label, position, style=DROP_NODE_STYLE)

    def _reject_drop(self, reason: str) -> None:
        self._notifier.notify(
            "Error",
            f"Failed to add new node to the diagram. {reason}",
            variant=ToastVariant.DESTRUCTIVE,
        )

    # --- Context menu ---

    def open_context_menu(self, client_x: float, client_y: float) -> None:
        self._menu_position = Position(x=client_x, y=client_y)

    def close_context_menu(self) -> None:
        self._menu_position = None

    async def choose(self, action: ContextMenuAction) -> Node | bool | None:
        """Run a context menu entry; the menu closes either way."""
        menu_position = self._menu_position or Position()
        self._menu_position = None

        if action in (ContextMenuAction.ADD_STEP, ContextMenuAction.ADD_DECISION):
            if self._surface is None:
                return None
            position = self._surface.project(menu_position.x, menu_position.y)
            if action == ContextMenuAction.ADD_STEP:
                return self._store.add_node(NodeType.STEP, "New Step", position)
            return self._store.add_node(NodeType.DECISION, "Decision", position)

        if action == ContextMenuAction.CLEAR_CANVAS:
            self._on_clear()
            return True

        if self._on_export is None:
            return False
        return await self._on_export()
