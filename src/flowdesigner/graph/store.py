"""In-memory graph state store for the flow designer.

The store is the single source of truth for a diagram's nodes, edges and
metadata. Every mutation builds new containers instead of editing the old
ones, so a snapshot handed to a listener or an exporter never changes under
its holder. Operations on unknown ids are silent no-ops.
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from flowdesigner.core.types import Position
from flowdesigner.graph.models import (
    DEFAULT_EDGE_STROKE,
    DiagramDocument,
    DiagramMetadata,
    Edge,
    EdgeStyle,
    MarkerEnd,
    Node,
    NodeData,
    NodeType,
    merge_model,
)

logger = logging.getLogger(__name__)

START_NODE_ID = "start"
END_NODE_ID = "end"
DEFAULT_EDGE_ID = "start-end"


@dataclass(frozen=True)
class GraphSnapshot:
    """Immutable view of the store at one revision."""

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    metadata: DiagramMetadata = field(default_factory=DiagramMetadata)
    revision: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.edges

    def get_node(self, node_id: str) -> Node | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_document(self) -> DiagramDocument:
        return DiagramDocument(
            nodes=list(self.nodes),
            edges=list(self.edges),
            metadata=self.metadata,
        )


StoreListener = Callable[[GraphSnapshot], None]


def default_nodes() -> tuple[Node, ...]:
    return (
        Node(
            id=START_NODE_ID,
            type=NodeType.START,
            position=Position(x=250, y=50),
            data=NodeData(label="Start"),
        ),
        Node(
            id=END_NODE_ID,
            type=NodeType.END,
            position=Position(x=250, y=350),
            data=NodeData(label="End"),
        ),
    )


def default_edges() -> tuple[Edge, ...]:
    return (Edge(id=DEFAULT_EDGE_ID, source=START_NODE_ID, target=END_NODE_ID),)


def generate_node_id(node_type: NodeType | str) -> str:
    """Build a node id from the type name, a millisecond timestamp and a random suffix."""
    return f"{node_type}_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def generate_edge_id(source: str, target: str) -> str:
    return f"edge-{source}-{target}-{int(time.time() * 1000)}"


class FlowGraphStore:
    """Copy-on-write store of one flow diagram."""

    def __init__(self, document: DiagramDocument | None = None) -> None:
        self._snapshot = GraphSnapshot()
        self._listeners: list[StoreListener] = []
        if document is not None:
            self.initialize(document)

    # --- Reads ---

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self._snapshot.nodes

    @property
    def edges(self) -> tuple[Edge, ...]:
        return self._snapshot.edges

    @property
    def metadata(self) -> DiagramMetadata:
        return self._snapshot.metadata

    @property
    def revision(self) -> int:
        return self._snapshot.revision

    @property
    def node_count(self) -> int:
        return len(self._snapshot.nodes)

    @property
    def edge_count(self) -> int:
        return len(self._snapshot.edges)

    def snapshot(self) -> GraphSnapshot:
        return self._snapshot

    def to_document(self) -> DiagramDocument:
        return self._snapshot.to_document()

    def get_node(self, node_id: str) -> Node | None:
        return self._snapshot.get_node(node_id)

    def has_edge(self, source: str, target: str) -> bool:
        return any(e.source == source and e.target == target for e in self._snapshot.edges)

    # --- Subscriptions ---

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Mutations ---

    def initialize(self, document: DiagramDocument | None) -> bool:
        """Load ``document``, or bootstrap the default diagram when none is given.

        Nodes and edges are only replaced when they differ from what the store
        already holds, so pushing the same document twice is not a change.
        Returns True when the store changed.
        """
        if document is None:
            if self._snapshot.nodes or self._snapshot.edges:
                return False
            return self._commit(
                nodes=default_nodes(),
                edges=default_edges(),
                metadata=DiagramMetadata(),
            )

        nodes = tuple(document.nodes)
        edges = tuple(document.edges)
        return self._commit(
            nodes=nodes if nodes != self._snapshot.nodes else None,
            edges=edges if edges != self._snapshot.edges else None,
            metadata=document.metadata,
        )

    def add_node(
        self,
        node_type: NodeType | str,
        label: str,
        position: Position | Mapping[str, float],
        *,
        description: str = "",
        style: Mapping[str, Any] | None = None,
    ) -> Node | None:
        """Create a node of ``node_type`` at ``position`` and append it.

        Returns the new node, or None when its generated id already exists.
        """
        node_type = NodeType(node_type)
        node = Node(
            id=generate_node_id(node_type),
            type=node_type,
            position=Position.model_validate(position),
            data=NodeData(label=label, description=description),
            style=style,
        )
        return node if self.insert_node(node) else None

    def insert_node(self, node: Node) -> bool:
        if self.get_node(node.id) is not None:
            logger.debug("Ignoring node with duplicate id %s", node.id)
            return False
        return self._commit(nodes=self._snapshot.nodes + (node,))

    def update_node(self, node_id: str, patch: Mapping[str, Any] | Node) -> Node | None:
        """Replace the node ``node_id`` with a merged copy carrying ``patch``."""
        if isinstance(patch, Node):
            patch = patch.model_dump(by_alias=True, exclude={"id"})
        nodes = list(self._snapshot.nodes)
        for index, node in enumerate(nodes):
            if node.id == node_id:
                break
        else:
            logger.debug("update_node: node %s not found", node_id)
            return None

        updated = merge_model(node, {**patch, "id": node_id})
        if updated == node:
            return node
        nodes[index] = updated
        self._commit(nodes=tuple(nodes))
        return updated

    def move_node(self, node_id: str, position: Position | Mapping[str, float]) -> Node | None:
        position = Position.model_validate(position)
        return self.update_node(node_id, {"position": position.model_dump()})

    def delete_node(self, node_id: str) -> bool:
        """Remove a node together with every edge that references it."""
        if self.get_node(node_id) is None:
            return False
        return self._commit(
            nodes=tuple(n for n in self._snapshot.nodes if n.id != node_id),
            edges=tuple(e for e in self._snapshot.edges if not e.connects(node_id)),
        )

    def add_edge(
        self,
        source: str,
        target: str,
        *,
        source_handle: str | None = None,
        target_handle: str | None = None,
        label: str | None = None,
    ) -> Edge | None:
        """Connect ``source`` to ``target``; a repeated directed pair is ignored."""
        if self.has_edge(source, target):
            logger.debug("Ignoring duplicate edge %s -> %s", source, target)
            return None
        edge = Edge(
            id=generate_edge_id(source, target),
            source=source,
            target=target,
            marker_end=MarkerEnd(),
            style=EdgeStyle(stroke=DEFAULT_EDGE_STROKE),
            label=label,
            source_handle=source_handle,
            target_handle=target_handle,
        )
        self._commit(edges=self._snapshot.edges + (edge,))
        return edge

    def delete_edges(self, predicate: Callable[[Edge], bool]) -> int:
        """Remove every edge matching ``predicate``; returns how many went."""
        kept = tuple(e for e in self._snapshot.edges if not predicate(e))
        removed = len(self._snapshot.edges) - len(kept)
        if removed:
            self._commit(edges=kept)
        return removed

    def remove_edges(self, edge_ids: Iterable[str]) -> int:
        ids = set(edge_ids)
        return self.delete_edges(lambda e: e.id in ids)

    def set_metadata(self, name: str, description: str = "") -> bool:
        return self._commit(metadata=DiagramMetadata(name=name, description=description))

    def reset(self) -> None:
        """Restore the default two-node diagram and clear the metadata."""
        self._commit(
            nodes=default_nodes(),
            edges=default_edges(),
            metadata=DiagramMetadata(),
        )

    def clear(self) -> None:
        self._commit(nodes=(), edges=(), metadata=DiagramMetadata())

    def _commit(
        self,
        *,
        nodes: tuple[Node, ...] | None = None,
        edges: tuple[Edge, ...] | None = None,
        metadata: DiagramMetadata | None = None,
    ) -> bool:
        current = self._snapshot
        if metadata is not None and metadata == current.metadata:
            metadata = None
        if nodes is None and edges is None and metadata is None:
            return False

        self._snapshot = GraphSnapshot(
            nodes=current.nodes if nodes is None else nodes,
            edges=current.edges if edges is None else edges,
            metadata=current.metadata if metadata is None else metadata,
            revision=current.revision + 1,
        )
        for listener in list(self._listeners):
            listener(self._snapshot)
        return True
