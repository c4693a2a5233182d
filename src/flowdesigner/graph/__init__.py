"""Flow diagram graph model and state store."""

from flowdesigner.graph.models import DiagramDocument, DiagramMetadata, Edge, Node, NodeType
from flowdesigner.graph.store import FlowGraphStore, GraphSnapshot

__all__ = [
    "DiagramDocument",
    "DiagramMetadata",
    "Edge",
    "FlowGraphStore",
    "GraphSnapshot",
    "Node",
    "NodeType",
]
