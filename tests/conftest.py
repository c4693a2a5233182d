"""Shared test fixtures and helpers."""

from __future__ import annotations

import io
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from flowdesigner.core.types import Position
from flowdesigner.designer.surface import DragState, RenderSurface
from flowdesigner.export.models import RasterImage
from flowdesigner.graph.models import DiagramDocument, DiagramMetadata, Edge, Node, NodeData, NodeType
from flowdesigner.graph.store import FlowGraphStore
from flowdesigner.notifications.service import ToastNotifier


def png_bytes(width: int = 4, height: int = 3) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(buffer, format="PNG")
    return buffer.getvalue()


def make_node(node_id: str, node_type: NodeType = NodeType.STEP, x: float = 0, y: float = 0, **data) -> Node:
    return Node(id=node_id, type=node_type, position=Position(x=x, y=y), data=NodeData(**data))


def sample_document() -> DiagramDocument:
    """Three nodes in a chain: a -> b -> c."""
    return DiagramDocument(
        nodes=[
            make_node("a", NodeType.START, 0, 0, label="Begin"),
            make_node("b", NodeType.STEP, 0, 100, label="Work"),
            make_node("c", NodeType.END, 0, 200, label="Finish"),
        ],
        edges=[
            Edge(id="e-ab", source="a", target="b"),
            Edge(id="e-bc", source="b", target="c"),
        ],
        metadata=DiagramMetadata(name="Checkout", description="Happy path"),
    )


@pytest.fixture
def store() -> FlowGraphStore:
    return FlowGraphStore()


@pytest.fixture
def notifier() -> ToastNotifier:
    return ToastNotifier()


@pytest.fixture
def drag_state() -> DragState:
    return DragState()


@pytest.fixture
def surface(drag_state: DragState) -> RenderSurface:
    return RenderSurface(800, 600, drag_state=drag_state)


@pytest.fixture
def fake_rasterizer() -> AsyncMock:
    rasterizer = AsyncMock()
    rasterizer.rasterize.return_value = RasterImage(data=png_bytes(), width=4, height=3)
    return rasterizer
