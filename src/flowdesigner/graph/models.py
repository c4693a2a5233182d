"""Flow diagram data models.

The JSON form of every model uses the camelCase keys of the persisted diagram
document (``markerEnd``, ``linkedItemType``...). Python code uses the
snake_case attribute names; both spellings are accepted on input.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from flowdesigner.core.types import Position


class NodeType(StrEnum):
    START = "startNode"
    END = "endNode"
    STEP = "stepNode"
    DECISION = "decisionNode"
    SUBPROCESS = "subprocessNode"
    LINKED = "linkedNode"
    API_CALL = "apiCallNode"
    EXTERNAL_SYSTEM = "externalSystemNode"


class LinkedItemType(StrEnum):
    """Entities a linked node can reference."""

    TEST_CASE = "testCase"
    REQUIREMENT = "requirement"
    BUG = "bug"


class MarkerType(StrEnum):
    ARROW = "arrow"
    ARROW_CLOSED = "arrowclosed"


DEFAULT_EDGE_TYPE = "smoothstep"
DEFAULT_EDGE_STROKE = "#555"


class FlowModel(BaseModel):
    """Base for document models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NodeData(FlowModel):
    """Free-form node attributes with the fields the designer knows about."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    label: str = ""
    description: str | None = None
    condition: str | None = None
    linked_item_type: LinkedItemType | None = Field(default=None, alias="linkedItemType")
    linked_item_id: int | None = Field(default=None, alias="linkedItemId")


class NodeStyle(FlowModel):
    """Visual overrides for a single node."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    background_color: str | None = Field(default=None, alias="backgroundColor")
    border_color: str | None = Field(default=None, alias="borderColor")
    border_width: float | None = Field(default=None, alias="borderWidth")
    border: str | None = None
    border_radius: str | None = Field(default=None, alias="borderRadius")
    padding: str | None = None


class Node(FlowModel):
    id: str
    type: NodeType
    position: Position = Field(default_factory=Position)
    data: NodeData = Field(default_factory=NodeData)
    style: NodeStyle | None = None

    @property
    def label(self) -> str:
        return self.data.label


class MarkerEnd(FlowModel):
    type: MarkerType = MarkerType.ARROW_CLOSED


class EdgeStyle(FlowModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    stroke: str | None = None
    stroke_width: float | None = Field(default=None, alias="strokeWidth")


class Edge(FlowModel):
    id: str
    source: str
    target: str
    type: str = DEFAULT_EDGE_TYPE
    marker_end: MarkerEnd = Field(default_factory=MarkerEnd, alias="markerEnd")
    style: EdgeStyle | None = None
    label: str | None = None
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target_handle: str | None = Field(default=None, alias="targetHandle")
    animated: bool = False

    def connects(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id


class DiagramMetadata(FlowModel):
    name: str = ""
    description: str = ""


class DiagramDocument(FlowModel):
    """The externally persisted form of one flow diagram."""

    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    metadata: DiagramMetadata = Field(default_factory=DiagramMetadata)

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.edges


ModelT = TypeVar("ModelT", bound=BaseModel)


def merge_model(model: ModelT, patch: Mapping[str, Any]) -> ModelT:
    """Return a new model with ``patch`` applied on top of ``model``.

    Nested models are merged key by key rather than replaced, so a patch of
    ``{"data": {"label": "x"}}`` keeps the other data fields. A ``None`` value
    drops an optional key. ``model`` itself is never modified.
    """
    cls = type(model)
    aliases = {}
    for name, info in cls.model_fields.items():
        alias = info.alias or name
        aliases[name] = alias
        aliases[alias] = alias

    merged = model.model_dump(by_alias=True, exclude_none=True)
    for key, value in patch.items():
        key = aliases.get(key, key)
        current = _field_value(model, key)
        if value is None:
            merged.pop(key, None)
        elif isinstance(current, BaseModel) and isinstance(value, Mapping):
            merged[key] = merge_model(current, value)
        elif isinstance(value, BaseModel) and isinstance(current, BaseModel):
            merged[key] = merge_model(current, value.model_dump(by_alias=True, exclude_none=True))
        else:
            merged[key] = value
    return cls.model_validate(merged)


def _field_value(model: BaseModel, key: str) -> Any:
    for name, info in type(model).model_fields.items():
        if key in (name, info.alias):
            return getattr(model, name)
    extra = model.model_extra or {}
    return extra.get(key)
