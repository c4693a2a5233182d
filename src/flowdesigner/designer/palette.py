"""Node palette shown in the designer sidebar."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel

from flowdesigner.designer.nodes import NODE_RENDERERS
from flowdesigner.graph.models import NodeType

logger = logging.getLogger(__name__)

_DEFAULT_PALETTE_PATH = Path(__file__).with_name("node_palette.yml")

# MIME-style keys a palette drag carries in its payload.
DRAG_TYPE_KEY = "application/reactflow-type"
DRAG_LABEL_KEY = "application/reactflow-label"


class PaletteItem(BaseModel):
    type: NodeType
    label: str
    color: str = ""

    def drag_payload(self) -> dict[str, str]:
        return {DRAG_TYPE_KEY: self.type.value, DRAG_LABEL_KEY: self.label}


def default_palette() -> list[PaletteItem]:
    return [
        PaletteItem(type=node_type, label=renderer.default_label, color=renderer.colors.border)
        for node_type, renderer in NODE_RENDERERS.items()
    ]


def load_palette(path: str | Path | None = None) -> list[PaletteItem]:
    """Load palette items from YAML.

    Without ``path`` the palette shipped with the package is used. A
    configured file that does not exist falls back to one item per node type.
    """
    path = Path(path) if path else _DEFAULT_PALETTE_PATH
    if not path.exists():
        logger.warning("Palette file %s not found, using built-in palette", path)
        return default_palette()
    with open(path) as fh:
        data = yaml.safe_load(fh) or {}
    items = [PaletteItem.model_validate(item) for item in data.get("palette", [])]
    return items or default_palette()
