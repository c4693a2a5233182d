"""Node rendering dispatch table.

Every :class:`NodeType` has exactly one :class:`NodeRenderer` entry in
``NODE_RENDERERS``. Adding a node type means adding an enum member and a
table entry; nothing else dispatches on the type.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from PIL import ImageDraw, ImageFont

from flowdesigner.graph.models import Node, NodeType

Box = tuple[float, float, float, float]


@dataclass(frozen=True)
class NodeColors:
    fill: str
    border: str
    text: str
    border_width: float = 2.0


Painter = Callable[[ImageDraw.ImageDraw, Box, NodeColors, float], None]


def _paint_rounded(radius: float) -> Painter:
    def paint(draw: ImageDraw.ImageDraw, box: Box, colors: NodeColors, scale: float) -> None:
        draw.rounded_rectangle(
            box,
            radius=radius * scale,
            fill=colors.fill,
            outline=colors.border,
            width=max(1, round(colors.border_width * scale)),
        )

    return paint


def _paint_pill(draw: ImageDraw.ImageDraw, box: Box, colors: NodeColors, scale: float) -> None:
    x0, y0, x1, y1 = box
    draw.rounded_rectangle(
        box,
        radius=(y1 - y0) / 2,
        fill=colors.fill,
        outline=colors.border,
        width=max(1, round(colors.border_width * scale)),
    )


def _paint_diamond(draw: ImageDraw.ImageDraw, box: Box, colors: NodeColors, scale: float) -> None:
    x0, y0, x1, y1 = box
    cx, cy = (x0 + x1) / 2, (y0 + y1) / 2
    draw.polygon(
        [(cx, y0), (x1, cy), (cx, y1), (x0, cy)],
        fill=colors.fill,
        outline=colors.border,
        width=max(1, round(colors.border_width * scale)),
    )


def _paint_accent_bar(accent: str) -> Painter:
    base = _paint_rounded(6)

    def paint(draw: ImageDraw.ImageDraw, box: Box, colors: NodeColors, scale: float) -> None:
        base(draw, box, colors, scale)
        x0, y0, _, y1 = box
        inset = 8 * scale
        draw.rectangle((x0 + inset, y0 + inset, x0 + inset + 4 * scale, y1 - inset), fill=accent)

    return paint


def _paint_double_border(draw: ImageDraw.ImageDraw, box: Box, colors: NodeColors, scale: float) -> None:
    _paint_rounded(6)(draw, box, colors, scale)
    x0, y0, x1, y1 = box
    inset = 4 * scale
    draw.rounded_rectangle(
        (x0 + inset, y0 + inset, x1 - inset, y1 - inset),
        radius=4 * scale,
        outline=colors.border,
        width=max(1, round(scale)),
    )


@dataclass(frozen=True)
class NodeRenderer:
    """Rendering contract of one node type."""

    default_label: str
    width: float
    height: float
    colors: NodeColors
    paint: Painter

    def resolve_colors(self, node: Node) -> NodeColors:
        """Apply the node's style overrides on top of the type's palette."""
        fill, border, width = self.colors.fill, self.colors.border, self.colors.border_width
        extra = node.data.model_extra or {}
        if isinstance(extra.get("bgColor"), str):
            fill = extra["bgColor"]
        if node.style is not None:
            fill = node.style.background_color or fill
            border = node.style.border_color or border
            width = node.style.border_width if node.style.border_width is not None else width
        return NodeColors(fill=fill, border=border, text=self.colors.text, border_width=width)


NODE_RENDERERS: dict[NodeType, NodeRenderer] = {
    NodeType.START: NodeRenderer(
        default_label="Start",
        width=100,
        height=40,
        colors=NodeColors(fill="#4ade80", border="#22c55e", text="#ffffff"),
        paint=_paint_pill,
    ),
    NodeType.END: NodeRenderer(
        default_label="End",
        width=100,
        height=40,
        colors=NodeColors(fill="#f87171", border="#ef4444", text="#ffffff"),
        paint=_paint_pill,
    ),
    NodeType.STEP: NodeRenderer(
        default_label="Step",
        width=150,
        height=50,
        colors=NodeColors(fill="#dbeafe", border="#93c5fd", text="#1e40af"),
        paint=_paint_rounded(4),
    ),
    NodeType.DECISION: NodeRenderer(
        default_label="Decision",
        width=140,
        height=100,
        colors=NodeColors(fill="#fef3c7", border="#fcd34d", text="#92400e"),
        paint=_paint_diamond,
    ),
    NodeType.SUBPROCESS: NodeRenderer(
        default_label="Sub-process",
        width=150,
        height=50,
        colors=NodeColors(fill="#f3e8ff", border="#d8b4fe", text="#6b21a8"),
        paint=_paint_accent_bar("#a855f7"),
    ),
    NodeType.LINKED: NodeRenderer(
        default_label="Linked Item",
        width=150,
        height=50,
        colors=NodeColors(fill="#fce7f3", border="#f9a8d4", text="#9d174d"),
        paint=_paint_double_border,
    ),
    NodeType.API_CALL: NodeRenderer(
        default_label="API Call",
        width=150,
        height=50,
        colors=NodeColors(fill="#ccfbf1", border="#5eead4", text="#115e59"),
        paint=_paint_rounded(6),
    ),
    NodeType.EXTERNAL_SYSTEM: NodeRenderer(
        default_label="External System",
        width=150,
        height=50,
        colors=NodeColors(fill="#e0e7ff", border="#a5b4fc", text="#3730a3"),
        paint=_paint_rounded(6),
    ),
}


def renderer_for(node_type: NodeType) -> NodeRenderer:
    return NODE_RENDERERS[node_type]


def node_size(node: Node) -> tuple[float, float]:
    """Layout size of ``node`` in diagram units."""
    renderer = renderer_for(node.type)
    return renderer.width, renderer.height


def load_font(size: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    return ImageFont.load_default(size=max(1.0, size))


def draw_node(draw: ImageDraw.ImageDraw, node: Node, box: Box, scale: float) -> None:
    """Paint ``node`` into ``box`` (pixel coordinates) using its type's renderer."""
    renderer = renderer_for(node.type)
    colors = renderer.resolve_colors(node)
    renderer.paint(draw, box, colors, scale)

    x0, y0, x1, y1 = box
    label = node.data.label or renderer.default_label
    cx = (x0 + x1) / 2
    if node.data.description:
        draw.text((cx, y0 + (y1 - y0) * 0.4), label, fill=colors.text, font=load_font(12 * scale), anchor="mm")
        draw.text(
            (cx, y0 + (y1 - y0) * 0.72),
            _truncate(node.data.description, 28),
            fill=colors.text,
            font=load_font(9 * scale),
            anchor="mm",
        )
    else:
        draw.text((cx, (y0 + y1) / 2), label, fill=colors.text, font=load_font(12 * scale), anchor="mm")


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."
