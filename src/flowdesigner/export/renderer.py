"""Flow diagram PDF renderer."""

from __future__ import annotations

import io
from datetime import datetime, timezone

from flowdesigner.core.config import ExportConfig
from flowdesigner.export.models import ExportArtifact, ImageBox, RasterImage, export_filename
from flowdesigner.graph.models import DiagramMetadata


def fit_image(
    page_width: float,
    page_height: float,
    image_width: float,
    image_height: float,
    *,
    margin: float = 15.0,
    reserved_height: float = 40.0,
    top: float = 30.0,
) -> ImageBox:
    """Scale an image to the page width, capped to the safe content height.

    The aspect ratio is preserved and the result is centred horizontally.
    """
    safe_height = page_height - reserved_height
    width = page_width - 2 * margin
    height = width * image_height / image_width
    if height > safe_height:
        height = safe_height
        width = height * image_width / image_height
    return ImageBox(x=(page_width - width) / 2, y=top, width=width, height=height)


def _pdf_text(value: str) -> str:
    # Core PDF fonts only cover latin-1.
    return value.encode("latin-1", "replace").decode("latin-1")


class DiagramPdfRenderer:
    """Renders a captured diagram into a single-page PDF using fpdf2."""

    def __init__(self, config: ExportConfig | None = None) -> None:
        self._config = config or ExportConfig()

    def render(
        self,
        image: RasterImage,
        metadata: DiagramMetadata,
        project_id: int,
        generated_at: datetime | None = None,
    ) -> ExportArtifact:
        from fpdf import FPDF

        config = self._config
        generated_at = generated_at or datetime.now(timezone.utc)
        orientation = image.orientation

        pdf = FPDF(orientation="L" if orientation == "landscape" else "P", unit="mm", format=config.page_format)
        pdf.set_auto_page_break(auto=False)
        pdf.add_page()
        page_width, page_height = pdf.w, pdf.h
        margin = config.margin_mm

        # Header band
        pdf.set_fill_color(245, 245, 245)
        pdf.rect(0, 0, page_width, config.header_height_mm, style="F")

        if metadata.name:
            pdf.set_font("Helvetica", "", 16)
            pdf.set_text_color(0, 0, 0)
            pdf.text(margin, 12, _pdf_text(metadata.name))

        if metadata.description:
            pdf.set_font("Helvetica", "", 10)
            pdf.set_text_color(80, 80, 80)
            pdf.set_xy(margin, 16)
            pdf.multi_cell(page_width - 2 * margin, 4, _pdf_text(metadata.description))

        box = fit_image(
            page_width,
            page_height,
            image.width,
            image.height,
            margin=margin,
            reserved_height=config.reserved_height_mm,
            top=config.image_top_mm,
        )
        pdf.image(io.BytesIO(image.data), x=box.x, y=box.y, w=box.width, h=box.height)

        # Footer
        pdf.set_draw_color(200, 200, 200)
        pdf.line(margin, page_height - margin, page_width - margin, page_height - margin)
        pdf.set_font("Helvetica", "", 8)
        pdf.set_text_color(100, 100, 100)
        pdf.text(margin, page_height - 10, f"Generated: {generated_at:%Y-%m-%d %H:%M:%S}")
        pdf.text(page_width - 60, page_height - 10, f"Project ID: {project_id}")

        return ExportArtifact(
            filename=export_filename(metadata.name, config.default_filename),
            content=bytes(pdf.output()),
            orientation=orientation,
            page_width=page_width,
            page_height=page_height,
            image_box=box,
            generated_at=generated_at,
        )
