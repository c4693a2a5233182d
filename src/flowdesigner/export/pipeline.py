"""PDF export pipeline for the flow designer.

Capturing the surface temporarily restyles it (opaque background, visible
overflow, heavier edge strokes). Every override is undone before the capture
call returns, whether the rasterizer succeeded or not.
"""

from __future__ import annotations

import logging

from flowdesigner.core.config import ExportConfig
from flowdesigner.designer.surface import RenderSurface
from flowdesigner.export.delivery import DocumentDelivery
from flowdesigner.export.models import (
    DeliveryError,
    ExportArtifact,
    ExportInProgressError,
    ExportState,
    RasterImage,
    RasterizationError,
    SurfaceNotFoundError,
)
from flowdesigner.export.rasterizer import Rasterizer
from flowdesigner.export.renderer import DiagramPdfRenderer
from flowdesigner.graph.models import DiagramMetadata
from flowdesigner.notifications.models import ToastVariant
from flowdesigner.notifications.service import Notifier

logger = logging.getLogger(__name__)

EXPORT_BACKGROUND = "#ffffff"
EXPORT_EDGE_STROKE = "#555"
EXPORT_EDGE_WIDTH = "2"

_SURFACE_OVERRIDES = {"background-color": EXPORT_BACKGROUND, "overflow": "visible"}
_EDGE_OVERRIDES = {"stroke": EXPORT_EDGE_STROKE, "stroke-width": EXPORT_EDGE_WIDTH}


def _override(target: dict[str, str], values: dict[str, str]) -> dict[str, str | None]:
    saved = {key: target.get(key) for key in values}
    target.update(values)
    return saved


def _restore(target: dict[str, str], saved: dict[str, str | None]) -> None:
    for key, value in saved.items():
        if value is None:
            target.pop(key, None)
        else:
            target[key] = value


class ExportPipeline:
    """Captures the surface, lays it out as a PDF and delivers it."""

    def __init__(
        self,
        rasterizer: Rasterizer,
        delivery: DocumentDelivery,
        notifier: Notifier,
        project_id: int,
        config: ExportConfig | None = None,
        renderer: DiagramPdfRenderer | None = None,
    ) -> None:
        self._config = config or ExportConfig()
        self._rasterizer = rasterizer
        self._delivery = delivery
        self._notifier = notifier
        self._renderer = renderer or DiagramPdfRenderer(self._config)
        self._project_id = project_id
        self._state = ExportState.IDLE

    @property
    def state(self) -> ExportState:
        return self._state

    @property
    def is_exporting(self) -> bool:
        return self._state == ExportState.EXPORTING

    async def export_pdf(self, surface: RenderSurface | None, metadata: DiagramMetadata) -> bool:
        """Export the diagram and deliver it; returns False on failure.

        Failures never propagate: they end up as a destructive toast.
        """
        if self.is_exporting:
            logger.warning("Export already in progress, ignoring request")
            return False
        if surface is None:
            self._fail("Cannot find flow diagram element to export")
            return False

        self._state = ExportState.EXPORTING
        try:
            artifact = await self._render(surface, metadata)
            return await self._deliver(artifact)
        except Exception:
            logger.exception("Error exporting PDF")
            self._fail("Failed to export flow diagram as PDF. Please try again.")
            return False
        finally:
            self._state = ExportState.IDLE

    async def render(self, surface: RenderSurface | None, metadata: DiagramMetadata) -> ExportArtifact:
        """Build the PDF without delivering it.

        Raises :class:`ExportInProgressError` while another export runs.
        """
        if self.is_exporting:
            raise ExportInProgressError("An export of this flow diagram is already in progress")
        self._state = ExportState.EXPORTING
        try:
            return await self._render(surface, metadata)
        finally:
            self._state = ExportState.IDLE

    async def _render(self, surface: RenderSurface | None, metadata: DiagramMetadata) -> ExportArtifact:
        if surface is None:
            raise SurfaceNotFoundError("Could not find the flow diagram surface to capture")
        image = await self._capture(surface)
        return self._renderer.render(image, metadata, self._project_id)

    async def _capture(self, surface: RenderSurface) -> RasterImage:
        """Rasterize ``surface`` with export styling, then put its styling back."""
        saved_surface = _override(surface.style, _SURFACE_OVERRIDES)
        saved_edges = [(path, _override(path.attrs, _EDGE_OVERRIDES)) for path in surface.edge_paths()]
        try:
            return await self._rasterizer.rasterize(
                surface,
                pixel_ratio=self._config.pixel_ratio,
                width=surface.width,
                height=surface.height,
                background=EXPORT_BACKGROUND,
            )
        except RasterizationError:
            raise
        except Exception as exc:
            raise RasterizationError(f"Could not capture the flow diagram: {exc}") from exc
        finally:
            _restore(surface.style, saved_surface)
            for path, saved in saved_edges:
                _restore(path.attrs, saved)

    async def _deliver(self, artifact: ExportArtifact) -> bool:
        try:
            await self._delivery.download(artifact)
        except DeliveryError as exc:
            logger.warning("Download of %s failed, opening viewer instead: %s", artifact.filename, exc)
            await self._delivery.open_in_viewer(artifact)
            self._notifier.notify(
                "PDF Generated",
                "Opening in new tab instead of downloading",
                duration_ms=3000,
            )
            return True

        self._notifier.notify(
            "Success",
            f"Flow diagram exported as {artifact.filename}",
            duration_ms=3000,
        )
        return True

    def _fail(self, description: str) -> None:
        self._notifier.notify("Error", description, variant=ToastVariant.DESTRUCTIVE)
