"""The flow designer component.

A :class:`FlowDesigner` wires one store, surface, controller, persistence
adapter and export pipeline together for a single owning page. The owner
drives it imperatively through the :class:`DesignerHandle` returned by
:meth:`FlowDesigner.mount`; the handle stops working once the designer is
unmounted.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from flowdesigner.core.config import Settings
from flowdesigner.designer.controller import InteractionController
from flowdesigner.designer.dialogs import SaveDialog
from flowdesigner.designer.persistence import ChangeCallback, PersistenceAdapter, SaveCallback
from flowdesigner.designer.surface import RenderSurface
from flowdesigner.export.delivery import DirectoryDelivery, DocumentDelivery
from flowdesigner.export.models import ExportArtifact
from flowdesigner.export.pipeline import ExportPipeline
from flowdesigner.export.rasterizer import PillowRasterizer, Rasterizer
from flowdesigner.graph.models import DiagramDocument
from flowdesigner.graph.store import FlowGraphStore
from flowdesigner.notifications.models import ToastVariant
from flowdesigner.notifications.service import Notifier, ToastNotifier

logger = logging.getLogger(__name__)


class DesignerUnmountedError(RuntimeError):
    """Raised when a handle is used after its designer was unmounted."""


class DesignerHandle:
    """Imperative controls the owning page may call while the designer is mounted."""

    def __init__(self, designer: FlowDesigner) -> None:
        self._designer: FlowDesigner | None = designer

    @property
    def active(self) -> bool:
        return self._designer is not None

    def _target(self) -> FlowDesigner:
        if self._designer is None:
            raise DesignerUnmountedError("The flow designer has been unmounted")
        return self._designer

    def show_save_dialog(self) -> SaveDialog:
        return self._target().open_save_dialog()

    def reset_designer(self) -> None:
        self._target().reset_designer()

    async def export_pdf(self) -> bool:
        return await self._target().export_pdf()

    def release(self) -> None:
        self._designer = None


def _ignore_change(document: DiagramDocument) -> None:
    return None


class FlowDesigner:
    """One mounted instance of the flow diagram designer."""

    def __init__(
        self,
        project_id: int,
        flow_data: DiagramDocument | Mapping[str, Any] | None = None,
        on_change: ChangeCallback | None = None,
        on_save: SaveCallback | None = None,
        *,
        settings: Settings | None = None,
        notifier: Notifier | None = None,
        surface: RenderSurface | None = None,
        rasterizer: Rasterizer | None = None,
        delivery: DocumentDelivery | None = None,
    ) -> None:
        settings = settings or Settings()
        self.project_id = project_id
        self.settings = settings
        self.notifier = notifier or ToastNotifier()
        self.store = FlowGraphStore()
        self.surface = surface or RenderSurface(
            settings.designer.surface_width,
            settings.designer.surface_height,
        )
        self.drag_state = self.surface.drag_state
        self.exporter = ExportPipeline(
            rasterizer=rasterizer or PillowRasterizer(),
            delivery=delivery or DirectoryDelivery(settings.export.download_dir),
            notifier=self.notifier,
            project_id=project_id,
            config=settings.export,
        )
        self.controller = InteractionController(
            self.store,
            self.notifier,
            self.drag_state,
            click_delay=settings.designer.click_delay_seconds,
            on_clear=self.reset_designer,
            on_export=self.export_pdf,
        )
        self.save_dialog = SaveDialog(self._save)
        self._flow_data = flow_data
        self._on_change = on_change or _ignore_change
        self._on_save = on_save
        self._persistence: PersistenceAdapter | None = None
        self._handle: DesignerHandle | None = None

    @property
    def mounted(self) -> bool:
        return self._handle is not None

    @property
    def handle(self) -> DesignerHandle | None:
        return self._handle

    @property
    def persistence(self) -> PersistenceAdapter | None:
        return self._persistence

    def mount(self) -> DesignerHandle:
        """Render the designer, load the initial document and return its handle."""
        if self._handle is not None:
            return self._handle
        self.surface.attach(self.store)
        self.controller.attach_surface(self.surface)
        self._persistence = PersistenceAdapter(
            self.store,
            on_change=self._on_change,
            on_save=self._on_save,
            debounce_seconds=self.settings.designer.debounce_seconds,
        )
        self._handle = DesignerHandle(self)
        self.set_flow_data(self._flow_data)
        logger.debug("Flow designer mounted for project %s", self.project_id)
        return self._handle

    def unmount(self) -> None:
        """Tear down the handle, the persistence adapter and the surface binding."""
        if self._handle is None:
            return
        self._handle.release()
        self._handle = None
        if self._persistence is not None:
            self._persistence.close()
            self._persistence = None
        self.controller.clear_selection()
        self.controller.attach_surface(None)
        self.surface.detach()
        logger.debug("Flow designer unmounted for project %s", self.project_id)

    def set_flow_data(self, flow_data: DiagramDocument | Mapping[str, Any] | None) -> bool:
        """Load a document supplied by the owner; ``None`` bootstraps the default diagram."""
        self._flow_data = flow_data
        if flow_data is not None and not isinstance(flow_data, DiagramDocument):
            try:
                flow_data = DiagramDocument.model_validate(flow_data)
            except ValidationError:
                logger.exception("Invalid flow diagram data")
                self.notifier.notify(
                    "Error",
                    "Failed to load flow diagram data",
                    variant=ToastVariant.DESTRUCTIVE,
                )
                return False
        return self.store.initialize(flow_data)

    def reset_designer(self) -> None:
        self.store.reset()
        self.controller.clear_selection()

    def open_save_dialog(self) -> SaveDialog:
        metadata = self.store.metadata
        self.save_dialog.open(metadata.name, metadata.description)
        return self.save_dialog

    def _save(self, name: str, description: str) -> None:
        if self._persistence is None:
            raise DesignerUnmountedError("The flow designer has been unmounted")
        self._persistence.save(name, description)

    async def export_pdf(self) -> bool:
        surface = self.surface if self.mounted else None
        return await self.exporter.export_pdf(surface, self.store.metadata)

    async def export_artifact(self) -> ExportArtifact:
        """Build the export document without delivering it."""
        surface = self.surface if self.mounted else None
        return await self.exporter.render(surface, self.store.metadata)
