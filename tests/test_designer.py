"""Tests for the flow designer component and its session manager."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from flowdesigner.core.config import Settings
from flowdesigner.designer.designer import DesignerUnmountedError, FlowDesigner
from flowdesigner.designer.sessions import DesignerSessionManager
from flowdesigner.export.models import ExportArtifact, ExportInProgressError, RasterImage
from flowdesigner.graph.models import DiagramDocument
from tests.conftest import png_bytes, sample_document


@pytest.fixture
def designer(notifier, fake_rasterizer) -> FlowDesigner:
    return FlowDesigner(
        project_id=5,
        flow_data=sample_document(),
        on_change=MagicMock(),
        on_save=MagicMock(),
        settings=Settings(),
        notifier=notifier,
        rasterizer=fake_rasterizer,
        delivery=AsyncMock(),
    )


class TestMounting:
    def test_mount_loads_flow_data(self, designer):
        handle = designer.mount()
        assert handle.active
        assert designer.mounted
        assert designer.store.node_count == 3
        assert designer.surface.element("a") is not None

    def test_mount_without_data_bootstraps_default(self, notifier, fake_rasterizer):
        on_change = MagicMock()
        designer = FlowDesigner(1, on_change=on_change, notifier=notifier, rasterizer=fake_rasterizer)
        designer.mount()
        assert [n.id for n in designer.store.nodes] == ["start", "end"]
        delivered = on_change.call_args.args[0]
        assert isinstance(delivered, DiagramDocument)
        assert len(delivered.nodes) == 2

    def test_mount_is_idempotent(self, designer):
        assert designer.mount() is designer.mount()

    def test_handle_fails_after_unmount(self, designer):
        handle = designer.mount()
        designer.unmount()
        assert not handle.active
        assert designer.persistence is None
        with pytest.raises(DesignerUnmountedError):
            handle.reset_designer()
        with pytest.raises(DesignerUnmountedError):
            handle.show_save_dialog()

    def test_unmounted_designer_stops_rendering(self, designer):
        designer.mount()
        designer.unmount()
        designer.store.delete_node("a")
        assert designer.surface.element("a") is not None


class TestOwnerOperations:
    def test_reset_restores_defaults(self, designer):
        handle = designer.mount()
        handle.reset_designer()
        assert [n.id for n in designer.store.nodes] == ["start", "end"]
        assert designer.store.metadata.name == ""

    def test_save_dialog_saves_metadata(self, designer):
        handle = designer.mount()
        dialog = handle.show_save_dialog()
        assert dialog.name == "Checkout"
        dialog.name = "Checkout v2"
        assert dialog.confirm() is True
        assert designer.store.metadata.name == "Checkout v2"
        designer._on_save.assert_called_once_with("Checkout v2", "Happy path")

    def test_invalid_flow_data_is_reported(self, designer, notifier):
        designer.mount()
        assert designer.set_flow_data({"nodes": [{"id": "x"}]}) is False
        assert designer.store.node_count == 3
        toast = notifier.store.latest()
        assert toast.is_error
        assert toast.description == "Failed to load flow diagram data"

    def test_flow_data_from_mapping(self, designer):
        designer.mount()
        payload = sample_document().to_json_dict()
        payload["nodes"] = payload["nodes"][:2]
        payload["edges"] = payload["edges"][:1]
        assert designer.set_flow_data(payload) is True
        assert designer.store.node_count == 2

    @pytest.mark.asyncio
    async def test_export_through_handle(self, designer, notifier):
        handle = designer.mount()
        assert await handle.export_pdf() is True
        assert notifier.store.latest().title == "Success"

    @pytest.mark.asyncio
    async def test_export_after_unmount_reports_missing_surface(self, designer, notifier):
        designer.mount()
        designer.unmount()
        assert await designer.export_pdf() is False
        assert notifier.store.latest().description == "Cannot find flow diagram element to export"

    @pytest.mark.asyncio
    async def test_overlapping_exports_leave_surface_untouched(self, designer, fake_rasterizer):
        designer.mount()
        delays = iter([0.01, 0.05])

        async def capture(surface, **kwargs):
            await asyncio.sleep(next(delays))
            return RasterImage(data=png_bytes(), width=4, height=3)

        fake_rasterizer.rasterize.side_effect = capture
        results = await asyncio.gather(
            designer.export_artifact(),
            designer.export_artifact(),
            return_exceptions=True,
        )

        assert isinstance(results[0], ExportArtifact)
        assert isinstance(results[1], ExportInProgressError)
        assert designer.surface.style == {"background-color": "transparent", "overflow": "hidden"}
        assert all(p.attrs["stroke-width"] == "1" for p in designer.surface.edge_paths())


class TestDesignerSessionManager:
    def test_create_and_close_session(self):
        manager = DesignerSessionManager(Settings())
        session = manager.create_session(3)
        assert session.handle.active
        assert manager.get_session(session.session_id) is session
        assert session.change_count == 1

        assert manager.close_session(session.session_id) is True
        assert not session.handle.active
        assert manager.get_session(session.session_id) is None
        assert manager.close_session(session.session_id) is False

    def test_session_records_saves(self):
        manager = DesignerSessionManager(Settings())
        session = manager.create_session(3, sample_document())
        dialog = session.handle.show_save_dialog()
        dialog.name = "Saved"
        dialog.confirm()
        assert session.last_saved.name == "Saved"

    def test_close_all(self):
        manager = DesignerSessionManager(Settings())
        manager.create_session(1)
        manager.create_session(2)
        manager.close_all()
        assert manager.list_sessions() == []
