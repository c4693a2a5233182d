"""Tests for the node edit and save dialogs."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from flowdesigner.designer.dialogs import NodeEditDialog, SaveDialog
from flowdesigner.graph.models import LinkedItemType, NodeType
from flowdesigner.graph.store import FlowGraphStore
from flowdesigner.notifications.models import ToastVariant
from tests.conftest import make_node, sample_document


@pytest.fixture
def store() -> FlowGraphStore:
    store = FlowGraphStore(sample_document())
    store.insert_node(make_node("d", NodeType.DECISION, label="Paid?"))
    store.insert_node(make_node("l", NodeType.LINKED, label="Login requirement", linked_item_type="requirement", linked_item_id=3))
    return store


@pytest.fixture
def dialog(store, notifier) -> NodeEditDialog:
    return NodeEditDialog(store, notifier)


class TestNodeEditDialog:
    def test_edits_stay_in_draft_until_saved(self, dialog, store):
        dialog.open(store.get_node("b"))
        dialog.set_label("Renamed")
        dialog.set_description("Details")
        assert store.get_node("b").label == "Work"

        updated = dialog.save()
        assert updated.label == "Renamed"
        assert store.get_node("b").data.description == "Details"
        assert not dialog.is_open

    def test_save_notifies_success(self, dialog, store, notifier):
        dialog.open(store.get_node("b"))
        dialog.set_label("Ship")
        dialog.save()
        toast = notifier.store.latest()
        assert toast.title == "Node Updated"
        assert toast.description == '"Ship" has been updated successfully'
        assert toast.duration_ms == 2000

    def test_save_after_node_deleted_reports_failure(self, dialog, store, notifier):
        dialog.open(store.get_node("b"))
        store.delete_node("b")
        assert dialog.save() is None
        assert store.get_node("b") is None
        toast = notifier.store.latest()
        assert toast.title == "Update Failed"
        assert toast.variant == ToastVariant.DESTRUCTIVE

    def test_cancel_discards_draft(self, dialog, store):
        revision = store.revision
        dialog.open(store.get_node("b"))
        dialog.set_label("Nope")
        dialog.cancel()
        assert store.get_node("b").label == "Work"
        assert store.revision == revision

    def test_condition_only_applies_to_decisions(self, dialog, store):
        dialog.open(store.get_node("b"))
        dialog.set_condition("x > 1")
        assert dialog.draft.data.condition is None

        dialog.open(store.get_node("d"))
        dialog.set_condition("amount > 0")
        assert dialog.draft.data.condition == "amount > 0"

    def test_style_tab(self, dialog, store):
        dialog.open(store.get_node("b"))
        dialog.set_background_color("#ffeeee")
        dialog.set_border_color("#ff0000")
        style = dialog.save().style
        assert style.background_color == "#ffeeee"
        assert style.border_color == "#ff0000"
        assert style.border == "1px solid #ff0000"

    def test_changing_link_type_clears_linked_id(self, dialog, store):
        dialog.open(store.get_node("l"))
        dialog.set_link_type("requirement")
        assert dialog.draft.data.linked_item_id == 3

        dialog.set_link_type("bug")
        assert dialog.draft.data.linked_item_type == LinkedItemType.BUG
        assert dialog.draft.data.linked_item_id is None

    def test_link_type_none_clears_link(self, dialog, store):
        dialog.open(store.get_node("l"))
        dialog.set_link_type("none")
        assert dialog.draft.data.linked_item_type is None
        assert dialog.draft.data.linked_item_id is None

    def test_link_id_parses_integers(self, dialog, store):
        dialog.open(store.get_node("l"))
        dialog.set_link_id("42")
        assert dialog.draft.data.linked_item_id == 42
        dialog.set_link_id("abc")
        assert dialog.draft.data.linked_item_id is None

    def test_delete_removes_node_and_edges(self, dialog, store):
        dialog.open(store.get_node("b"))
        assert dialog.delete() is True
        assert store.get_node("b") is None
        assert store.edge_count == 0
        assert not dialog.is_open

    def test_editing_without_open_dialog_raises(self, dialog):
        with pytest.raises(RuntimeError):
            dialog.set_label("x")


class TestSaveDialog:
    def test_confirm_requires_name(self):
        on_confirm = MagicMock()
        dialog = SaveDialog(on_confirm)
        dialog.open()
        dialog.name = "   "
        assert not dialog.can_confirm
        assert dialog.confirm() is False
        on_confirm.assert_not_called()

    def test_confirm_passes_name_and_description(self):
        on_confirm = MagicMock()
        dialog = SaveDialog(on_confirm)
        dialog.open("Draft", "Old")
        dialog.name = "Final"
        assert dialog.confirm() is True
        on_confirm.assert_called_once_with("Final", "Old")
        assert not dialog.is_open

    def test_cancel_closes_without_saving(self):
        on_confirm = MagicMock()
        dialog = SaveDialog(on_confirm)
        dialog.open("Name")
        dialog.cancel()
        assert dialog.confirm() is False
        on_confirm.assert_not_called()
