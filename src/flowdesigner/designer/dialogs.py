"""Edit and save dialogs of the designer.

Both dialogs work on a private draft; nothing reaches the store until the
user confirms.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from flowdesigner.graph.models import LinkedItemType, Node, NodeType, merge_model
from flowdesigner.graph.store import FlowGraphStore
from flowdesigner.notifications.models import ToastVariant
from flowdesigner.notifications.service import Notifier

logger = logging.getLogger(__name__)

NO_LINK = "none"


class NodeEditDialog:
    """General / Style / Links editor for the selected node."""

    def __init__(self, store: FlowGraphStore, notifier: Notifier) -> None:
        self._store = store
        self._notifier = notifier
        self._draft: Node | None = None

    @property
    def is_open(self) -> bool:
        return self._draft is not None

    @property
    def draft(self) -> Node | None:
        return self._draft

    @property
    def title(self) -> str:
        if self._draft is None:
            return "Edit Node"
        return f"Edit {self._draft.type.value.removesuffix('Node')}"

    def open(self, node: Node) -> None:
        self._draft = node

    def close(self) -> None:
        self._draft = None

    def _edit(self, patch: dict[str, Any]) -> None:
        if self._draft is None:
            raise RuntimeError("No node is being edited")
        self._draft = merge_model(self._draft, patch)

    # --- General tab ---

    def set_label(self, value: str) -> None:
        self._edit({"data": {"label": value}})

    def set_description(self, value: str) -> None:
        self._edit({"data": {"description": value}})

    def set_condition(self, value: str) -> None:
        """Only decision nodes carry a condition."""
        if self._draft is not None and self._draft.type != NodeType.DECISION:
            logger.debug("Ignoring condition for %s node", self._draft.type)
            return
        self._edit({"data": {"condition": value}})

    # --- Style tab ---

    def set_background_color(self, value: str) -> None:
        self._edit({"style": {"backgroundColor": value}})

    def set_border_color(self, value: str) -> None:
        self._edit({"style": {"borderColor": value, "border": f"1px solid {value}"}})

    # --- Links tab ---

    def set_link_type(self, value: str | None) -> None:
        """Choose what the node links to; switching type forgets the linked id."""
        if not value or value == NO_LINK:
            self._edit({"data": {"linkedItemType": None, "linkedItemId": None}})
            return
        link_type = LinkedItemType(value)
        patch: dict[str, Any] = {"linkedItemType": link_type}
        if self._draft is not None and self._draft.data.linked_item_type != link_type:
            patch["linkedItemId"] = None
        self._edit({"data": patch})

    def set_link_id(self, raw: str) -> None:
        try:
            value = int(raw)
        except (TypeError, ValueError):
            value = None
        self._edit({"data": {"linkedItemId": value}})

    # --- Footer ---

    def save(self) -> Node | None:
        """Write the draft back to the store and close the dialog."""
        if self._draft is None:
            return None
        draft = self._draft
        updated = self._store.update_node(draft.id, draft)
        self.close()
        if updated is None:
            self._notifier.notify(
                "Update Failed",
                "There was a problem updating the node. Please try again.",
                variant=ToastVariant.DESTRUCTIVE,
            )
            return None
        self._notifier.notify(
            "Node Updated",
            f'"{updated.data.label}" has been updated successfully',
            duration_ms=2000,
        )
        return updated

    def delete(self) -> bool:
        """Delete the edited node (and its edges) and close the dialog."""
        if self._draft is None:
            return False
        removed = self._store.delete_node(self._draft.id)
        self.close()
        return removed

    def cancel(self) -> None:
        self.close()


class SaveDialog:
    """Name/description prompt shown before saving a diagram."""

    def __init__(self, on_confirm: Callable[[str, str], None]) -> None:
        self._on_confirm = on_confirm
        self.is_open = False
        self.name = ""
        self.description = ""

    def open(self, name: str = "", description: str = "") -> None:
        self.name = name
        self.description = description
        self.is_open = True

    @property
    def can_confirm(self) -> bool:
        return bool(self.name.strip())

    def confirm(self) -> bool:
        if not self.is_open or not self.can_confirm:
            return False
        self._on_confirm(self.name, self.description)
        self.is_open = False
        return True

    def cancel(self) -> None:
        self.is_open = False
