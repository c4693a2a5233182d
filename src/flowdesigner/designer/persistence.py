"""Debounced persistence of the designer's diagram document.

The adapter watches the store and hands the owner one document per burst of
changes: every change restarts a short timer, and only when the timer expires
is ``on_change`` called with the state at that moment. Explicit saves bypass
the timer.

Without a running event loop there is no timer: each change is delivered as
it happens and awaitable callbacks are run to completion before returning.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

from flowdesigner.graph.models import DiagramDocument
from flowdesigner.graph.store import FlowGraphStore, GraphSnapshot

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[DiagramDocument], Any]
SaveCallback = Callable[[str, str], Any]


async def _wait_for(awaitable: Any) -> Any:
    return await awaitable


class PersistenceAdapter:
    """Forwards store changes to the owning page, debounced."""

    def __init__(
        self,
        store: FlowGraphStore,
        on_change: ChangeCallback,
        on_save: SaveCallback | None = None,
        debounce_seconds: float = 0.1,
    ) -> None:
        self._store = store
        self._on_change = on_change
        self._on_save = on_save
        self._debounce = debounce_seconds
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribe = store.subscribe(self._on_store_change)

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def _on_store_change(self, snapshot: GraphSnapshot) -> None:
        self._cancel_timer()
        if snapshot.is_empty:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, delivering diagram change immediately")
            self._deliver()
            return
        self._timer = loop.call_later(self._debounce, self._deliver)

    def _deliver(self) -> None:
        self._timer = None
        document = self._store.to_document()
        if document.is_empty:
            return
        self._dispatch(self._on_change(document))

    def _dispatch(self, result: Any) -> None:
        if not inspect.isawaitable(result):
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(_wait_for(result))
            return
        task = asyncio.ensure_future(result)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def flush(self) -> bool:
        """Deliver a pending change now instead of waiting for the timer."""
        if self._timer is None:
            return False
        self._cancel_timer()
        self._deliver()
        return True

    def save(self, name: str, description: str = "") -> None:
        """Record the diagram's name and description and notify the owner."""
        self._store.set_metadata(name, description)
        if self._on_save is not None:
            self._dispatch(self._on_save(name, description))

    def close(self) -> None:
        self._cancel_timer()
        self._unsubscribe()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
