"""Notifier Protocol and the toast-backed implementation."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from flowdesigner.notifications.models import Toast, ToastVariant
from flowdesigner.notifications.store import ToastStore

logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """Protocol for the designer's user-facing notification channel."""

    def notify(
        self,
        title: str,
        description: str = "",
        variant: ToastVariant = ToastVariant.DEFAULT,
        duration_ms: int | None = None,
    ) -> Toast: ...


class ToastNotifier:
    """Records toasts in a store and mirrors them to the log."""

    def __init__(self, store: ToastStore | None = None) -> None:
        self._store = store or ToastStore()

    @property
    def store(self) -> ToastStore:
        return self._store

    def notify(
        self,
        title: str,
        description: str = "",
        variant: ToastVariant = ToastVariant.DEFAULT,
        duration_ms: int | None = None,
    ) -> Toast:
        toast = Toast(
            title=title,
            description=description,
            variant=variant,
            duration_ms=duration_ms,
        )
        if toast.is_error:
            logger.warning("%s: %s", title, description)
        else:
            logger.info("%s: %s", title, description)
        self._store.save(toast)
        return toast
