"""In-memory toast store."""

from __future__ import annotations

from collections import deque

from flowdesigner.notifications.models import Toast


class ToastStore:
    """Bounded in-memory history of toasts, newest last."""

    def __init__(self, max_size: int = 100) -> None:
        self._toasts: deque[Toast] = deque(maxlen=max_size)

    def save(self, toast: Toast) -> Toast:
        self._toasts.append(toast)
        return toast

    def list_all(self) -> list[Toast]:
        return list(self._toasts)

    def latest(self) -> Toast | None:
        return self._toasts[-1] if self._toasts else None

    def clear(self) -> None:
        self._toasts.clear()

    @property
    def count(self) -> int:
        return len(self._toasts)
