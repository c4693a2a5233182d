"""Tests for toast notifications."""

from __future__ import annotations

from flowdesigner.notifications import Notifier, ToastNotifier, ToastStore, ToastVariant


class TestToastNotifier:
    def test_notify_records_toast(self):
        notifier = ToastNotifier()
        toast = notifier.notify("Saved", "All good", duration_ms=2000)
        assert toast.title == "Saved"
        assert toast.variant == ToastVariant.DEFAULT
        assert not toast.is_error
        assert notifier.store.latest() is toast

    def test_error_is_destructive(self):
        notifier = ToastNotifier()
        toast = notifier.notify("Error", "Broken", variant=ToastVariant.DESTRUCTIVE)
        assert toast.is_error

    def test_satisfies_protocol(self):
        assert isinstance(ToastNotifier(), Notifier)


class TestToastStore:
    def test_bounded_history(self):
        store = ToastStore(max_size=2)
        notifier = ToastNotifier(store)
        for i in range(3):
            notifier.notify(f"T{i}")
        assert store.count == 2
        assert [t.title for t in store.list_all()] == ["T1", "T2"]

    def test_clear(self):
        store = ToastStore()
        ToastNotifier(store).notify("x")
        store.clear()
        assert store.latest() is None
