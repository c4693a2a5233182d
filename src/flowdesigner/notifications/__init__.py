"""User-facing toast notifications."""

from flowdesigner.notifications.models import Toast, ToastVariant
from flowdesigner.notifications.service import Notifier, ToastNotifier
from flowdesigner.notifications.store import ToastStore

__all__ = ["Notifier", "Toast", "ToastNotifier", "ToastStore", "ToastVariant"]
