"""Where recognized text goes once reconstruction is done."""

from typing import Optional, Protocol

from TextSnip.history import CaptureHistoryStore
from TextSnip.util import notification
from TextSnip.util.clipboard import copy_text


class DeliverySink(Protocol):
    def deliver(self, text: Optional[str]) -> None:
        """Receive the assembled text, or None when the capture produced no text."""
        ...


class ClipboardSink:
    def deliver(self, text: Optional[str]) -> None:
        if text:
            copy_text(text)


class NotificationSink:
    def deliver(self, text: Optional[str]) -> None:
        if text:
            notification.send_text_copied_notification(text)
        else:
            notification.send_no_text_found_notification()


class HistorySink:
    def __init__(self, store: CaptureHistoryStore):
        self.store = store

    def deliver(self, text: Optional[str]) -> None:
        if text:
            self.store.add_capture(text)
