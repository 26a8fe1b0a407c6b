"""
Host glue: runs a selection session, then capture, OCR, reconstruction and delivery.

Everything that touches the selection coordinator runs on the caller's event
loop. Capture and OCR run on a single worker thread so the overlay stays
responsive; their failures are logged and reported to the user here and never
reach the coordinator.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional

from TextSnip.capture.screen_capture import ScreenCapturer, choose_surface, enumerate_surfaces
from TextSnip.delivery import ClipboardSink, DeliverySink, HistorySink, NotificationSink
from TextSnip.errors import CollaboratorError
from TextSnip.history import CaptureHistoryStore
from TextSnip.ocr.engines import get_engine
from TextSnip.ocr.reading_order import reconstruct_text
from TextSnip.selection.coordinator import SelectionCoordinator
from TextSnip.selection.geometry import Rect
from TextSnip.selection.surfaces import SurfaceDescriptor
from TextSnip.util import notification
from TextSnip.util.config.configuration import Config, get_config
from TextSnip.util.logging_config import logger
from TextSnip.util.platform.hotkey import CancellationSource


def thread_timer_scheduler(delay: float, fn: Callable[[], None]):
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    timer.start()


def call_directly(fn: Callable[[], None]):
    fn()


class CaptureManager:
    def __init__(
        self,
        config: Optional[Config] = None,
        surface_provider: Callable[[], List[SurfaceDescriptor]] = enumerate_surfaces,
        capturer: Optional[ScreenCapturer] = None,
        engine_getter=get_engine,
        history: Optional[CaptureHistoryStore] = None,
        sinks: Optional[List[DeliverySink]] = None,
        cancellation_source: Optional[CancellationSource] = None,
        scheduler: Callable[[float, Callable[[], None]], None] = thread_timer_scheduler,
        dispatch: Callable[[Callable[[], None]], None] = call_directly,
        on_session_started: Optional[Callable[[SelectionCoordinator], None]] = None,
        on_session_ended: Optional[Callable[[], None]] = None,
    ):
        self.config = config or get_config()
        self.surface_provider = surface_provider
        self.capturer = capturer or ScreenCapturer()
        self.engine_getter = engine_getter
        self.history = history or CaptureHistoryStore(self.config.history.max_entries)
        self.sinks = sinks if sinks is not None else self._default_sinks()
        self.cancellation_source = cancellation_source
        self.scheduler = scheduler
        self.dispatch = dispatch
        self.on_session_started = on_session_started
        self.on_session_ended = on_session_ended

        self.coordinator = SelectionCoordinator(
            on_complete=self._on_selection_complete,
            on_cancel=self._on_selection_cancel,
            min_size=self.config.selection.min_selection_size,
        )
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="textsnip-ocr")
        self.last_future: Optional[Future] = None
        self.last_text: Optional[str] = None

    def _default_sinks(self) -> List[DeliverySink]:
        sinks: List[DeliverySink] = []
        if self.config.general.auto_copy_to_clipboard:
            sinks.append(ClipboardSink())
        sinks.append(HistorySink(self.history))
        if self.config.general.show_notification:
            sinks.append(NotificationSink())
        return sinks

    def start_area_selection(self) -> bool:
        """Open a new selection session over the current displays."""
        if self.coordinator.session is not None:
            self._end_session()

        surfaces = self.surface_provider()
        if not surfaces:
            logger.warning("No screens available for selection")
            notification.send_error_notification("No screen found for selection")
            return False

        self.coordinator.begin(surfaces)
        if self.cancellation_source is not None:
            self.cancellation_source.connect(lambda: self.dispatch(self.escape_requested))
        if self.on_session_started:
            self.on_session_started(self.coordinator)
        logger.info(f"Area selection started on {len(surfaces)} screen(s)")
        return True

    def escape_requested(self):
        # The key hook can fire after the session already finished on the pointer path
        if self.coordinator.is_active:
            self.coordinator.escape_requested()

    def displays_changed(self):
        """Display configuration changed; an open session's surfaces are stale."""
        if self.coordinator.is_active:
            logger.info("Display configuration changed, cancelling selection")
            self.coordinator.cancel()

    def _end_session(self):
        if self.cancellation_source is not None:
            self.cancellation_source.disconnect()
        self.coordinator.teardown()
        if self.on_session_ended:
            self.on_session_ended()

    def _on_selection_cancel(self):
        logger.info("Area selection cancelled")
        self._end_session()

    def _on_selection_complete(self, rect: Rect):
        surface = choose_surface(rect, self.coordinator.surfaces)
        self._end_session()
        logger.info(f"Selected {rect.width:.0f}x{rect.height:.0f} on screen {surface.id}")
        # Overlay windows need to be gone before the screen is grabbed
        self.scheduler(self.config.selection.settle_delay_seconds, lambda: self._submit(rect, surface))

    def _submit(self, rect: Rect, surface: SurfaceDescriptor):
        self.last_future = self._executor.submit(self.capture_and_recognize, rect, surface)
        self.last_future.add_done_callback(self._finish)

    def capture_and_recognize(self, rect: Rect, surface: SurfaceDescriptor) -> Optional[str]:
        img = self.capturer.capture(rect, surface)
        engine = self.engine_getter(self.config.general.ocr_engine)
        observations = engine.recognize(img, self.config.general.recognition_language)
        logger.debug(f"{engine.name} returned {len(observations)} fragments")
        text = reconstruct_text(observations, self.config.reading_mode)
        return text or None

    def _finish(self, future: Future):
        try:
            text = future.result()
        except CollaboratorError as e:
            logger.error(f"Capture failed: {e}")
            notification.send_error_notification(str(e))
            return
        except Exception:
            logger.exception("Unexpected error while capturing text")
            raise
        self.dispatch(lambda: self.deliver(text))

    def deliver(self, text: Optional[str]):
        self.last_text = text
        if text:
            logger.info(f"Recognized {len(text)} characters")
        else:
            logger.info("No text found in selection")
        for sink in self.sinks:
            sink.deliver(text)

    def shutdown(self):
        if self.coordinator.session is not None:
            self._end_session()
        self._executor.shutdown(wait=True)
