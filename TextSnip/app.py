import argparse
import signal
import sys
from datetime import datetime

from PyQt6.QtWidgets import QApplication

from TextSnip.capture_manager import CaptureManager
from TextSnip.ui.selection_overlay_qt import OverlayHost, QtDispatcher, qt_scheduler
from TextSnip.util.config.configuration import get_config
from TextSnip.util.logging_config import cleanup_old_logs, display, initialize_logging, logger
from TextSnip.util.platform.hotkey import HotkeyCancellationSource, HotkeyManager


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='textsnip', description="Select a screen region and copy the text in it.")
    parser.add_argument('--capture-now', action='store_true', help="Open the selection overlay immediately")
    parser.add_argument('--raw-order', action='store_true', help="Keep the OCR engine's fragment order instead of reading order")
    parser.add_argument('--debug', action='store_true', help="Log debug output to the console")
    return parser.parse_args(argv)


def show_history(manager: CaptureManager):
    entries = manager.history.captures
    if not entries:
        display("Capture history is empty")
        return
    for i, entry in enumerate(entries, start=1):
        stamp = datetime.fromtimestamp(entry.timestamp)
        display(f"{i:>3}. [{stamp:%Y-%m-%d %H:%M}] {entry.title}")


def main(argv=None):
    args = parse_args(argv)
    initialize_logging(console_level='DEBUG' if args.debug else 'INFO')
    cleanup_old_logs()

    config = get_config()
    if args.raw_order:
        config.general.line_aware_ocr = False

    app = QApplication(sys.argv[:1])
    app.setQuitOnLastWindowClosed(False)

    dispatcher = QtDispatcher()
    overlays = OverlayHost()
    hotkeys = HotkeyManager()

    manager = CaptureManager(
        config=config,
        cancellation_source=HotkeyCancellationSource(hotkeys, config.hotkeys.cancel),
        scheduler=qt_scheduler,
        dispatch=dispatcher,
        on_session_started=overlays.show,
        on_session_ended=overlays.close,
    )

    # Hotkey callbacks arrive on the listener thread
    hotkeys.register(lambda: config.hotkeys.capture, lambda: dispatcher(manager.start_area_selection))
    hotkeys.register(lambda: config.hotkeys.history, lambda: dispatcher(lambda: show_history(manager)))

    app.screenAdded.connect(lambda _screen: manager.displays_changed())
    app.screenRemoved.connect(lambda _screen: manager.displays_changed())

    def quit_app(*_):
        logger.info("Shutting down")
        app.quit()

    signal.signal(signal.SIGINT, quit_app)

    if args.capture_now:
        dispatcher(manager.start_area_selection)

    logger.info(f"TextSnip ready, press {config.hotkeys.capture} to capture text")
    try:
        exit_code = app.exec()
    finally:
        hotkeys.clear()
        manager.shutdown()
    return exit_code


if __name__ == '__main__':
    sys.exit(main())
