from typing import Callable, Dict, List, Optional

from PyQt6.QtCore import QObject, QRect, Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QColor, QPainter, QPen, QScreen
from PyQt6.QtWidgets import QApplication, QWidget

from TextSnip.selection.coordinator import SelectionCoordinator, SelectionState
from TextSnip.selection.geometry import CoordinateSpace, Point, Rect, rect_to_local, to_capture_pixels
from TextSnip.selection.surfaces import SurfaceDescriptor
from TextSnip.util.logging_config import logger

INSTRUCTIONS = "Click and drag to select area • Press ESC to cancel"


def widget_rect_for(surface: SurfaceDescriptor, clipped: Rect, units_per_pixel: float = 1.0) -> QRect:
    """Global rect on this surface -> top-left widget coordinates (Qt logical pixels).

    `units_per_pixel` is how many surface-frame units one Qt logical pixel
    spans: 1.0 where mss and Qt agree (macOS, X11), the device pixel ratio on
    Windows where mss reports physical pixels.
    """
    r = to_capture_pixels(rect_to_local(clipped, surface), surface.frame.height, 1.0 / units_per_pixel)
    return QRect(round(r.x), round(r.y), round(r.width), round(r.height))


def widget_point_to_global(surface: SurfaceDescriptor, x: float, y: float, units_per_pixel: float = 1.0) -> Point:
    frame = surface.frame
    return Point(frame.x + x * units_per_pixel, frame.y + (frame.height - y * units_per_pixel), CoordinateSpace.GLOBAL)


def screen_geometry_for(surface: SurfaceDescriptor, desktop_height: float) -> QRect:
    """Surface frame (global, y up) -> mss-style desktop rect (y down from the primary's top)."""
    frame = surface.frame
    return QRect(round(frame.x), round(desktop_height - frame.max_y), round(frame.width), round(frame.height))


def match_screen(target: QRect, screens: List[QScreen], index: int) -> Optional[QScreen]:
    """The Qt screen showing `target`, matched by top-left corner and then by position in the list.

    Qt keeps each screen's native top-left but divides its size by the device
    pixel ratio, so the corner is the stable key.
    """
    for screen in screens:
        if screen.geometry().topLeft() == target.topLeft():
            return screen
    return screens[index] if 0 <= index < len(screens) else None


class SelectionOverlay(QWidget):
    """Dimmed window covering one surface; forwards pointer input and draws its slice of the selection."""

    def __init__(self, surface: SurfaceDescriptor, coordinator: SelectionCoordinator, geometry: QRect, show_instructions=False):
        super().__init__()
        self.surface = surface
        self.coordinator = coordinator
        self.show_instructions = show_instructions
        self.selection: Optional[QRect] = None
        self.units_per_pixel = surface.frame.width / geometry.width() if geometry.width() else 1.0

        self.setWindowFlags(Qt.WindowType.FramelessWindowHint |
                            Qt.WindowType.WindowStaysOnTopHint |
                            Qt.WindowType.Tool)
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground, True)
        self.setMouseTracking(True)
        self.setCursor(Qt.CursorShape.CrossCursor)
        self.setGeometry(geometry)

        coordinator.subscribe(surface.id, self.render_selection)

    def render_selection(self, surface: SurfaceDescriptor, clipped: Optional[Rect]):
        self.selection = widget_rect_for(surface, clipped, self.units_per_pixel) if clipped else None
        self.update()

    def _global(self, event) -> Point:
        pos = event.position()
        return widget_point_to_global(self.surface, pos.x(), pos.y(), self.units_per_pixel)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(0, 0, 0, 80))

        if self.selection is not None:
            # Clear the dark overlay in the selection area so the user can see through
            painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Clear)
            painter.fillRect(self.selection, Qt.GlobalColor.transparent)
            painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_SourceOver)

            painter.setPen(QPen(QColor(255, 255, 255), 2))
            painter.drawRect(self.selection)
            dashed = QPen(QColor(0, 0, 0), 1)
            dashed.setDashPattern([4, 4])
            painter.setPen(dashed)
            painter.drawRect(self.selection.adjusted(1, 1, -1, -1))

        if self.show_instructions:
            painter.setPen(QColor(255, 255, 255))
            text_rect = QRect(0, 40, self.width(), 30)
            painter.fillRect(text_rect.adjusted(self.width() // 3, 0, -self.width() // 3, 0), QColor(0, 0, 0, 180))
            painter.drawText(text_rect, Qt.AlignmentFlag.AlignCenter, INSTRUCTIONS)

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton and self.coordinator.is_active:
            self.coordinator.pointer_down(self._global(event))

    def mouseMoveEvent(self, event):
        if self.coordinator.state is SelectionState.DRAGGING:
            self.coordinator.pointer_move(self._global(event))

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton and self.coordinator.state is SelectionState.DRAGGING:
            self.coordinator.pointer_move(self._global(event))
            self.coordinator.pointer_up()

    def keyPressEvent(self, event):
        if event.key() == Qt.Key.Key_Escape and self.coordinator.is_active:
            self.coordinator.cancel()

    def enterEvent(self, event):
        # Keyboard focus follows the pointer so Esc reaches whichever surface is under it
        self.activateWindow()
        self.setFocus()


class QtDispatcher(QObject):
    """Runs callables on the Qt main thread, whichever thread they were posted from."""

    _posted = pyqtSignal(object)

    def __init__(self):
        super().__init__()
        self._posted.connect(self._run, Qt.ConnectionType.QueuedConnection)

    def __call__(self, fn: Callable[[], None]):
        self._posted.emit(fn)

    @staticmethod
    def _run(fn):
        fn()


def qt_scheduler(delay: float, fn: Callable[[], None]):
    QTimer.singleShot(int(delay * 1000), fn)


class OverlayHost:
    """Shows one overlay per surface while a selection session is open."""

    def __init__(self):
        self.overlays: Dict[object, SelectionOverlay] = {}

    def show(self, coordinator: SelectionCoordinator):
        self.close()
        surfaces: List[SurfaceDescriptor] = list(coordinator.surfaces)
        primary = next((s for s in surfaces if s.frame.x == 0 and s.frame.y == 0), surfaces[0])
        desktop_height = primary.frame.max_y
        screens = QApplication.screens()
        for index, surface in enumerate(surfaces):
            target = screen_geometry_for(surface, desktop_height)
            screen = match_screen(target, screens, index)
            geometry = screen.geometry() if screen is not None else target
            overlay = SelectionOverlay(surface, coordinator, geometry, show_instructions=surface is primary)
            self.overlays[surface.id] = overlay
            overlay.show()
            overlay.raise_()
        self.overlays[primary.id].activateWindow()
        logger.debug(f"Showing {len(self.overlays)} selection overlay(s)")

    def close(self):
        for overlay in self.overlays.values():
            overlay.hide()
            overlay.deleteLater()
        self.overlays.clear()
