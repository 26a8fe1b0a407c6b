"""
Selection state machine.

Drives one drag-selection across every registered display surface. Pointer
positions arrive in global space from whichever surface window received them;
the coordinator keeps the anchor and cursor, broadcasts the live rectangle to
the surface renderers and reports a finalized global rectangle or a
cancellation exactly once per session.

Hosts must deliver events from a single event loop. The cancel path may be fed
by a different input channel (a global key hook), but the host still
serializes it onto the same loop before calling in.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from TextSnip.selection.errors import AlreadyActiveError, InvalidTransitionError, NoSurfacesError
from TextSnip.selection.geometry import CoordinateSpace, Point, Rect, rect_from_points
from TextSnip.selection.surfaces import SurfaceDescriptor, SurfaceId, SurfaceRegistry, SurfaceRenderer
from TextSnip.util.logging_config import logger

# Drags whose width or height is at or below this many global units count as a click
MIN_SELECTION_SIZE = 5.0


class SelectionState(str, Enum):
    IDLE = "idle"
    READY = "ready"
    DRAGGING = "dragging"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (SelectionState.COMPLETED, SelectionState.CANCELLED)


@dataclass
class SelectionSession:
    surfaces: SurfaceRegistry
    state: SelectionState = SelectionState.READY
    anchor: Optional[Point] = None
    cursor: Optional[Point] = None
    result: Optional[Rect] = None


class SelectionCoordinator:
    def __init__(
        self,
        on_complete: Optional[Callable[[Rect], None]] = None,
        on_cancel: Optional[Callable[[], None]] = None,
        min_size: float = MIN_SELECTION_SIZE,
    ):
        self.on_complete = on_complete
        self.on_cancel = on_cancel
        self.min_size = min_size
        self._session: Optional[SelectionSession] = None

    @property
    def session(self) -> Optional[SelectionSession]:
        return self._session

    @property
    def state(self) -> SelectionState:
        return self._session.state if self._session else SelectionState.IDLE

    @property
    def is_active(self) -> bool:
        return self.state in (SelectionState.READY, SelectionState.DRAGGING)

    @property
    def surfaces(self) -> Optional[SurfaceRegistry]:
        return self._session.surfaces if self._session else None

    @property
    def selection_rect(self) -> Optional[Rect]:
        """Live rectangle between anchor and cursor, in global space."""
        session = self._session
        if session is None or session.anchor is None or session.cursor is None:
            return None
        return rect_from_points(session.anchor, session.cursor)

    def begin(self, surfaces: Iterable[SurfaceDescriptor]):
        if self._session is not None:
            raise AlreadyActiveError()
        registry = SurfaceRegistry(surfaces)
        if not registry:
            raise NoSurfacesError()
        self._session = SelectionSession(surfaces=registry)
        logger.debug(f"Selection session started across {len(registry)} surface(s)")

    def subscribe(self, surface_id: SurfaceId, renderer: SurfaceRenderer):
        self._require_session("subscribe").surfaces.subscribe(surface_id, renderer)

    def unsubscribe(self, surface_id: SurfaceId, renderer: SurfaceRenderer):
        if self._session is not None:
            self._session.surfaces.unsubscribe(surface_id, renderer)

    def pointer_down(self, at: Point):
        session = self._pointer_session("pointer_down", at)
        if session is None:
            return
        if session.state is SelectionState.DRAGGING:
            # Duplicate press, e.g. from two overlapping surface windows
            return
        session.anchor = at
        session.cursor = at
        session.state = SelectionState.DRAGGING
        session.surfaces.broadcast(self.selection_rect)

    def pointer_move(self, to: Point):
        session = self._pointer_session("pointer_move", to)
        if session is None:
            return
        if session.state is not SelectionState.DRAGGING:
            raise InvalidTransitionError("pointer_move", session.state)
        session.cursor = to
        session.surfaces.broadcast(self.selection_rect)

    def pointer_up(self) -> Optional[Rect]:
        session = self._pointer_session("pointer_up")
        if session is None:
            return None
        if session.state is not SelectionState.DRAGGING:
            raise InvalidTransitionError("pointer_up", session.state)

        rect = self.selection_rect
        if rect.width <= self.min_size or rect.height <= self.min_size:
            logger.debug(f"Selection {rect.width:.0f}x{rect.height:.0f} below minimum size, ready for a new drag")
            session.anchor = None
            session.cursor = None
            session.state = SelectionState.READY
            session.surfaces.broadcast(None)
            return None

        session.state = SelectionState.COMPLETED
        session.result = rect
        logger.debug(f"Selection completed: {rect}")
        if self.on_complete:
            self.on_complete(rect)
        return rect

    def cancel(self) -> bool:
        """Cancel the session. Returns True only for the call that actually cancelled."""
        return self._cancel("cancel")

    def escape_requested(self) -> bool:
        """Cancel requested from an out-of-band key signal; same contract as `cancel`."""
        return self._cancel("escape_requested")

    def teardown(self):
        if self._session is None:
            return
        self._session.surfaces.clear()
        self._session = None
        logger.debug("Selection session torn down")

    def _cancel(self, operation: str) -> bool:
        session = self._require_session(operation)
        if session.state.is_terminal:
            return False
        session.state = SelectionState.CANCELLED
        session.anchor = None
        session.cursor = None
        logger.debug(f"Selection cancelled via {operation}")
        if self.on_cancel:
            self.on_cancel()
        return True

    def _require_session(self, operation: str) -> SelectionSession:
        if self._session is None:
            raise InvalidTransitionError(operation, SelectionState.IDLE)
        return self._session

    def _pointer_session(self, operation: str, point: Optional[Point] = None) -> Optional[SelectionSession]:
        if point is not None and point.space is not CoordinateSpace.GLOBAL:
            raise ValueError(f"{operation}() expects a global point, got {point.space.value}")
        session = self._require_session(operation)
        if session.state.is_terminal:
            logger.debug(f"Ignoring {operation}() after selection {session.state.value}")
            return None
        return session
