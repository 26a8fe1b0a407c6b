import pytest

from TextSnip.selection import (
    AlreadyActiveError,
    CoordinateSpace,
    InvalidTransitionError,
    NoSurfacesError,
    Point,
    Rect,
    SelectionCoordinator,
    SelectionState,
    SurfaceDescriptor,
)

SURFACES = [
    SurfaceDescriptor(id=0, frame=Rect(0, 0, 1920, 1080)),
    SurfaceDescriptor(id=1, frame=Rect(1920, 0, 1920, 1080)),
]


class Recorder:
    def __init__(self):
        self.completed = []
        self.cancelled = 0

    def on_complete(self, rect):
        self.completed.append(rect)

    def on_cancel(self):
        self.cancelled += 1


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def coordinator(recorder):
    coordinator = SelectionCoordinator(on_complete=recorder.on_complete, on_cancel=recorder.on_cancel)
    coordinator.begin(SURFACES)
    return coordinator


def _drag(coordinator, start, end):
    coordinator.pointer_down(Point(*start))
    coordinator.pointer_move(Point(*end))
    return coordinator.pointer_up()


def test_idle_until_begin():
    coordinator = SelectionCoordinator()
    assert coordinator.state is SelectionState.IDLE
    assert not coordinator.is_active
    assert coordinator.selection_rect is None


def test_begin_requires_surfaces():
    with pytest.raises(NoSurfacesError):
        SelectionCoordinator().begin([])


def test_begin_twice_raises(coordinator):
    with pytest.raises(AlreadyActiveError):
        coordinator.begin(SURFACES)


def test_begin_after_terminal_state_still_needs_teardown(coordinator):
    coordinator.cancel()
    with pytest.raises(AlreadyActiveError):
        coordinator.begin(SURFACES)
    coordinator.teardown()
    coordinator.begin(SURFACES)
    assert coordinator.state is SelectionState.READY


def test_completed_drag_reports_normalized_rect(coordinator, recorder):
    result = _drag(coordinator, (200, 300), (100, 100))
    assert result == Rect(100, 100, 100, 200)
    assert recorder.completed == [result]
    assert coordinator.state is SelectionState.COMPLETED
    assert coordinator.session.result == result


def test_drag_across_surfaces_stays_in_global_space(coordinator, recorder):
    result = _drag(coordinator, (1800, 500), (2100, 600))
    assert result == Rect(1800, 500, 300, 100, CoordinateSpace.GLOBAL)
    assert recorder.completed == [result]


def test_small_drag_returns_to_ready(coordinator, recorder):
    assert _drag(coordinator, (0, 0), (3, 3)) is None
    assert recorder.completed == []
    assert coordinator.state is SelectionState.READY
    assert coordinator.selection_rect is None

    assert _drag(coordinator, (0, 0), (10, 10)) == Rect(0, 0, 10, 10)
    assert len(recorder.completed) == 1


def test_minimum_size_applies_to_each_axis(coordinator, recorder):
    assert _drag(coordinator, (0, 0), (500, 5)) is None
    assert _drag(coordinator, (0, 0), (5, 500)) is None
    assert recorder.completed == []


def test_duplicate_pointer_down_keeps_anchor(coordinator):
    coordinator.pointer_down(Point(10, 10))
    coordinator.pointer_down(Point(10, 10))
    coordinator.pointer_down(Point(500, 500))
    assert coordinator.session.anchor == Point(10, 10)
    assert coordinator.state is SelectionState.DRAGGING


def test_cancel_notifies_once(coordinator, recorder):
    coordinator.pointer_down(Point(10, 10))
    assert coordinator.cancel() is True
    assert coordinator.cancel() is False
    assert coordinator.cancel() is False
    assert recorder.cancelled == 1
    assert coordinator.state is SelectionState.CANCELLED
    assert coordinator.selection_rect is None


def test_escape_and_cancel_share_first_call_wins(coordinator, recorder):
    assert coordinator.escape_requested() is True
    assert coordinator.cancel() is False
    assert recorder.cancelled == 1


def test_cancel_after_completion_is_noop(coordinator, recorder):
    _drag(coordinator, (0, 0), (100, 100))
    assert coordinator.cancel() is False
    assert recorder.cancelled == 0
    assert coordinator.state is SelectionState.COMPLETED


def test_pointer_events_after_terminal_are_ignored(coordinator, recorder):
    coordinator.cancel()
    coordinator.pointer_down(Point(0, 0))
    coordinator.pointer_move(Point(100, 100))
    assert coordinator.pointer_up() is None
    assert recorder.completed == []
    assert coordinator.state is SelectionState.CANCELLED


def test_move_and_up_without_drag_raise(coordinator):
    with pytest.raises(InvalidTransitionError) as excinfo:
        coordinator.pointer_move(Point(1, 1))
    assert excinfo.value.state is SelectionState.READY
    with pytest.raises(InvalidTransitionError):
        coordinator.pointer_up()


def test_operations_without_session_raise():
    coordinator = SelectionCoordinator()
    with pytest.raises(InvalidTransitionError):
        coordinator.pointer_down(Point(0, 0))
    with pytest.raises(InvalidTransitionError):
        coordinator.cancel()
    with pytest.raises(InvalidTransitionError):
        coordinator.subscribe(0, lambda surface, rect: None)


def test_non_global_point_rejected(coordinator):
    with pytest.raises(ValueError):
        coordinator.pointer_down(Point(0, 0, CoordinateSpace.LOCAL))


def test_renderers_receive_clipped_feedback(coordinator):
    seen = {0: [], 1: []}
    coordinator.subscribe(0, lambda surface, rect: seen[0].append(rect))
    coordinator.subscribe(1, lambda surface, rect: seen[1].append(rect))

    coordinator.pointer_down(Point(1900, 100))
    coordinator.pointer_move(Point(1950, 200))

    assert seen[0][-1] == Rect(1900, 100, 20, 100)
    assert seen[1][-1] == Rect(1920, 100, 30, 100)

    coordinator.pointer_move(Point(1910, 110))
    assert seen[1][-1] is None


def test_small_drag_clears_feedback(coordinator):
    seen = []
    coordinator.subscribe(0, lambda surface, rect: seen.append(rect))
    _drag(coordinator, (0, 0), (2, 2))
    assert seen[-1] is None


def test_teardown_is_idempotent_and_releases_renderers(coordinator):
    calls = []
    coordinator.subscribe(0, lambda surface, rect: calls.append(rect))
    registry = coordinator.surfaces

    coordinator.teardown()
    coordinator.teardown()

    registry.broadcast(None)
    assert calls == []
    assert coordinator.state is SelectionState.IDLE
    coordinator.unsubscribe(0, lambda surface, rect: None)


def test_callback_may_tear_down_reentrantly():
    coordinator = SelectionCoordinator(on_cancel=lambda: coordinator.teardown())
    coordinator.begin(SURFACES)
    assert coordinator.cancel() is True
    assert coordinator.state is SelectionState.IDLE
