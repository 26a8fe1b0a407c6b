import pytest

from TextSnip.selection.geometry import (
    CoordinateSpace,
    Point,
    Rect,
    intersect_rect,
    rect_from_points,
    rect_to_local,
    to_capture_pixels,
    to_local,
    union_point,
)
from TextSnip.selection.surfaces import SurfaceDescriptor


def test_rect_rejects_negative_size():
    with pytest.raises(ValueError):
        Rect(0, 0, -1, 5)
    with pytest.raises(ValueError):
        Rect(0, 0, 5, -1)


def test_rect_edges_and_centre():
    rect = Rect(10, 20, 30, 40)
    assert (rect.min_x, rect.min_y, rect.max_x, rect.max_y) == (10, 20, 40, 60)
    assert rect.center == Point(25, 40)
    assert not rect.is_empty()
    assert Rect(1, 1, 0, 5).is_empty()


def test_contains_is_half_open():
    rect = Rect(0, 0, 10, 10)
    assert rect.contains(Point(0, 0))
    assert rect.contains(Point(9.99, 9.99))
    assert not rect.contains(Point(10, 5))
    assert not rect.contains(Point(5, 10))


def test_contains_rejects_mixed_spaces():
    with pytest.raises(ValueError):
        Rect(0, 0, 10, 10).contains(Point(1, 1, CoordinateSpace.LOCAL))


@pytest.mark.parametrize("a, b", [
    (Point(0, 0), Point(10, 20)),
    (Point(10, 20), Point(0, 0)),
    (Point(10, 0), Point(0, 20)),
    (Point(-5, 7), Point(3, -2)),
])
def test_rect_from_points_is_order_independent(a, b):
    rect = rect_from_points(a, b)
    assert rect == rect_from_points(b, a)
    assert rect.x == min(a.x, b.x)
    assert rect.y == min(a.y, b.y)
    assert rect.width == abs(a.x - b.x)
    assert rect.height == abs(a.y - b.y)


def test_rect_from_points_rejects_mixed_spaces():
    with pytest.raises(ValueError):
        rect_from_points(Point(0, 0), Point(1, 1, CoordinateSpace.LOCAL))


def test_capture_pixels_flip_and_scale():
    local = Rect(10, 20, 30, 40, CoordinateSpace.LOCAL)
    capture = to_capture_pixels(local, surface_frame_height=100, pixel_scale=2)
    assert capture == Rect(20, 80, 60, 80, CoordinateSpace.CAPTURE)


def test_capture_pixels_requires_local_rect():
    with pytest.raises(ValueError):
        to_capture_pixels(Rect(0, 0, 1, 1), 100, 1)


def test_to_local_subtracts_frame_origin():
    surface = SurfaceDescriptor(id=1, frame=Rect(1920, -200, 1280, 1024))
    assert to_local(Point(2000, 100), surface) == Point(80, 300, CoordinateSpace.LOCAL)
    assert rect_to_local(Rect(2000, 100, 50, 60), surface) == Rect(80, 300, 50, 60, CoordinateSpace.LOCAL)


def test_intersect_rect_overlap_and_miss():
    a = Rect(0, 0, 100, 100)
    assert intersect_rect(a, Rect(50, 50, 100, 100)) == Rect(50, 50, 50, 50)
    assert intersect_rect(a, Rect(200, 0, 10, 10)) is None
    # Touching edges share no area
    assert intersect_rect(a, Rect(100, 0, 10, 10)) is None


def test_union_point_grows_to_include_point():
    assert union_point(Rect(0, 0, 10, 10), Point(20, -5)) == Rect(0, -5, 20, 15)
    assert union_point(Rect(0, 0, 10, 10), Point(5, 5)) == Rect(0, 0, 10, 10)
