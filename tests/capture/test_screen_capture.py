from types import SimpleNamespace

import mss.exception
import pytest

from TextSnip.capture import screen_capture
from TextSnip.errors import CaptureError, CapturePermissionError, CropFailedError, NoDisplayError
from TextSnip.selection.geometry import Rect
from TextSnip.selection.surfaces import SurfaceDescriptor, SurfaceRegistry

MONITORS = [
    {"left": 0, "top": 0, "width": 1920, "height": 1080},
    {"left": 1920, "top": -200, "width": 1280, "height": 1024},
]


class FakeSct:
    def __init__(self, monitors, error=None, fill=(255, 0, 0), scale=1):
        self.monitors = [{"left": 0, "top": -200, "width": 3200, "height": 1280}] + monitors
        self.error = error
        self.fill = fill
        self.scale = scale
        self.grabbed = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def grab(self, monitor):
        if self.error:
            raise self.error
        self.grabbed.append(monitor)
        width, height = monitor["width"] * self.scale, monitor["height"] * self.scale
        b, g, r = self.fill[2], self.fill[1], self.fill[0]
        return SimpleNamespace(size=(width, height), bgra=bytes([b, g, r, 255]) * (width * height))


def test_monitors_to_surfaces_flips_around_primary():
    surfaces = screen_capture.monitors_to_surfaces(MONITORS, pixel_scales={1: 2.0})
    assert surfaces[0].frame == Rect(0, 0, 1920, 1080)
    # Top edge 200 above the primary's top, bottom edge 824 below it
    assert surfaces[1].frame == Rect(1920, 256, 1280, 1024)
    assert surfaces[1].pixel_scale == 2.0
    assert [s.id for s in surfaces] == [0, 1]


def test_monitors_to_surfaces_empty():
    assert screen_capture.monitors_to_surfaces([]) == []


def test_enumerate_surfaces_skips_combined_monitor():
    surfaces = screen_capture.enumerate_surfaces(sct_factory=lambda: FakeSct(MONITORS))
    assert len(surfaces) == 2


def test_choose_surface_by_centre():
    registry = SurfaceRegistry(screen_capture.monitors_to_surfaces(MONITORS))
    assert screen_capture.choose_surface(Rect(1900, 500, 200, 100), registry).id == 1
    assert screen_capture.choose_surface(Rect(100, 100, 10, 10), registry).id == 0


def test_crop_box_for_flips_and_scales():
    surface = SurfaceDescriptor(id=0, frame=Rect(0, 0, 100, 100), pixel_scale=2.0)
    box = screen_capture.crop_box_for(Rect(10, 20, 30, 40), surface)
    assert (box.x, box.y, box.width, box.height) == (20, 80, 60, 80)


def test_capture_crops_to_selection():
    surface = SurfaceDescriptor(id=0, frame=Rect(0, 0, 100, 50))
    sct = FakeSct([{"left": 0, "top": 0, "width": 100, "height": 50}], fill=(10, 20, 30))
    img = screen_capture.ScreenCapturer(lambda: sct).capture(Rect(10, 10, 20, 30), surface)
    assert img.size == (20, 30)
    assert img.getpixel((0, 0)) == (10, 20, 30)
    assert sct.grabbed == [sct.monitors[1]]


def test_capture_clips_to_surface_bitmap():
    surface = SurfaceDescriptor(id=0, frame=Rect(0, 0, 100, 50))
    sct = FakeSct([{"left": 0, "top": 0, "width": 100, "height": 50}])
    img = screen_capture.ScreenCapturer(lambda: sct).capture(Rect(80, 10, 50, 20), surface)
    assert img.size == (20, 20)


def test_capture_outside_bitmap_fails():
    surface = SurfaceDescriptor(id=0, frame=Rect(0, 0, 100, 50))
    sct = FakeSct([{"left": 0, "top": 0, "width": 100, "height": 50}])
    with pytest.raises(CropFailedError):
        screen_capture.ScreenCapturer(lambda: sct).capture(Rect(200, 10, 50, 20), surface)


def test_capture_unknown_monitor():
    surface = SurfaceDescriptor(id=3, frame=Rect(0, 0, 100, 50))
    sct = FakeSct([{"left": 0, "top": 0, "width": 100, "height": 50}])
    with pytest.raises(NoDisplayError):
        screen_capture.ScreenCapturer(lambda: sct).capture(Rect(0, 0, 10, 10), surface)


@pytest.mark.parametrize("message, expected", [
    ("XGetImage() failed: permission denied", CapturePermissionError),
    ("CGWindowListCreateImage() failed", CaptureError),
])
def test_capture_grab_errors(message, expected):
    surface = SurfaceDescriptor(id=0, frame=Rect(0, 0, 100, 50))
    sct = FakeSct([{"left": 0, "top": 0, "width": 100, "height": 50}], error=mss.exception.ScreenShotError(message))
    with pytest.raises(expected):
        screen_capture.ScreenCapturer(lambda: sct).capture(Rect(0, 0, 10, 10), surface)


def test_enumerate_surfaces_measures_pixel_scale_from_grab():
    sct = FakeSct([{"left": 0, "top": 0, "width": 100, "height": 100}], scale=2)
    surfaces = screen_capture.enumerate_surfaces(sct_factory=lambda: sct)
    assert surfaces[0].pixel_scale == 2.0
    assert surfaces[0].frame == Rect(0, 0, 100, 100)


def test_enumerate_surfaces_keeps_explicit_scales():
    sct = FakeSct([{"left": 0, "top": 0, "width": 100, "height": 100}], scale=2)
    surfaces = screen_capture.enumerate_surfaces(pixel_scales={0: 1.5}, sct_factory=lambda: sct)
    assert surfaces[0].pixel_scale == 1.5
    assert sct.grabbed == []


def test_detect_pixel_scales_skips_failed_grabs():
    sct = FakeSct([{"left": 0, "top": 0, "width": 100, "height": 100}], error=mss.exception.ScreenShotError("denied"))
    assert screen_capture.detect_pixel_scales(sct, sct.monitors[1:]) == {}


def test_capture_on_retina_display_crops_in_bitmap_pixels():
    monitors = [{"left": 0, "top": 0, "width": 100, "height": 100}]
    surface = screen_capture.enumerate_surfaces(sct_factory=lambda: FakeSct(monitors, scale=2))[0]
    img = screen_capture.ScreenCapturer(lambda: FakeSct(monitors, scale=2)).capture(Rect(10, 20, 30, 40), surface)
    assert img.size == (60, 80)


def test_capture_uses_grabbed_scale_when_descriptor_is_stale():
    monitors = [{"left": 0, "top": 0, "width": 100, "height": 100}]
    surface = SurfaceDescriptor(id=0, frame=Rect(0, 0, 100, 100), pixel_scale=1.0)
    img = screen_capture.ScreenCapturer(lambda: FakeSct(monitors, scale=2)).capture(Rect(10, 20, 30, 40), surface)
    assert img.size == (60, 80)
