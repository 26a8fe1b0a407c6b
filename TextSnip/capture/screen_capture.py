"""Surface enumeration and region capture backed by mss."""

from typing import Callable, Dict, List, Optional

import mss
import mss.exception
from PIL import Image

from TextSnip.errors import CaptureError, CapturePermissionError, CropFailedError, NoDisplayError
from TextSnip.selection.geometry import Rect, rect_to_local, to_capture_pixels
from TextSnip.selection.surfaces import SurfaceDescriptor, SurfaceRegistry
from TextSnip.util.logging_config import logger

# Measured scales closer than this to the descriptor's are treated as equal
SCALE_TOLERANCE = 0.01


def monitors_to_surfaces(monitors: List[dict], pixel_scales: Optional[Dict[int, float]] = None) -> List[SurfaceDescriptor]:
    """
    Convert mss monitor dicts (top-left origin, y down) into global y-up surfaces.

    The primary monitor (the one at the desktop origin) keeps y=0 at its bottom
    edge; every other monitor is flipped around the primary's top edge.
    """
    if not monitors:
        return []
    pixel_scales = pixel_scales or {}
    primary = next((m for m in monitors if m['left'] == 0 and m['top'] == 0), monitors[0])
    flip_line = primary['top'] + primary['height']

    surfaces = []
    for index, monitor in enumerate(monitors):
        frame = Rect(
            x=monitor['left'],
            y=flip_line - (monitor['top'] + monitor['height']),
            width=monitor['width'],
            height=monitor['height'],
        )
        surfaces.append(SurfaceDescriptor(id=index, frame=frame, pixel_scale=pixel_scales.get(index, 1.0)))
    return surfaces


def detect_pixel_scales(sct, monitors: List[dict]) -> Dict[int, float]:
    """
    Bitmap pixels per monitor unit, measured from a grab of each monitor.

    mss reports logical points on macOS, so a Retina display grabs at twice its
    monitor width. Monitors that cannot be grabbed keep a scale of 1.0.
    """
    scales = {}
    for index, monitor in enumerate(monitors):
        try:
            grab_width = sct.grab(monitor).size[0]
        except mss.exception.ScreenShotError as e:
            logger.warning(f"Could not measure pixel scale of monitor {index}: {e}")
            continue
        scales[index] = round(grab_width / monitor['width'], 2)
    return scales


def enumerate_surfaces(pixel_scales: Optional[Dict[int, float]] = None, sct_factory: Callable = mss.mss) -> List[SurfaceDescriptor]:
    with sct_factory() as sct:
        monitors = [dict(m) for m in sct.monitors[1:]]
        if pixel_scales is None:
            pixel_scales = detect_pixel_scales(sct, monitors)
    surfaces = monitors_to_surfaces(monitors, pixel_scales)
    logger.debug(f"Found {len(surfaces)} display surface(s): {[(s.frame, s.pixel_scale) for s in surfaces]}")
    return surfaces


def choose_surface(rect: Rect, registry: SurfaceRegistry) -> SurfaceDescriptor:
    surface = registry.surface_for_rect(rect)
    if surface is None:
        raise NoDisplayError()
    return surface


def crop_box_for(rect: Rect, surface: SurfaceDescriptor, pixel_scale: Optional[float] = None) -> Rect:
    """Global selection rect -> capture-pixel rect within the surface's bitmap."""
    scale = surface.pixel_scale if pixel_scale is None else pixel_scale
    return to_capture_pixels(rect_to_local(rect, surface), surface.frame.height, scale)


class ScreenCapturer:
    def __init__(self, sct_factory: Callable = mss.mss):
        self.sct_factory = sct_factory

    def capture(self, rect: Rect, surface: SurfaceDescriptor) -> Image.Image:
        """
        Grab the surface's monitor and crop it to `rect`.

        The crop uses the scale of the bitmap actually grabbed, so a display
        whose scale changed since the surfaces were enumerated still crops the
        selected region. The crop is clipped to the bitmap, so a selection
        spilling onto a neighbouring display keeps only the part on this surface.

        Raises:
            NoDisplayError: no monitor matches the surface.
            CropFailedError: the selection does not overlap the bitmap.
            CapturePermissionError: the OS refused the screen grab.
        """
        try:
            with self.sct_factory() as sct:
                monitors = sct.monitors[1:]
                if not isinstance(surface.id, int) or not 0 <= surface.id < len(monitors):
                    raise NoDisplayError(surface.id)
                sct_img = sct.grab(monitors[surface.id])
        except mss.exception.ScreenShotError as e:
            if 'permission' in str(e).lower() or 'denied' in str(e).lower():
                raise CapturePermissionError(str(e)) from e
            raise CaptureError(f"Capture failed: {e}") from e

        img = Image.frombytes("RGB", sct_img.size, sct_img.bgra, "raw", "BGRX")
        scale = img.width / surface.frame.width
        if abs(scale - surface.pixel_scale) > SCALE_TOLERANCE:
            logger.debug(f"Surface {surface.id} grabbed at scale {scale:.2f}, expected {surface.pixel_scale:.2f}")
        else:
            scale = surface.pixel_scale

        box = crop_box_for(rect, surface, scale)
        left = max(0, round(box.min_x))
        top = max(0, round(box.min_y))
        right = min(img.width, round(box.max_x))
        bottom = min(img.height, round(box.max_y))
        if right <= left or bottom <= top:
            raise CropFailedError((box.min_x, box.min_y, box.max_x, box.max_y), img.size)

        logger.debug(f"Cropping {img.width}x{img.height} capture of surface {surface.id} to {(left, top, right, bottom)}")
        return img.crop((left, top, right, bottom))
