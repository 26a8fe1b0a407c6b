"""Snapshot of the display surfaces a selection spans, plus renderer broadcast."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from TextSnip.selection.geometry import CoordinateSpace, Point, Rect, intersect_rect
from TextSnip.util.logging_config import logger

SurfaceId = Union[int, str]

# Receives the surface and the part of the live selection that falls on it (None when it misses the surface)
SurfaceRenderer = Callable[["SurfaceDescriptor", Optional[Rect]], None]


@dataclass(frozen=True)
class SurfaceDescriptor:
    """One display: its frame in global space and its pixel density."""

    id: SurfaceId
    frame: Rect
    pixel_scale: float = 1.0

    def __post_init__(self):
        if self.frame.space is not CoordinateSpace.GLOBAL:
            raise ValueError(f"Surface {self.id} frame must be in global space")
        if self.pixel_scale <= 0:
            raise ValueError(f"Surface {self.id} pixel scale must be positive, got {self.pixel_scale}")


class SurfaceRegistry:
    """Immutable set of surfaces for one selection session.

    Renderers are held strongly and only until `unsubscribe` or `clear`; the
    registry never decides their lifetime on its own.
    """

    def __init__(self, surfaces: Iterable[SurfaceDescriptor]):
        self._surfaces: Tuple[SurfaceDescriptor, ...] = tuple(surfaces)
        ids = [s.id for s in self._surfaces]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate surface ids: {ids}")
        self._renderers: Dict[SurfaceId, List[SurfaceRenderer]] = {}

    def __len__(self) -> int:
        return len(self._surfaces)

    def __iter__(self) -> Iterator[SurfaceDescriptor]:
        return iter(self._surfaces)

    def __bool__(self) -> bool:
        return bool(self._surfaces)

    @property
    def surfaces(self) -> Tuple[SurfaceDescriptor, ...]:
        return self._surfaces

    def get(self, surface_id: SurfaceId) -> SurfaceDescriptor:
        for surface in self._surfaces:
            if surface.id == surface_id:
                return surface
        raise KeyError(surface_id)

    def surface_at(self, point: Point) -> Optional[SurfaceDescriptor]:
        return next((s for s in self._surfaces if s.frame.contains(point)), None)

    def surface_for_rect(self, rect: Rect) -> Optional[SurfaceDescriptor]:
        """Surface under the rect's centre, falling back to the first surface."""
        surface = self.surface_at(rect.center)
        if surface is None and self._surfaces:
            surface = self._surfaces[0]
        return surface

    def clipped(self, rect: Optional[Rect]) -> Dict[SurfaceId, Optional[Rect]]:
        if rect is None:
            return {s.id: None for s in self._surfaces}
        return {s.id: intersect_rect(rect, s.frame) for s in self._surfaces}

    def subscribe(self, surface_id: SurfaceId, renderer: SurfaceRenderer):
        self.get(surface_id)
        renderers = self._renderers.setdefault(surface_id, [])
        if renderer not in renderers:
            renderers.append(renderer)

    def unsubscribe(self, surface_id: SurfaceId, renderer: SurfaceRenderer):
        renderers = self._renderers.get(surface_id, [])
        if renderer in renderers:
            renderers.remove(renderer)

    def broadcast(self, rect: Optional[Rect]):
        """Hand every subscribed renderer its clipped view of `rect`."""
        clipped = self.clipped(rect)
        for surface in self._surfaces:
            for renderer in list(self._renderers.get(surface.id, ())):
                renderer(surface, clipped[surface.id])

    def clear(self):
        self._renderers.clear()
        logger.debug(f"Released renderers for {len(self._surfaces)} surfaces")
