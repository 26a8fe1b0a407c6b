from TextSnip.selection.coordinator import MIN_SELECTION_SIZE, SelectionCoordinator, SelectionSession, SelectionState  # noqa: F401
from TextSnip.selection.errors import AlreadyActiveError, InvalidTransitionError, NoSurfacesError, SelectionUsageError  # noqa: F401
from TextSnip.selection.geometry import CoordinateSpace, Point, Rect  # noqa: F401
from TextSnip.selection.surfaces import SurfaceDescriptor, SurfaceRegistry  # noqa: F401
