"""CanDet — color-signature assisted bounding box annotation for video."""

__version__ = "0.1.0"

from candet.types import BBox, ColorRange, ObjectDescriptor, Region

__all__ = ["BBox", "ColorRange", "ObjectDescriptor", "Region", "__version__"]
