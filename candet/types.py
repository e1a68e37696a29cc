"""Core data types for CanDet.

Every stage of the pipeline produces/consumes these types:
- ObjectDescriptor: the color/shape signature of an object class
- ColorRange: HSV threshold bounds derived from a descriptor color
- Region: a pixel-space axis-aligned rectangle with provenance
- BBox: a YOLO-normalized annotation record
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

import numpy as np


RGB = tuple[int, int, int]
HSV = tuple[int, int, int]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ColorRole(str, enum.Enum):
    """Which of a descriptor's colors a range was built for.

    Primary colors are expected to be saturated and well lit (the can body),
    secondary colors less so (highlights, labels).
    """

    primary = "primary"
    secondary = "secondary"


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ObjectDescriptor:
    """Color and shape signature of an object to annotate.

    Dimensions are physical (cm); only their ratio is used for validation.
    ``secondary_color`` is ``None`` when the object has no second color.
    """

    name: str
    typical_height: float
    typical_width: float
    main_color: RGB
    secondary_color: RGB | None
    color_ratio: float

    @property
    def expected_aspect_ratio(self) -> float:
        """Expected width / height of the object's bounding box."""
        return self.typical_width / self.typical_height


@dataclass(frozen=True)
class ColorRange:
    """Lower/upper HSV bounds in OpenCV scale (H 0-179, S and V 0-255)."""

    lower: HSV
    upper: HSV
    role: ColorRole = ColorRole.primary


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Region:
    """An axis-aligned pixel rectangle.

    ``descriptor`` names the descriptor whose detection pass produced the
    region, or is ``None`` for boxes drawn by hand.
    """

    x: int
    y: int
    width: int
    height: int
    descriptor: str | None = None

    @property
    def tl(self) -> tuple[int, int]:
        return (self.x, self.y)

    @property
    def br(self) -> tuple[int, int]:
        return (self.x + self.width, self.y + self.height)

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def aspect_ratio(self) -> float:
        """Width / height ratio. Returns inf if height is 0."""
        if self.height == 0:
            return float("inf")
        return self.width / self.height

    @property
    def centroid(self) -> tuple[int, int]:
        return (self.x + self.width // 2, self.y + self.height // 2)

    def contains(self, px: int, py: int) -> bool:
        """Half-open containment test, same convention as an OpenCV rect."""
        return self.x <= px < self.x + self.width and self.y <= py < self.y + self.height

    def union(self, other: Region) -> Region:
        """Smallest rectangle covering both. Provenance of ``self`` is kept."""
        x1 = min(self.x, other.x)
        y1 = min(self.y, other.y)
        x2 = max(self.x + self.width, other.x + other.width)
        y2 = max(self.y + self.height, other.y + other.height)
        return Region(x1, y1, x2 - x1, y2 - y1, descriptor=self.descriptor)

    @classmethod
    def from_corners(
        cls,
        p1: tuple[int, int],
        p2: tuple[int, int],
        descriptor: str | None = None,
    ) -> Region:
        """Rectangle spanned by two opposite corners, in any order."""
        x1, x2 = sorted((p1[0], p2[0]))
        y1, y2 = sorted((p1[1], p2[1]))
        return cls(x1, y1, x2 - x1, y2 - y1, descriptor=descriptor)


# ---------------------------------------------------------------------------
# Export records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BBox:
    """A single bounding box in YOLO normalized format.

    All coordinates are normalized to [0, 1].
    """

    class_id: int
    x_center: float
    y_center: float
    width: float
    height: float

    def to_yolo_line(self) -> str:
        """Serialize to a YOLO label line: 'class_id x y w h'."""
        return (
            f"{self.class_id} "
            f"{self.x_center:.6f} {self.y_center:.6f} "
            f"{self.width:.6f} {self.height:.6f}"
        )

    @classmethod
    def from_yolo_line(cls, line: str) -> BBox:
        """Parse a YOLO label line (class x y w h)."""
        parts = line.strip().split()
        if len(parts) < 5:
            raise ValueError(f"Expected at least 5 fields, got {len(parts)}: {line!r}")
        return cls(
            class_id=int(parts[0]),
            x_center=float(parts[1]),
            y_center=float(parts[2]),
            width=float(parts[3]),
            height=float(parts[4]),
        )


# ---------------------------------------------------------------------------
# Detection results
# ---------------------------------------------------------------------------


@dataclass
class DetectionResult:
    """Everything one descriptor's detection pass produced for a frame.

    Only ``accepted`` feeds the annotation session; the masks and the
    intermediate region lists are kept for the debug views.
    """

    descriptor: str
    primary_mask: np.ndarray
    secondary_mask: np.ndarray
    raw: list[Region] = field(default_factory=list)
    merged: list[Region] = field(default_factory=list)
    accepted: list[Region] = field(default_factory=list)
