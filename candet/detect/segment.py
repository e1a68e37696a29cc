"""Color thresholding and external-contour extraction."""

from __future__ import annotations

import cv2
import numpy as np

from candet.types import ColorRange, Region


def to_hsv(frame: np.ndarray) -> np.ndarray:
    """Convert a BGR frame to OpenCV HSV."""
    return cv2.cvtColor(frame, cv2.COLOR_BGR2HSV)


def threshold(hsv: np.ndarray, color_range: ColorRange) -> np.ndarray:
    """Binary mask (0/255) of pixels inside ``color_range``."""
    lower = np.array(color_range.lower, dtype=np.uint8)
    upper = np.array(color_range.upper, dtype=np.uint8)
    return cv2.inRange(hsv, lower, upper)


def find_raw_regions(mask: np.ndarray, descriptor: str | None = None) -> list[Region]:
    """Bounding rectangles of the external connected components of a mask.

    Nested components are not reported. Output order is whatever OpenCV's
    contour finder yields; callers should treat it as a set.
    """
    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    regions: list[Region] = []
    for contour in contours:
        x, y, w, h = cv2.boundingRect(contour)
        regions.append(Region(x, y, w, h, descriptor=descriptor))
    return regions
