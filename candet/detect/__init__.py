"""Color-signature detection.

Modules:
    color     — HSV ranges from descriptor colors
    segment   — thresholding and external contour bounding boxes
    merge     — greedy clustering of raw regions
    validate  — color-mix and aspect-ratio acceptance tests
    pipeline  — per-frame detect-and-validate over all descriptors
"""

from candet.detect.pipeline import detect_and_validate, detect_descriptor, detect_frame

__all__ = ["detect_and_validate", "detect_descriptor", "detect_frame"]
