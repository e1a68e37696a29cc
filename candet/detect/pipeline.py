"""Frame-level detection: segment, merge and validate per descriptor.

Nothing here touches a display, so the whole pipeline runs headless.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from candet.config import DetectionConfig
from candet.detect.color import build_color_ranges
from candet.detect.merge import merge_regions
from candet.detect.segment import find_raw_regions, threshold, to_hsv
from candet.detect.validate import validate_region
from candet.types import DetectionResult, ObjectDescriptor, Region

logger = logging.getLogger(__name__)


def detect_descriptor(
    hsv: np.ndarray,
    descriptor: ObjectDescriptor,
    config: DetectionConfig | None = None,
) -> DetectionResult:
    """Run one descriptor's detection pass on an HSV frame.

    Candidates come from the primary-color mask only; the secondary mask is
    used during validation.

    Raises:
        ConfigError: If the descriptor has no secondary color.
    """
    config = config or DetectionConfig()
    primary_range, secondary_range = build_color_ranges(descriptor, config)

    primary_mask = threshold(hsv, primary_range)
    secondary_mask = threshold(hsv, secondary_range)

    raw = find_raw_regions(primary_mask, descriptor=descriptor.name)
    merged = merge_regions(raw, config.merge_distance)
    logger.info("%s: %d raw -> %d merged regions", descriptor.name, len(raw), len(merged))

    accepted = [
        region for region in merged
        if validate_region(region, primary_mask, secondary_mask, descriptor, config)
    ]
    logger.info("%s: %d region(s) accepted", descriptor.name, len(accepted))

    return DetectionResult(
        descriptor=descriptor.name,
        primary_mask=primary_mask,
        secondary_mask=secondary_mask,
        raw=raw,
        merged=merged,
        accepted=accepted,
    )


def detect_frame(
    frame: np.ndarray,
    descriptors: list[ObjectDescriptor],
    config: DetectionConfig | None = None,
) -> list[DetectionResult]:
    """Run every descriptor's pass on a BGR frame.

    Results are returned in descriptor order even when passes run on a
    thread pool (``config.max_workers > 1``).
    """
    config = config or DetectionConfig()
    hsv = to_hsv(frame)

    if config.max_workers > 1 and len(descriptors) > 1:
        with ThreadPoolExecutor(
            max_workers=config.max_workers, thread_name_prefix="candet-detect"
        ) as ex:
            return list(ex.map(lambda d: detect_descriptor(hsv, d, config), descriptors))

    return [detect_descriptor(hsv, d, config) for d in descriptors]


def detect_and_validate(
    frame: np.ndarray,
    descriptors: list[ObjectDescriptor],
    config: DetectionConfig | None = None,
) -> list[Region]:
    """Candidate boxes for a frame, in descriptor-registration order."""
    results = detect_frame(frame, descriptors, config)
    return [region for result in results for region in result.accepted]
