"""Color-mix and aspect-ratio validation of merged regions."""

from __future__ import annotations

import logging

import numpy as np

from candet.config import DetectionConfig
from candet.types import ObjectDescriptor, Region

logger = logging.getLogger(__name__)

# Slack so that boundary values like 0.7 vs 0.8 ± 0.1 count as inside.
_EPS = 1e-9


def color_mix_ok(
    primary_fraction: float,
    secondary_fraction: float,
    color_ratio: float,
    tolerance: float = 0.1,
) -> bool:
    """Check both color fractions against the descriptor's expected mix.

    The primary fraction must lie within ``color_ratio ± tolerance`` and the
    secondary fraction within ``(1 - color_ratio) ± tolerance``. Tolerances
    are absolute and boundaries are inclusive.
    """
    primary_ok = abs(primary_fraction - color_ratio) <= tolerance + _EPS
    secondary_ok = abs(secondary_fraction - (1.0 - color_ratio)) <= tolerance + _EPS
    return primary_ok and secondary_ok


def aspect_ratio_ok(observed: float, expected: float, fuzz: float = 0.1) -> bool:
    """Check ``observed`` lies within ``expected * (1 ± fuzz)``, inclusive."""
    lower = expected * (1.0 - fuzz)
    upper = expected * (1.0 + fuzz)
    return lower - _EPS <= observed <= upper + _EPS


def mask_fractions(
    region: Region,
    primary_mask: np.ndarray,
    secondary_mask: np.ndarray,
) -> tuple[float, float]:
    """Fractions of the region's pixels set in each mask."""
    total = region.area
    if total <= 0:
        return 0.0, 0.0
    rows = slice(region.y, region.y + region.height)
    cols = slice(region.x, region.x + region.width)
    primary_area = np.count_nonzero(primary_mask[rows, cols])
    secondary_area = np.count_nonzero(secondary_mask[rows, cols])
    return primary_area / total, secondary_area / total


def validate_region(
    region: Region,
    primary_mask: np.ndarray,
    secondary_mask: np.ndarray,
    descriptor: ObjectDescriptor,
    config: DetectionConfig | None = None,
) -> bool:
    """Accept or reject a merged region for a descriptor.

    Both the color-mix test and the aspect-ratio test must pass. There is no
    score; a region failing either test is discarded whole.
    """
    config = config or DetectionConfig()
    if region.area <= 0:
        return False

    primary_fraction, secondary_fraction = mask_fractions(
        region, primary_mask, secondary_mask
    )
    observed = region.aspect_ratio
    expected = descriptor.expected_aspect_ratio

    logger.debug(
        "Region centroid=%s primary=%.3f secondary=%.3f area=%d aspect=%.3f (expected %.3f)",
        region.centroid, primary_fraction, secondary_fraction,
        region.area, observed, expected,
    )

    if not color_mix_ok(
        primary_fraction, secondary_fraction,
        descriptor.color_ratio, config.color_ratio_tolerance,
    ):
        return False
    return aspect_ratio_ok(observed, expected, config.aspect_ratio_fuzz)
