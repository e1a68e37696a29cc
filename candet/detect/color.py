"""HSV threshold ranges derived from descriptor colors."""

from __future__ import annotations

import cv2
import numpy as np

from candet.config import DetectionConfig
from candet.errors import ConfigError
from candet.types import ColorRange, ColorRole, ObjectDescriptor

# OpenCV stores 8-bit hue as degrees / 2.
HUE_MAX = 179
CHANNEL_MAX = 255


def rgb_to_hsv(color: tuple[int, int, int]) -> tuple[int, int, int]:
    """Convert one RGB triple to OpenCV HSV via a 1x1 BGR image."""
    if len(color) != 3 or not all(0 <= int(c) <= CHANNEL_MAX for c in color):
        raise ConfigError(f"Malformed RGB color: {color!r}")
    r, g, b = (int(c) for c in color)
    pixel = np.array([[[b, g, r]]], dtype=np.uint8)
    h, s, v = cv2.cvtColor(pixel, cv2.COLOR_BGR2HSV)[0, 0]
    return int(h), int(s), int(v)


def build_color_range(
    color: tuple[int, int, int] | None,
    role: ColorRole,
    config: DetectionConfig | None = None,
    descriptor_name: str = "<unnamed>",
) -> ColorRange:
    """Build a tolerant HSV range around a color.

    The hue band is ``hue ± hue_tolerance`` clamped to the valid hue scale.
    Saturation and value share a role-dependent floor and reach the channel
    maximum.

    Raises:
        ConfigError: If ``color`` is missing or malformed.
    """
    config = config or DetectionConfig()
    if color is None:
        raise ConfigError(f"Descriptor {descriptor_name!r} has no {role.value} color")

    hue = rgb_to_hsv(color)[0]
    floor = config.primary_floor if role == ColorRole.primary else config.secondary_floor
    lower = (max(0, hue - config.hue_tolerance), floor, floor)
    upper = (min(HUE_MAX, hue + config.hue_tolerance), CHANNEL_MAX, CHANNEL_MAX)
    return ColorRange(lower=lower, upper=upper, role=role)


def build_color_ranges(
    descriptor: ObjectDescriptor,
    config: DetectionConfig | None = None,
) -> tuple[ColorRange, ColorRange]:
    """Return the (primary, secondary) ranges for a descriptor."""
    primary = build_color_range(
        descriptor.main_color, ColorRole.primary, config, descriptor.name
    )
    secondary = build_color_range(
        descriptor.secondary_color, ColorRole.secondary, config, descriptor.name
    )
    return primary, secondary
