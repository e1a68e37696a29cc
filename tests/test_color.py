"""Tests for candet.detect.color."""

from __future__ import annotations

import pytest

from candet.config import DetectionConfig
from candet.detect.color import build_color_range, build_color_ranges, rgb_to_hsv
from candet.errors import ConfigError
from candet.types import ColorRole, ObjectDescriptor


class TestRgbToHsv:
    @pytest.mark.parametrize(
        "rgb, hue",
        [((255, 0, 0), 0), ((0, 255, 0), 60), ((0, 0, 255), 120)],
    )
    def test_pure_hues(self, rgb, hue):
        assert rgb_to_hsv(rgb)[0] == hue

    def test_malformed(self):
        with pytest.raises(ConfigError):
            rgb_to_hsv((256, 0, 0))
        with pytest.raises(ConfigError):
            rgb_to_hsv((1, 2))


class TestBuildColorRange:
    def test_primary_floors(self):
        rng = build_color_range((0, 255, 0), ColorRole.primary)
        assert rng.lower == (50, 100, 100)
        assert rng.upper == (70, 255, 255)
        assert rng.role == ColorRole.primary

    def test_secondary_floors(self):
        rng = build_color_range((0, 0, 255), ColorRole.secondary)
        assert rng.lower == (110, 50, 50)
        assert rng.upper == (130, 255, 255)

    def test_hue_clamped_at_zero(self):
        rng = build_color_range((220, 30, 30), ColorRole.primary)
        assert rng.lower[0] == 0
        assert rng.upper[0] == 10

    def test_custom_tolerance(self):
        cfg = DetectionConfig(hue_tolerance=5, primary_floor=80)
        rng = build_color_range((0, 255, 0), ColorRole.primary, cfg)
        assert rng.lower == (55, 80, 80)
        assert rng.upper == (65, 255, 255)

    def test_missing_color_fails_fast(self):
        with pytest.raises(ConfigError, match="plain"):
            build_color_range(None, ColorRole.secondary, descriptor_name="plain")


class TestBuildColorRanges:
    def test_pair(self, can_descriptor):
        primary, secondary = build_color_ranges(can_descriptor)
        assert primary.role == ColorRole.primary
        assert secondary.role == ColorRole.secondary
        assert secondary.lower[0] == 110

    def test_descriptor_without_secondary(self):
        d = ObjectDescriptor("plain", 12.0, 6.5, (220, 30, 30), None, 0.8)
        with pytest.raises(ConfigError):
            build_color_ranges(d)
