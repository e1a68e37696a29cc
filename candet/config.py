"""Configuration models for CanDet.

Every setting has a default, so a run needs no config file; a YAML file
overrides any subset of sections.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from candet.errors import ConfigError


class DetectionConfig(BaseModel):
    """Thresholds for color segmentation, region merging and validation."""

    hue_tolerance: int = Field(10, description="Half-width of the hue band around a color")
    primary_floor: int = Field(100, description="Saturation/value floor for the primary color")
    secondary_floor: int = Field(50, description="Saturation/value floor for the secondary color")
    merge_distance: float = Field(
        50.0, description="Max corner distance (px, exclusive) for merging raw regions"
    )
    color_ratio_tolerance: float = Field(
        0.1, description="Absolute tolerance on primary/secondary pixel fractions"
    )
    aspect_ratio_fuzz: float = Field(
        0.1, description="Relative tolerance on the expected width/height ratio"
    )
    max_workers: int = Field(
        1, description="Threads for per-descriptor passes (1 = sequential)"
    )


class ExportConfig(BaseModel):
    """Configuration for the annotation store and frame artifacts."""

    output_dir: Path = Field(Path("."), description="Directory for labels and frames")
    annotations_file: str = Field("annotations.txt", description="Append-only label file")
    frame_pattern: str = Field(
        "frame_{index}.jpg", description="Frame artifact name; {index} is the frame index"
    )
    # Single-class dataset: every box gets this id regardless of its descriptor.
    class_id: int = Field(0, description="Class id written for every box")
    output_quality: int = Field(95, description="JPEG quality (1-100)")


class DisplayConfig(BaseModel):
    """Window and overlay settings. Colors are BGR."""

    window_name: str = "CanDet Annotation"
    box_color: tuple[int, int, int] = (0, 255, 0)
    selected_color: tuple[int, int, int] = (0, 165, 255)
    drawing_color: tuple[int, int, int] = (0, 0, 255)
    merged_color: tuple[int, int, int] = (255, 0, 0)
    box_thickness: int = 2
    drawing_thickness: int = 1
    status_scale: float = 0.6
    status_color: tuple[int, int, int] = (255, 255, 255)
    show_debug: bool = Field(False, description="Show mask and merged-region windows")


class SourceConfig(BaseModel):
    """Video source settings."""

    camera_pipeline: str | None = Field(
        None,
        description=(
            "GStreamer pipeline used instead of a plain device index when the "
            "default camera is requested, e.g. 'libcamerasrc ! video/x-raw,"
            "width=640,height=480 ! videoconvert ! appsink'."
        ),
    )


class CanDetConfig(BaseModel):
    """Top-level configuration for CanDet."""

    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> CanDetConfig:
        """Load configuration from a YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
            return cls.model_validate(data)
        except (OSError, yaml.YAMLError, ValidationError) as exc:
            raise ConfigError(f"Invalid config {path}: {exc}") from exc

    @classmethod
    def default(cls) -> CanDetConfig:
        """Return configuration with all defaults."""
        return cls()
