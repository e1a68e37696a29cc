"""Pixel regions to YOLO normalized records, and reading the label store back."""

from __future__ import annotations

from pathlib import Path

from candet.types import BBox, Region


def region_to_bbox(
    region: Region, img_width: int, img_height: int, class_id: int = 0
) -> BBox:
    """Normalize a pixel Region against the frame size.

    Raises:
        ValueError: If the frame size is not positive.
    """
    if img_width <= 0 or img_height <= 0:
        raise ValueError(f"Invalid image size: {img_width}x{img_height}")
    return BBox(
        class_id=class_id,
        x_center=(region.x + region.width / 2) / img_width,
        y_center=(region.y + region.height / 2) / img_height,
        width=region.width / img_width,
        height=region.height / img_height,
    )


def parse_yolo_label_file(label_path: Path) -> list[BBox]:
    """Read every record of a YOLO label file, skipping blank lines.

    Raises:
        ValueError: On a line with fewer than five fields.
    """
    with open(label_path) as f:
        return [BBox.from_yolo_line(line) for line in f if line.strip()]
