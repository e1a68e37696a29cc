"""Persist accepted boxes as YOLO label lines and save annotated frames."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np

from candet.annotate.session import AnnotationSession
from candet.config import ExportConfig
from candet.errors import ExportError
from candet.types import BBox, Region
from candet.utils.bbox import parse_yolo_label_file, region_to_bbox

logger = logging.getLogger(__name__)


@dataclass
class ExportRecord:
    """What one frame's export wrote."""

    frame_index: int
    bboxes: list[BBox]
    label_path: Path
    image_path: Path


def regions_to_bboxes(
    regions: list[Region] | tuple[Region, ...],
    img_width: int,
    img_height: int,
    class_id: int = 0,
) -> list[BBox]:
    """Normalize pixel regions against the frame size."""
    return [region_to_bbox(r, img_width, img_height, class_id) for r in regions]


def append_annotations(label_path: Path, bboxes: list[BBox]) -> None:
    """Append one YOLO line per box to the annotation store.

    Raises:
        ExportError: If the store cannot be opened or written.
    """
    try:
        label_path.parent.mkdir(parents=True, exist_ok=True)
        with open(label_path, "a") as f:
            for bbox in bboxes:
                f.write(bbox.to_yolo_line() + "\n")
    except OSError as exc:
        raise ExportError(str(label_path), f"cannot append annotations: {exc}") from exc


def save_frame(image_path: Path, image: np.ndarray, output_quality: int = 95) -> None:
    """Write an image artifact.

    Raises:
        ExportError: If OpenCV cannot write the file.
    """
    try:
        image_path.parent.mkdir(parents=True, exist_ok=True)
        if image_path.suffix.lower() in (".jpg", ".jpeg"):
            ok = cv2.imwrite(str(image_path), image, [cv2.IMWRITE_JPEG_QUALITY, output_quality])
        else:
            ok = cv2.imwrite(str(image_path), image)
    except (OSError, cv2.error) as exc:
        raise ExportError(str(image_path), f"cannot write frame: {exc}") from exc
    if not ok:
        raise ExportError(str(image_path), "cannot write frame")


class Exporter:
    """Writes a finished session to the annotation and frame artifact stores.

    Every box is labeled with the single configured ``class_id``; the
    descriptor that produced a box is not reflected in the label.
    """

    def __init__(self, config: ExportConfig | None = None) -> None:
        self.config = config or ExportConfig()

    @property
    def label_path(self) -> Path:
        return Path(self.config.output_dir) / self.config.annotations_file

    def frame_path(self, frame_index: int) -> Path:
        return Path(self.config.output_dir) / self.config.frame_pattern.format(index=frame_index)

    def stored_records(self) -> list[BBox]:
        """Every record in the annotation store, including earlier runs.

        Raises:
            ExportError: If the store exists but cannot be read or parsed.
        """
        if not self.label_path.exists():
            return []
        try:
            return parse_yolo_label_file(self.label_path)
        except (OSError, ValueError) as exc:
            raise ExportError(str(self.label_path), f"cannot read annotations: {exc}") from exc

    def export(self, session: AnnotationSession, rendered: np.ndarray) -> ExportRecord:
        """Append the session's boxes and save the rendered frame.

        Args:
            session: The finished session.
            rendered: The frame with overlays, as displayed.

        Returns:
            An ExportRecord describing what was written.
        """
        snapshot = session.snapshot()
        width, height = session.frame_size
        bboxes = regions_to_bboxes(snapshot.boxes, width, height, self.config.class_id)

        append_annotations(self.label_path, bboxes)
        image_path = self.frame_path(snapshot.frame_index)
        save_frame(image_path, rendered, self.config.output_quality)

        logger.info(
            "Exported %d box(es) for frame %d to %s",
            len(bboxes), snapshot.frame_index, self.label_path,
        )
        return ExportRecord(
            frame_index=snapshot.frame_index,
            bboxes=bboxes,
            label_path=self.label_path,
            image_path=image_path,
        )
