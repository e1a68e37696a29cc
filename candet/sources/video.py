"""OpenCV VideoCapture frame source."""

from __future__ import annotations

import logging

import cv2
import numpy as np

from candet.errors import SourceError

logger = logging.getLogger(__name__)

DEFAULT_CAMERA = "0"


def parse_source(source: str | int | None) -> str | int:
    """Camera index for all-digit identifiers, otherwise the path/URL as given."""
    if source is None:
        source = DEFAULT_CAMERA
    if isinstance(source, int):
        return source
    return int(source) if source.isdigit() else source


class VideoCaptureSource:
    """Frames from a camera index, a video file, or a stream URL.

    Satisfies the ``FrameSource`` protocol. When ``camera_pipeline`` is set
    and a camera index is requested, the GStreamer pipeline is opened instead
    of the plain device.
    """

    def __init__(self, source: str | int | None = None, camera_pipeline: str | None = None) -> None:
        self.source = parse_source(source)
        self.camera_pipeline = camera_pipeline
        self.cap: cv2.VideoCapture | None = None

    @property
    def name(self) -> str:
        if isinstance(self.source, int) and self.camera_pipeline:
            return self.camera_pipeline
        return str(self.source)

    def open(self) -> None:
        if isinstance(self.source, int) and self.camera_pipeline:
            cap = cv2.VideoCapture(self.camera_pipeline, cv2.CAP_GSTREAMER)
        else:
            cap = cv2.VideoCapture(self.source)
        if not cap.isOpened():
            cap.release()
            raise SourceError(self.name, "could not open video source")
        self.cap = cap
        logger.info(
            "Video source opened: %s (%dx%d @ %.1f fps)",
            self.name,
            int(cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0),
            int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0),
            cap.get(cv2.CAP_PROP_FPS) or 0.0,
        )

    def read(self) -> np.ndarray | None:
        if self.cap is None:
            return None
        ok, frame = self.cap.read()
        if not ok:
            return None
        return frame

    def close(self) -> None:
        if self.cap is not None:
            try:
                self.cap.release()
            finally:
                self.cap = None

    def __enter__(self) -> VideoCaptureSource:
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()
