"""Overlay drawing and the display collaborator.

``draw_session`` and ``draw_regions`` are pure image functions. Window
management lives behind the ``Renderer`` protocol so the annotation loop can
run against a scripted renderer in tests.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

import cv2
import numpy as np

from candet.annotate.session import AnnotationSession, SessionMode, SessionSnapshot
from candet.config import DisplayConfig
from candet.types import DetectionResult, Region

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Drawing
# ---------------------------------------------------------------------------


def draw_regions(
    frame: np.ndarray,
    regions: list[Region] | tuple[Region, ...],
    color: tuple[int, int, int],
    thickness: int = 2,
) -> np.ndarray:
    """Return a copy of ``frame`` with rectangles drawn for ``regions``."""
    canvas = frame.copy()
    for region in regions:
        cv2.rectangle(canvas, region.tl, region.br, color, thickness)
    return canvas


def draw_session(
    frame: np.ndarray,
    snapshot: SessionSnapshot,
    config: DisplayConfig | None = None,
) -> np.ndarray:
    """Render a session snapshot over a copy of its frame.

    Boxes are drawn in the box color, the selected box on top in the
    selection color, and the box being drawn thin in the drawing color.
    """
    config = config or DisplayConfig()
    canvas = frame.copy()

    for i, box in enumerate(snapshot.boxes):
        if i == snapshot.drawing_index and snapshot.mode == SessionMode.drawing:
            cv2.rectangle(canvas, box.tl, box.br, config.drawing_color, config.drawing_thickness)
        elif i != snapshot.selected:
            cv2.rectangle(canvas, box.tl, box.br, config.box_color, config.box_thickness)

    if snapshot.selected is not None:
        box = snapshot.boxes[snapshot.selected]
        cv2.rectangle(canvas, box.tl, box.br, config.selected_color, config.box_thickness)

    status = f"Frame {snapshot.frame_index} | {len(snapshot.boxes)} box(es)"
    cv2.putText(
        canvas, status, (10, 20), cv2.FONT_HERSHEY_SIMPLEX,
        config.status_scale, config.status_color, 1, cv2.LINE_AA,
    )
    return canvas


def render_session(session: AnnotationSession, config: DisplayConfig | None = None) -> np.ndarray:
    """Render the current state of a live session."""
    with session.lock:
        return draw_session(session.frame, session.snapshot(), config)


def log_boxes(snapshot: SessionSnapshot) -> None:
    """Write the frame's box list to the log, one line per box."""
    logger.info("Frame %d: %d box(es)", snapshot.frame_index, len(snapshot.boxes))
    for i, box in enumerate(snapshot.boxes):
        marker = "*" if i == snapshot.selected else " "
        logger.info("%s%d: [%d, %d] to [%d, %d]", marker, i, *box.tl, *box.br)


# ---------------------------------------------------------------------------
# Display collaborator
# ---------------------------------------------------------------------------


@runtime_checkable
class Renderer(Protocol):
    """Protocol for displaying sessions and collecting user input.

    Implementations: OpenCVRenderer (HighGUI window).
    """

    def attach(self, session: AnnotationSession) -> None:
        """Route pointer events to ``session`` and re-render on its changes."""
        ...

    def show(self, session: AnnotationSession) -> None:
        """Display the current state of ``session``."""
        ...

    def show_debug(self, frame: np.ndarray, results: list[DetectionResult]) -> None:
        """Display intermediate detection output (masks, merged regions)."""
        ...

    def wait_key(self) -> int:
        """Block until a key is pressed and return its code."""
        ...

    def detach(self) -> None:
        """Stop routing events to the attached session."""
        ...

    def close(self) -> None:
        """Release all display resources."""
        ...


def _ignore_mouse(event: int, x: int, y: int, flags: int, param) -> None:
    return None


class OpenCVRenderer:
    """HighGUI-window renderer.

    Satisfies the ``Renderer`` protocol. Mouse events are dispatched straight
    into the attached session's ``handle_mouse_event``.
    """

    def __init__(self, config: DisplayConfig | None = None) -> None:
        self.config = config or DisplayConfig()
        self._window_open = False
        self._session: AnnotationSession | None = None

    def _ensure_window(self) -> None:
        if not self._window_open:
            cv2.namedWindow(self.config.window_name, cv2.WINDOW_AUTOSIZE)
            self._window_open = True

    def attach(self, session: AnnotationSession) -> None:
        self._ensure_window()
        session.set_listener(self.show)
        self._session = session
        cv2.setMouseCallback(self.config.window_name, session.handle_mouse_event)

    def show(self, session: AnnotationSession) -> None:
        self._ensure_window()
        cv2.imshow(self.config.window_name, render_session(session, self.config))

    def show_debug(self, frame: np.ndarray, results: list[DetectionResult]) -> None:
        if not self.config.show_debug:
            return
        merged = [region for result in results for region in result.merged]
        cv2.imshow(
            "Merged Regions",
            draw_regions(frame, merged, self.config.merged_color, self.config.box_thickness),
        )
        for result in results:
            cv2.imshow(f"Primary Mask ({result.descriptor})", result.primary_mask)
            cv2.imshow(f"Secondary Mask ({result.descriptor})", result.secondary_mask)

    def wait_key(self) -> int:
        return cv2.waitKey(0) & 0xFF

    def detach(self) -> None:
        if self._session is not None:
            self._session.set_listener(None)
            self._session = None
        if self._window_open:
            cv2.setMouseCallback(self.config.window_name, _ignore_mouse)

    def close(self) -> None:
        cv2.destroyAllWindows()
        self._window_open = False
