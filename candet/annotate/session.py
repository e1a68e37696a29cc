"""Per-frame annotation state and its event-driven edit state machine.

A session owns the candidate boxes of one frame. Pointer and keyboard events
mutate it synchronously; every mutation notifies the change listener (the
renderer) while the session lock is still held, so a render never observes a
half-applied edit. Event sources may call in from another thread (OpenCV's
mouse callback, for instance); the lock serializes them.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from typing import Callable

import cv2
import numpy as np

from candet.types import Region

logger = logging.getLogger(__name__)

KEY_SPACE = 32
KEY_ESCAPE = 27
KEY_QUIT = ord("q")


class MouseButton(str, enum.Enum):
    primary = "primary"
    secondary = "secondary"


class SessionMode(str, enum.Enum):
    """Editing mode while the session is active."""

    idle = "idle"
    drawing = "drawing"


class SessionState(str, enum.Enum):
    """Lifecycle of a session. ``advanced`` and ``quit`` are terminal."""

    active = "active"
    advanced = "advanced"
    quit = "quit"


@dataclass(frozen=True)
class SessionSnapshot:
    """Consistent read-only view of a session for rendering and export."""

    frame_index: int
    boxes: tuple[Region, ...]
    selected: int | None
    mode: SessionMode
    drawing_index: int | None


ChangeListener = Callable[["AnnotationSession"], None]


class AnnotationSession:
    """Mutable box list, selection and draw state for one frame.

    Args:
        frame: The frame's BGR image buffer.
        boxes: Initial boxes (detection candidates). Order is the display
            index used for selection and export.
        frame_index: Index of the frame in the run.
        on_change: Called after every mutation, under the session lock.
    """

    def __init__(
        self,
        frame: np.ndarray,
        boxes: list[Region] | None = None,
        frame_index: int = 0,
        on_change: ChangeListener | None = None,
    ) -> None:
        self.frame = frame
        self.frame_index = frame_index
        self._boxes: list[Region] = list(boxes or [])
        self._selected: int | None = None
        self._mode = SessionMode.idle
        self._state = SessionState.active
        self._anchor: tuple[int, int] | None = None
        self._drawing_index: int | None = None
        self._on_change = on_change
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def boxes(self) -> tuple[Region, ...]:
        with self._lock:
            return tuple(self._boxes)

    @property
    def selected(self) -> int | None:
        with self._lock:
            return self._selected

    @property
    def mode(self) -> SessionMode:
        with self._lock:
            return self._mode

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def is_finished(self) -> bool:
        return self.state != SessionState.active

    @property
    def frame_size(self) -> tuple[int, int]:
        """(width, height) of the frame."""
        h, w = self.frame.shape[:2]
        return w, h

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                frame_index=self.frame_index,
                boxes=tuple(self._boxes),
                selected=self._selected,
                mode=self._mode,
                drawing_index=self._drawing_index,
            )

    def set_listener(self, on_change: ChangeListener | None) -> None:
        with self._lock:
            self._on_change = on_change

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def press(self, x: int, y: int, button: MouseButton = MouseButton.primary) -> None:
        """Primary: select the first box under the point, or start drawing.
        Secondary: delete every box under the point.

        A box still being drawn (its button release was lost, say outside
        the window) is committed first.
        """
        with self._lock:
            if self._state != SessionState.active:
                return
            x, y = self._clamp(x, y)
            if self._mode == SessionMode.drawing:
                self._finish_drawing()
                self._changed()
            if button == MouseButton.secondary:
                self._delete_at(x, y)
                return

            for i, box in enumerate(self._boxes):
                if box.contains(x, y):
                    self._selected = i
                    logger.debug("Selected box %d", i)
                    self._changed()
                    return

            self._mode = SessionMode.drawing
            self._anchor = (x, y)
            self._drawing_index = None
            self._changed()

    def move(self, x: int, y: int) -> None:
        """Stretch the in-progress box to the point. Ignored unless drawing."""
        with self._lock:
            if self._state != SessionState.active or self._mode != SessionMode.drawing:
                return
            self._update_drawing(*self._clamp(x, y))
            self._changed()

    def release(self, x: int, y: int) -> None:
        """Finish the in-progress box. Zero-width or zero-height boxes are dropped."""
        with self._lock:
            if self._state != SessionState.active or self._mode != SessionMode.drawing:
                return
            self._update_drawing(*self._clamp(x, y))
            self._finish_drawing()
            self._changed()

    def handle_mouse_event(self, event: int, x: int, y: int, flags: int = 0, param=None) -> None:
        """Adapter with the signature OpenCV expects for mouse callbacks."""
        if event == cv2.EVENT_LBUTTONDOWN:
            self.press(x, y, MouseButton.primary)
        elif event == cv2.EVENT_RBUTTONDOWN:
            self.press(x, y, MouseButton.secondary)
        elif event == cv2.EVENT_MOUSEMOVE:
            self.move(x, y)
        elif event == cv2.EVENT_LBUTTONUP:
            self.release(x, y)

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def handle_key(self, key: int) -> SessionState:
        """Space advances, ``q`` or escape quits, anything else is a no-op."""
        key &= 0xFF
        with self._lock:
            if self._state != SessionState.active:
                return self._state
            if key == KEY_SPACE:
                self._state = SessionState.advanced
            elif key in (KEY_QUIT, KEY_ESCAPE):
                self._state = SessionState.quit
            return self._state

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    def _clamp(self, x: int, y: int) -> tuple[int, int]:
        """Pin a pointer position to the frame; drags can leave the window."""
        w, h = self.frame_size
        return min(max(x, 0), w), min(max(y, 0), h)

    def _finish_drawing(self) -> None:
        index = self._drawing_index
        if index is not None:
            box = self._boxes[index]
            if box.width == 0 or box.height == 0:
                self._remove([index])
            else:
                logger.info("Added box %d: %s", index, box)
        self._mode = SessionMode.idle
        self._anchor = None
        self._drawing_index = None

    def _update_drawing(self, x: int, y: int) -> None:
        box = Region.from_corners(self._anchor, (x, y))
        if self._drawing_index is None:
            self._boxes.append(box)
            self._drawing_index = len(self._boxes) - 1
        else:
            self._boxes[self._drawing_index] = box

    def _delete_at(self, x: int, y: int) -> None:
        hits = [i for i, box in enumerate(self._boxes) if box.contains(x, y)]
        if not hits:
            return
        self._remove(hits)
        logger.info("Deleted %d box(es) at (%d, %d)", len(hits), x, y)
        self._changed()

    def _remove(self, indices: list[int]) -> None:
        """Drop boxes by index, keeping selection and draw index on the same boxes."""
        doomed = set(indices)
        remap: dict[int, int] = {}
        kept: list[Region] = []
        for i, box in enumerate(self._boxes):
            if i in doomed:
                continue
            remap[i] = len(kept)
            kept.append(box)
        self._boxes = kept
        self._selected = remap.get(self._selected) if self._selected is not None else None
        if self._drawing_index is not None:
            self._drawing_index = remap.get(self._drawing_index)
