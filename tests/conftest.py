"""Shared test fixtures for CanDet."""

from __future__ import annotations

import cv2
import numpy as np
import pytest

from candet.annotate.session import AnnotationSession
from candet.types import ObjectDescriptor, Region

FRAME_SHAPE = (480, 640, 3)

# BGR fill colors
RED = (30, 30, 220)
BLUE = (220, 30, 30)
GREEN = (30, 220, 30)

# A 65x120 can at (100, 100): aspect 6.5/12, with a 45x35 inset label
# covering ~20% of its area.
CAN_REGION = Region(100, 100, 65, 120)


def draw_can(
    frame: np.ndarray,
    x: int,
    y: int,
    body: tuple[int, int, int] = RED,
    label: tuple[int, int, int] = BLUE,
    width: int = 65,
    height: int = 120,
) -> None:
    """Draw a filled body rectangle with an inset label (in place)."""
    cv2.rectangle(frame, (x, y), (x + width - 1, y + height - 1), body, -1)
    lx, ly = x + 10, y + 40
    cv2.rectangle(frame, (lx, ly), (lx + 44, ly + 34), label, -1)


@pytest.fixture
def can_descriptor() -> ObjectDescriptor:
    """Red can with a blue label, 80% red."""
    return ObjectDescriptor(
        name="red_can",
        typical_height=12.0,
        typical_width=6.5,
        main_color=(220, 30, 30),
        secondary_color=(30, 30, 220),
        color_ratio=0.8,
    )


@pytest.fixture
def green_descriptor() -> ObjectDescriptor:
    """Green can with a blue label, 80% green."""
    return ObjectDescriptor(
        name="green_can",
        typical_height=12.0,
        typical_width=6.5,
        main_color=(30, 220, 30),
        secondary_color=(30, 30, 220),
        color_ratio=0.8,
    )


@pytest.fixture
def blank_frame() -> np.ndarray:
    return np.zeros(FRAME_SHAPE, dtype=np.uint8)


@pytest.fixture
def can_frame() -> np.ndarray:
    """Black frame with one red can at CAN_REGION."""
    frame = np.zeros(FRAME_SHAPE, dtype=np.uint8)
    draw_can(frame, CAN_REGION.x, CAN_REGION.y)
    return frame


@pytest.fixture
def sample_boxes() -> list[Region]:
    """Three non-overlapping boxes."""
    return [
        Region(10, 10, 50, 50),
        Region(100, 100, 80, 40),
        Region(300, 200, 60, 120),
    ]


@pytest.fixture
def session(blank_frame, sample_boxes) -> AnnotationSession:
    return AnnotationSession(blank_frame, sample_boxes, frame_index=0)


class FakeSource:
    """FrameSource serving a fixed list of frames, then None."""

    def __init__(self, frames: list[np.ndarray]) -> None:
        self.frames = list(frames)
        self.reads = 0
        self.opened = False
        self.closed = False

    def open(self) -> None:
        self.opened = True

    def read(self) -> np.ndarray | None:
        self.reads += 1
        if not self.frames:
            return None
        return self.frames.pop(0)

    def close(self) -> None:
        self.closed = True


class ScriptedRenderer:
    """Renderer replaying scripted input instead of opening a window.

    ``script`` is a flat list of actions consumed across frames. An int is a
    key press returned by ``wait_key``; a tuple ``(event, x, y)`` is a mouse
    event delivered to the attached session first.
    """

    def __init__(self, script: list) -> None:
        self.script = list(script)
        self.session: AnnotationSession | None = None
        self.shows = 0
        self.debug_calls = 0
        self.attached = 0
        self.detached = 0

    def attach(self, session: AnnotationSession) -> None:
        self.session = session
        self.attached += 1
        session.set_listener(self.show)

    def show(self, session: AnnotationSession) -> None:
        self.shows += 1

    def show_debug(self, frame, results) -> None:
        self.debug_calls += 1

    def wait_key(self) -> int:
        while self.script:
            action = self.script.pop(0)
            if isinstance(action, int):
                return action
            event, x, y = action
            self.session.handle_mouse_event(event, x, y, 0, None)
        raise AssertionError("script exhausted while waiting for a key")

    def detach(self) -> None:
        if self.session is not None:
            self.session.set_listener(None)
        self.session = None
        self.detached += 1

    def close(self) -> None:
        pass
