"""The per-frame annotation loop.

One thread of control: read a frame, detect candidates, hand them to an
AnnotationSession, render and block for keys until the user advances or
quits, export, repeat.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

import numpy as np

from candet.annotate.exporter import Exporter, ExportRecord
from candet.annotate.render import Renderer, log_boxes, render_session
from candet.annotate.session import AnnotationSession, SessionState
from candet.config import CanDetConfig
from candet.detect.pipeline import detect_frame
from candet.errors import ExportError
from candet.sources.base import FrameSource
from candet.types import ObjectDescriptor

logger = logging.getLogger(__name__)


class StopReason(str, enum.Enum):
    """Why the loop stopped reading frames."""

    quit = "quit"
    end_of_stream = "end_of_stream"
    empty_frame = "empty_frame"


@dataclass
class LoopResult:
    """Summary of an annotation run."""

    frames_processed: int = 0
    boxes_exported: int = 0
    export_failures: int = 0
    stop_reason: StopReason = StopReason.end_of_stream
    records: list[ExportRecord] = field(default_factory=list)


def annotate_frame(
    frame: np.ndarray,
    frame_index: int,
    descriptors: list[ObjectDescriptor],
    renderer: Renderer,
    config: CanDetConfig,
) -> AnnotationSession:
    """Detect candidates on one frame and run the interactive session to completion.

    Returns the finished session (state ``advanced`` or ``quit``).
    """
    results = detect_frame(frame, descriptors, config.detection)
    candidates = [region for result in results for region in result.accepted]
    session = AnnotationSession(frame, candidates, frame_index=frame_index)

    renderer.show_debug(frame, results)
    renderer.attach(session)
    try:
        renderer.show(session)
        log_boxes(session.snapshot())
        while not session.is_finished:
            session.handle_key(renderer.wait_key())
            if not session.is_finished:
                renderer.show(session)
    finally:
        renderer.detach()
    return session


def run_annotation_loop(
    source: FrameSource,
    descriptors: list[ObjectDescriptor],
    renderer: Renderer,
    exporter: Exporter | None = None,
    config: CanDetConfig | None = None,
) -> LoopResult:
    """Annotate frames from an opened source until quit or end of stream.

    A quit still exports the current frame; no further frame is read.
    An export failure is logged and counted, and the loop moves on.

    Raises:
        ConfigError: If a descriptor lacks data detection needs.
    """
    config = config or CanDetConfig.default()
    exporter = exporter or Exporter(config.export)
    result = LoopResult()

    if len(descriptors) > 1:
        logger.warning(
            "%d descriptors registered but every box is exported with class id %d",
            len(descriptors), config.export.class_id,
        )

    frame_index = 0
    while True:
        frame = source.read()
        if frame is None:
            logger.info("No more frames")
            result.stop_reason = StopReason.end_of_stream
            break
        if frame.size == 0:
            logger.error("Empty frame captured")
            result.stop_reason = StopReason.empty_frame
            break

        logger.info("Processing frame %d...", frame_index)
        session = annotate_frame(frame, frame_index, descriptors, renderer, config)

        rendered = render_session(session, config.display)
        try:
            record = exporter.export(session, rendered)
        except ExportError as exc:
            logger.error("Export failed for frame %d: %s", frame_index, exc)
            result.export_failures += 1
        else:
            result.records.append(record)
            result.boxes_exported += len(record.bboxes)

        result.frames_processed += 1
        frame_index += 1

        if session.state == SessionState.quit:
            logger.info("Exiting annotation loop")
            result.stop_reason = StopReason.quit
            break

    return result
