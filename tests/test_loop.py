"""Tests for candet.loop (headless, with a scripted renderer)."""

from __future__ import annotations

import logging

import cv2
import numpy as np
import pytest

from candet.annotate.exporter import Exporter
from candet.annotate.session import KEY_QUIT, KEY_SPACE, SessionState
from candet.config import CanDetConfig, ExportConfig
from candet.errors import ConfigError, ExportError
from candet.loop import StopReason, annotate_frame, run_annotation_loop
from candet.types import ObjectDescriptor
from tests.conftest import FakeSource, ScriptedRenderer


@pytest.fixture
def config(tmp_path) -> CanDetConfig:
    return CanDetConfig(export=ExportConfig(output_dir=tmp_path))


def _store_lines(config: CanDetConfig) -> list[str]:
    path = config.export.output_dir / config.export.annotations_file
    return path.read_text().splitlines()


class FailingExporter(Exporter):
    def export(self, session, rendered):
        raise ExportError(str(self.label_path), "disk full")


class TestAnnotateFrame:
    def test_candidates_seed_session(self, can_frame, can_descriptor, config):
        renderer = ScriptedRenderer([KEY_SPACE])
        session = annotate_frame(can_frame, 0, [can_descriptor], renderer, config)
        assert session.state == SessionState.advanced
        assert len(session.boxes) == 1
        assert renderer.attached == renderer.detached == 1
        assert renderer.debug_calls == 1

    def test_unhandled_keys_rerender(self, blank_frame, can_descriptor, config):
        renderer = ScriptedRenderer([ord("x"), ord("z"), KEY_SPACE])
        annotate_frame(blank_frame, 0, [can_descriptor], renderer, config)
        assert renderer.shows == 3

    def test_mouse_edits_rerender(self, blank_frame, can_descriptor, config):
        renderer = ScriptedRenderer([
            (cv2.EVENT_LBUTTONDOWN, 300, 300),
            (cv2.EVENT_MOUSEMOVE, 350, 350),
            (cv2.EVENT_LBUTTONUP, 360, 360),
            KEY_SPACE,
        ])
        session = annotate_frame(blank_frame, 0, [can_descriptor], renderer, config)
        assert len(session.boxes) == 1
        # initial show plus one per mutation
        assert renderer.shows == 4

    def test_detaches_on_error(self, blank_frame, can_descriptor, config):
        renderer = ScriptedRenderer([])
        with pytest.raises(AssertionError):
            annotate_frame(blank_frame, 0, [can_descriptor], renderer, config)
        assert renderer.detached == 1


class TestRunAnnotationLoop:
    def test_quit_exports_current_frame_and_stops(self, can_frame, can_descriptor, config):
        source = FakeSource([can_frame, can_frame])
        result = run_annotation_loop(
            source, [can_descriptor], ScriptedRenderer([KEY_QUIT]), config=config
        )
        assert source.reads == 1
        assert result.frames_processed == 1
        assert result.stop_reason == StopReason.quit
        assert len(_store_lines(config)) == 1
        assert result.records[0].image_path.exists()

    def test_escape_quits(self, can_frame, can_descriptor, config):
        result = run_annotation_loop(
            FakeSource([can_frame, can_frame]), [can_descriptor],
            ScriptedRenderer([27]), config=config,
        )
        assert result.stop_reason == StopReason.quit
        assert result.frames_processed == 1

    def test_advance_until_end_of_stream(self, can_frame, can_descriptor, config):
        source = FakeSource([can_frame, can_frame.copy()])
        result = run_annotation_loop(
            source, [can_descriptor], ScriptedRenderer([KEY_SPACE, KEY_SPACE]), config=config
        )
        assert source.reads == 3
        assert result.frames_processed == 2
        assert result.boxes_exported == 2
        assert result.stop_reason == StopReason.end_of_stream
        assert [r.frame_index for r in result.records] == [0, 1]
        assert len(_store_lines(config)) == 2

    def test_empty_stream(self, can_descriptor, config):
        renderer = ScriptedRenderer([])
        result = run_annotation_loop(FakeSource([]), [can_descriptor], renderer, config=config)
        assert result.frames_processed == 0
        assert result.stop_reason == StopReason.end_of_stream
        assert renderer.attached == 0

    def test_empty_frame_stops_without_export(self, can_descriptor, config):
        empty = np.zeros((0, 0, 3), dtype=np.uint8)
        result = run_annotation_loop(
            FakeSource([empty]), [can_descriptor], ScriptedRenderer([]), config=config
        )
        assert result.stop_reason == StopReason.empty_frame
        assert result.frames_processed == 0
        assert not (config.export.output_dir / config.export.annotations_file).exists()

    def test_deleted_candidate_is_not_exported(self, can_frame, can_descriptor, config):
        renderer = ScriptedRenderer([(cv2.EVENT_RBUTTONDOWN, 120, 150), KEY_SPACE])
        result = run_annotation_loop(
            FakeSource([can_frame]), [can_descriptor], renderer, config=config
        )
        assert result.boxes_exported == 0
        assert _store_lines(config) == []

    def test_drawn_box_is_exported(self, blank_frame, can_descriptor, config):
        renderer = ScriptedRenderer([
            (cv2.EVENT_LBUTTONDOWN, 300, 300),
            (cv2.EVENT_LBUTTONUP, 364, 348),
            KEY_SPACE,
        ])
        run_annotation_loop(FakeSource([blank_frame]), [can_descriptor], renderer, config=config)
        assert _store_lines(config) == ["0 0.518750 0.675000 0.100000 0.100000"]

    def test_export_failure_is_counted(self, can_frame, can_descriptor, config):
        result = run_annotation_loop(
            FakeSource([can_frame, can_frame.copy()]),
            [can_descriptor],
            ScriptedRenderer([KEY_SPACE, KEY_SPACE]),
            exporter=FailingExporter(config.export),
            config=config,
        )
        assert result.export_failures == 2
        assert result.frames_processed == 2
        assert result.records == []

    def test_config_error_propagates(self, can_frame, config):
        plain = ObjectDescriptor("plain", 12.0, 6.5, (220, 30, 30), None, 0.8)
        with pytest.raises(ConfigError):
            run_annotation_loop(
                FakeSource([can_frame]), [plain], ScriptedRenderer([KEY_SPACE]), config=config
            )

    def test_warns_on_multiple_descriptors(
        self, can_frame, can_descriptor, green_descriptor, config, caplog
    ):
        with caplog.at_level(logging.WARNING, logger="candet.loop"):
            run_annotation_loop(
                FakeSource([can_frame]), [can_descriptor, green_descriptor],
                ScriptedRenderer([KEY_SPACE]), config=config,
            )
        assert "class id 0" in caplog.text
