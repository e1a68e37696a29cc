"""CLI entrypoint for interactive annotation.

Usage:
    python -m candet [SOURCE] [--descriptors descriptors.yaml] [--config config.yaml]
                     [--output DIR] [--debug] [--verbose] [--json]

SOURCE is a camera index or a video file/stream path (default: camera 0).

Keys: space = export frame and advance, q/Esc = export frame and quit.
Mouse: left-click a box to select it, left-drag on empty space to draw a box,
right-click to delete every box under the pointer.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from candet.annotate.exporter import Exporter
from candet.annotate.render import OpenCVRenderer
from candet.config import CanDetConfig
from candet.descriptors import default_descriptors, load_descriptors
from candet.errors import CanDetError, ConfigError, ExportError, SourceError
from candet.loop import LoopResult, run_annotation_loop
from candet.sources.video import VideoCaptureSource

console = Console()
logger = logging.getLogger(__name__)


def _build_summary_panel(
    result: LoopResult, exporter: Exporter, store_total: int | None
) -> Panel:
    """Build the end-of-run summary panel."""
    stored = "unreadable" if store_total is None else str(store_total)
    lines = [
        f"[bold]Frames processed:[/bold] {result.frames_processed}",
        f"[bold]Boxes exported:[/bold] {result.boxes_exported}",
        f"[bold]Annotation store:[/bold] {escape(str(exporter.label_path))}",
        f"[bold]Records in store:[/bold] {stored}",
        f"[bold]Stopped by:[/bold] {result.stop_reason.value}",
    ]
    if result.export_failures:
        lines.append(f"[bold red]Export failures: {result.export_failures}[/bold red]")
    return Panel("\n".join(lines), title="Annotation Complete", border_style="green")


def _result_to_dict(
    result: LoopResult, exporter: Exporter, store_total: int | None
) -> dict:
    """Convert a loop result to a JSON-serializable dict."""
    return {
        "frames_processed": result.frames_processed,
        "boxes_exported": result.boxes_exported,
        "export_failures": result.export_failures,
        "stop_reason": result.stop_reason.value,
        "annotation_store": str(exporter.label_path),
        "store_records": store_total,
        "frames": [
            {
                "frame_index": r.frame_index,
                "image_path": str(r.image_path),
                "num_boxes": len(r.bboxes),
            }
            for r in result.records
        ],
    }


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Annotate objects in a video by color signature.",
        prog="python -m candet",
    )
    parser.add_argument(
        "source", nargs="?", default=None,
        help="Camera index or video file/stream (default: camera 0)",
    )
    parser.add_argument(
        "--descriptors", type=Path, default=None,
        help=(
            "Descriptor YAML/JSON. The built-in coke_can descriptor has a white "
            "secondary color that never passes the saturation floor, so pass a "
            "file to get detection candidates"
        ),
    )
    parser.add_argument("--config", type=Path, default=None, help="CanDet config YAML")
    parser.add_argument("--output", "-o", type=Path, default=None, help="Output directory")
    parser.add_argument("--debug", action="store_true", help="Show mask and merged-region windows")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log per-region validation")
    parser.add_argument("--json", action="store_true", help="Output JSON summary")
    args = parser.parse_args(argv)

    if not args.json:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.INFO,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_time=True, show_path=False)],
        )
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        config = CanDetConfig.from_yaml(args.config) if args.config else CanDetConfig.default()
        descriptors = (
            load_descriptors(args.descriptors) if args.descriptors else default_descriptors()
        )
    except ConfigError as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 1

    if args.output is not None:
        config.export.output_dir = args.output
    if args.debug:
        config.display.show_debug = True

    source = VideoCaptureSource(args.source, camera_pipeline=config.source.camera_pipeline)
    try:
        source.open()
    except SourceError as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 1

    exporter = Exporter(config.export)
    renderer = OpenCVRenderer(config.display)
    try:
        result = run_annotation_loop(source, descriptors, renderer, exporter, config)
    except CanDetError as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 1
    finally:
        renderer.close()
        source.close()

    try:
        store_total: int | None = len(exporter.stored_records())
    except ExportError as exc:
        logger.warning("%s", exc)
        store_total = None

    if args.json:
        print(json.dumps(_result_to_dict(result, exporter, store_total), indent=2))
    else:
        console.print(_build_summary_panel(result, exporter, store_total))
    return 0


if __name__ == "__main__":
    sys.exit(main())
