"""
Unmark CLI

Remove a watermark from an image (or each frame of a video) on the command line.
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import get_settings
from .engine import VisionEngine
from .errors import UnmarkError
from .metrics import start_metrics_server
from .pipeline import ProcessingMode, Rectangle, RegionSequencer, VideoProcessor

logger = logging.getLogger(__name__)
console = Console()


def load_pixels(path: Path) -> np.ndarray:
    """Read an image as RGB, or RGBA when it carries transparency."""
    with Image.open(path) as img:
        has_alpha = img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info)
        return np.array(img.convert("RGBA" if has_alpha else "RGB"))


def save_pixels(pixels: np.ndarray, path: Path) -> None:
    Image.fromarray(pixels).save(path)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="unmark", description="Unmark watermark remover")
    parser.add_argument("input", type=Path, help="Image (or video with --video) to clean")
    parser.add_argument("-o", "--output", type=Path, required=True, help="Where to write the result")
    parser.add_argument(
        "--mode",
        default=ProcessingMode.AUTO.value,
        help="auto, manual or batch (default: auto)",
    )
    parser.add_argument(
        "--rect",
        action="append",
        type=Rectangle.parse,
        default=[],
        metavar="X,Y,W,H",
        help="Selection rectangle; repeat for batch mode",
    )
    parser.add_argument("--method", default=settings.inpaint_method, help="telea or ns")
    parser.add_argument("--precision", type=float, default=settings.precision, help="Region shrink factor")
    parser.add_argument("--no-feather", action="store_true", help="Keep hard mask edges")
    parser.add_argument("--video", action="store_true", help="Treat input as a video, frame by frame")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def run(args: argparse.Namespace, engine: Optional[VisionEngine] = None) -> int:
    """Execute one CLI invocation. Returns the process exit code."""
    engine = engine or VisionEngine.create()
    sequencer = RegionSequencer(engine)
    feather = False if args.no_feather else None
    started = time.perf_counter()

    try:
        if args.video:
            rect = args.rect[0] if args.rect else None
            result = VideoProcessor(sequencer).process_file(
                args.input,
                args.output,
                rect=rect,
                precision=args.precision,
                method=args.method,
                feather=feather,
            )
            console.print(
                f"[green]Wrote {result.output_path}[/green] "
                f"({result.frames_cleaned}/{result.frames_total} frames cleaned)"
            )
            return 0

        pixels = load_pixels(args.input)
        mode = ProcessingMode.from_name(args.mode)
        result = sequencer.run(
            pixels,
            mode,
            rect=args.rect[0] if args.rect else None,
            rects=args.rect if mode is ProcessingMode.BATCH else None,
            precision=args.precision,
            method=args.method,
            feather=feather,
        )
    except UnmarkError as e:
        console.print(f"[red]{e.kind.value}[/red]: {e}")
        return 2
    except ValueError as e:
        console.print(f"[red]error[/red]: {e}")
        return 1

    save_pixels(result.pixels, args.output)
    regions = ", ".join(str(r.as_tuple()) for r in result.regions) or "none"
    console.print(
        f"[green]Wrote {args.output}[/green] in {time.perf_counter() - started:.2f}s "
        f"(regions: {regions})"
    )
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    settings = get_settings()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True)],
    )

    console.print(f"[bold green]Unmark {__version__}[/bold green]")

    if settings.metrics_port:
        start_metrics_server(settings.metrics_port, version=__version__)

    return run(args)


if __name__ == "__main__":
    sys.exit(main())
