"""
Video Processing

Runs the single-image pipeline on every frame of a video file.
Frames are independent: no tracking or temporal smoothing.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from ..errors import NoWatermarkDetected
from .geometry import Rectangle
from .sequencer import RegionSequencer

logger = logging.getLogger(__name__)


@dataclass
class VideoResult:
    """Summary of a processed video."""
    output_path: Path
    frames_total: int
    frames_cleaned: int
    frames_skipped: int  # No watermark found in auto mode
    fps: float
    width: int
    height: int


class VideoProcessor:
    """Frame-by-frame watermark removal for video files."""

    FOURCC = "mp4v"

    def __init__(self, sequencer: RegionSequencer):
        self.sequencer = sequencer
        self.engine = sequencer.engine

    def process_file(
        self,
        input_path: Path,
        output_path: Path,
        rect: Optional[Rectangle] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        **options,
    ) -> VideoResult:
        """
        Remove the watermark from each frame and write a new video.

        Args:
            input_path: Source video
            output_path: Destination (mp4v codec)
            rect: Fixed selection; detect per frame when None
            progress_callback: Optional callback(current_frame, total_frames)
            **options: Passed through to RegionSequencer.run

        Returns:
            VideoResult with frame counts
        """
        cv2 = self.engine.cv2
        input_path = Path(input_path)
        output_path = Path(output_path)

        capture = cv2.VideoCapture(str(input_path))
        if not capture.isOpened():
            raise ValueError(f"Could not open video: {input_path}")

        writer = None
        cleaned = skipped = index = 0
        try:
            fps = capture.get(cv2.CAP_PROP_FPS) or 25.0
            width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
            height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
            total = int(capture.get(cv2.CAP_PROP_FRAME_COUNT))

            writer = cv2.VideoWriter(
                str(output_path), cv2.VideoWriter_fourcc(*self.FOURCC), fps, (width, height)
            )
            if not writer.isOpened():
                raise ValueError(f"Could not open video writer: {output_path}")
            logger.info(f"Processing {input_path.name}: {total} frames at {fps:.1f} fps, {width}x{height}")

            try:
                while True:
                    ok, frame_bgr = capture.read()
                    if not ok:
                        break
                    index += 1

                    frame = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
                    try:
                        result = self.sequencer.process_frame(frame, rect, **options)
                        out = cv2.cvtColor(result.pixels, cv2.COLOR_RGB2BGR)
                        cleaned += 1
                    except NoWatermarkDetected:
                        out = frame_bgr
                        skipped += 1

                    writer.write(out)
                    if progress_callback:
                        progress_callback(index, total)
            except Exception:
                # A failed run leaves no partial video behind
                writer.release()
                writer = None
                output_path.unlink(missing_ok=True)
                logger.error(f"Video processing failed at frame {index}; removed {output_path.name}")
                raise
        finally:
            capture.release()
            if writer is not None:
                writer.release()

        logger.info(f"Video done: {cleaned} frames cleaned, {skipped} without watermark")
        return VideoResult(
            output_path=output_path,
            frames_total=index,
            frames_cleaned=cleaned,
            frames_skipped=skipped,
            fps=fps,
            width=width,
            height=height,
        )
