"""
Region Sequencer

Drives detection, masking and reconstruction for each operating mode:

- AUTO: detect one region, then reconstruct it
- MANUAL: pad the caller's rectangle, then reconstruct it
- BATCH: reconstruct several regions one after another, each pass
  working on the previous pass's output

Video frames go through AUTO or MANUAL independently; nothing is carried
between frames.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from functools import reduce
from typing import Callable, Optional, Sequence, Union

import numpy as np

from ..config import get_settings
from ..engine import VisionEngine
from ..errors import InvalidRegion, NoWatermarkDetected, UnknownMode, UnmarkError
from ..metrics import record_detection, record_region, record_run
from .detector import EdgeContourDetector
from .geometry import Rectangle, Size, clamp, scale
from .inpainter import InpaintingEngine, InpaintMethod
from .mask import MaskBuilder

logger = logging.getLogger(__name__)

# Supplies candidate rectangles for batch mode; may return an empty sequence
RegionFinder = Callable[[np.ndarray], Sequence[Rectangle]]


class ProcessingMode(Enum):
    """Operating modes accepted by RegionSequencer.run."""
    AUTO = "auto"
    MANUAL = "manual"
    BATCH = "batch"

    @classmethod
    def from_name(cls, name: Union[str, "ProcessingMode"]) -> "ProcessingMode":
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise UnknownMode(f"Unknown mode: {name}") from None


class SequencerState(Enum):
    """Pipeline stages. Only DONE and FAILED are visible to callers."""
    IDLE = "idle"
    DETECTING = "detecting"
    MASKING = "masking"
    RECONSTRUCTING = "reconstructing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ReconstructionResult:
    """Output of a successful run."""
    pixels: np.ndarray
    width: int
    height: int
    mode: ProcessingMode = ProcessingMode.AUTO
    regions: list[Rectangle] = field(default_factory=list)  # Regions actually reconstructed
    method: Optional[InpaintMethod] = None


class _RunTrace:
    """Per-call state tracker, kept off the sequencer so calls stay independent."""

    def __init__(self, mode: ProcessingMode):
        self.mode = mode
        self.state = SequencerState.IDLE

    def advance(self, state: SequencerState):
        logger.debug(f"[{self.mode.value}] {self.state.value} -> {state.value}")
        self.state = state


class RegionSequencer:
    """
    Orchestrates detector, mask builder and inpainter.

    Usage:
        engine = VisionEngine.create()
        sequencer = RegionSequencer(engine)
        result = sequencer.run(pixels, "manual", rect=Rectangle(100, 100, 200, 50))
    """

    def __init__(
        self,
        engine: VisionEngine,
        detector: Optional[EdgeContourDetector] = None,
        mask_builder: Optional[MaskBuilder] = None,
        inpainter: Optional[InpaintingEngine] = None,
        region_finder: Optional[RegionFinder] = None,
        precision: Optional[float] = None,
        precision_cutoff: Optional[float] = None,
    ):
        settings = get_settings()
        self.engine = engine
        self.detector = detector or EdgeContourDetector(engine)
        self.mask_builder = mask_builder or MaskBuilder(engine)
        self.inpainter = inpainter or InpaintingEngine(engine)
        self.region_finder = region_finder
        self.precision = settings.precision if precision is None else precision
        self.precision_cutoff = settings.precision_cutoff if precision_cutoff is None else precision_cutoff

    @staticmethod
    def _validate_image(image: np.ndarray):
        if not isinstance(image, np.ndarray):
            raise ValueError(f"Expected a numpy pixel buffer, got {type(image).__name__}")
        if image.ndim not in (2, 3) or image.size == 0:
            raise ValueError(f"Expected a non-empty (H, W) or (H, W, C) buffer, got shape {image.shape}")
        if image.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {image.dtype}")

    @staticmethod
    def _inside(rect: Rectangle, size: Size) -> Rectangle:
        region = clamp(rect, size)
        if region.is_empty:
            raise InvalidRegion(
                f"Region {rect.as_tuple()} lies outside the {size.width}x{size.height} image"
            )
        return region

    def run(
        self,
        image: np.ndarray,
        mode: Union[str, ProcessingMode] = ProcessingMode.AUTO,
        *,
        rect: Optional[Rectangle] = None,
        rects: Optional[Sequence[Rectangle]] = None,
        precision: Optional[float] = None,
        method: Union[str, InpaintMethod, None] = None,
        feather: Optional[bool] = None,
    ) -> ReconstructionResult:
        """
        Remove a watermark according to `mode`.

        Args:
            image: uint8 pixel buffer; never modified
            mode: "auto", "manual" or "batch"
            rect: Selection for manual mode
            rects: Candidates for batch mode; the region finder is asked when None
            precision: Shrink factor for auto/manual regions (applied below the cutoff)
            method: Inpainting method; the inpainter's default when None
            feather: Soften mask edges; defaults to True for single regions, False for batch

        Returns:
            ReconstructionResult with a new pixel buffer

        Raises:
            UnmarkError: EngineNotReady, NoWatermarkDetected, DimensionMismatch,
                InvalidRegion or UnknownMode
        """
        started = time.perf_counter()
        mode_label = mode.value if isinstance(mode, ProcessingMode) else str(mode)

        try:
            mode = ProcessingMode.from_name(mode)
            trace = _RunTrace(mode)
            self.engine.require_ready()
            self._validate_image(image)
            method = InpaintMethod.from_name(method or self.inpainter.default_method)

            if mode is ProcessingMode.BATCH:
                result = self._run_batch(image, rects, method, bool(feather), trace)
            else:
                result = self._run_single(
                    image,
                    mode,
                    rect,
                    self.precision if precision is None else precision,
                    method,
                    True if feather is None else feather,
                    trace,
                )
        except UnmarkError as e:
            logger.warning(f"Watermark removal failed ({e.kind.value}): {e}")
            record_run(mode_label, SequencerState.FAILED.value, time.perf_counter() - started)
            raise
        except ValueError as e:
            logger.warning(f"Watermark removal failed (invalid argument): {e}")
            record_run(mode_label, SequencerState.FAILED.value, time.perf_counter() - started)
            raise

        trace.advance(SequencerState.DONE)
        record_run(mode.value, SequencerState.DONE.value, time.perf_counter() - started)
        logger.info(
            f"Removed {len(result.regions)} region(s) in {mode.value} mode "
            f"from {result.width}x{result.height} image"
        )
        return result

    def _run_single(
        self,
        image: np.ndarray,
        mode: ProcessingMode,
        rect: Optional[Rectangle],
        precision: float,
        method: InpaintMethod,
        feather: bool,
        trace: _RunTrace,
    ) -> ReconstructionResult:
        size = Size.of(image)

        if mode is ProcessingMode.AUTO:
            trace.advance(SequencerState.DETECTING)
            region = self.detector.detect(image)
            record_detection(region is not None)
            if region is None:
                raise NoWatermarkDetected("No watermark detected automatically. Try manual mode.")
        else:
            if rect is None:
                raise ValueError("Manual mode requires a selection rectangle")
            region = self.mask_builder.enhance_padding(self._inside(rect, size), size)

        region = scale(region, precision, self.precision_cutoff)
        if region.is_empty:
            raise InvalidRegion(f"Precision {precision} leaves no area to reconstruct")

        trace.advance(SequencerState.MASKING)
        mask = self.mask_builder.build(size, [region], feather=feather)

        trace.advance(SequencerState.RECONSTRUCTING)
        pixels = self.inpainter.reconstruct(image, mask, method)
        record_region(method.value)

        return ReconstructionResult(
            pixels=pixels,
            width=size.width,
            height=size.height,
            mode=mode,
            regions=[region],
            method=method,
        )

    def _run_batch(
        self,
        image: np.ndarray,
        rects: Optional[Sequence[Rectangle]],
        method: InpaintMethod,
        feather: bool,
        trace: _RunTrace,
    ) -> ReconstructionResult:
        size = Size.of(image)

        if rects is None:
            rects = self.region_finder(image) if self.region_finder else []
        # Validate everything first so a bad region never leaves half a result
        regions = [self._inside(r, size) for r in rects]

        def reconstruct_region(pixels: np.ndarray, region: Rectangle) -> np.ndarray:
            trace.advance(SequencerState.MASKING)
            mask = self.mask_builder.build(size, [region], feather=feather)
            trace.advance(SequencerState.RECONSTRUCTING)
            updated = self.inpainter.reconstruct(pixels, mask, method)
            record_region(method.value)
            return updated

        # Each pass sees the previous pass's output
        pixels = reduce(reconstruct_region, regions, image)
        if pixels is image:
            pixels = image.copy()

        return ReconstructionResult(
            pixels=pixels,
            width=size.width,
            height=size.height,
            mode=ProcessingMode.BATCH,
            regions=regions,
            method=method,
        )

    def process_frame(
        self,
        frame: np.ndarray,
        rect: Optional[Rectangle] = None,
        **options,
    ) -> ReconstructionResult:
        """Treat one video frame as an independent image: manual with `rect`, auto otherwise."""
        mode = ProcessingMode.MANUAL if rect is not None else ProcessingMode.AUTO
        return self.run(frame, mode, rect=rect, **options)
