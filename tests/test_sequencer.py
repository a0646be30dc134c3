import unittest
from concurrent.futures import ThreadPoolExecutor

import numpy as np
from prometheus_client import REGISTRY

from unmark.engine import VisionEngine
from unmark.errors import (
    EngineNotReady,
    ErrorKind,
    InvalidRegion,
    NoWatermarkDetected,
    UnknownMode,
)
from unmark.pipeline.detector import DetectorConfig, EdgeContourDetector
from unmark.pipeline.geometry import Rectangle, Size
from unmark.pipeline.inpainter import InpaintingEngine, InpaintMethod
from unmark.pipeline.mask import MaskBuilder
from unmark.pipeline.sequencer import ProcessingMode, RegionSequencer

from .helpers import blank_image, fill, gradient_image, loaded_engine, two_region_scene


class SequencerTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = loaded_engine()
        self.detector = EdgeContourDetector(self.engine, DetectorConfig())
        self.masks = MaskBuilder(self.engine, feather_kernel=5, padding=5)
        self.inpainter = InpaintingEngine(self.engine, radius=3, default_method="telea")
        self.sequencer = RegionSequencer(
            self.engine,
            detector=self.detector,
            mask_builder=self.masks,
            inpainter=self.inpainter,
            precision=0.85,
            precision_cutoff=0.9,
        )


class TestModes(SequencerTestCase):
    def test_unknown_mode(self) -> None:
        with self.assertRaises(UnknownMode) as ctx:
            self.sequencer.run(gradient_image(), "polygon")
        self.assertIs(ctx.exception.kind, ErrorKind.UNKNOWN_MODE)

    def test_mode_names(self) -> None:
        self.assertIs(ProcessingMode.from_name("Manual"), ProcessingMode.MANUAL)
        self.assertIs(ProcessingMode.from_name(ProcessingMode.BATCH), ProcessingMode.BATCH)

    def test_engine_not_ready(self) -> None:
        sequencer = RegionSequencer(
            VisionEngine(),
            detector=self.detector,
            mask_builder=self.masks,
            inpainter=self.inpainter,
        )
        for mode in ("auto", "manual", "batch"):
            with self.assertRaises(EngineNotReady):
                sequencer.run(gradient_image(), mode, rect=Rectangle(10, 10, 20, 20), rects=[])

    def test_rejects_non_uint8_buffer(self) -> None:
        with self.assertRaises(ValueError):
            self.sequencer.run(np.zeros((10, 10, 3), dtype=np.float64), "manual", rect=Rectangle(1, 1, 2, 2))


class TestFailureAccounting(SequencerTestCase):
    @staticmethod
    def _failed_runs(mode: str) -> float:
        value = REGISTRY.get_sample_value("unmark_runs_total", {"mode": mode, "status": "failed"})
        return value or 0.0

    def test_argument_errors_count_as_failed_runs(self) -> None:
        cases = [
            ("manual", {}),
            ("manual", {"rect": Rectangle(10, 10, 20, 20), "method": "lama"}),
        ]
        for mode, options in cases:
            before = self._failed_runs(mode)
            with self.assertLogs("unmark.pipeline.sequencer", level="WARNING") as logs:
                with self.assertRaises(ValueError):
                    self.sequencer.run(gradient_image(), mode, **options)
            self.assertIn("failed", logs.output[0])
            self.assertEqual(self._failed_runs(mode), before + 1)

    def test_pipeline_errors_count_as_failed_runs(self) -> None:
        before = self._failed_runs("auto")
        with self.assertRaises(NoWatermarkDetected):
            self.sequencer.run(blank_image(), "auto")
        self.assertEqual(self._failed_runs("auto"), before + 1)


class TestAutomaticMode(SequencerTestCase):
    def test_detects_and_reconstructs(self) -> None:
        image = two_region_scene()
        before = image.copy()
        expected_region = self.detector.detect(image)

        result = self.sequencer.run(image, "auto", precision=1.0)

        self.assertEqual(result.mode, ProcessingMode.AUTO)
        self.assertEqual(result.regions, [expected_region])
        self.assertEqual((result.width, result.height), (250, 200))
        self.assertEqual(result.pixels.shape, image.shape)
        self.assertTrue(np.array_equal(image, before))
        # The bright mark is replaced by surrounding background
        r = expected_region
        centre = result.pixels[r.y + r.height // 2, r.x + r.width // 2]
        self.assertLess(int(centre.max()), 120)

    def test_precision_applies_to_detected_region(self) -> None:
        image = two_region_scene()
        detected = self.detector.detect(image)
        result = self.sequencer.run(image, "auto", precision=0.5)
        self.assertEqual(result.regions[0].width, detected.width // 2)
        self.assertEqual(result.regions[0].height, detected.height // 2)

    def test_blank_image_fails_with_no_watermark(self) -> None:
        with self.assertRaises(NoWatermarkDetected) as ctx:
            self.sequencer.run(blank_image(), ProcessingMode.AUTO)
        self.assertIs(ctx.exception.kind, ErrorKind.NO_WATERMARK_DETECTED)
        self.assertEqual(self.engine.open_scopes, 0)


class TestManualMode(SequencerTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.image = gradient_image(400, 300)
        self.selection = Rectangle(100, 100, 200, 50)

    def test_selection_is_padded(self) -> None:
        result = self.sequencer.run(self.image, "manual", rect=self.selection, precision=1.0)
        self.assertEqual(result.regions, [Rectangle(95, 95, 210, 60)])

    def test_precision_shrinks_after_padding(self) -> None:
        result = self.sequencer.run(self.image, "manual", rect=self.selection, precision=0.85)
        self.assertEqual(result.regions, [Rectangle(95, 95, 178, 51)])

    def test_default_precision_from_sequencer(self) -> None:
        result = self.sequencer.run(self.image, "manual", rect=self.selection)
        self.assertEqual(result.regions, [Rectangle(95, 95, 178, 51)])

    def test_pixels_outside_region_unchanged_without_feather(self) -> None:
        result = self.sequencer.run(
            self.image, "manual", rect=self.selection, precision=1.0, feather=False
        )
        region = result.regions[0]
        outside = np.ones(self.image.shape[:2], dtype=bool)
        outside[region.y:region.bottom, region.x:region.right] = False
        self.assertTrue(np.array_equal(result.pixels[outside], self.image[outside]))

    def test_selection_outside_image(self) -> None:
        with self.assertRaises(InvalidRegion):
            self.sequencer.run(self.image, "manual", rect=Rectangle(500, 10, 20, 20))

    def test_precision_leaving_no_area(self) -> None:
        with self.assertRaises(InvalidRegion):
            self.sequencer.run(self.image, "manual", rect=Rectangle(0, 0, 1, 1), precision=0.05)

    def test_missing_selection(self) -> None:
        with self.assertRaises(ValueError):
            self.sequencer.run(self.image, "manual")

    def test_fluid_dynamics_method(self) -> None:
        result = self.sequencer.run(self.image, "manual", rect=self.selection, method="ns")
        self.assertIs(result.method, InpaintMethod.FLUID_DYNAMICS)
        self.assertEqual(result.pixels.shape, self.image.shape)


class TestBatchMode(SequencerTestCase):
    def test_empty_sequence_returns_input_unchanged(self) -> None:
        image = gradient_image()
        result = self.sequencer.run(image, "batch", rects=[])
        self.assertEqual(result.pixels.tobytes(), image.tobytes())
        self.assertIsNot(result.pixels, image)
        self.assertEqual(result.regions, [])

    def test_region_finder_used_when_no_rects(self) -> None:
        calls = []

        def finder(pixels):
            calls.append(pixels.shape)
            return []

        sequencer = RegionSequencer(
            self.engine,
            detector=self.detector,
            mask_builder=self.masks,
            inpainter=self.inpainter,
            region_finder=finder,
        )
        image = gradient_image()
        result = sequencer.run(image, "batch")
        self.assertEqual(calls, [image.shape])
        self.assertTrue(np.array_equal(result.pixels, image))

    def test_regions_reconstructed_in_order_on_updated_image(self) -> None:
        first = Rectangle(40, 30, 30, 30)
        second = Rectangle(55, 45, 30, 30)
        image = fill(fill(gradient_image(), first, 255), second, 255)
        size = Size.of(image)

        result = self.sequencer.run(image, "batch", rects=[first, second])

        step_one = self.inpainter.reconstruct(image, self.masks.build(size, [first]))
        folded = self.inpainter.reconstruct(step_one, self.masks.build(size, [second]))
        single_pass = self.inpainter.reconstruct(image, self.masks.build(size, [first, second]))

        self.assertEqual(result.regions, [first, second])
        self.assertTrue(np.array_equal(result.pixels, folded))
        # The second pass starts from the first pass's output, not from one union mask
        self.assertFalse(np.array_equal(result.pixels, single_pass))

    def test_invalid_region_fails_whole_batch(self) -> None:
        with self.assertRaises(InvalidRegion):
            self.sequencer.run(
                gradient_image(), "batch", rects=[Rectangle(10, 10, 5, 5), Rectangle(999, 0, 5, 5)]
            )

    def test_precision_not_applied_in_batch(self) -> None:
        rect = Rectangle(10, 10, 40, 20)
        result = self.sequencer.run(gradient_image(), "batch", rects=[rect], precision=0.5)
        self.assertEqual(result.regions, [rect])


class TestVideoFrames(SequencerTestCase):
    def test_frame_with_selection_is_manual(self) -> None:
        frame = gradient_image(160, 120)
        result = self.sequencer.process_frame(frame, Rectangle(20, 20, 30, 10))
        self.assertEqual(result.mode, ProcessingMode.MANUAL)

    def test_frame_without_selection_is_automatic(self) -> None:
        result = self.sequencer.process_frame(two_region_scene())
        self.assertEqual(result.mode, ProcessingMode.AUTO)

    def test_frames_are_independent(self) -> None:
        frames = [two_region_scene(), gradient_image(250, 200), two_region_scene()]
        rect = Rectangle(30, 40, 50, 20)
        serial = [self.sequencer.process_frame(f, rect).pixels for f in frames]
        with ThreadPoolExecutor(max_workers=3) as pool:
            parallel = list(pool.map(lambda f: self.sequencer.process_frame(f, rect).pixels, frames))
        for a, b in zip(serial, parallel):
            self.assertTrue(np.array_equal(a, b))
        self.assertTrue(np.array_equal(serial[0], serial[2]))
        self.assertEqual(self.engine.open_scopes, 0)


if __name__ == "__main__":
    unittest.main()
