"""
Edge Contour Detector

Finds the most plausible watermark rectangle from pixel content:
grayscale -> Canny edges -> external contours -> largest qualifying box.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..config import get_settings
from ..engine import VisionEngine
from .geometry import Rectangle, Size

logger = logging.getLogger(__name__)


@dataclass
class DetectorConfig:
    """Thresholds for edge-based detection."""
    canny_low: int = 50
    canny_high: int = 200
    max_area_ratio: float = 0.3  # Boxes at or above this share of the frame are background

    @classmethod
    def from_settings(cls) -> "DetectorConfig":
        settings = get_settings()
        return cls(
            canny_low=settings.canny_low,
            canny_high=settings.canny_high,
            max_area_ratio=settings.max_area_ratio,
        )


class EdgeContourDetector:
    """
    Detects a single rectangular watermark region.

    Selection rule: the bounding box with the largest area strictly below
    `max_area_ratio` of the frame. On equal areas the first contour found
    by OpenCV wins.
    """

    def __init__(self, engine: VisionEngine, config: Optional[DetectorConfig] = None):
        self.engine = engine
        self.config = config or DetectorConfig.from_settings()
        if self.config.canny_low > self.config.canny_high:
            raise ValueError("canny_low must not exceed canny_high")

    def to_grayscale(self, image: np.ndarray) -> np.ndarray:
        """Luminance-weighted single channel from an RGB(A) or gray buffer."""
        cv2 = self.engine.cv2
        if image.ndim == 2:
            return image.copy()
        channels = image.shape[2]
        if channels == 4:
            return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
        if channels == 3:
            return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
        if channels == 1:
            return image[:, :, 0].copy()
        raise ValueError(f"Unsupported channel count for detection: {channels}")

    def detect(self, image: np.ndarray) -> Optional[Rectangle]:
        """
        Locate the watermark bounding box.

        Args:
            image: uint8 pixel buffer, (H, W) or (H, W, C)

        Returns:
            The selected Rectangle, or None when nothing qualifies
        """
        if image.size == 0:
            raise ValueError("Cannot run detection on an empty image")

        cv2 = self.engine.cv2
        size = Size.of(image)
        area_limit = self.config.max_area_ratio * size.area

        with self.engine.scratch() as scope:
            gray = scope.track(self.to_grayscale(image))
            edges = scope.track(cv2.Canny(gray, self.config.canny_low, self.config.canny_high))
            contours, hierarchy = cv2.findContours(
                edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE
            )
            scope.track(hierarchy)

            max_area = 0
            best: Optional[Rectangle] = None
            for contour in contours:
                rect = Rectangle.from_tuple(cv2.boundingRect(contour))
                if max_area < rect.area < area_limit:
                    max_area = rect.area
                    best = rect

            logger.debug(
                f"Scanned {len(contours)} contours on {size.width}x{size.height} image, "
                f"area limit {area_limit:.0f}"
            )

        if best is None:
            logger.info("No watermark-shaped contour found")
        else:
            logger.info(f"Detected watermark region {best.as_tuple()} (area {best.area})")
        return best
