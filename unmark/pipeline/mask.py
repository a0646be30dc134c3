"""
Mask Builder

Renders candidate rectangles into a single-channel reconstruction mask
(0 = keep, 255 = reconstruct, in between = blend weight).
"""

import logging
from typing import Iterable, Optional

import numpy as np

from ..config import get_settings
from ..engine import VisionEngine
from .geometry import Rectangle, Size, clamp, pad

logger = logging.getLogger(__name__)

MASK_FULL = 255


class MaskBuilder:
    """Builds binary or feathered masks matching the image size."""

    def __init__(
        self,
        engine: VisionEngine,
        feather_kernel: Optional[int] = None,
        padding: Optional[int] = None,
    ):
        settings = get_settings()
        self.engine = engine
        self.feather_kernel = feather_kernel if feather_kernel is not None else settings.feather_kernel
        self.padding = padding if padding is not None else settings.padding
        if self.feather_kernel < 1 or self.feather_kernel % 2 == 0:
            raise ValueError(f"feather_kernel must be a positive odd number, got {self.feather_kernel}")

    def build(self, size: Size, rects: Iterable[Rectangle], feather: bool = False) -> np.ndarray:
        """
        Render rectangles into a mask.

        Overlapping rectangles are unioned, so shared pixels are counted once.
        With `feather`, the hard edge is softened by a small Gaussian blur.

        Args:
            size: Image dimensions
            rects: Rectangles to mark for reconstruction
            feather: Soften the mask edges

        Returns:
            (H, W) uint8 mask
        """
        mask = np.zeros((size.height, size.width), dtype=np.uint8)
        for rect in rects:
            region = clamp(rect, size)
            if region.is_empty:
                continue
            # Slice assignment of a constant is already a union
            mask[region.y:region.bottom, region.x:region.right] = MASK_FULL

        if feather:
            cv2 = self.engine.cv2
            k = self.feather_kernel
            mask = cv2.GaussianBlur(mask, (k, k), 0)

        logger.debug(
            f"Built {'feathered ' if feather else ''}mask {size.width}x{size.height}, "
            f"{int(np.count_nonzero(mask))} pixels marked"
        )
        return mask

    def enhance_padding(self, rect: Rectangle, size: Size, padding: Optional[int] = None) -> Rectangle:
        """Expand a selection on every side, clamped to the image."""
        return pad(rect, size, self.padding if padding is None else padding)
