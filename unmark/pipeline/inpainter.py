"""
Inpainting Engine

Reconstructs masked pixels from their surroundings with one of OpenCV's
two diffusion inpainting algorithms:

- FAST_MARCHING (Telea 2004): fills from the boundary inward in order of
  distance, each pixel a weighted average of known neighbours. Default.
- FLUID_DYNAMICS (Bertalmio et al. 2001, Navier-Stokes): propagates colour
  and isophote direction; smoother continuation of lines, slower.

Feathered masks blend the reconstruction with the source in proportion
to the mask value, so the seam fades instead of cutting.
"""

import logging
from enum import Enum
from typing import Optional, Union

import numpy as np

from ..config import INPAINT_METHOD_ALIASES, get_settings
from ..engine import VisionEngine
from ..errors import DimensionMismatch

logger = logging.getLogger(__name__)


class InpaintMethod(Enum):
    """Diffusion strategy for filling the masked region."""
    FAST_MARCHING = "fast_marching"
    FLUID_DYNAMICS = "fluid_dynamics"

    @classmethod
    def from_name(cls, name: Union[str, "InpaintMethod"]) -> "InpaintMethod":
        """Resolve a method name ("telea", "ns", ...) or pass an enum through."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        if key not in INPAINT_METHOD_ALIASES:
            raise ValueError(
                f"Unsupported inpainting method: {name} "
                f"(expected one of {', '.join(sorted(INPAINT_METHOD_ALIASES))})"
            )
        return cls(INPAINT_METHOD_ALIASES[key])


class InpaintingEngine:
    """Fills masked pixels; never modifies the caller's buffer."""

    def __init__(
        self,
        engine: VisionEngine,
        radius: Optional[int] = None,
        default_method: Union[str, InpaintMethod, None] = None,
    ):
        settings = get_settings()
        self.engine = engine
        self.radius = radius if radius is not None else settings.inpaint_radius
        self.default_method = InpaintMethod.from_name(default_method or settings.inpaint_method)
        if self.radius <= 0:
            raise ValueError("inpaint radius must be a positive integer.")

    def _cv_flag(self, method: InpaintMethod) -> int:
        cv2 = self.engine.cv2
        if method is InpaintMethod.FLUID_DYNAMICS:
            return cv2.INPAINT_NS
        return cv2.INPAINT_TELEA

    def _inpaint_channels(self, image: np.ndarray, mask: np.ndarray, flag: int) -> np.ndarray:
        """
        Run cv2.inpaint on every channel group.

        OpenCV accepts 1 or 3 channel 8-bit images, so the first three channels
        are filled together and any extra channel (alpha) on its own.
        """
        cv2 = self.engine.cv2
        h, w = image.shape[:2]

        if image.ndim == 2:
            return cv2.inpaint(np.ascontiguousarray(image), mask, self.radius, flag)

        channels = image.shape[2]
        if channels >= 3:
            groups = [slice(0, 3)] + [slice(i, i + 1) for i in range(3, channels)]
        else:
            groups = [slice(i, i + 1) for i in range(channels)]

        filled = []
        for group in groups:
            part = np.ascontiguousarray(image[:, :, group])
            result = cv2.inpaint(part, mask, self.radius, flag)
            filled.append(result.reshape(h, w, -1))
        return np.concatenate(filled, axis=2)

    def reconstruct(
        self,
        image: np.ndarray,
        mask: np.ndarray,
        method: Union[str, InpaintMethod, None] = None,
    ) -> np.ndarray:
        """
        Reconstruct every pixel where mask > 0.

        Args:
            image: uint8 pixel buffer, (H, W) or (H, W, C)
            mask: (H, W) uint8 mask, 255 = reconstruct fully
            method: InpaintMethod or name; defaults to the configured method

        Returns:
            New buffer with the same shape and dtype as `image`

        Raises:
            DimensionMismatch: mask size differs from image size
        """
        self.engine.require_ready()
        if image.size == 0:
            raise ValueError("Cannot reconstruct an empty image.")
        if image.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {image.dtype}")
        if mask.ndim != 2 or mask.shape != image.shape[:2]:
            raise DimensionMismatch(
                f"Mask shape {mask.shape} does not match image shape {image.shape[:2]}"
            )

        method = InpaintMethod.from_name(method or self.default_method)

        with self.engine.scratch() as scope:
            binary = scope.track(np.where(mask > 0, 255, 0).astype(np.uint8))
            if not binary.any():
                logger.debug("Empty mask, returning a copy of the source")
                return image.copy()

            filled = scope.track(self._inpaint_channels(image, binary, self._cv_flag(method)))

            weight = scope.track(mask.astype(np.float32) / 255.0)
            if image.ndim == 3:
                weight = weight[:, :, np.newaxis]
            blended = image.astype(np.float32) * (1.0 - weight) + filled.astype(np.float32) * weight
            result = np.clip(np.rint(blended), 0, 255).astype(np.uint8)
            marked = int(np.count_nonzero(binary))

        logger.debug(f"Reconstructed {marked} pixels with {method.value} (radius={self.radius})")
        return result
