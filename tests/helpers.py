"""Synthetic images shared by the test modules."""

import numpy as np

from unmark.engine import VisionEngine
from unmark.pipeline import Rectangle


def loaded_engine() -> VisionEngine:
    return VisionEngine.create()


def gradient_image(width: int = 128, height: int = 96, channels: int = 3) -> np.ndarray:
    """Smooth horizontal/vertical colour ramp."""
    xs = np.linspace(0, 255, width, dtype=np.float32)
    ys = np.linspace(0, 255, height, dtype=np.float32)
    red = np.tile(xs, (height, 1))
    green = np.tile(ys[:, np.newaxis], (1, width))
    blue = (red + green) / 2
    planes = [red, green, blue]
    if channels == 4:
        planes.append(np.full((height, width), 255, dtype=np.float32))
    elif channels == 1:
        return red.astype(np.uint8)
    return np.stack(planes, axis=2).astype(np.uint8)


def fill(image: np.ndarray, rect: Rectangle, value: int) -> np.ndarray:
    out = image.copy()
    out[rect.y:rect.bottom, rect.x:rect.right] = value
    return out


# 250x200 frame: one background block covering 43% of the frame and one
# 50x20 mark covering 2%, well apart from each other.
SCENE_SIZE = (250, 200)
BACKGROUND_BLOCK = Rectangle(10, 10, 180, 120)
SMALL_MARK = Rectangle(100, 150, 50, 20)


def two_region_scene(channels: int = 3) -> np.ndarray:
    width, height = SCENE_SIZE
    shape = (height, width) if channels == 1 else (height, width, channels)
    image = np.full(shape, 30, dtype=np.uint8)
    if channels == 4:
        image[:, :, 3] = 255
    image = fill(image, BACKGROUND_BLOCK, 200)
    image = fill(image, SMALL_MARK, 240)
    if channels == 4:
        image[:, :, 3] = 255
    return image


def blank_image(width: int = 120, height: int = 80, value: int = 128) -> np.ndarray:
    return np.full((height, width, 3), value, dtype=np.uint8)
