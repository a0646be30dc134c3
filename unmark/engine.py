"""
Vision Engine

Explicit handle on the OpenCV primitives used by the pipeline.

The engine is created unloaded. `load()` imports OpenCV and flips the
readiness flag; every detection or reconstruction call checks readiness
first and fails with EngineNotReady instead of waiting.
"""

import importlib
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from types import ModuleType
from typing import Iterator, Optional

import numpy as np

from .errors import EngineNotReady

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineStatus:
    """Result of a readiness check."""
    ready: bool
    version: Optional[str] = None
    error: Optional[str] = None


class BufferScope:
    """
    Intermediate buffers owned by a single pipeline call.

    Buffers registered with `track` are dropped when the scope closes,
    whichever way the call exits.
    """

    def __init__(self):
        self._buffers: list[np.ndarray] = []
        self.closed = False

    def track(self, buffer):
        self._buffers.append(buffer)
        return buffer

    def __len__(self) -> int:
        return len(self._buffers)

    def release(self):
        self._buffers.clear()
        self.closed = True


class VisionEngine:
    """
    Injectable wrapper around the OpenCV module.

    Usage:
        engine = VisionEngine().load()
        detector = EdgeContourDetector(engine)
    """

    MODULE_NAME = "cv2"

    def __init__(self):
        self._cv2: Optional[ModuleType] = None
        self._load_error: Optional[str] = None
        self._lock = threading.Lock()
        self._open_scopes = 0

    @classmethod
    def create(cls) -> "VisionEngine":
        """Create and load an engine in one step."""
        return cls().load()

    def load(self) -> "VisionEngine":
        """Import the vision primitives. Safe to call more than once."""
        if self._cv2 is not None:
            return self

        try:
            self._cv2 = importlib.import_module(self.MODULE_NAME)
            self._load_error = None
            logger.info(f"OpenCV {self._cv2.__version__} loaded")
        except ImportError as e:
            self._load_error = str(e)
            logger.error(
                "OpenCV not installed. "
                "Install with: pip install opencv-python-headless"
            )
            raise
        return self

    def status(self) -> EngineStatus:
        """Report readiness without raising."""
        if self._cv2 is None:
            return EngineStatus(ready=False, error=self._load_error or "engine not loaded")
        return EngineStatus(ready=True, version=self._cv2.__version__)

    @property
    def ready(self) -> bool:
        return self._cv2 is not None

    def require_ready(self):
        """Raise EngineNotReady unless `load()` has succeeded."""
        if self._cv2 is None:
            raise EngineNotReady("Vision engine not initialized; call load() first")

    @property
    def cv2(self) -> ModuleType:
        self.require_ready()
        return self._cv2

    @property
    def open_scopes(self) -> int:
        """Number of pipeline calls currently holding scratch buffers."""
        with self._lock:
            return self._open_scopes

    @contextmanager
    def scratch(self) -> Iterator[BufferScope]:
        """
        Scope for the intermediate buffers of one call.

        Checks readiness on entry and always releases on exit.
        """
        self.require_ready()
        scope = BufferScope()
        with self._lock:
            self._open_scopes += 1
        try:
            yield scope
        finally:
            scope.release()
            with self._lock:
                self._open_scopes -= 1
