"""
Unmark

Watermark localization and region reconstruction for images and video frames.
"""

from .engine import VisionEngine, EngineStatus
from .errors import (
    ErrorKind,
    UnmarkError,
    EngineNotReady,
    NoWatermarkDetected,
    DimensionMismatch,
    InvalidRegion,
    UnknownMode,
)
from .pipeline import (
    Rectangle,
    RegionSequencer,
    ProcessingMode,
    ReconstructionResult,
    InpaintMethod,
)

__version__ = "2.0.0"

__all__ = [
    "VisionEngine",
    "EngineStatus",
    "ErrorKind",
    "UnmarkError",
    "EngineNotReady",
    "NoWatermarkDetected",
    "DimensionMismatch",
    "InvalidRegion",
    "UnknownMode",
    "Rectangle",
    "RegionSequencer",
    "ProcessingMode",
    "ReconstructionResult",
    "InpaintMethod",
]
