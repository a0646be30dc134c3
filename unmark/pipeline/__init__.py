"""
Unmark Pipeline

Detection, masking, reconstruction and sequencing modules.
"""

from .geometry import Rectangle, Size, clamp, intersect, pad, scale
from .detector import EdgeContourDetector, DetectorConfig
from .mask import MaskBuilder
from .inpainter import InpaintingEngine, InpaintMethod
from .sequencer import (
    RegionSequencer,
    ProcessingMode,
    SequencerState,
    ReconstructionResult,
)
from .video import VideoProcessor, VideoResult

__all__ = [
    # Geometry
    "Rectangle",
    "Size",
    "clamp",
    "intersect",
    "pad",
    "scale",
    # Detection
    "EdgeContourDetector",
    "DetectorConfig",
    # Masking
    "MaskBuilder",
    # Reconstruction
    "InpaintingEngine",
    "InpaintMethod",
    # Sequencing
    "RegionSequencer",
    "ProcessingMode",
    "SequencerState",
    "ReconstructionResult",
    # Video
    "VideoProcessor",
    "VideoResult",
]
