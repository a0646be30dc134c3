"""
Pipeline Errors

Typed failures surfaced by detection, masking and reconstruction.
A failed invocation never returns image data, only one of these.
"""

from enum import Enum


class ErrorKind(Enum):
    """Error classification reported to callers."""
    ENGINE_NOT_READY = "engine_not_ready"
    NO_WATERMARK_DETECTED = "no_watermark_detected"
    DIMENSION_MISMATCH = "dimension_mismatch"
    INVALID_REGION = "invalid_region"
    UNKNOWN_MODE = "unknown_mode"


class UnmarkError(Exception):
    """Base class for pipeline failures."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EngineNotReady(UnmarkError):
    """The vision primitives have not been loaded."""
    kind = ErrorKind.ENGINE_NOT_READY


class NoWatermarkDetected(UnmarkError):
    """Automatic detection found no qualifying region. Retry in manual mode."""
    kind = ErrorKind.NO_WATERMARK_DETECTED


class DimensionMismatch(UnmarkError):
    """Mask and image sizes differ."""
    kind = ErrorKind.DIMENSION_MISMATCH


class InvalidRegion(UnmarkError):
    """A rectangle has no area left inside the image."""
    kind = ErrorKind.INVALID_REGION


class UnknownMode(UnmarkError):
    """The requested operating mode is not recognized."""
    kind = ErrorKind.UNKNOWN_MODE
