"""
Unmark Configuration

Environment-based configuration for the watermark removal pipeline.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# Inpainting methods - names accepted on the CLI and in the environment
# =============================================================================

INPAINT_METHOD_ALIASES = {
    "telea": "fast_marching",
    "fast_marching": "fast_marching",
    "ns": "fluid_dynamics",
    "navier_stokes": "fluid_dynamics",
    "fluid_dynamics": "fluid_dynamics",
}


class Settings(BaseSettings):
    """Pipeline settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="UNMARK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Edge detection (Canny hysteresis, gradient scale 0-255)
    canny_low: int = 50
    canny_high: int = 200

    # Watermarks are assumed to cover a minority of the frame
    max_area_ratio: float = 0.3

    # Mask construction
    padding: int = 5
    feather_kernel: int = 5  # Gaussian kernel size, must be odd

    # Reconstruction
    inpaint_radius: int = 3
    inpaint_method: str = "telea"  # telea, ns

    # Precision: rectangles shrink by `precision` when it is below the cutoff
    precision: float = 0.85
    precision_cutoff: float = 0.9

    # Logging
    log_level: str = "INFO"

    # Metrics
    metrics_port: int = 0  # 0 = no local metrics server

    # Status API
    app_name: str = "Unmark Watermark Remover"
    api_prefix: str = "/api"
    service_version: str = "2.0.0"
    cors_origins: list[str] = ["*"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
