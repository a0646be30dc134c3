"""
API Routes

FastAPI routers for the status service.
"""

from .health import router as health_router
from .process import router as process_router

__all__ = ["health_router", "process_router"]
