"""API route modules."""

from .categories import router as categories_router
from .events import router as events_router
from .health import router as health_router

__all__ = ["categories_router", "events_router", "health_router"]
