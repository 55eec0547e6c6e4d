"""Route modules."""

from .health import router as health_router
from .jobs import router as jobs_router
from .vendor import router as vendor_router
from .webhooks import router as webhooks_router

__all__ = ["health_router", "jobs_router", "vendor_router", "webhooks_router"]
