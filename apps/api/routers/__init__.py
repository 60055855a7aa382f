from .health import router as health_router
from .jobs import router as jobs_router
from .resources import router as resources_router
from .version import router as version_router

__all__ = ["health_router", "jobs_router", "resources_router", "version_router"]
