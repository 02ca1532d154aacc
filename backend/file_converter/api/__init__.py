from .analytics import router as analytics_router
from .routes import router
from .tools import router as tools_router

__all__ = ["analytics_router", "router", "tools_router"]
