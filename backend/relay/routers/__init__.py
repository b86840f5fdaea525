"""API routers."""
from .devices import router as devices_router
from .notifications import router as notifications_router
from .callable import router as callable_router
from .hooks import router as hooks_router

__all__ = ["devices_router", "notifications_router", "callable_router", "hooks_router"]
