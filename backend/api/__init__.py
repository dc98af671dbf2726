# API package - route handlers
from .editing import router as editing_router
from .system import router as system_router

__all__ = ['editing_router', 'system_router']
