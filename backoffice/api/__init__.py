"""
API module - FastAPI routers and endpoint definitions.

Usage:
    from backoffice.api import api_router
    app.include_router(api_router, prefix="/api")
"""

from backoffice.api.routes import api_router

__all__ = ["api_router"]
