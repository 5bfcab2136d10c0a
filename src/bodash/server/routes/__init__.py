"""
bodash API Routes
"""

from bodash.server.routes.optimizations import router as optimizations_router
from bodash.server.routes.measurements import router as measurements_router
from bodash.server.routes.insights import router as insights_router

__all__ = [
    "optimizations_router",
    "measurements_router",
    "insights_router",
]
