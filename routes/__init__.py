"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.uploads import router as uploads_router
from routes.approved_matches import router as approved_matches_router
from routes.match_builder import router as match_builder_router
from routes.products import router as products_router

__all__ = [
    "uploads_router",
    "approved_matches_router",
    "match_builder_router",
    "products_router",
]
