"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.products import router as products_router
from routes.catalog import router as catalog_router
from routes.invoices import router as invoices_router
from routes.settings import router as settings_router

__all__ = [
    "products_router",
    "catalog_router",
    "invoices_router",
    "settings_router",
]
