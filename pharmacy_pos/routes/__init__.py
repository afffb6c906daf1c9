# API Routes

from .catalog import router as catalog_router
from .checkout import router as checkout_router
from .reports import router as reports_router

__all__ = ["catalog_router", "checkout_router", "reports_router"]
