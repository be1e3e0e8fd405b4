from app.api.routes.collections import router as collections_router
from app.api.routes.health import router as health_router
from app.api.routes.slugs import router as slugs_router
from app.api.routes.stats import router as stats_router

__all__ = ["collections_router", "health_router", "slugs_router", "stats_router"]
