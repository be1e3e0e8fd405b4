from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.routes import collections, health, slugs, stats
from app.core.config import settings
from app.core.errors import ProviderError
from app.core.logging import get_logger
from app.schemas.api import ErrorResponse
from app.services.registry import ServiceContainer, build_services


log = get_logger("app")


async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    """Render an upstream provider failure as a JSON error body."""
    log.warning(f"{request.method} {request.url.path} failed: {exc}")
    body = ErrorResponse(error=exc.kind, detail=exc.message, provider=exc.provider)
    return JSONResponse(status_code=exc.http_status, content=body.model_dump())


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """Build the FastAPI app.

    ``container`` replaces the settings-built service graph; tests pass one
    wired to mock transports.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Log environment mode
        log.info(f"Starting application in {settings.ENV.upper()} mode")
        if settings.is_production:
            log.info("Production mode: Debug disabled, docs disabled, stricter logging")
        else:
            log.info("Development mode: Debug enabled, docs available")

        services = container or build_services()
        app.state.services = services
        log.info(
            f"Services ready (cache ttl={services.coingecko.cache.ttl_seconds}s, "
            f"max_entries={services.coingecko.cache.max_entries})"
        )

        yield

        # Shutdown
        log.info("Shutting down services...")
        services.close()
        app.state.services = None
        log.info("Application shutdown complete")

    # Configure FastAPI based on environment
    app = FastAPI(
        title="NFT Collection Aggregator",
        description="CoinGecko market data merged with OpenSea metadata for NFT collections",
        version="1.0.0",
        lifespan=lifespan,
        # Disable docs in production for security
        docs_url="/docs" if settings.docs_enabled else None,
        redoc_url="/redoc" if settings.docs_enabled else None,
        openapi_url="/openapi.json" if settings.docs_enabled else None,
        # Debug mode only in development
        debug=settings.debug_enabled,
    )

    app.add_exception_handler(ProviderError, provider_error_handler)

    app.include_router(collections.router)
    app.include_router(slugs.router)
    app.include_router(health.router)
    app.include_router(stats.router)
    return app


app = create_app()
