"""FastAPI application entry point.

Grocery Marketplace API - seller catalog management and location-aware browsing.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.routes import api_router
from marketplace.schemas.common import ErrorResponse
from marketplace.services.errors import CatalogError
from marketplace.settings import get_settings
from marketplace.stores.postgres import Database
from marketplace.stores.redis import RedisCache

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the database and cache handles on app.state and disposes them on shutdown.
    """
    settings = get_settings()

    app.state.db = Database(settings)
    try:
        await app.state.db.ping()
        logger.info("Postgres connected")
    except Exception:
        logger.exception("Postgres init failed")

    # Redis is optional: geo lookups fall back to the database
    app.state.cache = None
    try:
        app.state.cache = await RedisCache.connect(settings)
    except Exception:
        logger.exception("Redis init failed")

    yield

    if app.state.cache is not None:
        await app.state.cache.close()
    await app.state.db.close()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Multi-seller grocery catalog with location-aware availability",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
        """Expected service errors: stable code, client-facing message."""
        logger.info(f"[api] {request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
        body = ErrorResponse.from_error(exc)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Anything unexpected: logged with traceback, 500 INTERNAL_ERROR to the client."""
        logger.exception(f"[api] unhandled error on {request.method} {request.url.path}")
        body = ErrorResponse.internal(str(exc)) if settings.debug else ErrorResponse.internal()
        return JSONResponse(status_code=500, content=body.model_dump())

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "marketplace.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
