"""Admin API for the catalog sync engine.

Serves the import trigger, run reports, mapping cache maintenance and the
webservice connection test under /v1/admin, plus liveness (/health) and
readiness (/health/ready) checks for the deployment.

Imports also run without the API through scripts/run_import.py; both share
the Redis import lock.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog_sync.routes import api_router
from catalog_sync.schemas import ErrorDetail, ErrorResponse
from catalog_sync.settings import get_settings
from catalog_sync.stores.postgres import init_db, close_db, ping_db
from catalog_sync.stores.redis import init_redis, close_redis, ping_redis

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Connect Postgres and Redis; the app still starts when either is down.

    /health/ready reports which backend is missing.
    """
    try:
        await init_db()
        await ping_db()
        logger.info("Postgres connected")
    except Exception:
        logger.exception("Postgres init failed")

    try:
        await init_redis()
    except Exception:
        logger.exception("Redis init failed")

    yield

    await close_redis()
    await close_db()


def create_app() -> FastAPI:
    """Build the admin API app."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Catalog reconciliation and relationship synchronization",
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

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Unhandled errors as ErrorResponse; the message is hidden unless DEBUG."""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        body = ErrorResponse(
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message=str(exc) if settings.debug else "Internal server error",
            )
        )
        return JSONResponse(status_code=500, content=body.model_dump())

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/health/ready", tags=["health"])
    async def readiness_check() -> JSONResponse:
        """503 unless both Postgres (catalog) and Redis (import lock) answer."""
        checks: dict[str, bool] = {}
        for name, ping in (("postgres", ping_db), ("redis", ping_redis)):
            try:
                await ping()
                checks[name] = True
            except Exception as e:
                logger.warning(f"Readiness check {name} failed: {e}")
                checks[name] = False
        ready = all(checks.values())
        return JSONResponse(status_code=200 if ready else 503, content={"ok": ready, **checks})

    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "catalog_sync.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
