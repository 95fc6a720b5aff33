import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from user_service.config import settings
from user_service.core.dependencies import REQUEST_ID_HEADER, resolve_request_id
from user_service.core.error_handlers import register_exception_handlers
from user_service.core.rate_limit import limiter
from user_service.database import get_db
from user_service.routers import users

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Startup tasks
# ---------------------------------------------------------------------------
async def _prepare_database() -> None:
    """Create tables and seed sample users when configured (local runs)."""
    from user_service.database import Base, async_session, engine
    from user_service.services.user_domain_service import seed_sample_users

    import user_service.models  # noqa: F401  populate Base.metadata

    if settings.AUTO_CREATE_TABLES:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    if settings.SEED_SAMPLE_DATA:
        async with async_session() as db:
            count = await seed_sample_users(db)
            await db.commit()
            logger.info("Sample data: %d users inserted", count)


# ---------------------------------------------------------------------------
# Lifespan context manager
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan: runs on startup and shutdown."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    await _prepare_database()
    logger.info("User Service API started")
    yield
    from user_service.database import engine

    await engine.dispose()
    logger.info("User Service API shutting down")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------
app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    description="Household allowance app - user management service",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
)


# -- Middleware ---------------------------------------------------------------
@app.middleware("http")
async def attach_request_id(request: Request, call_next):
    """Tag every request with a correlation id and echo it back."""
    request_id = resolve_request_id(request)
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", REQUEST_ID_HEADER],
    expose_headers=[REQUEST_ID_HEADER, "Location"],
)

# -- Rate limiting and error envelopes ----------------------------------------
app.state.limiter = limiter
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------
@app.get("/health", tags=["health"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """Health check with DB connectivity verification."""
    checks: dict[str, str] = {"db": "ok"}

    try:
        await db.execute(select(1))
    except Exception:
        logger.warning("Health check: database unreachable")
        checks["db"] = "error"

    degraded = any(v == "error" for v in checks.values())
    return {"status": "degraded" if degraded else "ok", "app": settings.APP_NAME, **checks}


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(users.router, prefix=settings.API_V1_PREFIX)
