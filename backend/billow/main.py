"""FastAPI application entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from billow.api import api_router
from billow.billing.plans import seed_default_plans
from billow.config import get_settings
from billow.database import async_session, engine
from billow.middleware.error_handler import register_error_handlers
from billow.middleware.observability import ObservabilityMiddleware, configure_logging
from billow.models import Base

settings = get_settings()
configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
logger = structlog.get_logger()

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("startup", environment=settings.ENVIRONMENT)

    # Create tables and seed plans (in production, use alembic migrate instead)
    if settings.ENVIRONMENT == "development":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        async with async_session() as db:
            await seed_default_plans(db)
            await db.commit()

    yield

    await engine.dispose()
    logger.info("shutdown")


app = FastAPI(
    title="Billow API",
    description="Invoicing backend - clients, invoices, subscriptions and dashboard analytics",
    version=VERSION,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
)

# CORS
origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "X-Request-ID"],
)

app.add_middleware(ObservabilityMiddleware)

register_error_handlers(app)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "ok", "version": VERSION}
