"""
FastAPI application entry point for the Tour Resolver.
"""

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from tour_resolver.api.dependencies import close_resources
from tour_resolver.api.error_handlers import EXCEPTION_HANDLERS
from tour_resolver.api.middleware import RequestTracingMiddleware
from tour_resolver.api.routes import router
from tour_resolver.config import settings
from tour_resolver.logging_config import configure_logging
from tour_resolver.persistence.redis_client import ping as redis_ping

configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT, settings.APP_VERSION)
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Tour Resolver",
    description="Turns a destination into a tour of landmarks with resolved coordinates",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Request tracing first so request_id is bound for every log line
app.add_middleware(RequestTracingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(router)


@app.on_event("startup")
async def startup():
    logger.info(
        "Application startup",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        model=settings.GEMINI_MODEL,
        health_store=settings.HEALTH_STORE_BACKEND,
        persistence_enabled=settings.PERSISTENCE_ENABLED,
    )
    if not settings.GOOGLE_MAPS_API_KEY:
        logger.warning("GOOGLE_MAPS_API_KEY not set, places and geocoding layers will fail")
    if not settings.GOOGLE_AI_API_KEY:
        logger.warning("GOOGLE_AI_API_KEY not set, landmark suggestions will fail")
    if settings.PERSISTENCE_ENABLED or settings.HEALTH_STORE_BACKEND.lower() == "redis":
        if redis_ping(settings):
            logger.info("Redis connection successful", redis_url=settings.REDIS_URL)
        else:
            logger.warning("Redis unreachable, tours will not be stored", redis_url=settings.REDIS_URL)


@app.on_event("shutdown")
async def shutdown():
    logger.info("Application shutdown")
    await close_resources()
    logger.info("Application shutdown complete")


if settings.PROMETHEUS_ENABLED:
    Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("tour_resolver.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
