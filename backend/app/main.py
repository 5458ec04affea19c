"""
recipe-planner: FastAPI backend for weekly meal-prep outputs.

Run with: uvicorn app.main:app --reload

Architecture:
- Recipes are DAGs of product nodes and steps, stored as flat record tables
- The aggregation engine derives shopping, batch prep, storage and flow views
- Per-meal variant overrides are applied before aggregation
- The record store (production or test) is chosen once from settings
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.api import health
from app.api import outputs as outputs_api
from app.api import variants as variants_api

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info(f"Starting recipe-planner backend ({settings.database} database)...")
    if settings.database == "test" and not settings.supabase_test_url:
        logger.warning("DATABASE=test but SUPABASE_TEST_URL is not set, using the main record store")

    yield

    logger.info("Shutting down recipe-planner backend...")


app = FastAPI(
    title="recipe-planner",
    description="Weekly meal planning outputs: shopping, batch prep, storage and flow",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS - allow frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

PUBLIC_PATHS = ["/", "/health", "/health/detailed", "/health/ready", "/docs", "/openapi.json", "/redoc"]


@app.middleware("http")
async def verify_api_key(request: Request, call_next):
    """Verify API key for protected endpoints."""
    if request.url.path in PUBLIC_PATHS:
        return await call_next(request)

    expected_key = get_settings().api_key

    # If no key configured, allow all (dev mode)
    if not expected_key:
        return await call_next(request)

    if request.headers.get("X-API-Key") != expected_key:
        client_host = request.client.host if request.client else "unknown"
        logger.warning(f"Invalid API key attempt from {client_host}")
        return JSONResponse(
            status_code=401,
            content={"detail": "Invalid or missing API key"}
        )

    return await call_next(request)


# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(outputs_api.router)  # /api/outputs
app.include_router(variants_api.router)  # /api/variants


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "recipe-planner",
        "version": "0.1.0",
        "description": "Recipe graph aggregation API for weekly meal prep",
        "database": settings.database,
        "docs": "/docs",
        "endpoints": {
            "health": "/health",
            "outputs": "/api/outputs",
            "variants": "/api/variants",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=not settings.is_production,
    )
