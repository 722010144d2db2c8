"""
TalentFlow API - Main Application Entry Point

This module initializes the FastAPI application with:
- Document store creation and schema initialization
- Simulated network latency/failure for API routes
- Prometheus metrics
- CORS middleware for frontend communication
- API router registration and domain error rendering

Architecture:
    FastAPI App
    ├── Lifespan Management (startup/shutdown)
    ├── SimulatedNetworkMiddleware (/api only)
    ├── PrometheusMiddleware (/metrics)
    ├── CORS Middleware
    └── API Router (/api)
        ├── /jobs - Job CRUD, search and reorder
        ├── /candidates - Candidates, timeline and notes
        ├── /assessments - Assessment builder and submissions
        └── /stats - Dashboard statistics
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from talentflow.api import api_router
from talentflow.config import Settings, get_settings
from talentflow.database import DocumentStore
from talentflow.errors import InvalidInputError, TalentFlowError
from talentflow.middleware import SimulatedNetworkMiddleware, setup_metrics

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle events.

    Startup:
        1. Create tables in the document store

    Shutdown:
        1. Dispose of the store's connection pool

    Yields:
        Control to the application during its runtime
    """
    await app.state.store.create_all()
    yield
    await app.state.store.dispose()


async def talentflow_error_handler(request: Request, exc: TalentFlowError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed request bodies/params are InvalidInput (400), not 422
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    error = InvalidInputError(f"{location}: {first.get('msg', 'invalid request')}")
    body = {**error.to_dict(), "detail": jsonable_encoder(exc.errors())}
    return JSONResponse(body, status_code=error.status_code)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Explicit settings (defaults to environment / .env)
        store: Explicit document store (defaults to one built from settings)
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(
        title="TalentFlow API",
        description="Jobs, candidates and assessments over a local document store",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store or DocumentStore(settings.database_url)

    app.add_middleware(
        SimulatedNetworkMiddleware,
        latency_ms=(settings.latency_min_ms, settings.latency_max_ms),
        failure_rate=settings.failure_rate,
        seed=settings.network_seed,
    )
    setup_metrics(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TalentFlowError, talentflow_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(api_router)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()
