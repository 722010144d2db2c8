"""
Prometheus request metrics for the TalentFlow API

Each request is labelled with the route template it matched
(`/api/jobs/{job_id}/reorder`), not the concrete path, so job and candidate
ids never become label values. The simulated network reports the failures it
injects through `record_simulated_failure()`.

Usage:
    from talentflow.middleware.metrics import setup_metrics

    app = FastAPI()
    setup_metrics(app)   # adds the middleware and GET /metrics
"""

import logging
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

logger = logging.getLogger(__name__)

# Spans the default 200-1200ms simulated latency window
LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.2, 0.4, 0.6, 0.8, 1.2, 2.0, 5.0)

REQUEST_LATENCY = Histogram(
    "talentflow_request_seconds",
    "Time to serve a request, simulated latency included",
    ["method", "route", "status"],
    buckets=LATENCY_BUCKETS,
)

REQUEST_COUNT = Counter(
    "talentflow_requests_total",
    "Requests served",
    ["method", "route", "status"],
)

IN_FLIGHT = Gauge(
    "talentflow_requests_in_flight",
    "Requests currently being served",
    ["method", "route"],
)

SIMULATED_FAILURES = Counter(
    "talentflow_simulated_failures_total",
    "Mutations failed on purpose by the simulated network",
    ["method", "route"],
)

UNMETERED_ROUTES = frozenset({"/metrics", "/health"})


def route_pattern(request: Request) -> str:
    """Template of the route the request will hit, or its raw path if none matches."""
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match is Match.FULL:
            return getattr(route, "path", request.url.path)
    return request.url.path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Records latency, count and in-flight gauge per (method, route)."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        route = route_pattern(request)
        if route in UNMETERED_ROUTES:
            return await call_next(request)

        method = request.method
        status = "500"
        IN_FLIGHT.labels(method, route).inc()
        started = time.perf_counter()
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        except Exception as e:
            logger.error(f"{method} {route} raised {type(e).__name__}: {e}")
            raise
        finally:
            REQUEST_LATENCY.labels(method, route, status).observe(time.perf_counter() - started)
            REQUEST_COUNT.labels(method, route, status).inc()
            IN_FLIGHT.labels(method, route).dec()


def metrics_endpoint(request: Request) -> Response:
    return PlainTextResponse(generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


def setup_metrics(app: FastAPI) -> None:
    app.add_middleware(PrometheusMiddleware)
    app.add_route("/metrics", metrics_endpoint, methods=["GET"])
    logger.debug("Prometheus metrics mounted at /metrics")


def record_simulated_failure(method: str, route: str) -> None:
    SIMULATED_FAILURES.labels(method, route).inc()
