"""
Simulated Network Middleware

Makes the local API behave like a remote one:
- every /api request waits a random latency before it is handled
- mutating requests (POST/PUT/PATCH/DELETE) fail with probability
  `failure_rate`, returning 503 {"error": ..., "transient": true}

A simulated failure is returned before the handler runs, so nothing has been
applied and the caller can always retry. Route handlers never depend on the
delay.

Usage:
    app.add_middleware(
        SimulatedNetworkMiddleware,
        latency_ms=(200, 1200),
        failure_rate=0.1,
        seed=42,
    )
"""

import asyncio
import logging
import random
from typing import Callable, Optional, Tuple

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from talentflow.errors import TransientTransportError
from talentflow.middleware.metrics import record_simulated_failure, route_pattern

logger = logging.getLogger(__name__)

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class SimulatedNetworkMiddleware(BaseHTTPMiddleware):
    """
    Adds latency and transient failures to API requests.

    Attributes:
        latency_ms: (min, max) delay window in milliseconds
        failure_rate: Probability a mutating request fails, 0.0 - 1.0
        prefix: Only paths under this prefix are affected
    """

    def __init__(
        self,
        app: FastAPI,
        latency_ms: Tuple[int, int] = (200, 1200),
        failure_rate: float = 0.1,
        seed: Optional[int] = None,
        prefix: str = "/api",
    ):
        super().__init__(app)
        low, high = latency_ms
        self.latency_ms = (min(low, high), max(low, high))
        self.failure_rate = failure_rate
        self.prefix = prefix
        self.rng = random.Random(seed)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not request.url.path.startswith(self.prefix):
            return await call_next(request)

        delay = self.rng.uniform(*self.latency_ms) / 1000
        if delay > 0:
            await asyncio.sleep(delay)

        if request.method in MUTATING_METHODS and self.rng.random() < self.failure_rate:
            endpoint = route_pattern(request)
            record_simulated_failure(request.method, endpoint)
            logger.warning(f"Simulated transport failure: {request.method} {request.url.path}")
            error = TransientTransportError(f"Failed to {request.method} {endpoint}, please retry")
            return JSONResponse(error.to_dict(), status_code=error.status_code)

        return await call_next(request)
