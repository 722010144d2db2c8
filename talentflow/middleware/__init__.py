"""
Middleware Package

- metrics: Prometheus request metrics and the /metrics endpoint
- transport: simulated network latency and transient failures on /api
"""

from talentflow.middleware.metrics import (
    PrometheusMiddleware,
    setup_metrics,
    REQUEST_LATENCY,
    REQUEST_COUNT,
    IN_FLIGHT,
    SIMULATED_FAILURES,
)
from talentflow.middleware.transport import SimulatedNetworkMiddleware

__all__ = [
    "PrometheusMiddleware",
    "setup_metrics",
    "REQUEST_LATENCY",
    "REQUEST_COUNT",
    "IN_FLIGHT",
    "SIMULATED_FAILURES",
    "SimulatedNetworkMiddleware",
]
