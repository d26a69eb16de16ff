"""Request observability: Prometheus metrics for the reflection endpoint.

Request metrics are labelled with the matched route template rather than the
raw URL, so arbitrary paths sent by clients cannot grow the registry. Paths no
route recognises share the single ``unmatched`` label.
"""
from typing import Optional
import time

from fastapi import APIRouter, Request
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

UNMATCHED_ROUTE = "unmatched"

request_counter = Counter(
    "reflection_http_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)

request_latency = Histogram(
    "reflection_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "route"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 20),
)

rejected_requests = Counter(
    "reflection_rejected_requests_total",
    "Reflection requests rejected before generation",
    ["reason"],
)

external_call_outcomes = Counter(
    "reflection_external_call_outcomes_total",
    "External provider call outcomes",
    ["system", "result"],
)

strategy_served = Counter(
    "reflection_strategy_served_total",
    "Reflections served per generation strategy",
    ["strategy"],
)

metrics_router = APIRouter()


@metrics_router.get("/metrics")
async def metrics_endpoint():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def route_label(request: Request) -> str:
    """Template of the route that handled ``request``, or ``unmatched``."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path if isinstance(path, str) else UNMATCHED_ROUTE


def record_request_metrics(request: Request, status_code: int, duration: float):
    route = route_label(request)
    method = request.method
    request_counter.labels(method=method, route=route, status=str(status_code)).inc()
    request_latency.labels(method=method, route=route).observe(duration)


def record_rejection(reason: str):
    rejected_requests.labels(reason=reason).inc()


def record_external_call(system: str, result: str):
    external_call_outcomes.labels(system=system, result=result).inc()


def record_strategy_served(strategy: str):
    strategy_served.labels(strategy=strategy).inc()


def request_timer() -> float:
    return time.perf_counter()


def elapsed(start_time: Optional[float]) -> float:
    if start_time is None:
        return 0.0
    return time.perf_counter() - start_time
