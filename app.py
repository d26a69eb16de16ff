#!/usr/bin/env python3
"""
Journal reflection service
FastAPI application drafting a reflection and next action for a journal entry
"""

import os
from datetime import datetime, UTC
from typing import Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_config
from reflection.errors import ReflectionError
from reflection.logging_utils import get_logger
from reflection.observability import elapsed, metrics_router, record_rejection, record_request_metrics, request_timer
from reflection.service import ReflectionService

# Initialize logger
logger = get_logger(__name__)

REFLECTION_PATH = "/generate-reflection"
# Path the hosted clients already call
FUNCTIONS_REFLECTION_PATH = "/functions/v1/generate-reflection"

ALLOWED_METHODS = "POST, OPTIONS"
ALLOWED_HEADERS = "authorization, x-client-info, apikey, content-type"

# Initialize FastAPI app
app = FastAPI(
    title="Journal Reflection Service",
    description="Drafts an empathetic reflection and a suggested next action from a journal entry",
    version="1.0.0"
)
app.include_router(metrics_router)

# Global state
config = get_config()
reflection_service = ReflectionService.from_config(config)


def cors_headers(origin: Optional[str]) -> Dict[str, str]:
    """Permissive cross-origin headers for the web and mobile clients."""
    allowed = config.ALLOWED_ORIGINS
    headers = {
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
    }
    if "*" in allowed:
        headers["Access-Control-Allow-Origin"] = "*"
    elif origin and origin in allowed:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"
    else:
        headers["Access-Control-Allow-Origin"] = allowed[0]
    return headers


def error_response(
    request: Request,
    message: str,
    status_code: int,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    merged = dict(headers or {})
    merged.update(cors_headers(request.headers.get("origin")))
    return JSONResponse({"error": message}, status_code=status_code, headers=merged)


@app.middleware("http")
async def apply_cors_and_metrics(request: Request, call_next):
    start_time = request_timer()
    response = await call_next(request)
    for key, value in cors_headers(request.headers.get("origin")).items():
        response.headers[key] = value
    record_request_metrics(request, response.status_code, elapsed(start_time))
    return response


@app.exception_handler(ReflectionError)
async def reflection_error_handler(request: Request, exc: ReflectionError):
    if exc.status_code < 500:
        record_rejection(exc.reason)
    logger.warning(f"Rejected reflection request: {exc.message}", extra={"extra_data": {"status_code": exc.status_code}})
    return error_response(request, exc.message, exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
    return error_response(request, message, exc.status_code, getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected reflection failure: {exc}", exc_info=exc)
    return error_response(request, "Internal server error", 500)


# Reflection endpoint
@app.api_route(REFLECTION_PATH, methods=["POST", "OPTIONS"])
@app.api_route(FUNCTIONS_REFLECTION_PATH, methods=["POST", "OPTIONS"])
async def generate_reflection(request: Request):
    """Generate a reflection and suggested action for one journal entry"""
    if request.method == "OPTIONS":
        return Response(status_code=204)

    body = await request.body()
    result = await reflection_service.handle(body)
    return JSONResponse(result.to_payload(), status_code=200)


@app.get("/api/health")
@app.get("/health")  # Support both routes
async def health_check():
    """Health check endpoint"""
    return {
        "ok": True,
        "timestamp": datetime.now(UTC).isoformat(),
        "external_provider": config.external_provider_configured,
        "strategies": reflection_service.strategy_names,
    }


# Startup event
@app.on_event("startup")
async def startup_event():
    """Log the active strategy chain on startup"""
    logger.info(
        f"Starting journal reflection service with strategies: {', '.join(reflection_service.strategy_names)}"
    )


if __name__ == "__main__":
    port = int(os.getenv("PORT", config.PORT))
    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=port,
        reload=config.APP_ENV == "development"
    )
