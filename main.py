"""
FastAPI backend for the AI response quality analyzer.

This module assembles the web API in front of the external generation
backend: proxy routes for generation, experiment history and export,
local parameter helpers, and health/system information.
"""

import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.shared.logger import get_logger, setup_logging
from api.shared.relay import INTERNAL_ERROR, error_response, validation_message
from api.shared.settings import get_settings

setup_logging(os.environ.get("ANALYZER_LOG_LEVEL", "INFO"))
logger = get_logger(__name__)

from api.experiments import router as experiments_router
from api.export import router as export_router
from api.generate import router as generate_router
from api.parameters import router as parameters_router
from api.system import router as system_router

# Create FastAPI app
app = FastAPI(
    title="Response Analyzer API",
    description="Experiment with LLM generation parameters and compare response quality",
    version="1.0.0",
    default_response_class=ORJSONResponse,
)


# ============= Exception Handlers =============


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Return HTTP errors in the ApiResponse envelope."""
    if exc.status_code >= 500:
        logger.error("%s failed: %s", request.url.path, exc.detail)
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed query or body parameters are client errors."""
    message = validation_message(exc)
    logger.info("Invalid request to %s: %s", request.url.path, message)
    return error_response(400, message)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Log unexpected exceptions and hide their details from the caller."""
    logger.error(
        "Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc, exc_info=exc
    )
    return error_response(500, INTERNAL_ERROR)


# Browser front-ends are served from another origin during development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using allow_origins=["*"]
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include API routes
app.include_router(generate_router, prefix="/api", tags=["generate"])
app.include_router(experiments_router, prefix="/api", tags=["experiments"])
app.include_router(export_router, prefix="/api", tags=["export"])
app.include_router(parameters_router, prefix="/api", tags=["parameters"])
app.include_router(system_router, prefix="/api", tags=["system"])


# ============= Startup Events =============


@app.on_event("startup")
async def startup_event():
    """Log the upstream configuration once the app is up."""
    settings = get_settings()
    logger.info("Response analyzer starting...")
    logger.info("Backend: %s (timeout=%s, retries=%d)",
                settings.backend_url, settings.timeout, settings.max_retries)


@app.get("/")
async def root():
    """Entry point listing the API surface."""
    return {
        "message": "Response analyzer API",
        "docs": "/docs",
        "health": "/api/health",
    }


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Response analyzer server")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("ANALYZER_PORT", 8000)),
        help="Port to run the server on (default: 8000 or ANALYZER_PORT env var)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--reload",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Enable auto-reload (default: off)",
    )
    args = parser.parse_args()

    uvicorn.run(
        "main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )
