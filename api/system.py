"""
System API routes for the response analyzer.

This module provides FastAPI routes for health and environment information.
"""

import platform
import sys
from importlib import metadata
from typing import Dict

from fastapi import APIRouter

from .shared.settings import get_settings

router = APIRouter()


def _get_package_versions() -> Dict[str, str]:
    """Get versions of the packages the proxy depends on."""
    packages = {}

    package_names = [
        "fastapi",
        "pydantic",
        "httpx",
        "orjson",
        "uvicorn",
        "aiofiles",
    ]

    for name in package_names:
        try:
            packages[name] = metadata.version(name)
        except metadata.PackageNotFoundError:
            pass

    return packages


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "message": "response analyzer is running",
    }


@router.get("/system/info")
async def system_info():
    """Get runtime information and the upstream configuration."""
    settings = get_settings()
    return {
        "python": {
            "version": sys.version,
            "platform": sys.platform,
        },
        "system": {
            "os": platform.system(),
            "release": platform.release(),
            "machine": platform.machine(),
        },
        "backend": {
            "url": settings.backend_url,
            "timeout": settings.timeout,
            "max_retries": settings.max_retries,
        },
        "packages": _get_package_versions(),
    }
