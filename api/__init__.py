"""
API package for the response analyzer FastAPI backend.

This package provides the REST API endpoints for:
- Generation requests forwarded to the backend (generate.py)
- Experiment history listing and deletion (experiments.py)
- Experiment export as JSON, CSV or PDF files (export.py)
- Parameter range defaults and previews (parameters.py)
- System health and info (system.py)

The data contract shared with the backend lives in schemas.py.
"""

from .schemas import (
    ApiResponse,
    ExperimentData,
    ExportRequest,
    GenerationRequest,
    InvalidParameterRangeError,
    ParameterRange,
    ResponseData,
)

__all__ = [
    "ApiResponse",
    "ExperimentData",
    "ExportRequest",
    "GenerationRequest",
    "InvalidParameterRangeError",
    "ParameterRange",
    "ResponseData",
]
