"""Export API endpoint: relays experiment files (JSON, CSV, PDF) from the backend."""

from fastapi import APIRouter, Request

from .schemas import ExportRequest
from .shared.relay import relay

router = APIRouter(tags=["export"])


@router.post("/export")
async def export_experiment(request: Request):
    """Forward an ExportRequest and stream back the rendered file.

    On success the reply is the backend's raw bytes with its Content-Type
    and Content-Disposition headers, not a JSON envelope.
    """
    return await relay(request, "POST", "/api/export", body_model=ExportRequest, mode="file")
