"""Generation API endpoint: forwards a parameter sweep request to the backend."""

from fastapi import APIRouter, Request

from .schemas import GenerationRequest
from .shared.relay import relay

router = APIRouter(tags=["generate"])


@router.post("/generate")
async def generate(request: Request):
    """Validate a GenerationRequest body and forward it unchanged.

    The backend runs the sweep, scores the responses and replies with the
    stored experiment inside an ``ApiResponse`` envelope.
    """
    return await relay(request, "POST", "/api/generate", body_model=GenerationRequest)
