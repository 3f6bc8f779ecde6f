"""
Experiment history API endpoints.

Pass-through routes to the backend experiment store:
- List experiments (paginated)
- Delete an experiment by id
"""

from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Request

from .shared.relay import error_response, relay

router = APIRouter(prefix="/experiments", tags=["experiments"])


def _experiment_path(experiment_id: str) -> str:
    return f"/api/experiments/{quote(experiment_id, safe='')}"


@router.get("")
async def list_experiments(request: Request, page: str = "1", limit: str = "10"):
    """List stored experiments, one page at a time."""
    return await relay(
        request,
        "GET",
        "/api/experiments",
        params={"page": page or "1", "limit": limit or "10"},
    )


@router.delete("")
async def delete_experiment(request: Request, id: Optional[str] = None):
    """Delete the experiment named by the ``id`` query parameter."""
    if not id:
        return error_response(400, "Missing experiment ID")
    return await relay(request, "DELETE", _experiment_path(id))


@router.delete("/{experiment_id}")
async def delete_experiment_by_path(request: Request, experiment_id: str):
    """Path form of the delete route, used by older history views."""
    return await relay(request, "DELETE", _experiment_path(experiment_id))
