"""
Async HTTP client for the analyzer API.

This is the browser's side of the proxy routes: the view models in this
package call it instead of talking to the backend directly.
"""

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from api.schemas import (
    ApiResponse,
    ExperimentData,
    ExperimentList,
    ExportRequest,
    GenerationRequest,
)
from api.shared.logger import get_logger

logger = get_logger(__name__)

DEFAULT_API_URL = "http://localhost:8000"


class AnalyzerClientError(Exception):
    """The analyzer API answered with a non-2xx status."""

    def __init__(self, status_code: int, error: str):
        self.status_code = status_code
        self.error = error
        super().__init__(f"HTTP {status_code}: {error}")


@dataclass
class ExportedFile:
    """An export as relayed by ``POST /api/export``."""
    content: bytes
    content_type: str
    content_disposition: str


def _error_text(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return response.reason_phrase


class AnalyzerClient:
    """Thin async wrapper over the analyzer's ``/api`` routes.

    Args:
        base_url: Where the analyzer API is served.
        transport: Optional httpx transport (tests pass an ``httpx.MockTransport``).
        timeout: Seconds per request, ``None`` to wait indefinitely.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "AnalyzerClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = await self._client.request(method, path, **kwargs)
        if not response.is_success:
            raise AnalyzerClientError(response.status_code, _error_text(response))
        return response

    async def generate(self, request: GenerationRequest) -> ApiResponse[ExperimentData]:
        response = await self._request("POST", "/api/generate", json=request.to_dict())
        return ApiResponse[ExperimentData].model_validate(response.json())

    async def list_experiments(self, page: int = 1, limit: int = 10) -> ApiResponse[ExperimentList]:
        response = await self._request(
            "GET", "/api/experiments", params={"page": str(page), "limit": str(limit)}
        )
        return ApiResponse[ExperimentList].model_validate(response.json())

    async def delete_experiment(self, experiment_id: str) -> ApiResponse[Any]:
        response = await self._request("DELETE", "/api/experiments", params={"id": experiment_id})
        return ApiResponse[Any].model_validate(response.json())

    async def export_experiment(
        self,
        experiment_id: str,
        format: str,
        include_metrics: bool = True,
        include_details: bool = False,
    ) -> ExportedFile:
        body = ExportRequest(
            experiment_id=experiment_id,
            format=format,
            include_metrics=include_metrics,
            include_details=include_details,
        )
        response = await self._request("POST", "/api/export", json=body.to_dict())
        return ExportedFile(
            content=response.content,
            content_type=response.headers.get("content-type", "application/octet-stream"),
            content_disposition=response.headers.get("content-disposition", "attachment"),
        )
