"""
Generic relay from the analyzer API to the external backend.

Every proxy route is a call to :func:`relay` parameterized by the upstream
method and path, the query parameters, an optional body model used to reject
malformed requests early, and the response mode:

- ``json``: the backend JSON body and status code are relayed verbatim
- ``file``: the backend bytes are relayed with its Content-Type and
  Content-Disposition headers

Failures follow one policy: a backend error status is turned into
``{"success": false, "error": ...}`` with that status, and any transport or
parse failure becomes HTTP 500 ``{"success": false, "error": "Internal server error"}``
with the details kept in the server log.
"""

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import Any, Dict, Literal, Optional, Type

import httpx
from fastapi import Request
from fastapi.responses import ORJSONResponse, Response
from pydantic import BaseModel, ValidationError

from .logger import get_logger
from .settings import ProxySettings, get_settings

logger = get_logger(__name__)

INTERNAL_ERROR = "Internal server error"
BACKEND_ERROR = "Backend error"

RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

ResponseMode = Literal["json", "file"]


def error_response(status_code: int, error: str) -> ORJSONResponse:
    """Build the uniform failure envelope."""
    return ORJSONResponse(status_code=status_code, content={"success": False, "error": error})


def validation_message(exc: ValidationError) -> str:
    """Flatten a pydantic ValidationError into one readable line."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "Invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request"


class RetryPolicy:
    """Exponential backoff with full jitter for transient upstream failures.

    Transport errors (connect failures, timeouts) and 429/502/503/504 replies
    are retried up to ``max_retries`` times. With ``max_retries=0`` the first
    outcome is final.
    """

    def __init__(
        self,
        max_retries: int = 0,
        backoff: float = 0.5,
        max_delay: float = 8.0,
        sleep_fn: Callable[[float], Awaitable[None]] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.max_retries = max_retries
        self.backoff = backoff
        self.max_delay = max_delay
        self.sleep_fn = sleep_fn or asyncio.sleep
        self.rng = rng or random.Random()

    @classmethod
    def from_settings(cls, settings: ProxySettings) -> "RetryPolicy":
        return cls(
            max_retries=settings.max_retries,
            backoff=settings.retry_backoff,
            max_delay=settings.retry_max_delay,
        )

    def delay_for(self, attempt_index: int) -> float:
        ceiling = min(self.max_delay, self.backoff * (2 ** attempt_index))
        return self.rng.uniform(0, ceiling)

    async def execute(self, operation: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        retries = 0
        while True:
            try:
                response = await operation()
            except httpx.TransportError as e:
                if retries >= self.max_retries:
                    raise
                reason = f"{type(e).__name__}: {e}"
            else:
                if response.status_code not in RETRYABLE_STATUS_CODES or retries >= self.max_retries:
                    return response
                reason = f"status {response.status_code}"

            delay = self.delay_for(retries)
            retries += 1
            logger.warning(
                "Upstream attempt %d/%d failed (%s), retrying in %.2fs",
                retries, self.max_retries + 1, reason, delay,
            )
            await self.sleep_fn(delay)


def _create_client(settings: ProxySettings) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=settings.backend_url, timeout=settings.timeout)


def _backend_error(data: Any) -> str:
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return BACKEND_ERROR


def _file_response(upstream: httpx.Response) -> Response:
    # Headers are passed explicitly so Starlette does not append a charset.
    return Response(
        content=upstream.content,
        status_code=200,
        headers={
            "content-type": upstream.headers.get("content-type", "application/octet-stream"),
            "content-disposition": upstream.headers.get("content-disposition", "attachment"),
        },
    )


async def relay(
    request: Request,
    method: str,
    path: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    body_model: Optional[Type[BaseModel]] = None,
    mode: ResponseMode = "json",
    settings: Optional[ProxySettings] = None,
) -> Response:
    """Forward one request to the backend and relay exactly one response."""
    settings = settings or get_settings()
    method = method.upper()

    try:
        body = await request.json() if method in BODY_METHODS else None

        if body_model is not None:
            try:
                body_model.model_validate(body)
            except ValidationError as e:
                logger.info("Rejected %s %s: %s", method, path, validation_message(e))
                return error_response(400, validation_message(e))

        policy = RetryPolicy.from_settings(settings)
        async with _create_client(settings) as client:
            logger.info("Relaying %s %s%s", method, settings.backend_url, path)
            upstream = await policy.execute(
                lambda: client.request(method, path, params=params, json=body)
            )

        if mode == "file" and upstream.is_success:
            return _file_response(upstream)

        data = upstream.json()
        if not upstream.is_success:
            logger.warning("Backend replied %d to %s %s", upstream.status_code, method, path)
            return error_response(upstream.status_code, _backend_error(data))

        return ORJSONResponse(status_code=upstream.status_code, content=data)

    except Exception:
        logger.exception("Proxy call %s %s failed", method, path)
        return error_response(500, INTERNAL_ERROR)
