"""HTTP helpers shared by the platform clients.

Plain functions rather than a base class: each client owns its own
``httpx.AsyncClient`` and decides which statuses mean what, and these
helpers map the common cases onto the error taxonomy.
"""

from __future__ import annotations

import re
import time
from datetime import datetime, timezone
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from reporadar.platforms.errors import (
    HttpError,
    InvalidResponse,
    InvalidToken,
    InvalidURL,
    NetworkError,
    NotFound,
    RateLimited,
)

USER_AGENT = "RepoRadar/1.0"
DEFAULT_TIMEOUT = 30.0
MAX_PER_PAGE = 100

_LAST_LINK_RE = re.compile(r'<([^>]+)>;\s*rel="last"')
_PAGE_PARAM_RE = re.compile(r"[?&]page=(\d+)")

ModelT = TypeVar("ModelT", bound=BaseModel)


def build_client(
    base_url: str,
    headers: dict[str, str],
    *,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=base_url,
        headers={"User-Agent": USER_AGENT, **headers},
        timeout=timeout or DEFAULT_TIMEOUT,
        # renamed or transferred repositories answer 301
        follow_redirects=True,
        transport=transport,
    )


def bearer(token: str | None) -> dict[str, str]:
    """Authorization header for *token*, or nothing when unset."""
    if token:
        return {"Authorization": f"Bearer {token}"}
    return {}


def clamp_per_page(per_page: int) -> int:
    return max(1, min(per_page, MAX_PER_PAGE))


async def send(
    client: httpx.AsyncClient,
    path: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """GET *path*; transport failures become :class:`NetworkError`.

    A body that fails content decoding (bad gzip, bad charset) is an
    :class:`InvalidResponse`; any other httpx failure, redirect loops
    included, is a :class:`NetworkError`.
    """
    try:
        return await client.get(path, params=params, headers=headers)
    except httpx.InvalidURL as exc:
        raise InvalidURL(str(exc)) from exc
    except httpx.DecodingError as exc:
        raise InvalidResponse(f"Undecodable response body: {exc}") from exc
    except httpx.HTTPError as exc:
        raise NetworkError(exc) from exc


def raise_for_status(response: httpx.Response) -> None:
    """Map a non-2xx *response* onto the error taxonomy."""
    status = response.status_code
    if 200 <= status < 300:
        return
    if status == 401:
        raise InvalidToken()
    if status in (403, 429):
        raise RateLimited(rate_limit_wait(response))
    if status == 404:
        raise NotFound()
    raise HttpError(status, error_message(response))


def decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise InvalidResponse(f"Unparseable response body (HTTP {response.status_code})") from exc


def parse_model(model: type[ModelT], data: Any) -> ModelT:
    """Validate *data* against *model*; shape mismatches become :class:`InvalidResponse`."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidResponse(f"Unexpected {model.__name__} payload: {exc.error_count()} error(s)") from exc


def parse_list(model: type[ModelT], data: Any) -> list[ModelT]:
    try:
        return TypeAdapter(list[model]).validate_python(data)
    except ValidationError as exc:
        raise InvalidResponse(f"Unexpected {model.__name__} list: {exc.error_count()} error(s)") from exc


def error_message(response: httpx.Response) -> str | None:
    """Extract the platform's own error message from a JSON body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for key in ("message", "error"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def rate_limit_wait(response: httpx.Response) -> int | None:
    """Seconds until the rate limit resets, from response headers."""
    # Prefer Retry-After (used for abuse/secondary rate limits)
    retry_after = parse_header_int(response.headers.get("Retry-After"))
    if retry_after is not None:
        return max(retry_after, 1)
    reset_ts = parse_header_int(
        response.headers.get("X-RateLimit-Reset") or response.headers.get("RateLimit-Reset")
    )
    if reset_ts is not None:
        return max(reset_ts - int(time.time()), 1)
    return None


def parse_header_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def last_page_number(response: httpx.Response) -> int | None:
    """Page number of the ``rel="last"`` entry in a ``Link`` header."""
    match = _LAST_LINK_RE.search(response.headers.get("Link", ""))
    if not match:
        return None
    page = _PAGE_PARAM_RE.search(match.group(1))
    return int(page.group(1)) if page else None


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) into aware UTC."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
