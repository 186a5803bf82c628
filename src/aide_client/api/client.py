# src/aide_client/api/client.py

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx

from ..core.errors import ApiError, AuthError, NetworkError

logger = logging.getLogger(__name__)

AUTH_STATUSES = frozenset({401, 403})

# Plain-text error bodies longer than this are treated as noise (HTML error pages, traces).
_MAX_TEXT_MESSAGE = 300

TokenProvider = Callable[[], str | None]


def _make_timeout(connect_s: float, read_s: float) -> httpx.Timeout:
    return httpx.Timeout(
        connect=connect_s,
        read=read_s,
        write=10.0,
        pool=connect_s,
    )


def _generic_message(status: int) -> str:
    return f"Request failed (HTTP {status})"


def extract_error_message(resp: httpx.Response) -> str:
    """
    Best-effort human message for a non-2xx response.

    Order: JSON {"message": ...} -> short plain-text body -> generic fallback.
    """
    try:
        data = resp.json()
    except ValueError:
        text = (resp.text or "").strip()
        if text and len(text) <= _MAX_TEXT_MESSAGE and not text.startswith("<"):
            return text
        return _generic_message(resp.status_code)

    if isinstance(data, dict):
        msg = data.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    elif isinstance(data, str) and data.strip():
        return data.strip()
    return _generic_message(resp.status_code)


class ApiClient:
    """
    Single entry point for backend calls.

    - JSON in, JSON out.
    - Bearer token attached only when auth_required and a token is present.
    - Failures are normalized into NetworkError / AuthError / ApiError.
    - No retries.
    """

    def __init__(
            self,
            base_url: str,
            token_provider: TokenProvider,
            *,
            connect_timeout: float = 5.0,
            read_timeout: float = 30.0,
            transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token_provider = token_provider
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/",
            timeout=_make_timeout(connect_timeout, read_timeout),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @classmethod
    def from_settings(
            cls,
            settings,
            token_provider: TokenProvider,
            *,
            transport: httpx.AsyncBaseTransport | None = None,
    ) -> ApiClient:
        return cls(
            str(getattr(settings, "api_base_url", "http://127.0.0.1:3000/api")),
            token_provider,
            connect_timeout=float(getattr(settings, "connect_timeout", 5.0)),
            read_timeout=float(getattr(settings, "read_timeout", 30.0)),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def request(
            self,
            path: str,
            method: str = "GET",
            body: Any = None,
            auth_required: bool = True,
    ) -> Any:
        method = method.upper()
        url = path.lstrip("/")

        headers: dict[str, str] = {}
        token = self._token_provider() if auth_required else None
        if token:
            headers["Authorization"] = f"Bearer {token}"

        kwargs: dict[str, Any] = {"headers": headers}
        if body is not None:
            kwargs["json"] = body

        try:
            resp = await self._http.request(method, url, **kwargs)
        except httpx.RequestError as e:
            # Transport failures plus undecodable bodies and redirect loops.
            logger.warning("API %s /%s: request error (%s)", method, url, e.__class__.__name__)
            raise NetworkError() from e

        status = resp.status_code
        logger.debug("API %s /%s -> %s", method, url, status)

        if status in AUTH_STATUSES:
            raise AuthError(status, extract_error_message(resp), token=token or None)

        if not 200 <= status < 300:
            message = extract_error_message(resp)
            logger.info("API %s /%s failed: %s %s", method, url, status, message)
            raise ApiError(status, message)

        if status == 204 or not resp.content:
            return None

        try:
            return resp.json()
        except ValueError as e:
            logger.warning("API %s /%s: malformed JSON body", method, url)
            raise NetworkError("Malformed response from server.") from e
