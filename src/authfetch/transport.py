from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from .config import Settings
from .context import current_request
from .errors import ApiError, TransportError, UnauthorizedError

logger = logging.getLogger(__name__)


class Transport:
    """Issues one HTTP call against the API with the standard request headers."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def headers(self, token: str | None = None) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Origin": self.settings.app_url,
            "Referer": self.settings.app_url,
            "User-Agent": self.settings.user_agent,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        incoming = current_request()
        if incoming is not None and incoming.cookie:
            headers["Cookie"] = incoming.cookie
        return headers

    async def request(  # noqa: PLR0913
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        merged = httpx.Headers(headers or {})
        # Standard headers win over caller headers of any case.
        merged.update(self.headers(token))
        logger.debug("%s %s", method, path)
        try:
            async with httpx.AsyncClient(
                base_url=self.settings.api_url, timeout=self.settings.timeout
            ) as client:
                resp = await client.request(
                    method, path, json=json, params=params, headers=merged
                )
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        if resp.status_code == httpx.codes.UNAUTHORIZED:
            raise UnauthorizedError(f"{method} {path} unauthorized: {resp.text}", resp)
        if resp.is_error:
            raise ApiError(f"{method} {path} HTTP error {resp.status_code}: {resp.text}", resp)
        return resp
