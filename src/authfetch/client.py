from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

import httpx

from .config import Settings
from .errors import SessionExpiredError, UnauthorizedError
from .models import User
from .refresh import RefreshCoordinator
from .session import SessionStore
from .storage import CredentialStorage, FileCredentialStorage
from .transport import Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AuthenticatedClient:
    """HTTP call surface that injects the current bearer token and recovers from 401s."""

    def __init__(
        self,
        settings: Settings,
        store: SessionStore | None = None,
        *,
        storage: CredentialStorage | None = None,
        transport: Transport | None = None,
    ) -> None:
        self.settings = settings
        self.transport = transport or (store.transport if store else Transport(settings))
        self.store = store or SessionStore(
            settings, storage or FileCredentialStorage(settings.session_file), self.transport
        )
        self.coordinator = RefreshCoordinator(self.store)

    async def request(  # noqa: PLR0913
        self,
        path: str,
        method: str = "GET",
        *,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        async def send() -> httpx.Response:
            return await self.transport.request(
                method,
                path,
                token=self.store.access_token,
                json=json,
                params=params,
                headers=headers,
            )

        return await self._with_recovery(send)

    async def get_json(self, path: str, **kwargs: Any) -> Any:
        resp = await self.request(path, "GET", **kwargs)
        return resp.json()

    async def fetch_user(self) -> User:
        return await self._with_recovery(self.store.fetch_user)

    async def _with_recovery(self, send: Callable[[], Awaitable[T]]) -> T:
        """Run ``send``; after a 401, refresh once and retry it exactly once."""
        sent_token = self.store.access_token
        try:
            return await send()
        except UnauthorizedError as exc:
            await self._recover(sent_token, exc)
        return await send()

    async def _recover(self, sent_token: str | None, exc: UnauthorizedError) -> None:
        current = self.store.access_token
        if current is not None and current != sent_token:
            logger.debug("Token changed while the request was in flight, retrying")
            return
        if not self.store.refresh_token:
            if sent_token is not None and current is None:
                # The session this request carried was torn down by a failed refresh.
                raise SessionExpiredError(
                    "Session expired while the request was in flight", original=exc
                )
            raise exc
        try:
            await self.coordinator.coordinate_refresh()
        except Exception as refresh_exc:
            raise SessionExpiredError(
                "Session expired and could not be refreshed", original=exc
            ) from refresh_exc
