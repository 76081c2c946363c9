from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import ValidationError

from .config import Settings
from .errors import (
    ApiError,
    AuthenticationError,
    InvalidSessionResponseError,
    SessionExpiredError,
    TransportError,
)
from .models import Credentials, Session, TokenPair, User
from .storage import CredentialStorage
from .transport import Transport

logger = logging.getLogger(__name__)

_REJECTED = {
    httpx.codes.BAD_REQUEST,
    httpx.codes.UNAUTHORIZED,
    httpx.codes.FORBIDDEN,
}


def _json_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise InvalidSessionResponseError(f"Expected a JSON body, got: {resp.text!r}") from exc


class SessionStore:
    """Owns the session of the logged-in user and keeps storage in step with it.

    Only this class mutates tokens or the user record; everything else reads
    them through the properties below.
    """

    def __init__(
        self, settings: Settings, storage: CredentialStorage, transport: Transport | None = None
    ) -> None:
        self.settings = settings
        self.storage = storage
        self.transport = transport or Transport(settings)
        self._session = Session()
        tokens = storage.load()
        if tokens is not None:
            self._session.access_token = tokens.access_token
            self._session.refresh_token = tokens.refresh_token

    @property
    def access_token(self) -> str | None:
        return self._session.access_token

    @property
    def refresh_token(self) -> str | None:
        return self._session.refresh_token

    @property
    def user(self) -> User | None:
        return self._session.user

    @property
    def is_logged_in(self) -> bool:
        return self._session.is_logged_in

    def snapshot(self) -> Session:
        return self._session.copy()

    def set_session(
        self, tokens: TokenPair | Mapping[str, Any], user: User | None = None
    ) -> TokenPair:
        """Install a token pair (and optionally the user) in memory, then in storage.

        Raises InvalidSessionResponseError and changes nothing unless both tokens
        are present. If the storage write fails, memory is rolled back.
        """
        pair = TokenPair.from_payload(dict(tokens) if isinstance(tokens, Mapping) else tokens)
        previous = self._session.copy()
        self._session.access_token = pair.access_token
        self._session.refresh_token = pair.refresh_token
        if user is not None:
            self._session.user = user
        try:
            self.storage.save(pair)
        except Exception:
            self._session = previous
            raise
        return pair

    def clear_session(self) -> None:
        """Drop tokens and user from storage, then memory. Safe to call repeatedly."""
        try:
            self.storage.delete()
        except Exception as exc:
            logger.warning("Could not remove persisted session: %s", exc)
        self._session = Session()

    async def login(self, credentials: Credentials | Mapping[str, Any]) -> User:
        if not isinstance(credentials, Credentials):
            credentials = Credentials.model_validate(credentials)
        try:
            resp = await self.transport.request(
                "POST", self.settings.login_endpoint, json=credentials.body()
            )
        except ApiError as exc:
            if exc.status_code in _REJECTED:
                raise AuthenticationError(f"Login rejected ({exc.status_code})") from exc
            raise
        tokens = TokenPair.from_payload(_json_body(resp))
        user = await self._get_user(tokens.access_token)
        self.set_session(tokens, user=user)
        logger.info("Logged in as %s", user.email or user.id)
        return user

    async def refresh_session(self) -> None:
        refresh_token = self.refresh_token
        if not refresh_token:
            raise SessionExpiredError("No refresh token available")
        try:
            resp = await self.transport.request(
                "POST",
                self.settings.refresh_endpoint,
                json={"refreshToken": refresh_token},
            )
        except ApiError as exc:
            if httpx.codes.is_client_error(exc.status_code):
                raise SessionExpiredError(f"Refresh rejected ({exc.status_code})") from exc
            raise
        self.set_session(_json_body(resp))
        logger.debug("Session refreshed")

    async def fetch_user(self) -> User:
        user = await self._get_user(self.access_token)
        self._session.user = user
        return user

    async def _get_user(self, token: str | None) -> User:
        resp = await self.transport.request("GET", self.settings.user_endpoint, token=token)
        try:
            return User.model_validate(_json_body(resp))
        except ValidationError as exc:
            raise InvalidSessionResponseError(f"Malformed user record: {exc}") from exc

    async def logout(self) -> str:
        """End the session locally even when the server cannot be told.

        Returns the path callers should navigate to afterwards.
        """
        try:
            await self.transport.request(
                "POST", self.settings.logout_endpoint, token=self.access_token
            )
        except TransportError as exc:
            logger.warning("Logout call failed, clearing local session anyway: %s", exc)
        finally:
            self.clear_session()
        return self.settings.login_path
