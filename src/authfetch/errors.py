from __future__ import annotations

import httpx


class AuthFetchError(RuntimeError):
    """Base class for errors raised by authfetch."""


class TransportError(AuthFetchError):
    """Raised when a call fails at the network level or with a non-2xx status."""


class ApiError(TransportError):
    """Raised when the API answers with a non-2xx status."""

    def __init__(self, message: str, response: httpx.Response) -> None:
        super().__init__(message)
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code


class UnauthorizedError(ApiError):
    """Raised on a 401 answer."""


class AuthenticationError(AuthFetchError):
    """Raised when credentials are rejected at login."""


class SessionExpiredError(AuthFetchError):
    """Raised when the session cannot be refreshed and must be re-established.

    When raised for a failed request, ``original`` holds that request's 401.
    """

    def __init__(self, message: str, original: UnauthorizedError | None = None) -> None:
        super().__init__(message)
        self.original = original


class InvalidSessionResponseError(AuthFetchError):
    """Raised when the server returns a token pair missing one of the tokens."""
