from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar

from pydantic import BaseModel


class IncomingRequest(BaseModel):
    """The inbound request a server-side call is made on behalf of."""

    cookie: str | None = None

    def cookies(self) -> dict[str, str]:
        parts: dict[str, str] = {}
        if not self.cookie:
            return parts
        for part in self.cookie.split(";"):
            if "=" not in part:
                continue
            name, value = part.split("=", 1)
            parts[name.strip()] = value.strip()
        return parts


_current: ContextVar[IncomingRequest | None] = ContextVar("incoming_request", default=None)


def current_request() -> IncomingRequest | None:
    return _current.get()


@contextmanager
def server_request(
    cookie: str | None = None, headers: Mapping[str, str] | None = None
) -> Iterator[IncomingRequest]:
    """Bind the inbound request so outgoing calls in this task forward its cookie.

    ``headers`` may be the inbound request's header mapping; its cookie header is
    used when ``cookie`` is not given.
    """
    if cookie is None and headers is not None:
        cookie = next((v for k, v in headers.items() if k.lower() == "cookie"), None)
    incoming = IncomingRequest(cookie=cookie)
    token = _current.set(incoming)
    try:
        yield incoming
    finally:
        _current.reset(token)
