"""Authenticated HTTP client with a persisted session and single-flight token refresh."""

from .client import AuthenticatedClient
from .config import Settings
from .context import IncomingRequest, current_request, server_request
from .errors import (
    ApiError,
    AuthenticationError,
    AuthFetchError,
    InvalidSessionResponseError,
    SessionExpiredError,
    TransportError,
    UnauthorizedError,
)
from .models import Credentials, Session, TokenPair, User
from .navigation import guest_only, require_login
from .refresh import RefreshCoordinator
from .session import SessionStore
from .storage import CredentialStorage, FileCredentialStorage, MemoryCredentialStorage
from .transport import Transport

__all__ = [
    "AuthenticatedClient",
    "Settings",
    "IncomingRequest",
    "current_request",
    "server_request",
    "AuthFetchError",
    "TransportError",
    "ApiError",
    "UnauthorizedError",
    "AuthenticationError",
    "SessionExpiredError",
    "InvalidSessionResponseError",
    "Credentials",
    "Session",
    "TokenPair",
    "User",
    "guest_only",
    "require_login",
    "RefreshCoordinator",
    "SessionStore",
    "CredentialStorage",
    "FileCredentialStorage",
    "MemoryCredentialStorage",
    "Transport",
]
