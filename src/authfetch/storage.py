from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import suppress
from pathlib import Path
from typing import Protocol

from .models import TokenPair

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "token"
REFRESH_TOKEN_KEY = "refreshToken"


class CredentialStorage(Protocol):
    """Durable home of the token pair. Both keys are written and removed together."""

    def load(self) -> TokenPair | None: ...

    def save(self, tokens: TokenPair) -> None: ...

    def delete(self) -> None: ...


class FileCredentialStorage:
    """Persists the token pair to a JSON file readable only by its owner."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> TokenPair | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text())
        except ValueError as exc:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, exc)
            return None
        if not isinstance(data, dict):
            return None
        access = data.get(ACCESS_TOKEN_KEY)
        refresh = data.get(REFRESH_TOKEN_KEY)
        if not access or not refresh:
            # A half-written pair is never trusted.
            return None
        return TokenPair(access_token=access, refresh_token=refresh)

    def save(self, tokens: TokenPair) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(
            {ACCESS_TOKEN_KEY: tokens.access_token, REFRESH_TOKEN_KEY: tokens.refresh_token},
            indent=2,
        )
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".session-", suffix=".tmp")
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "w") as fh:
                fh.write(payload)
            with suppress(PermissionError):
                os.chmod(tmp, 0o600)
            os.replace(tmp, self.path)
        except BaseException:
            with suppress(FileNotFoundError):
                tmp.unlink()
            raise

    def delete(self) -> None:
        with suppress(FileNotFoundError):
            self.path.unlink()


class MemoryCredentialStorage:
    """Keeps the pair in process memory, e.g. for short-lived workers and tests."""

    def __init__(self, tokens: TokenPair | None = None) -> None:
        self.entries: dict[str, str] = {}
        if tokens is not None:
            self.save(tokens)

    def load(self) -> TokenPair | None:
        access = self.entries.get(ACCESS_TOKEN_KEY)
        refresh = self.entries.get(REFRESH_TOKEN_KEY)
        if not access or not refresh:
            return None
        return TokenPair(access_token=access, refresh_token=refresh)

    def save(self, tokens: TokenPair) -> None:
        self.entries = {
            ACCESS_TOKEN_KEY: tokens.access_token,
            REFRESH_TOKEN_KEY: tokens.refresh_token,
        }

    def delete(self) -> None:
        self.entries = {}
