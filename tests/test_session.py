import json
from pathlib import Path

import httpx
import pytest
import respx
from httpx import Response

from authfetch.config import Settings
from authfetch.errors import (
    AuthenticationError,
    InvalidSessionResponseError,
    SessionExpiredError,
)
from authfetch.models import TokenPair, User
from authfetch.session import SessionStore
from authfetch.storage import FileCredentialStorage, MemoryCredentialStorage

API = "http://api.test"


def _store(storage=None) -> SessionStore:
    return SessionStore(Settings(api_url=API), storage or MemoryCredentialStorage())


def test_file_storage_round_trip(tmp_path: Path) -> None:
    storage = FileCredentialStorage(tmp_path / "session.json")
    storage.save(TokenPair(access_token="access", refresh_token="refresh"))

    loaded = storage.load()

    assert loaded is not None
    assert loaded.access_token == "access"
    assert loaded.refresh_token == "refresh"
    raw = json.loads((tmp_path / "session.json").read_text())
    assert raw == {"token": "access", "refreshToken": "refresh"}


def test_file_storage_ignores_half_written_pair(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    path.write_text(json.dumps({"token": "access"}))

    assert FileCredentialStorage(path).load() is None


def test_file_storage_ignores_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    path.write_text("{not json")

    store = _store(FileCredentialStorage(path))

    assert store.access_token is None
    store.clear_session()
    assert not path.exists()


def test_store_rehydrates_tokens_without_user() -> None:
    store = _store(MemoryCredentialStorage(TokenPair(access_token="a0", refresh_token="r0")))

    assert store.access_token == "a0"
    assert store.refresh_token == "r0"
    assert store.user is None
    assert store.is_logged_in is False


def test_set_session_rejects_partial_pair() -> None:
    storage = MemoryCredentialStorage(TokenPair(access_token="a0", refresh_token="r0"))
    store = _store(storage)

    with pytest.raises(InvalidSessionResponseError):
        store.set_session({"accessToken": "a1"})

    assert store.access_token == "a0"
    assert store.refresh_token == "r0"
    assert storage.entries == {"token": "a0", "refreshToken": "r0"}


def test_set_session_accepts_snake_case_payload() -> None:
    store = _store()
    store.set_session({"access_token": "a1", "refresh_token": "r1"})

    assert store.access_token == "a1"
    assert store.storage.load() == TokenPair(access_token="a1", refresh_token="r1")


def test_set_session_rolls_back_when_storage_fails() -> None:
    class BrokenStorage(MemoryCredentialStorage):
        def save(self, tokens: TokenPair) -> None:
            raise OSError("disk full")

    store = _store(BrokenStorage())

    with pytest.raises(OSError):
        store.set_session({"accessToken": "a1", "refreshToken": "r1"})

    assert store.access_token is None
    assert store.refresh_token is None


def test_clear_session_is_idempotent(tmp_path: Path) -> None:
    storage = FileCredentialStorage(tmp_path / "session.json")
    store = _store(storage)
    store.set_session(TokenPair(access_token="a1", refresh_token="r1"), user=User(id=1))

    store.clear_session()
    first = store.snapshot()
    store.clear_session()

    assert store.snapshot() == first
    assert first.access_token is None and first.refresh_token is None and first.user is None
    assert storage.load() is None
    assert not (tmp_path / "session.json").exists()


def test_clear_session_survives_failing_storage() -> None:
    class BrokenStorage(MemoryCredentialStorage):
        def delete(self) -> None:
            raise RuntimeError("backend gone")

    store = _store(BrokenStorage(TokenPair(access_token="a1", refresh_token="r1")))

    store.clear_session()

    assert store.access_token is None
    assert store.refresh_token is None


@pytest.mark.asyncio()
async def test_login_installs_tokens_and_user() -> None:
    storage = MemoryCredentialStorage()
    store = _store(storage)

    with respx.mock(base_url=API) as mock:
        login = mock.post("/auth/login").mock(
            return_value=Response(200, json={"accessToken": "a1", "refreshToken": "r1"})
        )
        user_route = mock.get("/auth/user").mock(
            return_value=Response(200, json={"id": 1, "name": "x"})
        )
        user = await store.login({"email": "u@example.com", "password": "pass"})

    assert user.id == 1 and user.name == "x"
    assert store.is_logged_in is True
    assert storage.entries == {"token": "a1", "refreshToken": "r1"}
    assert json.loads(login.calls.last.request.content) == {
        "email": "u@example.com",
        "password": "pass",
    }
    assert user_route.calls.last.request.headers["Authorization"] == "Bearer a1"


@pytest.mark.asyncio()
async def test_login_rejected_leaves_prior_session() -> None:
    storage = MemoryCredentialStorage(TokenPair(access_token="a0", refresh_token="r0"))
    store = _store(storage)

    with respx.mock(base_url=API) as mock:
        mock.post("/auth/login").mock(return_value=Response(401, json={"error": "bad"}))
        with pytest.raises(AuthenticationError):
            await store.login({"email": "u@example.com", "password": "wrong"})

    assert store.access_token == "a0"
    assert storage.entries == {"token": "a0", "refreshToken": "r0"}


@pytest.mark.asyncio()
async def test_login_with_partial_pair_is_rejected() -> None:
    store = _store()

    with respx.mock(base_url=API, assert_all_called=False) as mock:
        mock.post("/auth/login").mock(return_value=Response(200, json={"accessToken": "a1"}))
        user_route = mock.get("/auth/user")
        with pytest.raises(InvalidSessionResponseError):
            await store.login({"email": "u@example.com", "password": "pass"})

    assert not user_route.called
    assert store.access_token is None
    assert store.storage.load() is None


@pytest.mark.asyncio()
async def test_refresh_session_keeps_user() -> None:
    storage = MemoryCredentialStorage()
    store = _store(storage)
    store.set_session(TokenPair(access_token="a1", refresh_token="r1"), user=User(id=1, name="x"))

    with respx.mock(base_url=API) as mock:
        route = mock.post("/auth/refreshToken").mock(
            return_value=Response(200, json={"accessToken": "a2", "refreshToken": "r2"})
        )
        await store.refresh_session()

    assert json.loads(route.calls.last.request.content) == {"refreshToken": "r1"}
    assert store.access_token == "a2"
    assert store.refresh_token == "r2"
    assert store.user == User(id=1, name="x")
    assert storage.entries == {"token": "a2", "refreshToken": "r2"}


@pytest.mark.asyncio()
async def test_refresh_session_rejected_raises_session_expired() -> None:
    store = _store()
    store.set_session(TokenPair(access_token="a1", refresh_token="r1"))

    with respx.mock(base_url=API) as mock:
        mock.post("/auth/refreshToken").mock(return_value=Response(401))
        with pytest.raises(SessionExpiredError):
            await store.refresh_session()


@pytest.mark.asyncio()
async def test_refresh_session_without_refresh_token() -> None:
    with pytest.raises(SessionExpiredError):
        await _store().refresh_session()


@pytest.mark.asyncio()
async def test_logout_clears_even_when_endpoint_fails() -> None:
    storage = MemoryCredentialStorage()
    store = _store(storage)
    store.set_session(TokenPair(access_token="a1", refresh_token="r1"), user=User(id=1))

    with respx.mock(base_url=API) as mock:
        route = mock.post("/auth/logout").mock(side_effect=httpx.ConnectError("down"))
        target = await store.logout()

    assert route.called
    assert target == "/auth/login"
    assert store.access_token is None
    assert store.is_logged_in is False
    assert storage.entries == {}
