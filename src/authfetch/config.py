from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):  # type: ignore[misc]
    """Client configuration loaded from environment or .env."""

    api_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the API every request is issued against.",
    )
    app_url: str = Field(
        default="http://localhost:3000",
        description="Calling application origin, sent as Referer and Origin.",
    )
    timeout: float = Field(default=20.0, description="Per-request timeout in seconds.")
    user_agent: str = Field(
        default="authfetch/0.1",
        description="User-Agent header sent with every request.",
    )
    login_endpoint: str = Field(default="/auth/login", description="Login endpoint path.")
    refresh_endpoint: str = Field(
        default="/auth/refreshToken", description="Token refresh endpoint path."
    )
    user_endpoint: str = Field(default="/auth/user", description="Current user endpoint path.")
    logout_endpoint: str = Field(default="/auth/logout", description="Logout endpoint path.")
    login_path: str = Field(
        default="/auth/login",
        description="Unauthenticated entry point callers are sent to after logout.",
    )
    debug: bool = Field(
        default=False,
        description="Enable verbose error output (set via AUTHFETCH_DEBUG=1).",
    )
    session_file: Path = Field(
        default=Path.home() / ".config" / "authfetch" / "session.json",
        description="Session cache file for the token pair.",
    )

    model_config = SettingsConfigDict(env_prefix="AUTHFETCH_", env_file=".env", extra="ignore")
