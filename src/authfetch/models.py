from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, ValidationError

from .errors import InvalidSessionResponseError


class TokenPair(BaseModel):
    """Access and refresh token as issued by the login and refresh endpoints."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    access_token: str = Field(
        min_length=1,
        validation_alias=AliasChoices("accessToken", "access_token"),
        serialization_alias="accessToken",
    )
    refresh_token: str = Field(
        min_length=1,
        validation_alias=AliasChoices("refreshToken", "refresh_token"),
        serialization_alias="refreshToken",
    )

    @classmethod
    def from_payload(cls, payload: Any) -> TokenPair:
        """Validate a response body, refusing anything short of both tokens."""
        if isinstance(payload, TokenPair):
            return payload
        if not isinstance(payload, dict):
            raise InvalidSessionResponseError("Token response is not a JSON object")
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            missing = sorted(
                str(err["loc"][0]) for err in exc.errors() if err.get("loc")
            )
            raise InvalidSessionResponseError(
                f"Token response rejected, invalid or missing: {', '.join(missing)}"
            ) from exc


class User(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | int
    name: str | None = None
    email: str | None = None
    role: str | None = None


class Credentials(BaseModel):
    email: str
    password: SecretStr

    def body(self) -> dict[str, str]:
        return {"email": self.email, "password": self.password.get_secret_value()}


@dataclass
class Session:
    access_token: str | None = None
    refresh_token: str | None = None
    user: User | None = None

    @property
    def is_logged_in(self) -> bool:
        # A token without a resolved user is not an established session.
        return self.user is not None

    def copy(self) -> Session:
        return replace(self)
