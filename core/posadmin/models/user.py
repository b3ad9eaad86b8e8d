"""Pydantic v2 models for authentication tokens and login responses."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CredentialPair(BaseModel):
    """Bearer access token plus the optional refresh token.

    The model is frozen: a refresh produces a new pair rather than
    patching the old one in place.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    # Older API builds return the access token as ``token``.
    access_token: str = Field(
        validation_alias=AliasChoices("accessToken", "access_token", "token"),
        serialization_alias="accessToken",
    )
    refresh_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("refreshToken", "refresh_token"),
        serialization_alias="refreshToken",
    )


class LoginResult(BaseModel):
    """Body returned by ``/auth/login`` and ``/auth/login-pin``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    email: str | None = None
    name: str | None = None
    role_name: str | None = Field(default=None, alias="roleName")
    app_role: str | None = Field(default=None, alias="appRole")
    permissions: list[str] = Field(default_factory=list)
    branch: dict | None = None
