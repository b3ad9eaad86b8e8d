"""Pydantic v2 models for the ``GET /session`` document.

The session document drives navigation in the admin client: it lists
the permissions of the signed-in user and the brands they may switch
between.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Brand(BaseModel):
    """A brand (tenant) the user can scope requests to."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    code: str | None = None


class SessionUser(BaseModel):
    """The signed-in user as seen by ``/session``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sub: str
    email: str = ""
    permissions: list[str] = Field(default_factory=list)
    allow_all_brands: bool = Field(default=True, alias="allowAllBrands")
    allowed_brand_ids: list[str] = Field(default_factory=list, alias="allowedBrandIds")
    role_name: str | None = Field(default=None, alias="roleName")
    role: str | None = None


class SessionData(BaseModel):
    """User plus visible brands."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user: SessionUser
    brands: list[Brand] = Field(default_factory=list)

    @property
    def brand_ids(self) -> list[str]:
        return [b.id for b in self.brands]

    def has_perm(self, code: str) -> bool:
        """Return ``True`` if the user holds permission *code*."""
        return code in self.user.permissions

    def has_any(self, *codes: str) -> bool:
        """Return ``True`` if the user holds at least one of *codes*."""
        return any(c in self.user.permissions for c in codes)
