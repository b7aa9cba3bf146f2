"""Pydantic schemas for admin login."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class LoginRequest(BaseModel):
    """Admin credentials."""

    email: EmailStr = Field(..., description="Admin account email")
    password: str = Field(..., min_length=1, description="Account password")

    model_config = ConfigDict(extra="forbid")


class AdminUserInfo(BaseModel):
    """The signed-in admin, as returned by login and /me."""

    id: UUID = Field(..., description="Admin user ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    role: str = Field(..., description="Role: admin, hr or editor")


class LoginResponse(BaseModel):
    user: AdminUserInfo
