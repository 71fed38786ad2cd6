"""
Deskmate Backend — Account Request/Response Schemas
=====================================================

What:  Pydantic models for registration, login and the current-user endpoint.

Request fields are Optional on purpose: a missing or empty field is reported
by CredentialStore as a 400 with a field-specific message, the same way for
both cases.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    """Body of POST /create-account."""
    username: Optional[str] = Field(default=None, description="Display name")
    email: Optional[str] = Field(default=None, description="Login email (unique)")
    password: Optional[str] = Field(default=None, description="Plaintext password")


class LoginRequest(BaseModel):
    """Body of POST /login."""
    email: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserResponse(BaseModel):
    """Public view of an account. The password hash is never included."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    username: str
    email: str
    created_at: datetime = Field(alias="createdAt")


class RegisterResponse(BaseModel):
    """Returned by POST /create-account."""

    model_config = ConfigDict(populate_by_name=True)

    error: bool = False
    message: str = "Your registration was successful"
    user: UserResponse
    secret_token: str = Field(alias="secretToken")


class LoginResponse(BaseModel):
    """Returned by POST /login."""

    model_config = ConfigDict(populate_by_name=True)

    error: bool = False
    message: str = "Login was successful"
    email: str
    secret_token: str = Field(alias="secretToken")


class UserEnvelope(BaseModel):
    """Returned by GET /get-user."""
    error: bool = False
    message: str = ""
    user: UserResponse
