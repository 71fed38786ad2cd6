"""
Deskmate Backend — Session Token Claim Schemas
================================================

What:  The decoded payload of a session token.
How:   TokenService builds a Claim once at issuance and parses one back out of
       every token it verifies. Both models are frozen.

The embedded AccountSnapshot is a copy of the account row taken when the
token was issued. It is never refreshed from the database: an account change
shows up in a session only after a new token is issued.
"""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict


class AccountSnapshot(BaseModel):
    """Copy of an Account row at token issuance time (hash included)."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: uuid.UUID
    username: str
    email: str
    password_hash: str
    created_at: datetime


class Claim(BaseModel):
    """
    Session token payload.

    Fields:
        user: account snapshot taken at issuance
        sub:  account id as a string (standard JWT subject)
        jti:  random per-issuance id, so two tokens never collide
        iat:  issued-at, seconds since epoch
        exp:  expiry, seconds since epoch
    """

    model_config = ConfigDict(frozen=True)

    user: AccountSnapshot
    sub: str
    jti: str
    iat: int
    exp: int

    @property
    def account_id(self) -> uuid.UUID:
        return self.user.id

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=timezone.utc)
