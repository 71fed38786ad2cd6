"""
Deskmate Backend — Account SQLAlchemy Model
=============================================

What:  ORM model representing the `accounts` table.
Who:   Used by CredentialStore for registration, login and deletion, and by
       Alembic for schema management.

Table Design:
    - UUID primary key, assigned in Python so it is known right after flush
    - email: the account identity, unique, stored trimmed and lower-cased
    - password_hash: bcrypt hash, never serialized to clients
    - created_at: UTC with timezone
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from deskmate.database import Base


def utcnow() -> datetime:
    """Timezone-aware current time, used as a column default."""
    return datetime.now(timezone.utc)


class Account(Base):
    """
    A registered user.

    Lifecycle:
        1. Created by registration
        2. Never mutated afterwards
        3. Deleted on request, together with everything it owns
    """

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique account identifier",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Login identity, unique across all accounts",
    )

    username: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Salted bcrypt hash of the password",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When the account was registered (UTC)",
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, email='{self.email}')>"
