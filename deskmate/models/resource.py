"""
Deskmate Backend — Owned Resource SQLAlchemy Models
=====================================================

What:  ORM models for the three user-owned resource kinds: `notes`, `todos`
       and `journal_units`.
How:   Columns every kind shares live on OwnedResourceMixin; each concrete
       model adds its kind-specific columns.
Who:   Used only through OwnedResourceStore, which scopes every query by
       (id, owner_id).

Shared shape:
    id, owner_id, title, body, pinned, created_at
Kind-specific:
    Note / JournalUnit → body required, tags (JSON list of strings)
    Todo               → body optional, completed flag
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from deskmate.database import Base
from deskmate.models.account import utcnow


class OwnedResourceMixin:
    """Columns shared by every owned resource table."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    @declared_attr
    def owner_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            Uuid,
            ForeignKey("accounts.id"),
            nullable=False,
            index=True,
            comment="Owning account",
        )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    pinned: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
        comment="Pinned resources are listed first",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="Set once at creation (UTC)",
    )

    @declared_attr.directive
    def __table_args__(cls):
        # Listing is always "owner's rows, pinned first"
        return (Index(f"idx_{cls.__tablename__}_owner_pinned", "owner_id", "pinned"),)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id}, owner_id={self.owner_id}, pinned={self.pinned})>"


class Note(OwnedResourceMixin, Base):
    """A note: title, required text content and tags."""

    __tablename__ = "notes"

    body: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)


class JournalUnit(OwnedResourceMixin, Base):
    """A journal entry. Same shape as a note, kept in its own table."""

    __tablename__ = "journal_units"

    body: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)


class Todo(OwnedResourceMixin, Base):
    """A todo item: optional text content and a completion flag, no tags."""

    __tablename__ = "todos"

    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
