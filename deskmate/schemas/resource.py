"""
Deskmate Backend — Owned Resource Request/Response Schemas
============================================================

What:  Pydantic models for notes, todos and journal units.
How:   Python field names match the ORM attributes (body, pinned, owner_id);
       aliases give the camelCase wire names (textContent, isPinned, userId).
       FastAPI serializes response models by alias.

Envelopes wrap a single resource or a list under a kind-specific key
(note / todo / journalUnit, notes / todos / journalUnits) next to the
error flag and a human message.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ResourceCreateRequest(BaseModel):
    """
    Body of POST /create-{note|todo|journal-unit}.

    Required-ness is kind-specific and checked by the resource store:
    title always, textContent for notes and journal units.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(default=None, max_length=255)
    body: Optional[str] = Field(default=None, alias="textContent")
    tags: Optional[List[str]] = Field(default=None, description="Ignored for todos")


class ResourceUpdateRequest(BaseModel):
    """
    Body of PATCH /edit-{note|todo|journal-unit}/:id.

    Every field is optional. Text and tags are applied only when non-empty;
    the boolean flags are applied whenever present, including false.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(default=None, max_length=255)
    body: Optional[str] = Field(default=None, alias="textContent")
    tags: Optional[List[str]] = None
    pinned: Optional[bool] = Field(default=None, alias="isPinned")
    completed: Optional[bool] = Field(default=None, alias="isCompleted", description="Todos only")


class PinRequest(BaseModel):
    """Body of PATCH /update-pinned-{note|todo|journal-unit}/:id."""

    model_config = ConfigDict(populate_by_name=True)

    pinned: Optional[bool] = Field(default=None, alias="isPinned")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class OwnedResourceResponse(BaseModel):
    """Fields every resource kind exposes."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    title: str
    pinned: bool = Field(alias="isPinned")
    owner_id: uuid.UUID = Field(alias="userId")
    created_at: datetime = Field(alias="createdAt")


class NoteResponse(OwnedResourceResponse):
    body: str = Field(alias="textContent")
    tags: List[str] = Field(default_factory=list)


class JournalUnitResponse(OwnedResourceResponse):
    body: str = Field(alias="textContent")
    tags: List[str] = Field(default_factory=list)


class TodoResponse(OwnedResourceResponse):
    body: Optional[str] = Field(default=None, alias="textContent")
    completed: bool = Field(alias="isCompleted")


# ── Envelopes ─────────────────────────────────────────────────────────────


class NoteEnvelope(BaseModel):
    error: bool = False
    message: str = ""
    note: NoteResponse


class NoteListEnvelope(BaseModel):
    error: bool = False
    message: str = ""
    notes: List[NoteResponse]


class TodoEnvelope(BaseModel):
    error: bool = False
    message: str = ""
    todo: TodoResponse


class TodoListEnvelope(BaseModel):
    error: bool = False
    message: str = ""
    todos: List[TodoResponse]


class JournalUnitEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: bool = False
    message: str = ""
    journal_unit: JournalUnitResponse = Field(alias="journalUnit")


class JournalUnitListEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: bool = False
    message: str = ""
    journal_units: List[JournalUnitResponse] = Field(alias="journalUnits")
