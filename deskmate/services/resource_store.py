"""
Deskmate Backend — Ownership-Scoped Resource Store
====================================================

What:  CRUD for notes, todos and journal units, always scoped to an owner.
How:   One generic OwnedResourceStore parameterized by ResourceKind. A small
       KindSpec table holds what differs between kinds (ORM model, whether
       text content is required, whether tags or a completion flag exist).
       TodoStore adds the completion operations.
Who:   Called by the resource route handlers with the owner id produced by
       the auth gate.

Ownership rule:
    Every read and write selects by (id, owner_id) through `_scoped()`.
    Nothing in this module loads a resource by id alone, so a resource owned
    by someone else is indistinguishable from one that does not exist: both
    raise NotFoundError with the same message.

Partial update rule:
    title / body / tags  → applied only when non-empty
    pinned / completed   → applied whenever not None (False clears the flag)
    nothing applicable   → NoChangesRequestedError
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Type, Union

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from deskmate.exceptions import (
    DatabaseError,
    NoChangesRequestedError,
    NotFoundError,
    ValidationError,
)
from deskmate.models.resource import JournalUnit, Note, OwnedResourceMixin, Todo

logger = logging.getLogger(__name__)


class ResourceKind(str, enum.Enum):
    """The three owned resource kinds. Values double as URL segments."""

    NOTE = "note"
    TODO = "todo"
    JOURNAL_UNIT = "journal-unit"


@dataclass(frozen=True)
class KindSpec:
    """Per-kind field rules."""

    model: Type[OwnedResourceMixin]
    label: str
    body_required: bool
    has_tags: bool
    has_completed: bool


KIND_SPECS: Dict[ResourceKind, KindSpec] = {
    ResourceKind.NOTE: KindSpec(
        model=Note, label="Note", body_required=True, has_tags=True, has_completed=False,
    ),
    ResourceKind.TODO: KindSpec(
        model=Todo, label="Todo", body_required=False, has_tags=False, has_completed=True,
    ),
    ResourceKind.JOURNAL_UNIT: KindSpec(
        model=JournalUnit, label="Journal-Unit", body_required=True, has_tags=True, has_completed=False,
    ),
}

ResourceId = Union[str, uuid.UUID]


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """Ordered set: keeps first occurrence order, drops duplicates."""
    return list(dict.fromkeys(tags))


class OwnedResourceStore:
    """
    Owner-scoped CRUD for one resource kind.

    Methods flush but never commit. The request's session dependency
    commits once the handler returns.
    """

    def __init__(self, kind: ResourceKind):
        self.kind = kind
        self.kind_spec = KIND_SPECS[kind]
        self.model = self.kind_spec.model

    # ── Internals ─────────────────────────────────────────────────────────

    def _not_found(self, resource_id: ResourceId) -> NotFoundError:
        return NotFoundError(resource=self.kind_spec.label, resource_id=str(resource_id))

    def _parse_id(self, resource_id: ResourceId) -> uuid.UUID:
        # A malformed id cannot match any row: report it like any other miss
        if isinstance(resource_id, uuid.UUID):
            return resource_id
        try:
            return uuid.UUID(str(resource_id))
        except ValueError:
            raise self._not_found(resource_id) from None

    def _scoped(self, owner_id: uuid.UUID, resource_id: uuid.UUID):
        """The only way this store selects a single row."""
        return select(self.model).where(
            self.model.id == resource_id,
            self.model.owner_id == owner_id,
        )

    def _database_error(self, operation: str, e: Exception, **context: Any) -> DatabaseError:
        logger.error(
            "Database error during %s %s: %s", self.kind.value, operation, str(e),
            exc_info=True,
        )
        context["error_type"] = type(e).__name__
        return DatabaseError(message="Ops, Server Error", context=context)

    # ── Operations ────────────────────────────────────────────────────────

    async def create(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        title: Optional[str],
        body: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> OwnedResourceMixin:
        """
        Create a resource for an owner.

        New resources start unpinned (and, for todos, not completed).

        Raises:
            ValidationError: title missing/empty, or text content missing
                             for a kind that requires it
        """
        if not title or not title.strip():
            raise ValidationError("Please enter a title", field="title")
        if self.kind_spec.body_required and not body:
            raise ValidationError("Please enter some content", field="textContent")

        fields: Dict[str, Any] = {
            "owner_id": owner_id,
            "title": title,
            "body": body or None,
            "pinned": False,
        }
        if self.kind_spec.has_tags:
            fields["tags"] = normalize_tags(tags or [])
        if self.kind_spec.has_completed:
            fields["completed"] = False

        resource = self.model(**fields)
        try:
            db.add(resource)
            await db.flush()
        except SQLAlchemyError as e:
            raise self._database_error("create", e, owner_id=str(owner_id)) from e

        logger.info("Created %s %s for owner %s", self.kind.value, resource.id, owner_id)
        return resource

    async def list_all(self, db: AsyncSession, owner_id: uuid.UUID) -> List[OwnedResourceMixin]:
        """
        Every resource of this kind owned by `owner_id`.

        Pinned resources come first. Within each group rows follow creation
        order; callers should not rely on anything beyond pinned-first.
        """
        try:
            result = await db.execute(
                select(self.model)
                .where(self.model.owner_id == owner_id)
                .order_by(self.model.pinned.desc(), self.model.created_at.asc())
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise self._database_error("list", e, owner_id=str(owner_id)) from e

    async def get(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        resource_id: ResourceId,
    ) -> OwnedResourceMixin:
        """
        Fetch one resource.

        Raises:
            NotFoundError: no such id, or the id belongs to another owner
        """
        rid = self._parse_id(resource_id)
        try:
            result = await db.execute(self._scoped(owner_id, rid))
            resource = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._database_error("get", e, resource_id=str(rid)) from e

        if resource is None:
            raise self._not_found(rid)
        return resource

    async def update(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        resource_id: ResourceId,
        *,
        title: Optional[str] = None,
        body: Optional[str] = None,
        tags: Optional[List[str]] = None,
        pinned: Optional[bool] = None,
        completed: Optional[bool] = None,
    ) -> OwnedResourceMixin:
        """
        Apply a partial update.

        Fields the kind does not have (tags on todos, completed on notes and
        journal units) are ignored and do not count as a change.

        Raises:
            NoChangesRequestedError: nothing applicable was given
            NotFoundError:           see get()
        """
        changes: Dict[str, Any] = {}
        if title and title.strip():
            changes["title"] = title
        if body:
            changes["body"] = body
        if tags and self.kind_spec.has_tags:
            changes["tags"] = normalize_tags(tags)
        if pinned is not None:
            changes["pinned"] = pinned
        if completed is not None and self.kind_spec.has_completed:
            changes["completed"] = completed

        if not changes:
            raise NoChangesRequestedError()

        return await self._apply(db, owner_id, resource_id, changes, "update")

    async def set_pinned(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        resource_id: ResourceId,
        pinned: bool,
    ) -> OwnedResourceMixin:
        """Overwrite the pinned flag. Setting the current value is not an error."""
        return await self._apply(db, owner_id, resource_id, {"pinned": pinned}, "pin")

    async def delete(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        resource_id: ResourceId,
    ) -> None:
        """
        Delete one resource.

        Raises:
            NotFoundError: see get(); deleting twice fails the second time
        """
        resource = await self.get(db, owner_id, resource_id)
        try:
            await db.execute(
                delete(self.model).where(
                    self.model.id == resource.id,
                    self.model.owner_id == owner_id,
                )
            )
            await db.flush()
        except SQLAlchemyError as e:
            raise self._database_error("delete", e, resource_id=str(resource.id)) from e

        logger.info("Deleted %s %s for owner %s", self.kind.value, resource.id, owner_id)

    async def _apply(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        resource_id: ResourceId,
        changes: Dict[str, Any],
        operation: str,
    ) -> OwnedResourceMixin:
        resource = await self.get(db, owner_id, resource_id)
        for name, value in changes.items():
            setattr(resource, name, value)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            raise self._database_error(operation, e, resource_id=str(resource.id)) from e
        return resource


class TodoStore(OwnedResourceStore):
    """Owner-scoped todo store with completion toggles."""

    def __init__(self):
        super().__init__(ResourceKind.TODO)

    async def mark_completed(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        resource_id: ResourceId,
    ) -> Todo:
        return await self._apply(db, owner_id, resource_id, {"completed": True}, "complete")

    async def mark_uncompleted(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        resource_id: ResourceId,
    ) -> Todo:
        return await self._apply(db, owner_id, resource_id, {"completed": False}, "uncomplete")


# ── Singleton Instances ───────────────────────────────────────────────────
# Stores are stateless; one per kind
note_store = OwnedResourceStore(ResourceKind.NOTE)
todo_store = TodoStore()
journal_unit_store = OwnedResourceStore(ResourceKind.JOURNAL_UNIT)

resource_stores: Dict[ResourceKind, OwnedResourceStore] = {
    ResourceKind.NOTE: note_store,
    ResourceKind.TODO: todo_store,
    ResourceKind.JOURNAL_UNIT: journal_unit_store,
}
