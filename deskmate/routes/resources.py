"""
Deskmate Backend — Owned Resource Route Handlers
==================================================

What:  The CRUD endpoints for notes, todos and journal units.
How:   One route table row per ResourceKind; `_register_kind()` builds the
       same six endpoints for each row, so the three kinds cannot drift
       apart. Todo completion endpoints are added separately.
Who:   Every endpoint depends on `current_owner` (the auth gate) and passes
       the verified owner id to the matching OwnedResourceStore.

Endpoints per kind ({s} = note | todo | journal-unit, {p} = notes | todos | journal-units):
    POST   /create-{s}              → {note|todo|journalUnit}
    GET    /get-{s}/{id}            → {note|todo|journalUnit}
    PATCH  /edit-{s}/{id}           → {note|todo|journalUnit}
    GET    /get-all-{p}             → {notes|todos|journalUnits}
    DELETE /delete-{s}/{id}         → acknowledgement
    PATCH  /update-pinned-{s}/{id}  → {note|todo|journalUnit}
Todos only:
    PATCH  /todos/{id}/mark-completed
    PATCH  /todos/{id}/mark-uncompleted

Resource ids are taken as plain strings: an id that is not a UUID is a 404
like any other unknown id, not a 400.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Type

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from deskmate.auth import current_owner, get_credential_store
from deskmate.database import get_db_session
from deskmate.exceptions import UnauthorizedError, ValidationError
from deskmate.schemas.common import ErrorResponse, MessageResponse
from deskmate.schemas.resource import (
    JournalUnitEnvelope,
    JournalUnitListEnvelope,
    JournalUnitResponse,
    NoteEnvelope,
    NoteListEnvelope,
    NoteResponse,
    PinRequest,
    ResourceCreateRequest,
    ResourceUpdateRequest,
    TodoEnvelope,
    TodoListEnvelope,
    TodoResponse,
)
from deskmate.services.credential_store import CredentialStore
from deskmate.services.resource_store import (
    OwnedResourceStore,
    ResourceKind,
    resource_stores,
    todo_store,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Resources"])

NOT_FOUND = {404: {"description": "Not found or not owned by caller", "model": ErrorResponse}}
BAD_REQUEST = {400: {"description": "Invalid or empty input", "model": ErrorResponse}}
UNAUTHORIZED = {401: {"description": "Missing or invalid token", "model": ErrorResponse}}


@dataclass(frozen=True)
class ResourceRoutes:
    """How one resource kind appears on the wire."""

    kind: ResourceKind
    plural: str
    response: Type[BaseModel]
    envelope: Type[BaseModel]
    list_envelope: Type[BaseModel]
    item_field: str
    list_field: str

    @property
    def singular(self) -> str:
        return self.kind.value

    @property
    def store(self) -> OwnedResourceStore:
        return resource_stores[self.kind]

    @property
    def label(self) -> str:
        return self.store.kind_spec.label

    def wrap(self, resource, message: str) -> BaseModel:
        return self.envelope(
            **{self.item_field: self.response.model_validate(resource)},
            message=message,
        )


ROUTE_TABLE = (
    ResourceRoutes(
        kind=ResourceKind.NOTE,
        plural="notes",
        response=NoteResponse,
        envelope=NoteEnvelope,
        list_envelope=NoteListEnvelope,
        item_field="note",
        list_field="notes",
    ),
    ResourceRoutes(
        kind=ResourceKind.TODO,
        plural="todos",
        response=TodoResponse,
        envelope=TodoEnvelope,
        list_envelope=TodoListEnvelope,
        item_field="todo",
        list_field="todos",
    ),
    ResourceRoutes(
        kind=ResourceKind.JOURNAL_UNIT,
        plural="journal-units",
        response=JournalUnitResponse,
        envelope=JournalUnitEnvelope,
        list_envelope=JournalUnitListEnvelope,
        item_field="journal_unit",
        list_field="journal_units",
    ),
)


def _register_kind(router: APIRouter, routes: ResourceRoutes) -> None:
    """Attach the six CRUD endpoints for one resource kind."""
    s, label = routes.singular, routes.label

    @router.post(
        f"/create-{s}",
        response_model=routes.envelope,
        responses={**BAD_REQUEST, **UNAUTHORIZED},
        summary=f"Create a {label}",
        name=f"create_{routes.item_field}",
    )
    async def create_resource(
        payload: ResourceCreateRequest,
        owner_id: uuid.UUID = Depends(current_owner),
        db: AsyncSession = Depends(get_db_session),
        credentials: CredentialStore = Depends(get_credential_store),
    ):
        # Tokens outlive account deletion; don't create rows nobody owns
        if await credentials.get_account(db, owner_id) is None:
            raise UnauthorizedError()
        resource = await routes.store.create(
            db, owner_id, title=payload.title, body=payload.body, tags=payload.tags,
        )
        return routes.wrap(resource, f"{label} was created, success!")

    @router.get(
        f"/get-{s}/{{resource_id}}",
        response_model=routes.envelope,
        responses={**NOT_FOUND, **UNAUTHORIZED},
        summary=f"Get one {label}",
        name=f"get_{routes.item_field}",
    )
    async def get_resource(
        resource_id: str,
        owner_id: uuid.UUID = Depends(current_owner),
        db: AsyncSession = Depends(get_db_session),
    ):
        resource = await routes.store.get(db, owner_id, resource_id)
        return routes.wrap(resource, "")

    @router.patch(
        f"/edit-{s}/{{resource_id}}",
        response_model=routes.envelope,
        responses={**BAD_REQUEST, **NOT_FOUND, **UNAUTHORIZED},
        summary=f"Partially update a {label}",
        name=f"edit_{routes.item_field}",
    )
    async def edit_resource(
        resource_id: str,
        payload: ResourceUpdateRequest,
        owner_id: uuid.UUID = Depends(current_owner),
        db: AsyncSession = Depends(get_db_session),
    ):
        resource = await routes.store.update(
            db,
            owner_id,
            resource_id,
            title=payload.title,
            body=payload.body,
            tags=payload.tags,
            pinned=payload.pinned,
            completed=payload.completed,
        )
        return routes.wrap(resource, f"{label} was updated successfully")

    @router.get(
        f"/get-all-{routes.plural}",
        response_model=routes.list_envelope,
        responses={**UNAUTHORIZED, 500: {"description": "Server error", "model": ErrorResponse}},
        summary=f"List every {label} owned by the caller, pinned first",
        name=f"list_{routes.list_field}",
    )
    async def list_resources(
        owner_id: uuid.UUID = Depends(current_owner),
        db: AsyncSession = Depends(get_db_session),
    ):
        resources = await routes.store.list_all(db, owner_id)
        return routes.list_envelope(
            **{routes.list_field: [routes.response.model_validate(r) for r in resources]},
            message=f"All {routes.plural} successfully received",
        )

    @router.delete(
        f"/delete-{s}/{{resource_id}}",
        response_model=MessageResponse,
        responses={**NOT_FOUND, **UNAUTHORIZED},
        summary=f"Delete a {label}",
        name=f"delete_{routes.item_field}",
    )
    async def delete_resource(
        resource_id: str,
        owner_id: uuid.UUID = Depends(current_owner),
        db: AsyncSession = Depends(get_db_session),
    ):
        await routes.store.delete(db, owner_id, resource_id)
        return MessageResponse(message=f"{label} deleted, success!")

    @router.patch(
        f"/update-pinned-{s}/{{resource_id}}",
        response_model=routes.envelope,
        responses={**BAD_REQUEST, **NOT_FOUND, **UNAUTHORIZED},
        summary=f"Pin or unpin a {label}",
        name=f"pin_{routes.item_field}",
    )
    async def pin_resource(
        resource_id: str,
        payload: PinRequest,
        owner_id: uuid.UUID = Depends(current_owner),
        db: AsyncSession = Depends(get_db_session),
    ):
        if payload.pinned is None:
            raise ValidationError("Please provide isPinned", field="isPinned")
        resource = await routes.store.set_pinned(db, owner_id, resource_id, payload.pinned)
        return routes.wrap(resource, f"{label} was updated successfully")


for _routes in ROUTE_TABLE:
    _register_kind(router, _routes)

todo_routes = ROUTE_TABLE[1]


@router.patch(
    "/todos/{resource_id}/mark-completed",
    response_model=TodoEnvelope,
    responses={**NOT_FOUND, **UNAUTHORIZED},
    summary="Mark a Todo as completed",
)
async def mark_completed(
    resource_id: str,
    owner_id: uuid.UUID = Depends(current_owner),
    db: AsyncSession = Depends(get_db_session),
) -> TodoEnvelope:
    todo = await todo_store.mark_completed(db, owner_id, resource_id)
    return todo_routes.wrap(todo, "Todo marked as completed")


@router.patch(
    "/todos/{resource_id}/mark-uncompleted",
    response_model=TodoEnvelope,
    responses={**NOT_FOUND, **UNAUTHORIZED},
    summary="Mark a Todo as not completed",
)
async def mark_uncompleted(
    resource_id: str,
    owner_id: uuid.UUID = Depends(current_owner),
    db: AsyncSession = Depends(get_db_session),
) -> TodoEnvelope:
    todo = await todo_store.mark_uncompleted(db, owner_id, resource_id)
    return todo_routes.wrap(todo, "Todo marked as not completed")
