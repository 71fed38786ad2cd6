"""
Deskmate Backend — Owned Resource Store Unit Tests
====================================================

What:  Tests for owner-scoped CRUD on notes, todos and journal units.
How:   Real SQL against the in-memory SQLite database from conftest.

What we test:
    ✅ Creation defaults and per-kind required fields
    ✅ Another owner's resource behaves exactly like a missing one
    ✅ Pinned resources are listed first
    ✅ Partial updates apply only what was given; empty updates are rejected
    ✅ Pinning is idempotent; deleting twice fails the second time
    ✅ Todo completion toggles
"""

import uuid

import pytest
from sqlalchemy.exc import OperationalError

from deskmate.exceptions import (
    DatabaseError,
    NoChangesRequestedError,
    NotFoundError,
    ValidationError,
)
from deskmate.services.resource_store import (
    ResourceKind,
    journal_unit_store,
    normalize_tags,
    note_store,
    resource_stores,
    todo_store,
)


class TestCreate:

    @pytest.mark.asyncio
    async def test_create_note_defaults(self, db_session, account):
        note = await note_store.create(db_session, account.id, "Groceries", "eggs", ["home"])

        assert note.id is not None
        assert note.owner_id == account.id
        assert note.pinned is False
        assert note.tags == ["home"]
        assert note.created_at is not None

    @pytest.mark.asyncio
    async def test_create_todo_without_body(self, db_session, account):
        todo = await todo_store.create(db_session, account.id, "Call the bank")

        assert todo.body is None
        assert todo.completed is False
        assert todo.pinned is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("title", [None, "", "   "])
    async def test_title_required_for_every_kind(self, db_session, account, title):
        for store in resource_stores.values():
            with pytest.raises(ValidationError) as exc_info:
                await store.create(db_session, account.id, title, "body")
            assert exc_info.value.message == "Please enter a title"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("store", [note_store, journal_unit_store])
    async def test_body_required_for_notes_and_journal_units(self, db_session, account, store):
        with pytest.raises(ValidationError) as exc_info:
            await store.create(db_session, account.id, "Title", "")
        assert exc_info.value.field == "textContent"

    @pytest.mark.asyncio
    async def test_duplicate_tags_collapse(self, db_session, account):
        note = await note_store.create(db_session, account.id, "t", "b", ["a", "b", "a"])
        assert note.tags == ["a", "b"]

    @pytest.mark.asyncio
    async def test_database_failure(self, mock_db_session):
        mock_db_session.flush.side_effect = OperationalError("INSERT", {}, Exception("gone"))

        with pytest.raises(DatabaseError) as exc_info:
            await note_store.create(mock_db_session, uuid.uuid4(), "t", "b")
        assert exc_info.value.message == "Ops, Server Error"


class TestOwnership:

    @pytest.mark.asyncio
    async def test_other_owner_sees_not_found(self, db_session, account, other_account):
        note = await note_store.create(db_session, account.id, "mine", "secret")

        with pytest.raises(NotFoundError) as foreign:
            await note_store.get(db_session, other_account.id, note.id)
        with pytest.raises(NotFoundError) as missing:
            await note_store.get(db_session, other_account.id, uuid.uuid4())

        assert foreign.value.message == missing.value.message == "Note could not be found"

    @pytest.mark.asyncio
    async def test_other_owner_cannot_modify_or_delete(self, db_session, account, other_account):
        note = await note_store.create(db_session, account.id, "mine", "secret")

        with pytest.raises(NotFoundError):
            await note_store.update(db_session, other_account.id, note.id, title="pwned")
        with pytest.raises(NotFoundError):
            await note_store.set_pinned(db_session, other_account.id, note.id, True)
        with pytest.raises(NotFoundError):
            await note_store.delete(db_session, other_account.id, note.id)

        unchanged = await note_store.get(db_session, account.id, note.id)
        assert unchanged.title == "mine"
        assert unchanged.pinned is False

    @pytest.mark.asyncio
    async def test_list_only_returns_own_resources(self, db_session, account, other_account):
        await todo_store.create(db_session, account.id, "mine")
        await todo_store.create(db_session, other_account.id, "theirs")

        titles = [t.title for t in await todo_store.list_all(db_session, account.id)]
        assert titles == ["mine"]

    @pytest.mark.asyncio
    async def test_invalid_id_is_not_found(self, db_session, account):
        with pytest.raises(NotFoundError):
            await note_store.get(db_session, account.id, "not-a-uuid")

    @pytest.mark.asyncio
    async def test_kinds_do_not_mix(self, db_session, account):
        note = await note_store.create(db_session, account.id, "n", "b")
        with pytest.raises(NotFoundError):
            await journal_unit_store.get(db_session, account.id, note.id)


class TestListOrdering:

    @pytest.mark.asyncio
    async def test_pinned_first(self, db_session, account):
        first = await note_store.create(db_session, account.id, "first", "b")
        await note_store.create(db_session, account.id, "second", "b")
        third = await note_store.create(db_session, account.id, "third", "b")
        await note_store.set_pinned(db_session, account.id, third.id, True)

        listed = await note_store.list_all(db_session, account.id)

        assert listed[0].id == third.id
        assert [n.pinned for n in listed] == [True, False, False]
        assert first.id in {n.id for n in listed[1:]}

    @pytest.mark.asyncio
    async def test_empty_list(self, db_session, account):
        assert await journal_unit_store.list_all(db_session, account.id) == []


class TestUpdate:

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, db_session, account):
        note = await note_store.create(db_session, account.id, "Old", "body", ["x"])

        updated = await note_store.update(db_session, account.id, note.id, title="New")

        assert updated.title == "New"
        assert updated.body == "body"
        assert updated.tags == ["x"]

    @pytest.mark.asyncio
    async def test_false_flag_is_a_change(self, db_session, account):
        note = await note_store.create(db_session, account.id, "t", "b")
        await note_store.set_pinned(db_session, account.id, note.id, True)

        updated = await note_store.update(db_session, account.id, note.id, pinned=False)
        assert updated.pinned is False

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, db_session, account):
        note = await note_store.create(db_session, account.id, "t", "b")

        with pytest.raises(NoChangesRequestedError):
            await note_store.update(db_session, account.id, note.id, title="", body="", tags=[])

    @pytest.mark.asyncio
    async def test_blank_title_is_not_a_change(self, db_session, account):
        note = await note_store.create(db_session, account.id, "Keep me", "b")

        with pytest.raises(NoChangesRequestedError):
            await note_store.update(db_session, account.id, note.id, title="   ")

        updated = await note_store.update(db_session, account.id, note.id, title="  ", body="new")
        assert updated.title == "Keep me"
        assert updated.body == "new"

    @pytest.mark.asyncio
    async def test_inapplicable_fields_do_not_count(self, db_session, account):
        todo = await todo_store.create(db_session, account.id, "t")
        note = await note_store.create(db_session, account.id, "n", "b")

        with pytest.raises(NoChangesRequestedError):
            await todo_store.update(db_session, account.id, todo.id, tags=["a"])
        with pytest.raises(NoChangesRequestedError):
            await note_store.update(db_session, account.id, note.id, completed=True)

    @pytest.mark.asyncio
    async def test_empty_update_checked_before_lookup(self, db_session, account):
        with pytest.raises(NoChangesRequestedError):
            await note_store.update(db_session, account.id, uuid.uuid4())


class TestPinAndDelete:

    @pytest.mark.asyncio
    async def test_pin_is_idempotent(self, db_session, account):
        note = await note_store.create(db_session, account.id, "t", "b")

        await note_store.set_pinned(db_session, account.id, note.id, True)
        again = await note_store.set_pinned(db_session, account.id, note.id, True)

        assert again.pinned is True

    @pytest.mark.asyncio
    async def test_delete_twice(self, db_session, account):
        note = await note_store.create(db_session, account.id, "t", "b")

        await note_store.delete(db_session, account.id, note.id)
        with pytest.raises(NotFoundError):
            await note_store.delete(db_session, account.id, note.id)


class TestTodoCompletion:

    @pytest.mark.asyncio
    async def test_mark_completed_and_back(self, db_session, account):
        todo = await todo_store.create(db_session, account.id, "t")

        done = await todo_store.mark_completed(db_session, account.id, todo.id)
        assert done.completed is True

        undone = await todo_store.mark_uncompleted(db_session, account.id, todo.id)
        assert undone.completed is False

    @pytest.mark.asyncio
    async def test_mark_completed_foreign_todo(self, db_session, account, other_account):
        todo = await todo_store.create(db_session, account.id, "t")
        with pytest.raises(NotFoundError):
            await todo_store.mark_completed(db_session, other_account.id, todo.id)


def test_normalize_tags_keeps_first_occurrence_order():
    assert normalize_tags(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


def test_every_kind_has_a_store():
    assert set(resource_stores) == set(ResourceKind)
