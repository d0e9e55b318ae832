"""
Notewise Backend — Note Service Unit Tests
============================================

What:  Tests for NoteService business logic (CRUD, paging, trash).
How:   Real in-memory SQLite session, mock generation queue.

What we test:
    ✅ Create: blank title → "Untitled", background generation queued
    ✅ Reads are scoped to the owner
    ✅ Pagination and the four sort orders
    ✅ Update re-queues generation only when content changes
    ✅ Soft delete → trash → restore; permanent delete removes artifacts
    ✅ Commit failures surface as DatabaseError
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from notewise.exceptions import DatabaseError, NotFoundError
from notewise.schemas.note import NoteCreate, NoteSort, NoteUpdate
from notewise.services import ai_queries
from notewise.services.note_service import NoteService

from tests.conftest import OTHER_USER_ID, USER_ID

BASE_TIME = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


class TestCreateAndGet:
    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_create_note(self, db_session, fake_queue):
        """A note with content is saved and handed to the generation queue."""
        data = NoteCreate(title="Weekly sync", content="Discussed Q3 roadmap.")

        note = await self.service.create_note(db_session, USER_ID, data, queue=fake_queue)

        assert note.title == "Weekly sync"
        assert note.content == "Discussed Q3 roadmap."
        assert note.deleted_at is None
        fake_queue.enqueue.assert_called_once_with(str(note.id), "Discussed Q3 roadmap.", USER_ID)

    @pytest.mark.asyncio
    async def test_blank_title_becomes_untitled(self, db_session, fake_queue):
        note = await self.service.create_note(
            db_session, USER_ID, NoteCreate(title="   ", content="x"), queue=fake_queue
        )

        assert note.title == "Untitled"

    @pytest.mark.asyncio
    async def test_note_without_content_is_not_queued(self, db_session, fake_queue):
        await self.service.create_note(db_session, USER_ID, NoteCreate(title="Empty"), queue=fake_queue)

        fake_queue.enqueue.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_without_queue(self, db_session):
        note = await self.service.create_note(db_session, USER_ID, NoteCreate(content="text"))

        assert note.id is not None

    @pytest.mark.asyncio
    async def test_get_note(self, db_session, make_note):
        created = await make_note(title="Mine")

        note = await self.service.get_note(db_session, str(created.id), USER_ID)

        assert note.id == created.id
        assert note.title == "Mine"

    @pytest.mark.asyncio
    async def test_get_other_users_note(self, db_session, make_note):
        """Another user's note is indistinguishable from a missing one."""
        created = await make_note(user_id=OTHER_USER_ID)

        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, str(created.id), USER_ID)

    @pytest.mark.asyncio
    async def test_create_commit_failure(self, mock_db_session):
        mock_db_session.commit.side_effect = OperationalError("INSERT", {}, Exception("disk full"))

        with pytest.raises(DatabaseError):
            await self.service.create_note(mock_db_session, USER_ID, NoteCreate(content="x"))

        mock_db_session.rollback.assert_awaited_once()


class TestListNotes:
    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_empty(self, db_session):
        result = await self.service.list_notes(db_session, USER_ID)

        assert result.notes == []
        assert result.total_count == 0
        assert result.has_more is False

    @pytest.mark.asyncio
    async def test_pagination(self, db_session, make_note):
        for i in range(12):
            await make_note(title=f"Note {i}", updated_at=BASE_TIME + timedelta(minutes=i))
        await make_note(user_id=OTHER_USER_ID)

        first = await self.service.list_notes(db_session, USER_ID, page=1, limit=5)
        last = await self.service.list_notes(db_session, USER_ID, page=3, limit=5)

        assert first.total_count == 12
        assert len(first.notes) == 5
        assert first.has_more is True
        assert [n.title for n in first.notes] == ["Note 11", "Note 10", "Note 9", "Note 8", "Note 7"]
        assert len(last.notes) == 2
        assert last.has_more is False

    @pytest.mark.asyncio
    async def test_limit_is_capped(self, db_session):
        result = await self.service.list_notes(db_session, USER_ID, limit=500)

        assert result.limit == 100

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "sort, expected",
        [
            (NoteSort.NEWEST, ["Banana", "Cherry", "Apple"]),
            (NoteSort.OLDEST, ["Apple", "Cherry", "Banana"]),
            (NoteSort.TITLE_ASC, ["Apple", "Banana", "Cherry"]),
            (NoteSort.TITLE_DESC, ["Cherry", "Banana", "Apple"]),
        ],
    )
    async def test_sort_orders(self, db_session, make_note, sort, expected):
        await make_note(title="Apple", updated_at=BASE_TIME)
        await make_note(title="Cherry", updated_at=BASE_TIME + timedelta(hours=1))
        await make_note(title="Banana", updated_at=BASE_TIME + timedelta(hours=2))

        result = await self.service.list_notes(db_session, USER_ID, sort=sort)

        assert [n.title for n in result.notes] == expected

    @pytest.mark.asyncio
    async def test_trashed_notes_are_excluded(self, db_session, make_note):
        await make_note(title="Live")
        await make_note(title="Gone", deleted_at=BASE_TIME)

        result = await self.service.list_notes(db_session, USER_ID)

        assert [n.title for n in result.notes] == ["Live"]


class TestUpdateNote:
    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_content_change_requeues(self, db_session, make_note, fake_queue):
        created = await make_note(content="old")

        note = await self.service.update_note(
            db_session, str(created.id), USER_ID, NoteUpdate(content="new"), queue=fake_queue
        )

        assert note.content == "new"
        fake_queue.enqueue.assert_called_once_with(str(created.id), "new", USER_ID)

    @pytest.mark.asyncio
    async def test_title_only_does_not_requeue(self, db_session, make_note, fake_queue):
        created = await make_note(content="same")

        note = await self.service.update_note(
            db_session, str(created.id), USER_ID, NoteUpdate(title="Renamed"), queue=fake_queue
        )

        assert note.title == "Renamed"
        assert note.content == "same"
        fake_queue.enqueue.assert_not_called()

    @pytest.mark.asyncio
    async def test_same_content_does_not_requeue(self, db_session, make_note, fake_queue):
        created = await make_note(content="same")

        await self.service.update_note(
            db_session, str(created.id), USER_ID, NoteUpdate(content="same"), queue=fake_queue
        )

        fake_queue.enqueue.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_other_users_note(self, db_session, make_note):
        created = await make_note(user_id=OTHER_USER_ID)

        with pytest.raises(NotFoundError):
            await self.service.update_note(db_session, str(created.id), USER_ID, NoteUpdate(title="x"))


class TestTrash:
    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_soft_delete_and_restore(self, db_session, make_note):
        created = await make_note(title="Draft")

        deleted = await self.service.soft_delete_note(db_session, str(created.id), USER_ID)
        assert deleted.deleted_at is not None

        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, str(created.id), USER_ID)

        trash = await self.service.list_trash(db_session, USER_ID)
        assert [n.title for n in trash.notes] == ["Draft"]

        restored = await self.service.restore_note(db_session, str(created.id), USER_ID)
        assert restored.deleted_at is None
        assert (await self.service.get_note(db_session, str(created.id), USER_ID)).title == "Draft"

    @pytest.mark.asyncio
    async def test_restore_live_note(self, db_session, make_note):
        created = await make_note()

        with pytest.raises(NotFoundError):
            await self.service.restore_note(db_session, str(created.id), USER_ID)

    @pytest.mark.asyncio
    async def test_trash_is_most_recently_deleted_first(self, db_session, make_note):
        await make_note(title="Earlier", deleted_at=BASE_TIME)
        await make_note(title="Later", deleted_at=BASE_TIME + timedelta(days=1))

        trash = await self.service.list_trash(db_session, USER_ID)

        assert [n.title for n in trash.notes] == ["Later", "Earlier"]

    @pytest.mark.asyncio
    async def test_permanent_delete_removes_artifacts(self, db_session, make_note):
        created = await make_note()
        await ai_queries.upsert_summary(db_session, created.id, "gemini-test", "- point")
        await ai_queries.upsert_tags(db_session, created.id, ["a", "b"])
        await db_session.commit()

        await self.service.permanent_delete_note(db_session, str(created.id), USER_ID)

        assert await ai_queries.delete_summary(db_session, created.id) == 0
        assert await ai_queries.delete_tags(db_session, created.id) == 0
        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, str(created.id), USER_ID)

    @pytest.mark.asyncio
    async def test_permanent_delete_of_trashed_note(self, db_session, make_note):
        created = await make_note(deleted_at=BASE_TIME)

        await self.service.permanent_delete_note(db_session, str(created.id), USER_ID)

        trash = await self.service.list_trash(db_session, USER_ID)
        assert trash.total_count == 0

    @pytest.mark.asyncio
    async def test_permanent_delete_of_other_users_note(self, db_session, make_note):
        created = await make_note(user_id=OTHER_USER_ID)

        with pytest.raises(NotFoundError):
            await self.service.permanent_delete_note(db_session, str(created.id), USER_ID)

    @pytest.mark.asyncio
    async def test_permanent_delete_missing_note(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.permanent_delete_note(db_session, str(uuid.uuid4()), USER_ID)
