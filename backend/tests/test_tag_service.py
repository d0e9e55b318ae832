"""
Notewise Backend — Tag Orchestrator Tests
===========================================

What we test:
    ✅ parse_tags(): trims, drops empties, de-duplicates, caps at 6
    ✅ Generate → whole tag set replaced, read back alphabetically
    ✅ Validation and ownership failures, as for summaries
    ✅ Manual update: capped at 10, empty list clears, None is rejected
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from notewise.exceptions import DatabaseError, GenerationError, GenerationErrorKind
from notewise.services import ai_queries
from notewise.services.error_classifier import FAILURE_MESSAGES, USER_MESSAGES
from notewise.services.llm_base import GenerationOptions
from notewise.services.tag_service import TAGS_MAX_TOKENS, TagService, clean_tags, parse_tags

from tests.conftest import OTHER_USER_ID, USER_ID


@pytest.fixture
def service(fake_client):
    fake_client.generate_text.return_value = "Planning, Hiring, Roadmap"
    return TagService(fake_client)


class TestParseTags:
    def test_drops_empty_entries(self):
        assert parse_tags("AI, , Machine Learning, , Technology") == [
            "AI",
            "Machine Learning",
            "Technology",
        ]

    def test_caps_at_six(self):
        assert parse_tags("a, b, c, d, e, f, g, h") == ["a", "b", "c", "d", "e", "f"]

    def test_duplicates_keep_first_occurrence(self):
        assert parse_tags("work, ideas, work, Work") == ["work", "ideas", "Work"]

    def test_empty_response(self):
        assert parse_tags("") == []
        assert parse_tags(" , ,, ") == []

    def test_long_tags_are_cut(self):
        assert parse_tags("x" * 150) == ["x" * 100]

    def test_clean_tags_respects_limit(self):
        assert clean_tags([str(i) for i in range(20)], 10) == [str(i) for i in range(10)]


class TestGenerateTags:
    @pytest.mark.asyncio
    async def test_generates_and_stores(self, service, fake_client, db_session, make_note):
        note = await make_note()

        result = await service.generate_tags(db_session, str(note.id), note.content, USER_ID)
        await db_session.commit()

        assert result.success is True
        assert result.tags == ["Planning", "Hiring", "Roadmap"]

        prompt, options = fake_client.generate_text.call_args.args
        assert "comma-separated" in prompt
        assert note.content in prompt
        assert options == GenerationOptions(max_tokens=TAGS_MAX_TOKENS, temperature=0.3)

        stored = await ai_queries.get_tags_by_note_id(db_session, note.id, USER_ID)
        assert stored == ["Hiring", "Planning", "Roadmap"]

    @pytest.mark.asyncio
    async def test_regeneration_replaces_the_set(self, service, fake_client, session_factory, make_note):
        note = await make_note()

        async with session_factory() as db:
            await service.generate_tags(db, str(note.id), note.content, USER_ID)
            await db.commit()

        fake_client.generate_text.return_value = "Budget"
        async with session_factory() as db:
            await service.generate_tags(db, str(note.id), note.content, USER_ID)
            await db.commit()

        async with session_factory() as db:
            assert await ai_queries.get_tags_by_note_id(db, note.id, USER_ID) == ["Budget"]

    @pytest.mark.asyncio
    async def test_more_than_six_tags_are_capped(self, service, fake_client, db_session, make_note):
        fake_client.generate_text.return_value = "a, b, c, d, e, f, g, h"
        note = await make_note()

        result = await service.generate_tags(db_session, str(note.id), note.content, USER_ID)

        assert result.tags == ["a", "b", "c", "d", "e", "f"]

    @pytest.mark.asyncio
    async def test_unparseable_response(self, service, fake_client, db_session, make_note):
        fake_client.generate_text.return_value = " , , "
        note = await make_note()

        result = await service.generate_tags(db_session, str(note.id), note.content, USER_ID)

        assert result.error_code == "generation_failed"
        assert await ai_queries.get_tags_by_note_id(db_session, note.id, USER_ID) == []

    @pytest.mark.asyncio
    async def test_too_long_content(self, service, fake_client, db_session, make_note):
        note = await make_note()

        result = await service.generate_tags(db_session, str(note.id), "word " * 7000, USER_ID)

        assert result.error_code == "too_long"
        fake_client.generate_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_users_note(self, service, fake_client, db_session, make_note):
        note = await make_note(user_id=OTHER_USER_ID)

        result = await service.generate_tags(db_session, str(note.id), note.content, USER_ID)

        assert result.error_code == "not_found"
        fake_client.generate_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_trashed_note(self, service, db_session, make_note):
        note = await make_note(deleted_at=datetime.now(timezone.utc))

        result = await service.generate_tags(db_session, str(note.id), note.content, USER_ID)

        assert result.error_code == "not_found"

    @pytest.mark.asyncio
    async def test_generation_error(self, service, fake_client, db_session, make_note):
        fake_client.generate_text.side_effect = GenerationError(
            kind=GenerationErrorKind.CONTENT_FILTERED,
            message=USER_MESSAGES[GenerationErrorKind.CONTENT_FILTERED],
        )
        note = await make_note()

        result = await service.generate_tags(db_session, str(note.id), note.content, USER_ID)

        assert result.error_code == "content_filtered"
        assert result.error == USER_MESSAGES[GenerationErrorKind.CONTENT_FILTERED]

    @pytest.mark.asyncio
    async def test_blank_model_reply_is_generation_failed(self, blank_reply_client, db_session, make_note):
        service = TagService(blank_reply_client)
        note = await make_note()

        result = await service.generate_tags(db_session, str(note.id), note.content, USER_ID)

        assert result.success is False
        assert result.error_code == "generation_failed"
        assert result.error == FAILURE_MESSAGES["generation_failed"]
        assert await ai_queries.get_tags_by_note_id(db_session, note.id, USER_ID) == []

    @pytest.mark.asyncio
    async def test_storage_failure(self, service, db_session, make_note):
        note = await make_note()

        with patch.object(ai_queries, "upsert_tags", AsyncMock(side_effect=DatabaseError())):
            result = await service.generate_tags(db_session, str(note.id), note.content, USER_ID)

        assert result.error_code == "storage_failed"

    @pytest.mark.asyncio
    async def test_regenerate_uses_stored_content(self, service, fake_client, db_session, make_note):
        note = await make_note(content="Vendor contract renewal")

        result = await service.regenerate_tags(db_session, str(note.id), USER_ID)

        assert result.success is True
        assert "Vendor contract renewal" in fake_client.generate_text.call_args.args[0]


class TestPreviewTags:
    @pytest.mark.asyncio
    async def test_preview(self, service, db_session):
        result = await service.preview_tags("Quarterly planning notes")

        assert result.success is True
        assert result.tags == ["Planning", "Hiring", "Roadmap"]

    @pytest.mark.asyncio
    async def test_preview_blank_content(self, service, fake_client):
        result = await service.preview_tags("  ")

        assert result.error_code == "parameter_missing"
        fake_client.generate_text.assert_not_called()


class TestManualTags:
    @pytest.mark.asyncio
    async def test_update_tags_cleans_and_caps(self, service, fake_client, db_session, make_note):
        note = await make_note()
        tags = [" alpha ", "", "beta", "alpha"] + [f"t{i}" for i in range(12)]

        result = await service.update_tags(db_session, str(note.id), tags, USER_ID)

        assert result.success is True
        assert result.tags == ["alpha", "beta"] + [f"t{i}" for i in range(8)]
        fake_client.generate_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_list_clears(self, service, session_factory, make_note):
        note = await make_note()
        async with session_factory() as db:
            await service.update_tags(db, str(note.id), ["keep", "me"], USER_ID)
            await db.commit()

        async with session_factory() as db:
            result = await service.update_tags(db, str(note.id), [], USER_ID)
            await db.commit()

        assert result.success is True
        assert result.tags == []
        async with session_factory() as db:
            assert await ai_queries.get_tags_by_note_id(db, note.id, USER_ID) == []

    @pytest.mark.asyncio
    async def test_none_is_rejected(self, service, db_session, make_note):
        note = await make_note()

        result = await service.update_tags(db_session, str(note.id), None, USER_ID)

        assert result.error_code == "parameter_missing"

    @pytest.mark.asyncio
    async def test_get_tags(self, service, db_session, make_note):
        note = await make_note()
        await service.update_tags(db_session, str(note.id), ["zeta", "Alpha", "beta"], USER_ID)
        await db_session.commit()

        result = await service.get_tags(db_session, str(note.id), USER_ID)

        assert result.tags == ["Alpha", "beta", "zeta"]

    @pytest.mark.asyncio
    async def test_get_tags_for_missing_note(self, service, db_session):
        result = await service.get_tags(db_session, "not-a-uuid", USER_ID)

        assert result.error_code == "not_found"
