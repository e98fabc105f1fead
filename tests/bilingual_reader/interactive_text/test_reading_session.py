"""Tests for per-word interaction state driven through a reading session."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import pytest

from bilingual_reader import logging_manager as log_mgr
from bilingual_reader.config_manager import ReaderSettings
from bilingual_reader.errors import SessionClosedError, TokenValidationError
from bilingual_reader.interactive_text import (
    CacheKey,
    LanguageSide,
    ReadingSession,
    SaveOutcome,
    TranslationStatus,
    WordKey,
)

pytestmark = pytest.mark.reader


@pytest.fixture
def make_session(hello_world_tokens, backend, store, languages):
    def _factory(**overrides):
        options = dict(
            backend=backend,
            store=store,
            languages=languages,
            source_language="en",
            target_language="es",
        )
        options.update(overrides)
        tokens = options.pop("tokens", hello_world_tokens)
        return ReadingSession(tokens, **options)

    return _factory


class TestTranslationStatus:
    def test_idle_translating_translated(self, make_session, backend):
        session = make_session()

        async def scenario():
            assert session.state("world", 2).status is TranslationStatus.IDLE
            backend.hold()
            task = asyncio.create_task(session.translate("world", 2))
            await asyncio.sleep(0)
            assert session.state("world", 2).status is TranslationStatus.TRANSLATING
            backend.release()
            return await task

        assert asyncio.run(scenario()) == "mundo"
        state = session.state("world", 2)
        assert state.status is TranslationStatus.TRANSLATED
        assert state.translation == "mundo"
        assert state.key == WordKey("world", 2)

    def test_translate_is_a_no_op_while_translating(self, make_session, backend):
        session = make_session()

        async def scenario():
            backend.hold()
            task = asyncio.create_task(session.translate("world", 2))
            await asyncio.sleep(0)
            second = await session.translate("world", 2)
            backend.release()
            return second, await task

        assert asyncio.run(scenario()) == (None, "mundo")
        assert len(backend.word_calls) == 1

    def test_request_translation_fire_and_forget(self, make_session, backend):
        session = make_session()

        async def scenario():
            session.request_translation("hello", 0)
            assert session.state("hello", 0).is_translating
            while session.state("hello", 0).is_translating:
                await asyncio.sleep(0)

        asyncio.run(scenario())
        assert session.state("hello", 0).translation == "hola"

    def test_word_uses_sentence_context(self, make_session, backend):
        session = make_session()

        asyncio.run(session.translate("world", 2))

        assert backend.word_calls == [("world", "Hello world!", "en", "es")]
        assert session.active_cache().get_sentence_translation("Hello world!") == "Hola mundo!"

    def test_target_side_translates_in_reverse(self, make_session, backend):
        session = make_session(is_displaying_source_side=False)

        result = asyncio.run(session.translate("mundo", 2))

        assert result == "world"
        assert backend.word_calls == [("mundo", "Hola mundo!", "es", "en")]
        assert session.opposite_word_for("mundo", 2) == "world"

    def test_metadata_defaults_from_token(self, make_session):
        session = make_session()

        at_position = session.state("world", 2).metadata
        by_match = session.state("MUNDO").metadata

        assert at_position.part_of_speech == "noun"
        assert at_position.definition == "The earth"
        assert by_match == at_position
        assert session.state("unknown").metadata.source_word == "unknown"


class TestMenus:
    def test_single_open_menu(self, make_session):
        session = make_session()
        events = []
        session.subscribe(events.append)

        assert session.toggle_menu("hello", 0) is True
        assert session.toggle_menu("world", 2) is True

        assert not session.state("hello", 0).is_menu_open
        assert session.state("world", 2).is_menu_open
        assert events[-1].payload["previous"] == WordKey("hello", 0)

        assert session.toggle_menu("world", 2) is False
        assert session.words.open_menu_key is None

    def test_open_menu_is_idempotent(self, make_session):
        session = make_session()
        session.words.open_menu("hello", 0)
        session.words.open_menu("hello", 0)
        assert session.state("hello", 0).is_menu_open

    def test_orientation_change_closes_menus(self, make_session):
        session = make_session()
        session.toggle_menu("hello", 0)

        session.set_orientation(False)

        assert session.words.open_menu_key is None
        assert session.display_side is LanguageSide.TARGET
        assert session.displayed_text() == "Hola mundo!"


class TestSave:
    def test_translates_before_saving(self, make_session, backend, store):
        session = make_session()

        outcome = asyncio.run(session.save("world", 2))

        assert outcome is SaveOutcome.SAVED
        assert len(backend.word_calls) == 1
        entry = store.entries[0]
        assert (entry.source_word, entry.target_word) == ("world", "mundo")
        assert (entry.source_language_id, entry.target_language_id) == (1, 2)
        assert entry.source_context == "Hello world!"
        assert entry.target_context == "Hola mundo!"
        assert entry.part_of_speech == "noun"
        assert entry.difficulty == "a1"
        assert session.state("world", 2).is_saved

    def test_target_side_saves_canonical_direction(self, make_session, store):
        session = make_session(is_displaying_source_side=False)

        outcome = asyncio.run(session.save("mundo", 2))

        assert outcome is SaveOutcome.SAVED
        entry = store.entries[0]
        assert entry.source_word == "world"
        assert entry.target_word == "mundo"
        assert entry.source_context == "Hello world!"
        assert entry.target_context == "Hola mundo!"

    def test_cached_translation_skips_network(self, make_session, backend, store):
        session = make_session()
        session.active_cache().set_word_translation("world", "mundo", 2)

        assert asyncio.run(session.save("world", 2)) is SaveOutcome.SAVED
        assert backend.word_calls == []
        assert store.entries[0].target_context == "Hola mundo!"

    def test_saved_vocabulary_supplies_opposite_word(self, make_session, backend, store):
        saved = [
            {
                "original_word": "world",
                "translated_word": "mundo",
                "from_language_id": 1,
                "translated_language_id": 2,
            }
        ]
        session = make_session(vocabulary=saved)

        assert session.state("world", 2).is_saved
        assert session.opposite_word_for("world", 2) == "mundo"
        assert asyncio.run(session.save("world", 2)) is SaveOutcome.ALREADY_SAVED
        assert backend.word_calls == []
        assert store.entries == []

    def test_second_save_is_already_saved(self, make_session, store):
        session = make_session()

        async def scenario():
            return await session.save("world", 2), await session.save("world", 2)

        assert asyncio.run(scenario()) == (SaveOutcome.SAVED, SaveOutcome.ALREADY_SAVED)
        assert len(store.entries) == 1

    def test_concurrent_saves_persist_once(self, make_session, store):
        store.yield_before_save = True
        session = make_session()
        session.active_cache().set_word_translation("Hello", "Hola", 0)

        async def scenario():
            return await asyncio.gather(session.save("Hello", 0), session.save("hello", 0))

        assert asyncio.run(scenario()) == [SaveOutcome.SAVED, SaveOutcome.ALREADY_SAVED]
        assert len(store.entries) == 1
        assert session.state("Hello", 0).is_saved

    def test_concurrent_save_shares_store_failure(self, make_session, store):
        store.yield_before_save = True
        store.result = False
        session = make_session()
        session.active_cache().set_word_translation("Hello", "Hola", 0)

        async def scenario():
            return await asyncio.gather(session.save("Hello", 0), session.save("Hello", 0))

        assert asyncio.run(scenario()) == [SaveOutcome.FAILED, SaveOutcome.FAILED]
        assert len(store.entries) == 1
        assert asyncio.run(session.save("Hello", 0)) is SaveOutcome.FAILED
        assert len(store.entries) == 2

    def test_untranslatable_word_is_incomplete(self, make_session, backend, store):
        backend.failing_words.add("world")
        session = make_session()

        assert asyncio.run(session.save("world", 2)) is SaveOutcome.INCOMPLETE
        assert store.entries == []

    def test_store_failure(self, make_session, store):
        store.error = RuntimeError("database offline")
        session = make_session()
        events = []
        session.subscribe(events.append)

        assert asyncio.run(session.save("world", 2)) is SaveOutcome.FAILED
        assert not session.state("world", 2).is_saved
        assert events[-1].kind == "save_failed"

    def test_unregistered_language_cannot_save(self, make_session, store):
        session = make_session(target_language="xx")

        assert asyncio.run(session.save("world", 2)) is SaveOutcome.FAILED
        assert store.entries == []

    def test_rebuild_clears_session_saved_marks(self, make_session):
        session = make_session()
        asyncio.run(session.save("world", 2))

        session.set_vocabulary([])

        assert not session.state("world", 2).is_saved


class TestSessionLifecycle:
    def test_actions_after_close_raise(self, make_session):
        session = make_session()
        session.close()

        with pytest.raises(SessionClosedError):
            asyncio.run(session.translate("world", 2))
        with pytest.raises(SessionClosedError):
            session.toggle_menu("world", 2)
        with pytest.raises(SessionClosedError):
            session.set_orientation(False)

    def test_context_manager_closes_caches(self, make_session):
        with make_session() as session:
            cache = session.active_cache()
        assert session.closed
        assert cache.closed

    def test_close_during_translation(self, make_session, backend):
        session = make_session()
        events = []
        session.subscribe(events.append)

        async def scenario():
            backend.hold()
            task = asyncio.create_task(session.translate("world", 2))
            await asyncio.sleep(0)
            session.close()
            backend.release()
            await task

        asyncio.run(scenario())

        assert session.active_cache().word_translations == {}
        assert [event.kind for event in events] == ["translation_started"]

    def test_caches_are_kept_per_side(self, make_session):
        session = make_session()
        source_cache = session.active_cache()
        session.set_orientation(False)

        assert session.active_cache() is not source_cache
        assert session.active_cache().from_language == "es"
        assert session.cache_for(LanguageSide.SOURCE) is source_cache
        assert not session.active_cache().is_translating("mundo", 2)
        assert CacheKey.create("mundo", 2) not in session.active_cache().in_flight

    def test_from_settings(self, hello_world_tokens, backend, store, languages):
        settings = ReaderSettings(source_language="EN", target_language="es", display_source_side=False)

        session = ReadingSession.from_settings(
            hello_world_tokens, backend=backend, store=store, languages=languages, settings=settings
        )

        assert session.display_side is LanguageSide.TARGET
        assert (session.source_language_id, session.target_language_id) == (1, 2)

    def test_from_settings_applies_logging(self, hello_world_tokens, backend, store, languages, tmp_path):
        logger = log_mgr.get_logger()
        previous_level = logger.level
        settings = ReaderSettings(log_level="debug", log_dir=str(tmp_path))
        try:
            ReadingSession.from_settings(
                hello_world_tokens, backend=backend, store=store, languages=languages, settings=settings
            )

            assert logger.level == logging.DEBUG
            file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
            assert len(file_handlers) == 1
            assert Path(file_handlers[0].baseFilename).parent == tmp_path.resolve()
        finally:
            for handler in list(logger.handlers):
                if isinstance(handler, logging.FileHandler):
                    logger.removeHandler(handler)
                    handler.close()
            log_mgr.configure_logging_level(log_level=previous_level)

    def test_from_payload_rejects_invalid_tokens(self, backend, store, languages):
        with pytest.raises(TokenValidationError):
            ReadingSession.from_payload(
                {"translation": "Hola", "tokens": [{"type": "word", "from_word": "x"}]},
                backend=backend,
                store=store,
                languages=languages,
                source_language="en",
                target_language="es",
            )

    def test_sentence_pair_at(self, make_session):
        pair = make_session().sentence_pair_at(2)
        assert pair.source_sentence == "Hello world!"
        assert pair.target_sentence == "Hola mundo!"
