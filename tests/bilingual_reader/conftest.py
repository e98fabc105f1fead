from __future__ import annotations

import logging

import pytest

from bilingual_reader import logging_manager as log_mgr
from bilingual_reader.languages import LanguageRegistry
from tests.helpers.reader_doubles import (
    FakeVocabularyStore,
    RecordingBackend,
    punct,
    space,
    word,
)


class _RecordCollector(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def caplog_reader():
    """Collect records of the application logger, which does not propagate to root."""
    logger = log_mgr.get_logger()
    handler = _RecordCollector()
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        yield handler
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous_level)


@pytest.fixture
def hello_world_tokens():
    return (
        word("Hello", "Hola", part_of_speech="interjection", difficulty="a1"),
        space(),
        word("world", "mundo", part_of_speech="noun", difficulty="a1", definition="The earth"),
        punct("!"),
    )


@pytest.fixture
def two_sentence_tokens():
    return (
        word("The", "El"),
        space(),
        word("cat", "gato"),
        space(),
        word("sleeps", "duerme", target_lemma="dormir", source_lemma="sleep"),
        punct("."),
        space(),
        word("The", "El"),
        space(),
        word("dog", "perro"),
        space(),
        word("barks", "ladra", source_lemma="bark", target_lemma="ladrar"),
        punct("."),
    )


@pytest.fixture
def backend():
    return RecordingBackend(
        translations={"hello": "hola", "world": "mundo", "mundo": "world", "hola": "hello"},
        sentence_translations={"Hello world!": "Hola mundo!", "Hola mundo!": "Hello world!"},
    )


@pytest.fixture
def store():
    return FakeVocabularyStore()


@pytest.fixture
def languages():
    return LanguageRegistry({"en": 1, "es": 2, "fr": 3})
