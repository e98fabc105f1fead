"""Lifetime owner of the interactive state of one rendered text block."""

from __future__ import annotations

import uuid
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence

from bilingual_reader import logging_manager as log_mgr
from bilingual_reader.config_manager import (
    ReaderSettings,
    configure_logging_from_settings,
    get_settings,
)
from bilingual_reader.errors import SessionClosedError

from .events import EventPublisher, Listener, StateChange
from .models import LanguageSide, Token, reconstruct_text
from .orientation import display_side
from .protocols import LanguageLookup, TranslationBackend, VocabularyStore
from .saved_words import RawVocabularyItem, SavedVocabularyIndex, build_index
from .sentence_context import DEFAULT_TERMINATORS, SentencePair, TokenSentenceContexts
from .token_validation import parse_tokens
from .translation_cache import TranslationCache
from .word_interaction import SaveOutcome, WordInteractionController, WordMetadata, WordState

logger = log_mgr.get_logger().getChild("session")


class ReadingSession:
    """Bundle the token stream with its caches, index and word controller.

    One :class:`TranslationCache` is kept per display side so that flipping
    the orientation never mixes translation directions: the source-side cache
    translates source into target and the target-side cache the reverse.
    """

    def __init__(
        self,
        tokens: Sequence[Token],
        *,
        backend: TranslationBackend,
        store: VocabularyStore,
        languages: LanguageLookup,
        source_language: str,
        target_language: str,
        is_displaying_source_side: bool = True,
        vocabulary: Iterable[RawVocabularyItem] = (),
        terminators: str = DEFAULT_TERMINATORS,
        session_id: Optional[str] = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self.source_language = source_language
        self.target_language = target_language
        self._tokens = tuple(tokens)
        self._backend = backend
        self._contexts = TokenSentenceContexts(self._tokens, terminators=terminators)
        self.events = EventPublisher()
        self._caches: Dict[LanguageSide, TranslationCache] = {}
        self._is_displaying_source_side = bool(is_displaying_source_side)
        self._closed = False

        self.source_language_id = languages.id_for(source_language)
        self.target_language_id = languages.id_for(target_language)
        if self.source_language_id is None or self.target_language_id is None:
            logger.warning(
                "Language pair not registered; saved vocabulary disabled",
                extra={
                    "event": "session.unknown_language",
                    "session_id": self.session_id,
                    "source_language": source_language,
                    "target_language": target_language,
                },
            )
        self._index = build_index(vocabulary, self.source_language_id, self.target_language_id)
        self.words = WordInteractionController(self, store=store, publisher=self.events)
        logger.debug(
            "Reading session opened",
            extra={
                "event": "session.opened",
                "session_id": self.session_id,
                "tokens": len(self._tokens),
                "saved_words": len(self._index),
            },
        )

    @classmethod
    def from_settings(
        cls,
        tokens: Sequence[Token],
        *,
        backend: TranslationBackend,
        store: VocabularyStore,
        languages: LanguageLookup,
        settings: Optional[ReaderSettings] = None,
        vocabulary: Iterable[RawVocabularyItem] = (),
    ) -> "ReadingSession":
        """Create a session from ``settings`` and apply its logging options."""
        resolved = settings or get_settings()
        configure_logging_from_settings(resolved)
        return cls(
            tokens,
            backend=backend,
            store=store,
            languages=languages,
            source_language=resolved.source_language,
            target_language=resolved.target_language,
            is_displaying_source_side=resolved.display_source_side,
            vocabulary=vocabulary,
            terminators=resolved.sentence_terminators,
        )

    @classmethod
    def from_payload(
        cls,
        payload: str | Mapping[str, Any],
        **kwargs: Any,
    ) -> "ReadingSession":
        """Create a session from a raw ``{"translation", "tokens"}`` payload.

        Raises :class:`~bilingual_reader.errors.TokenValidationError` when the
        payload is missing required token fields.
        """
        return cls(parse_tokens(payload), **kwargs)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def tokens(self) -> tuple[Token, ...]:
        return self._tokens

    @property
    def contexts(self) -> TokenSentenceContexts:
        return self._contexts

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_displaying_source_side(self) -> bool:
        return self._is_displaying_source_side

    @property
    def display_side(self) -> LanguageSide:
        return display_side(self._is_displaying_source_side)

    @property
    def vocabulary_index(self) -> SavedVocabularyIndex:
        return self._index

    def language_for(self, side: LanguageSide) -> str:
        return self.source_language if side is LanguageSide.SOURCE else self.target_language

    def cache_for(self, side: LanguageSide) -> TranslationCache:
        """Return the cache translating text displayed on ``side``."""
        cache = self._caches.get(side)
        if cache is None:
            cache = TranslationCache(
                self._backend,
                from_language=self.language_for(side),
                to_language=self.language_for(side.opposite),
                publisher=self.events,
            )
            if self._closed:
                cache.close()
            self._caches[side] = cache
        return cache

    def active_cache(self) -> TranslationCache:
        return self.cache_for(self.display_side)

    def displayed_text(self) -> str:
        return reconstruct_text(self._tokens, self.display_side)

    def sentence_pair_at(self, position: Optional[int]) -> SentencePair:
        return self._contexts.sentences_at(position)

    def opposite_word_for(self, word: str, position: Optional[int] = None) -> Optional[str]:
        return self.words.opposite_word(word, position)

    def state(self, word: str, position: Optional[int] = None) -> WordState:
        return self.words.state(word, position)

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for state changes; returns an unsubscribe callable."""
        return self.events.subscribe(listener)

    def set_orientation(self, is_displaying_source_side: bool) -> None:
        self._ensure_open()
        flag = bool(is_displaying_source_side)
        if flag == self._is_displaying_source_side:
            return
        self.words.close_all_menus()
        self._is_displaying_source_side = flag
        self.events.publish(
            StateChange(kind="orientation_changed", payload={"display_side": self.display_side.value})
        )

    def set_vocabulary(self, raw_vocabulary: Iterable[RawVocabularyItem]) -> None:
        """Rebuild the saved-vocabulary index from the full collection."""
        self._ensure_open()
        self._index = build_index(raw_vocabulary, self.source_language_id, self.target_language_id)
        self.words.vocabulary_rebuilt()
        self.events.publish(
            StateChange(kind="vocabulary_rebuilt", payload={"entries": len(self._index)})
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def translate(self, word: str, position: Optional[int] = None) -> Optional[str]:
        with log_mgr.log_context(session_id=self.session_id):
            return await self.words.translate(word, position)

    def request_translation(self, word: str, position: Optional[int] = None) -> None:
        with log_mgr.log_context(session_id=self.session_id):
            self.words.request_translation(word, position)

    def toggle_menu(self, word: str, position: Optional[int] = None) -> bool:
        return self.words.toggle_menu(word, position)

    def close_all_menus(self) -> None:
        self._ensure_open()
        self.words.close_all_menus()

    async def save(
        self,
        word: str,
        position: Optional[int] = None,
        metadata: Optional[WordMetadata] = None,
    ) -> SaveOutcome:
        with log_mgr.log_context(session_id=self.session_id):
            outcome = await self.words.save(
                word,
                position,
                metadata,
                source_language_id=self.source_language_id,
                target_language_id=self.target_language_id,
            )
        logger.info(
            "Save finished with %s",
            outcome.value,
            extra={"event": "session.save", "session_id": self.session_id, "status": outcome.value},
        )
        return outcome

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Tear down; in-flight translations resolve into no-ops."""
        if self._closed:
            return
        self.words.close_all_menus()
        self._closed = True
        for cache in self._caches.values():
            cache.close()
        self.events.clear()
        logger.debug(
            "Reading session closed",
            extra={"event": "session.closed", "session_id": self.session_id},
        )

    def __enter__(self) -> "ReadingSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Reading session has been closed")


__all__ = ["ReadingSession"]
