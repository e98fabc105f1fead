"""Per-word interaction state: translation status, menu focus and saving.

Each word is identified by its normalised text and, when known, its token
position. Three orthogonal state dimensions are tracked:

* translation: ``IDLE -> TRANSLATING -> TRANSLATED`` (or back to ``IDLE`` on
  failure), derived from the active translation cache;
* menu: at most one word menu is open at a time;
* saved: ``UNSAVED -> SAVED``, reported by the saved-vocabulary index or by a
  successful save earlier in this session. There is no unsave transition:
  removing an entry from the vocabulary collection and rebuilding the index
  is what makes a word unsaved again.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from bilingual_reader import logging_manager as log_mgr
from bilingual_reader.errors import SessionClosedError

from .events import EventPublisher, StateChange
from .models import LanguageSide, Token, WordToken, normalize_word
from .orientation import CanonicalContext, resolve_canonical_context
from .protocols import VocabularyStore
from .saved_words import SavedVocabularyIndex, VocabularyEntry
from .sentence_context import TokenSentenceContexts
from .translation_cache import CacheKey, TranslationCache

logger = log_mgr.get_logger().getChild("word_interaction")


class TranslationStatus(enum.Enum):
    IDLE = "idle"
    TRANSLATING = "translating"
    TRANSLATED = "translated"


class SaveOutcome(enum.Enum):
    SAVED = "saved"
    ALREADY_SAVED = "already_saved"
    INCOMPLETE = "incomplete"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class WordKey:
    word: str
    position: Optional[int] = None

    @classmethod
    def create(cls, word: str, position: Optional[int] = None) -> "WordKey":
        return cls(word=normalize_word(word), position=position)


@dataclass(frozen=True, slots=True)
class WordMetadata:
    """Linguistic annotations attached to a saved word."""

    source_word: str
    source_lemma: str
    target_word: str = ""
    target_lemma: str = ""
    part_of_speech: Optional[str] = None
    difficulty: Optional[str] = None
    definition: Optional[str] = None

    @classmethod
    def from_token(cls, token: WordToken) -> "WordMetadata":
        return cls(
            source_word=token.source_word,
            source_lemma=token.source_lemma,
            target_word=token.target_word,
            target_lemma=token.target_lemma,
            part_of_speech=token.part_of_speech,
            difficulty=token.difficulty,
            definition=token.definition,
        )

    @classmethod
    def for_unknown_word(cls, word: str) -> "WordMetadata":
        return cls(source_word=word, source_lemma=word)


@dataclass(frozen=True, slots=True)
class WordState:
    key: WordKey
    status: TranslationStatus
    is_menu_open: bool
    is_saved: bool
    translation: Optional[str]
    metadata: WordMetadata

    @property
    def is_translating(self) -> bool:
        return self.status is TranslationStatus.TRANSLATING


class ReaderView(Protocol):
    """Session state the controller reads; implemented by ``ReadingSession``."""

    @property
    def tokens(self) -> tuple[Token, ...]: ...

    @property
    def contexts(self) -> TokenSentenceContexts: ...

    @property
    def display_side(self) -> LanguageSide: ...

    @property
    def is_displaying_source_side(self) -> bool: ...

    @property
    def vocabulary_index(self) -> SavedVocabularyIndex: ...

    @property
    def closed(self) -> bool: ...

    def active_cache(self) -> TranslationCache: ...


class WordInteractionController:
    """Action functions and derived per-word state for one rendered text block."""

    def __init__(
        self,
        view: ReaderView,
        *,
        store: VocabularyStore,
        publisher: Optional[EventPublisher] = None,
    ) -> None:
        self._view = view
        self._store = store
        self.events = publisher or EventPublisher()
        self._open_key: Optional[WordKey] = None
        self._session_saved: Dict[LanguageSide, set[str]] = {
            LanguageSide.SOURCE: set(),
            LanguageSide.TARGET: set(),
        }
        self._session_pairs: set[tuple[str, str]] = set()
        self._pending_saves: Dict[tuple[str, str], "asyncio.Future[SaveOutcome]"] = {}

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def open_menu_key(self) -> Optional[WordKey]:
        return self._open_key

    def token_for(self, word: str, position: Optional[int] = None) -> Optional[WordToken]:
        """Return the word token at ``position``, or the first token matching ``word``."""
        tokens = self._view.tokens
        if position is not None:
            if 0 <= position < len(tokens):
                token = tokens[position]
                if isinstance(token, WordToken):
                    return token
            return None
        for token in tokens:
            if isinstance(token, WordToken) and token.matches(word):
                return token
        return None

    def metadata(self, word: str, position: Optional[int] = None) -> WordMetadata:
        token = self.token_for(word, position)
        if token is None:
            return WordMetadata.for_unknown_word(word)
        return WordMetadata.from_token(token)

    def _cache_key(self, word: str, position: Optional[int]) -> CacheKey:
        token = self.token_for(word, position)
        if token is None:
            return CacheKey.create(word, position)
        return CacheKey.create(token.lemma_for(self._view.display_side), position)

    def _displayed_word(self, word: str, position: Optional[int]) -> str:
        token = self.token_for(word, position)
        if token is None:
            return word
        return token.word_for(self._view.display_side)

    def status(self, word: str, position: Optional[int] = None) -> TranslationStatus:
        cache = self._view.active_cache()
        key = self._cache_key(word, position)
        if cache.get_word_translation(key.lemma, key.position) is not None:
            return TranslationStatus.TRANSLATED
        if cache.is_translating(key.lemma, key.position):
            return TranslationStatus.TRANSLATING
        return TranslationStatus.IDLE

    def translation(self, word: str, position: Optional[int] = None) -> Optional[str]:
        key = self._cache_key(word, position)
        return self._view.active_cache().get_word_translation(key.lemma, key.position)

    def opposite_word(self, word: str, position: Optional[int] = None) -> Optional[str]:
        """Return the opposite-side word if it is already known.

        The translation cache is consulted first, then the saved vocabulary.
        """
        translated = self.translation(word, position)
        if translated:
            return translated
        side = self._view.display_side
        displayed = self._displayed_word(word, position)
        entry = self._view.vocabulary_index.find(displayed, side)
        if entry is None:
            return None
        opposite = entry.target_word if side is LanguageSide.SOURCE else entry.source_word
        return opposite or None

    def is_saved(self, word: str, position: Optional[int] = None) -> bool:
        side = self._view.display_side
        displayed = self._displayed_word(word, position)
        if self._view.vocabulary_index.is_saved(displayed, side):
            return True
        return displayed.lower() in self._session_saved[side]

    def is_menu_open(self, word: str, position: Optional[int] = None) -> bool:
        return self._open_key == WordKey.create(word, position)

    def canonical_context(self, word: str, position: Optional[int] = None) -> CanonicalContext:
        side = self._view.display_side
        displayed_sentence = self._view.contexts.sentence_at(position, side)
        opposite_sentence = (
            self._view.active_cache().get_sentence_translation(displayed_sentence)
            if displayed_sentence
            else None
        )
        if not opposite_sentence:
            # Token streams carry both sides, so the opposite projection is the fallback.
            opposite_sentence = self._view.contexts.sentence_at(position, side.opposite) or None
        return resolve_canonical_context(
            self._displayed_word(word, position),
            self.opposite_word(word, position),
            displayed_sentence,
            opposite_sentence,
            self._view.is_displaying_source_side,
        )

    def state(self, word: str, position: Optional[int] = None) -> WordState:
        return WordState(
            key=WordKey.create(word, position),
            status=self.status(word, position),
            is_menu_open=self.is_menu_open(word, position),
            is_saved=self.is_saved(word, position),
            translation=self.translation(word, position),
            metadata=self.metadata(word, position),
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def translate(self, word: str, position: Optional[int] = None) -> Optional[str]:
        """Translate ``word``; a no-op returning ``None`` while already translating."""
        self._ensure_open()
        if self.status(word, position) is TranslationStatus.TRANSLATING:
            return None
        return await self._translate(word, position)

    def request_translation(self, word: str, position: Optional[int] = None) -> None:
        """Fire-and-forget form of :meth:`translate`."""
        self._ensure_open()
        if self.status(word, position) is not TranslationStatus.IDLE:
            return
        side = self._view.display_side
        self._view.active_cache().ensure_word_translated(
            self._cache_key(word, position),
            lambda: self._view.contexts.sentence_at(position, side),
            word=self._displayed_word(word, position),
        )

    async def _translate(self, word: str, position: Optional[int]) -> Optional[str]:
        side = self._view.display_side
        return await self._view.active_cache().translate(
            self._cache_key(word, position),
            lambda: self._view.contexts.sentence_at(position, side),
            word=self._displayed_word(word, position),
        )

    def toggle_menu(self, word: str, position: Optional[int] = None) -> bool:
        """Toggle the menu of ``word``; opening it closes any other open menu."""
        self._ensure_open()
        key = WordKey.create(word, position)
        if self._open_key == key:
            self._open_key = None
            self._publish("menu_closed", key)
            return False
        previous = self._open_key
        self._open_key = key
        self._publish("menu_opened", key, previous=previous)
        return True

    def open_menu(self, word: str, position: Optional[int] = None) -> None:
        if not self.is_menu_open(word, position):
            self.toggle_menu(word, position)

    def close_all_menus(self) -> None:
        if self._open_key is None:
            return
        previous = self._open_key
        self._open_key = None
        if not self._view.closed:
            self._publish("menu_closed", previous)

    async def save(
        self,
        word: str,
        position: Optional[int] = None,
        metadata: Optional[WordMetadata] = None,
        *,
        source_language_id: Optional[int],
        target_language_id: Optional[int],
    ) -> SaveOutcome:
        """Persist the canonical pair of ``word``, translating it first if needed."""
        self._ensure_open()
        context = self.canonical_context(word, position)
        if not context.is_complete:
            logger.info(
                "Opposite word unknown; translating before save",
                extra={"event": "word_interaction.translate_before_save", "position": position},
            )
            await self._translate(word, position)
            if self._view.closed:
                return SaveOutcome.FAILED
            context = self.canonical_context(word, position)
            if not context.is_complete:
                logger.warning(
                    "Save skipped; canonical pair still incomplete",
                    extra={
                        "event": "word_interaction.save_incomplete",
                        "missing_side": context.missing_side.value if context.missing_side else None,
                    },
                )
                self._publish("save_incomplete", WordKey.create(word, position))
                return SaveOutcome.INCOMPLETE

        if source_language_id is None or target_language_id is None:
            logger.warning(
                "Save skipped; language pair is not registered",
                extra={"event": "word_interaction.save_unknown_language"},
            )
            return SaveOutcome.FAILED

        pair = (context.source_word.lower(), context.target_word.lower())
        if self._view.vocabulary_index.contains_pair(*pair) or pair in self._session_pairs:
            return SaveOutcome.ALREADY_SAVED
        pending = self._pending_saves.get(pair)
        if pending is not None:
            outcome = await asyncio.shield(pending)
            return SaveOutcome.ALREADY_SAVED if outcome is SaveOutcome.SAVED else outcome

        meta = metadata or self.metadata(word, position)
        entry = VocabularyEntry(
            source_word=context.source_word,
            target_word=context.target_word,
            source_language_id=source_language_id,
            target_language_id=target_language_id,
            source_context=context.source_sentence or None,
            target_context=context.target_sentence or None,
            definition=meta.definition,
            part_of_speech=meta.part_of_speech,
            difficulty=meta.difficulty,
        )
        # Registered before the store await so a concurrent save of the same pair joins it.
        future: "asyncio.Future[SaveOutcome]" = asyncio.get_running_loop().create_future()
        self._pending_saves[pair] = future
        outcome = SaveOutcome.FAILED
        try:
            outcome = await self._persist(entry, WordKey.create(word, position), pair)
        finally:
            self._pending_saves.pop(pair, None)
            if not future.done():
                future.set_result(outcome)
        return outcome

    async def _persist(
        self, entry: VocabularyEntry, key: WordKey, pair: tuple[str, str]
    ) -> SaveOutcome:
        try:
            saved = await self._store.save_vocabulary(entry)
        except Exception as exc:
            logger.warning(
                "Vocabulary store rejected save",
                extra={"event": "word_interaction.save_failed", "error": str(exc)},
            )
            saved = False

        if self._view.closed:
            return SaveOutcome.SAVED if saved else SaveOutcome.FAILED
        if not saved:
            self._publish("save_failed", key)
            return SaveOutcome.FAILED

        self._session_pairs.add(pair)
        self._session_saved[LanguageSide.SOURCE].add(pair[0])
        self._session_saved[LanguageSide.TARGET].add(pair[1])
        self._publish("word_saved", key, source_word=entry.source_word, target_word=entry.target_word)
        return SaveOutcome.SAVED

    def vocabulary_rebuilt(self) -> None:
        """Drop session-local saved marks; the rebuilt index is authoritative."""
        for words in self._session_saved.values():
            words.clear()
        self._session_pairs.clear()

    def _ensure_open(self) -> None:
        if self._view.closed:
            raise SessionClosedError("Reading session has been closed")

    def _publish(self, kind: str, key: object, **payload: object) -> None:
        self.events.publish(StateChange(kind=kind, key=key, payload=dict(payload)))


__all__ = [
    "ReaderView",
    "SaveOutcome",
    "TranslationStatus",
    "WordInteractionController",
    "WordKey",
    "WordMetadata",
    "WordState",
]
