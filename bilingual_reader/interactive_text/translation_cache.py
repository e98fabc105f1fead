"""Position-keyed memo of word and sentence translations.

Word translations are keyed by ``(lemma, position)``. An entry stored without
a position (``CacheKey(lemma)``) is valid for every occurrence of that lemma:
the first positional lookup that misses copies it into the positional slot
without a network call.

All state is owned by one :class:`TranslationCache` instance, which lives as
long as the reading session that created it. Entries are never invalidated.

Concurrency model: everything runs on one event loop thread, and the only
suspension points are the awaits on the translation backend. The pending
request maps are therefore the sole concurrency control: a key is registered
synchronously before the first await, so a concurrent call for the same key
always finds it and joins the pending request instead of issuing another.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Set

from bilingual_reader import logging_manager as log_mgr
from bilingual_reader.errors import TranslationUnavailableError
from bilingual_reader.observability import translation_operation

from .events import EventPublisher, StateChange
from .models import normalize_word
from .protocols import TranslationBackend

logger = log_mgr.get_logger().getChild("translation_cache")

SentenceSupplier = Callable[[], str]


@dataclass(frozen=True, slots=True)
class CacheKey:
    """Identity of a cached word translation."""

    lemma: str
    position: Optional[int] = None

    @classmethod
    def create(cls, lemma: str, position: Optional[int] = None) -> "CacheKey":
        return cls(lemma=normalize_word(lemma), position=position)

    def normalized(self) -> "CacheKey":
        return CacheKey.create(self.lemma, self.position)

    def lemma_only(self) -> "CacheKey":
        return CacheKey(lemma=self.lemma)

    @property
    def is_positional(self) -> bool:
        return self.position is not None


@dataclass
class TranslationCacheStats:
    """Counters describing how requests were satisfied."""

    cache_hits: int = 0
    fallback_promotions: int = 0
    deduplicated: int = 0
    word_requests: int = 0
    sentence_requests: int = 0
    failures: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "cache_hits": self.cache_hits,
            "fallback_promotions": self.fallback_promotions,
            "deduplicated": self.deduplicated,
            "word_requests": self.word_requests,
            "sentence_requests": self.sentence_requests,
            "failures": self.failures,
        }


class TranslationCache:
    """Memoise translations from ``from_language`` into ``to_language``."""

    def __init__(
        self,
        backend: TranslationBackend,
        *,
        from_language: str,
        to_language: str,
        publisher: Optional[EventPublisher] = None,
    ) -> None:
        self._backend = backend
        self.from_language = from_language
        self.to_language = to_language
        self.events = publisher or EventPublisher()
        self.stats = TranslationCacheStats()

        self._words: Dict[CacheKey, str] = {}
        self._sentences: Dict[str, str] = {}
        self._pending_words: Dict[CacheKey, "asyncio.Future[Optional[str]]"] = {}
        self._pending_sentences: Dict[str, "asyncio.Future[Optional[str]]"] = {}
        self._tasks: Set["asyncio.Task[None]"] = set()
        self._closed = False

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def word_translations(self) -> Mapping[CacheKey, str]:
        return dict(self._words)

    @property
    def sentence_translations(self) -> Mapping[str, str]:
        return dict(self._sentences)

    @property
    def in_flight(self) -> frozenset[CacheKey]:
        return frozenset(self._pending_words)

    @property
    def sentences_in_flight(self) -> frozenset[str]:
        return frozenset(self._pending_sentences)

    def get_word_translation(self, lemma: str, position: Optional[int] = None) -> Optional[str]:
        """Return the cached translation, falling back to the lemma-only entry."""
        key = CacheKey.create(lemma, position)
        value = self._words.get(key)
        if value is None and key.is_positional:
            value = self._words.get(key.lemma_only())
        return value

    def get_sentence_translation(self, sentence: str) -> Optional[str]:
        return self._sentences.get(sentence.strip())

    def is_translating(self, lemma: str, position: Optional[int] = None) -> bool:
        return CacheKey.create(lemma, position) in self._pending_words

    # ------------------------------------------------------------------
    # Write API
    # ------------------------------------------------------------------

    def set_word_translation(self, lemma: str, text: str, position: Optional[int] = None) -> None:
        """Store a translation obtained outside the cache."""
        if self._closed:
            return
        key = CacheKey.create(lemma, position)
        cleaned = text.strip()
        if not cleaned:
            return
        self._words[key] = cleaned
        self._publish("word_set", key, translation=cleaned)

    def lookup(self, key: CacheKey) -> Optional[str]:
        """Return a cached translation, promoting a lemma-only entry if needed."""
        key = key.normalized()
        value = self._words.get(key)
        if value is not None or not key.is_positional:
            return value
        fallback = self._words.get(key.lemma_only())
        if fallback is None:
            return None
        if not self._closed:
            self._words[key] = fallback
            self.stats.fallback_promotions += 1
            self._publish("word_promoted", key, translation=fallback)
        return fallback

    def ensure_word_translated(
        self,
        key: CacheKey,
        sentence_supplier: Optional[SentenceSupplier] = None,
        word: Optional[str] = None,
    ) -> None:
        """Fire-and-forget: start a translation unless cached or already pending.

        Must be called from within a running event loop. Completion is
        observable through the read API and the ``events`` publisher.
        """
        if self._closed:
            return
        key = key.normalized()
        if self.lookup(key) is not None:
            self.stats.cache_hits += 1
            return
        if key in self._pending_words:
            self.stats.deduplicated += 1
            return
        self._start_word_request(key, sentence_supplier, word)

    async def translate(
        self,
        key: CacheKey,
        sentence_supplier: Optional[SentenceSupplier] = None,
        word: Optional[str] = None,
    ) -> Optional[str]:
        """Awaitable variant of :meth:`ensure_word_translated`.

        Returns the translation, or ``None`` when the backend could not
        provide one. Shares cache and pending state with the fire-and-forget
        form.
        """
        key = key.normalized()
        cached = self.lookup(key)
        if cached is not None:
            self.stats.cache_hits += 1
            return cached
        if self._closed:
            return None
        pending = self._pending_words.get(key)
        if pending is not None:
            self.stats.deduplicated += 1
        else:
            pending = self._start_word_request(key, sentence_supplier, word)
        return await asyncio.shield(pending)

    async def ensure_sentence_translated(self, sentence: str) -> Optional[str]:
        """Translate ``sentence`` once; concurrent callers share the request."""
        sentence = sentence.strip()
        if not sentence:
            return None
        cached = self._sentences.get(sentence)
        if cached is not None:
            return cached
        pending = self._pending_sentences.get(sentence)
        if pending is not None:
            return await asyncio.shield(pending)
        if self._closed:
            return None

        future: "asyncio.Future[Optional[str]]" = asyncio.get_running_loop().create_future()
        self._pending_sentences[sentence] = future
        text: Optional[str] = None
        error: Optional[BaseException] = None
        try:
            self.stats.sentence_requests += 1
            with translation_operation("sentence", attributes=self._attributes()):
                result = await self._backend.translate_sentence(
                    sentence, self.from_language, self.to_language
                )
            text = result.strip() if result and result.strip() else None
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            error = exc
        finally:
            self._pending_sentences.pop(sentence, None)
            if text and not self._closed:
                self._sentences[sentence] = text
            if not future.done():
                future.set_result(text)

        if self._closed:
            self._log_late_resolution("sentence")
        elif text:
            self._publish("sentence_translated", sentence, translation=text)
        else:
            logger.warning(
                "Sentence translation unavailable",
                extra={
                    "event": "translation_cache.sentence_failed",
                    "error": str(error) if error else "empty result",
                    **self._attributes(),
                },
            )
            self._publish("sentence_failed", sentence, error=str(error) if error else None)
        return text

    def close(self) -> None:
        """Stop accepting writes; late resolutions become no-ops."""
        if self._closed:
            return
        self._closed = True
        logger.debug(
            "Translation cache closed",
            extra={
                "event": "translation_cache.closed",
                "pending": len(self._pending_words),
                "stats": self.stats.to_dict(),
            },
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _start_word_request(
        self,
        key: CacheKey,
        sentence_supplier: Optional[SentenceSupplier],
        word: Optional[str],
    ) -> "asyncio.Future[Optional[str]]":
        loop = asyncio.get_running_loop()
        future: "asyncio.Future[Optional[str]]" = loop.create_future()
        self._pending_words[key] = future
        self._publish("translation_started", key)
        task = loop.create_task(self._run_word_request(key, future, sentence_supplier, word))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return future

    async def _run_word_request(
        self,
        key: CacheKey,
        future: "asyncio.Future[Optional[str]]",
        sentence_supplier: Optional[SentenceSupplier],
        word: Optional[str],
    ) -> None:
        text: Optional[str] = None
        error: Optional[BaseException] = None
        try:
            text = await self._fetch_word(key, sentence_supplier, word)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            error = exc
        finally:
            self._pending_words.pop(key, None)
            if text and not self._closed:
                self._words[key] = text
            if not future.done():
                future.set_result(text)

        if self._closed:
            self._log_late_resolution("word")
        elif text:
            self._publish("word_translated", key, translation=text)
        else:
            self.stats.failures += 1
            logger.warning(
                "Word translation unavailable",
                extra={
                    "event": "translation_cache.word_failed",
                    "lemma": key.lemma,
                    "position": key.position,
                    "error": str(error),
                    **self._attributes(),
                },
            )
            self._publish("word_failed", key, error=str(error))

    async def _fetch_word(
        self,
        key: CacheKey,
        sentence_supplier: Optional[SentenceSupplier],
        word: Optional[str],
    ) -> str:
        sentence = sentence_supplier().strip() if sentence_supplier is not None else ""
        if sentence:
            await self.ensure_sentence_translated(sentence)

        surface = word.strip() if word and word.strip() else key.lemma
        self.stats.word_requests += 1
        with translation_operation("word_in_sentence", attributes=self._attributes()):
            result = await self._backend.translate_word_in_sentence(
                surface, sentence, self.from_language, self.to_language
            )
        if not result or not result.strip():
            raise TranslationUnavailableError(f"No translation returned for {surface!r}")
        return result.strip()

    def _attributes(self) -> Dict[str, Any]:
        return {"from_language": self.from_language, "to_language": self.to_language}

    def _publish(self, kind: str, key: Any, **payload: Any) -> None:
        self.events.publish(StateChange(kind=kind, key=key, payload=payload))

    def _log_late_resolution(self, what: str) -> None:
        logger.debug(
            "Dropping %s translation resolved after close",
            what,
            extra={"event": "translation_cache.late_resolution"},
        )


__all__ = ["CacheKey", "SentenceSupplier", "TranslationCache", "TranslationCacheStats"]
