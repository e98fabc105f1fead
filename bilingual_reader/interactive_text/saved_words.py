"""Saved vocabulary entries and the per-language-pair lookup index."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from bilingual_reader import logging_manager as log_mgr

from .models import LanguageSide

logger = log_mgr.get_logger().getChild("saved_words")


@dataclass(frozen=True, slots=True)
class VocabularyEntry:
    """A saved word pair, always stored in the canonical direction."""

    source_word: str
    target_word: str
    source_language_id: int
    target_language_id: int
    source_context: Optional[str] = None
    target_context: Optional[str] = None
    definition: Optional[str] = None
    part_of_speech: Optional[str] = None
    difficulty: Optional[str] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the vocabulary store's column names."""
        payload: Dict[str, Any] = {
            "original_word": self.source_word,
            "translated_word": self.target_word,
            "from_language_id": self.source_language_id,
            "translated_language_id": self.target_language_id,
            "original_word_context": self.source_context,
            "translated_word_context": self.target_context,
            "definition": self.definition,
            "part_of_speech": self.part_of_speech,
            "frequency_level": self.difficulty,
        }
        if self.id is not None:
            payload["id"] = self.id
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VocabularyEntry":
        """Create from a vocabulary store row."""
        raw_id = data.get("id")
        return cls(
            source_word=str(data.get("original_word") or ""),
            target_word=str(data.get("translated_word") or ""),
            source_language_id=int(data.get("from_language_id", 0)),
            target_language_id=int(data.get("translated_language_id", 0)),
            source_context=data.get("original_word_context"),
            target_context=data.get("translated_word_context"),
            definition=data.get("definition"),
            part_of_speech=data.get("part_of_speech"),
            difficulty=data.get("frequency_level"),
            id=int(raw_id) if raw_id is not None else None,
        )


RawVocabularyItem = Union[VocabularyEntry, Mapping[str, Any]]


def _coerce_entry(item: RawVocabularyItem) -> Optional[VocabularyEntry]:
    if isinstance(item, VocabularyEntry):
        return item
    if item.get("from_language_id") is None or item.get("translated_language_id") is None:
        logger.debug(
            "Skipping vocabulary row without a language pair",
            extra={"event": "saved_words.row_skipped", "row_id": item.get("id")},
        )
        return None
    return VocabularyEntry.from_dict(item)


class SavedVocabularyIndex:
    """Read-only lookups over the saved words of one language pair.

    Instances are never mutated; rebuild with :func:`build_index` whenever
    the vocabulary collection or the language pair changes.
    """

    __slots__ = (
        "source_language_id",
        "target_language_id",
        "_by_source",
        "_by_target",
        "_pairs",
        "saved_source_words",
        "saved_target_words",
    )

    def __init__(
        self,
        entries: Iterable[VocabularyEntry],
        source_language_id: Optional[int],
        target_language_id: Optional[int],
    ) -> None:
        self.source_language_id = source_language_id
        self.target_language_id = target_language_id
        by_source: Dict[str, VocabularyEntry] = {}
        by_target: Dict[str, VocabularyEntry] = {}
        pairs: set[tuple[str, str]] = set()
        if source_language_id is not None and target_language_id is not None:
            for entry in entries:
                if (
                    entry.source_language_id != source_language_id
                    or entry.target_language_id != target_language_id
                ):
                    continue
                source = entry.source_word.lower()
                target = entry.target_word.lower()
                # First entry wins, matching a linear scan of the collection.
                if source:
                    by_source.setdefault(source, entry)
                if target:
                    by_target.setdefault(target, entry)
                pairs.add((source, target))
        self._by_source = by_source
        self._by_target = by_target
        self._pairs = frozenset(pairs)
        self.saved_source_words: frozenset[str] = frozenset(by_source)
        self.saved_target_words: frozenset[str] = frozenset(by_target)

    def find_by_source_word(self, word: str) -> Optional[VocabularyEntry]:
        return self._by_source.get(word.lower())

    def find_by_target_word(self, word: str) -> Optional[VocabularyEntry]:
        return self._by_target.get(word.lower())

    def find(self, word: str, side: LanguageSide) -> Optional[VocabularyEntry]:
        if side is LanguageSide.SOURCE:
            return self.find_by_source_word(word)
        return self.find_by_target_word(word)

    def is_saved(self, word: str, side: LanguageSide) -> bool:
        words = self.saved_source_words if side is LanguageSide.SOURCE else self.saved_target_words
        return word.lower() in words

    def contains_pair(self, source_word: str, target_word: str) -> bool:
        return (source_word.lower(), target_word.lower()) in self._pairs

    def __len__(self) -> int:
        return len(self._pairs)


def build_index(
    raw_vocabulary: Iterable[RawVocabularyItem],
    source_language_id: Optional[int],
    target_language_id: Optional[int],
) -> SavedVocabularyIndex:
    """Index the entries of ``raw_vocabulary`` saved for the given language pair."""
    return SavedVocabularyIndex(
        (entry for entry in map(_coerce_entry, raw_vocabulary) if entry is not None),
        source_language_id,
        target_language_id,
    )


__all__ = ["RawVocabularyItem", "SavedVocabularyIndex", "VocabularyEntry", "build_index"]
