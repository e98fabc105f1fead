"""Map what the reader sees onto the fixed (source, target) direction.

Persistence always stores vocabulary as ``(source word, target word)``, while
the reader may be looking at either projection of the text. This module is
the only place where that inversion happens.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from bilingual_reader.errors import IncompleteCanonicalPairError

from .models import LanguageSide


@dataclass(frozen=True, slots=True)
class CanonicalPair:
    source: str
    target: str

    @property
    def is_complete(self) -> bool:
        return bool(self.source) and bool(self.target)


@dataclass(frozen=True, slots=True)
class CanonicalContext:
    """Canonical words plus the sentences they were found in."""

    source_word: str
    target_word: str
    source_sentence: str = ""
    target_sentence: str = ""

    @property
    def words(self) -> CanonicalPair:
        return CanonicalPair(source=self.source_word, target=self.target_word)

    @property
    def is_complete(self) -> bool:
        return self.words.is_complete

    @property
    def missing_side(self) -> Optional[LanguageSide]:
        if not self.source_word:
            return LanguageSide.SOURCE
        if not self.target_word:
            return LanguageSide.TARGET
        return None

    def require_complete(self) -> "CanonicalContext":
        missing = self.missing_side
        if missing is not None:
            raise IncompleteCanonicalPairError(
                f"Canonical pair is missing its {missing.value} word"
            )
        return self


def display_side(is_displaying_source_side: bool) -> LanguageSide:
    return LanguageSide.SOURCE if is_displaying_source_side else LanguageSide.TARGET


def canonical_pair(
    displayed: str,
    opposite_if_known: Optional[str],
    is_displaying_source_side: bool,
) -> CanonicalPair:
    """Return ``(source, target)`` for an on-screen word.

    An unknown opposite word becomes ``""`` on its side of the pair.
    """
    opposite = opposite_if_known or ""
    if is_displaying_source_side:
        return CanonicalPair(source=displayed, target=opposite)
    return CanonicalPair(source=opposite, target=displayed)


def canonical_sentences(
    displayed_sentence: str,
    opposite_sentence: Optional[str],
    is_displaying_source_side: bool,
) -> CanonicalPair:
    """Same swap as :func:`canonical_pair`, applied to sentence context."""
    return canonical_pair(displayed_sentence, opposite_sentence, is_displaying_source_side)


def resolve_canonical_context(
    displayed_word: str,
    opposite_word: Optional[str],
    displayed_sentence: str,
    opposite_sentence: Optional[str],
    is_displaying_source_side: bool,
) -> CanonicalContext:
    words = canonical_pair(displayed_word, opposite_word, is_displaying_source_side)
    sentences = canonical_sentences(displayed_sentence, opposite_sentence, is_displaying_source_side)
    return CanonicalContext(
        source_word=words.source,
        target_word=words.target,
        source_sentence=sentences.source,
        target_sentence=sentences.target,
    )


__all__ = [
    "CanonicalContext",
    "CanonicalPair",
    "canonical_pair",
    "canonical_sentences",
    "display_side",
    "resolve_canonical_context",
]
