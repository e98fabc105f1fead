"""Sentence context extraction over projected token streams.

The sentence containing position ``i`` spans from one token past the nearest
boundary at or before ``i`` (or index 0) up to and including the nearest
boundary at or after ``i`` (or the last token). A boundary token therefore
has no sentence of its own. A boundary is a token whose text ends in
terminal punctuation, optionally followed by whitespace.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, assert_never

import regex

from .models import LanguageSide, PunctuationToken, Token, WhitespaceToken, WordToken, project_tokens

DEFAULT_TERMINATORS = ".!?"


def build_boundary_pattern(terminators: str = DEFAULT_TERMINATORS) -> "regex.Pattern[str]":
    """Return a pattern matching text that ends in one of ``terminators``."""
    return regex.compile(r"[" + regex.escape(terminators) + r"]\s*$")


_DEFAULT_BOUNDARY_PATTERN = build_boundary_pattern()


def boundary_mask(
    texts: Sequence[str],
    pattern: "regex.Pattern[str]" = _DEFAULT_BOUNDARY_PATTERN,
) -> List[bool]:
    """Flag each text that terminates a sentence."""
    return [bool(text) and pattern.search(text) is not None for text in texts]


def token_boundary_mask(
    tokens: Sequence[Token],
    pattern: "regex.Pattern[str]" = _DEFAULT_BOUNDARY_PATTERN,
) -> List[bool]:
    """Flag punctuation tokens that terminate a sentence.

    Only punctuation tokens qualify, so the mask is identical for both
    language projections of the stream.
    """
    mask: List[bool] = []
    for token in tokens:
        match token:
            case PunctuationToken():
                mask.append(pattern.search(token.value) is not None)
            case WordToken() | WhitespaceToken():
                mask.append(False)
            case _:
                assert_never(token)
    return mask


def sentence_bounds(
    texts: Sequence[str],
    position: int,
    boundaries: Optional[Sequence[bool]] = None,
) -> Optional[tuple[int, int]]:
    """Return the inclusive ``(start, end)`` token range of the sentence at ``position``.

    ``None`` means no sentence content surrounds ``position``: the stream is
    empty, the position is itself a boundary or lies past a stream that ends
    on one, or the range holds only whitespace and boundary tokens.
    """
    length = len(texts)
    if length == 0:
        return None
    if boundaries is None:
        boundaries = boundary_mask(texts)

    start = 0
    for index in range(min(position, length - 1), -1, -1):
        if boundaries[index]:
            start = index + 1
            break

    end = length - 1
    for index in range(max(position, 0), length):
        if boundaries[index]:
            end = index
            break

    if start > end:
        return None
    has_content = any(
        not boundaries[index] and texts[index].strip() for index in range(start, end + 1)
    )
    if not has_content:
        return None
    return start, end


def extract_sentence(
    texts: Sequence[str],
    position: int,
    boundaries: Optional[Sequence[bool]] = None,
) -> str:
    """Return the trimmed sentence text containing ``position``, or ``""``."""
    bounds = sentence_bounds(texts, position, boundaries)
    if bounds is None:
        return ""
    start, end = bounds
    return "".join(texts[start : end + 1]).strip()


class SentenceContextExtractor:
    """Memoised :func:`extract_sentence` over one projected stream."""

    def __init__(self, texts: Sequence[str], boundaries: Optional[Sequence[bool]] = None) -> None:
        self._texts = tuple(texts)
        self._boundaries = tuple(boundaries) if boundaries is not None else tuple(boundary_mask(texts))
        if len(self._boundaries) != len(self._texts):
            raise ValueError("boundaries must have one entry per token")
        self._sentences: Dict[int, str] = {}

    @property
    def texts(self) -> tuple[str, ...]:
        return self._texts

    def sentence_bounds(self, position: int) -> Optional[tuple[int, int]]:
        return sentence_bounds(self._texts, position, self._boundaries)

    def extract(self, position: int) -> str:
        cached = self._sentences.get(position)
        if cached is None:
            cached = extract_sentence(self._texts, position, self._boundaries)
            self._sentences[position] = cached
        return cached

    __call__ = extract


@dataclass(frozen=True, slots=True)
class SentencePair:
    """The sentence around one position, on both language sides."""

    source_sentence: str
    target_sentence: str

    def for_side(self, side: LanguageSide) -> str:
        return self.source_sentence if side is LanguageSide.SOURCE else self.target_sentence


class TokenSentenceContexts:
    """Sentence lookups on both projections of one token stream."""

    def __init__(self, tokens: Sequence[Token], *, terminators: str = DEFAULT_TERMINATORS) -> None:
        self._tokens = tuple(tokens)
        pattern = (
            _DEFAULT_BOUNDARY_PATTERN
            if terminators == DEFAULT_TERMINATORS
            else build_boundary_pattern(terminators)
        )
        mask = token_boundary_mask(self._tokens, pattern)
        self._extractors = {
            side: SentenceContextExtractor(project_tokens(self._tokens, side), mask)
            for side in LanguageSide
        }

    @property
    def tokens(self) -> tuple[Token, ...]:
        return self._tokens

    def extractor(self, side: LanguageSide) -> SentenceContextExtractor:
        return self._extractors[side]

    def sentence_at(self, position: Optional[int], side: LanguageSide) -> str:
        if position is None or not self._tokens:
            return ""
        return self._extractors[side].extract(position)

    def sentences_at(self, position: Optional[int]) -> SentencePair:
        return SentencePair(
            source_sentence=self.sentence_at(position, LanguageSide.SOURCE),
            target_sentence=self.sentence_at(position, LanguageSide.TARGET),
        )


__all__ = [
    "DEFAULT_TERMINATORS",
    "SentenceContextExtractor",
    "SentencePair",
    "TokenSentenceContexts",
    "boundary_mask",
    "build_boundary_pattern",
    "extract_sentence",
    "sentence_bounds",
    "token_boundary_mask",
]
