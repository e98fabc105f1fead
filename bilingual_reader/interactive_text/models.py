"""Data models for interactive bilingual text.

A story arrives as an ordered stream of tokens produced by the upstream
generation step. Word tokens carry both language sides; punctuation and
whitespace tokens are shared verbatim by both sides, so projecting the stream
onto either side and concatenating reconstructs that side's full text.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Sequence, Union, assert_never

PartOfSpeech = Literal[
    "noun",
    "verb",
    "adjective",
    "adverb",
    "pronoun",
    "preposition",
    "conjunction",
    "interjection",
    "article",
    "determiner",
    "other",
]
DifficultyLevel = Literal["a1", "a2", "b1", "b2", "c1", "c2"]

PARTS_OF_SPEECH: tuple[str, ...] = (
    "noun",
    "verb",
    "adjective",
    "adverb",
    "pronoun",
    "preposition",
    "conjunction",
    "interjection",
    "article",
    "determiner",
    "other",
)
DIFFICULTY_LEVELS: tuple[str, ...] = ("a1", "a2", "b1", "b2", "c1", "c2")


class LanguageSide(enum.Enum):
    """Which language projection of the token stream is meant."""

    SOURCE = "source"
    TARGET = "target"

    @property
    def opposite(self) -> "LanguageSide":
        return LanguageSide.TARGET if self is LanguageSide.SOURCE else LanguageSide.SOURCE


def normalize_word(word: str) -> str:
    """Normalize a word or lemma for use as a lookup key."""
    return word.strip().casefold()


@dataclass(frozen=True, slots=True)
class WordToken:
    """A word with its aligned counterpart in the other language."""

    source_word: str
    """Surface form in the source (reader's native) language."""

    source_lemma: str
    """Dictionary form in the source language."""

    target_word: str
    """Surface form in the target (learning) language."""

    target_lemma: str
    """Dictionary form in the target language."""

    part_of_speech: Optional[PartOfSpeech] = None
    difficulty: Optional[DifficultyLevel] = None
    definition: Optional[str] = None
    """Definition written in the source language."""

    kind: Literal["word"] = "word"

    def word_for(self, side: LanguageSide) -> str:
        return self.source_word if side is LanguageSide.SOURCE else self.target_word

    def lemma_for(self, side: LanguageSide) -> str:
        lemma = self.source_lemma if side is LanguageSide.SOURCE else self.target_lemma
        return lemma or self.word_for(side)

    def matches(self, word: str) -> bool:
        """Return ``True`` when ``word`` equals any of the word or lemma fields."""
        needle = normalize_word(word)
        return needle in {
            normalize_word(self.source_word),
            normalize_word(self.source_lemma),
            normalize_word(self.target_word),
            normalize_word(self.target_lemma),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the generation step's wire format."""
        return {
            "type": "word",
            "from_word": self.source_word,
            "from_lemma": self.source_lemma,
            "to_word": self.target_word,
            "to_lemma": self.target_lemma,
            "pos": self.part_of_speech,
            "difficulty": self.difficulty,
            "from_definition": self.definition,
        }


@dataclass(frozen=True, slots=True)
class PunctuationToken:
    """Orthographic marks such as ``.``, ``,`` or ``?!``."""

    value: str
    kind: Literal["punctuation"] = "punctuation"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "punctuation", "value": self.value}


@dataclass(frozen=True, slots=True)
class WhitespaceToken:
    """Spaces, tabs and newlines between other tokens."""

    value: str
    kind: Literal["whitespace"] = "whitespace"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "whitespace", "value": self.value}


Token = Union[WordToken, PunctuationToken, WhitespaceToken]


def token_text(token: Token, side: LanguageSide) -> str:
    """Return the text ``token`` contributes to the ``side`` projection."""
    match token:
        case WordToken():
            return token.word_for(side)
        case PunctuationToken() | WhitespaceToken():
            return token.value
        case _:
            assert_never(token)


def project_tokens(tokens: Sequence[Token], side: LanguageSide) -> List[str]:
    """Project a token stream onto one language side."""
    return [token_text(token, side) for token in tokens]


def reconstruct_text(tokens: Sequence[Token], side: LanguageSide) -> str:
    """Rebuild the full text of one side by concatenating its projection."""
    return "".join(project_tokens(tokens, side))


def token_from_dict(data: Mapping[str, Any]) -> Token:
    """Create a token from an already-validated wire dictionary.

    Use :func:`~bilingual_reader.interactive_text.token_validation.validate_translation_payload`
    for untrusted payloads.
    """
    kind = data.get("type")
    if kind == "word":
        return WordToken(
            source_word=str(data.get("from_word", "")),
            source_lemma=str(data.get("from_lemma", "")),
            target_word=str(data.get("to_word", "")),
            target_lemma=str(data.get("to_lemma", "")),
            part_of_speech=data.get("pos") if data.get("pos") in PARTS_OF_SPEECH else None,
            difficulty=data.get("difficulty") if data.get("difficulty") in DIFFICULTY_LEVELS else None,
            definition=data.get("from_definition") or None,
        )
    if kind == "punctuation":
        return PunctuationToken(value=str(data.get("value", "")))
    if kind == "whitespace":
        return WhitespaceToken(value=str(data.get("value", "")))
    raise ValueError(f"Unknown token type: {kind!r}")


def tokens_from_dicts(items: Iterable[Mapping[str, Any]]) -> List[Token]:
    return [token_from_dict(item) for item in items]


@dataclass(frozen=True, slots=True)
class TranslationWithTokens:
    """Full translated text plus its token stream."""

    translation: str
    tokens: tuple[Token, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "translation": self.translation,
            "tokens": [token.to_dict() for token in self.tokens],
        }


__all__ = [
    "DIFFICULTY_LEVELS",
    "DifficultyLevel",
    "LanguageSide",
    "PARTS_OF_SPEECH",
    "PartOfSpeech",
    "PunctuationToken",
    "Token",
    "TranslationWithTokens",
    "WhitespaceToken",
    "WordToken",
    "normalize_word",
    "project_tokens",
    "reconstruct_text",
    "token_from_dict",
    "token_text",
    "tokens_from_dicts",
]
