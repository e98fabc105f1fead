"""Interfaces of the collaborators the reading core depends on."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .saved_words import VocabularyEntry


@runtime_checkable
class TranslationBackend(Protocol):
    """Network translation client.

    Both calls resolve to ``None`` (or raise) when no translation is
    available; reporting the failure to the user is the backend's concern.
    """

    async def translate_sentence(
        self, sentence: str, from_language: str, to_language: str
    ) -> Optional[str]: ...

    async def translate_word_in_sentence(
        self, word: str, sentence: str, from_language: str, to_language: str
    ) -> Optional[str]: ...


@runtime_checkable
class VocabularyStore(Protocol):
    """Persistent vocabulary collection."""

    async def save_vocabulary(self, entry: "VocabularyEntry") -> bool: ...


@runtime_checkable
class LanguageLookup(Protocol):
    def id_for(self, code: Optional[str]) -> Optional[int]: ...


__all__ = ["LanguageLookup", "TranslationBackend", "VocabularyStore"]
