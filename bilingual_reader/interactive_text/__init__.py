"""Interactive bilingual text: sentence context, translation memo and saving.

This module turns a validated token stream into an interactive reading
surface. Words are translated lazily in the context of their sentence,
translations are memoised per token position, and words can be saved to the
reader's vocabulary in a fixed (source, target) direction regardless of which
language is currently displayed.

Key Components:
    - WordToken / PunctuationToken / WhitespaceToken: the token model
    - TokenSentenceContexts: sentence lookup on both projections
    - TranslationCache: position-keyed memo with in-flight de-duplication
    - resolve_canonical_context: display orientation -> canonical pair
    - SavedVocabularyIndex: saved words of one language pair
    - WordInteractionController: per-word menu/translation/saved state
    - ReadingSession: lifetime owner of all of the above

Usage Example:
    from bilingual_reader.interactive_text import ReadingSession

    session = ReadingSession.from_payload(
        generated_json,
        backend=translation_client,
        store=vocabulary_store,
        languages=LanguageRegistry({"en": 1, "es": 2}),
        source_language="en",
        target_language="es",
        vocabulary=saved_rows,
    )
    unsubscribe = session.subscribe(render_queue.put_nowait)

    # Open the word menu and translate in context
    session.toggle_menu("world", 2)
    translation = await session.translate("world", 2)

    # Persist as (source, target) even when the target side is displayed
    session.set_orientation(False)
    outcome = await session.save("mundo", 2)

    session.close()
"""

from .events import EventPublisher, Listener, StateChange

from .models import (
    DIFFICULTY_LEVELS,
    PARTS_OF_SPEECH,
    DifficultyLevel,
    LanguageSide,
    PartOfSpeech,
    PunctuationToken,
    Token,
    TranslationWithTokens,
    WhitespaceToken,
    WordToken,
    normalize_word,
    project_tokens,
    reconstruct_text,
    token_from_dict,
    token_text,
    tokens_from_dicts,
)

from .token_validation import (
    TokenValidationResult,
    parse_tokens,
    validate_translation_payload,
)

from .sentence_context import (
    DEFAULT_TERMINATORS,
    SentenceContextExtractor,
    SentencePair,
    TokenSentenceContexts,
    boundary_mask,
    build_boundary_pattern,
    extract_sentence,
    sentence_bounds,
    token_boundary_mask,
)

from .translation_cache import (
    CacheKey,
    SentenceSupplier,
    TranslationCache,
    TranslationCacheStats,
)

from .orientation import (
    CanonicalContext,
    CanonicalPair,
    canonical_pair,
    canonical_sentences,
    display_side,
    resolve_canonical_context,
)

from .saved_words import (
    RawVocabularyItem,
    SavedVocabularyIndex,
    VocabularyEntry,
    build_index,
)

from .protocols import LanguageLookup, TranslationBackend, VocabularyStore

from .word_interaction import (
    SaveOutcome,
    TranslationStatus,
    WordInteractionController,
    WordKey,
    WordMetadata,
    WordState,
)

from .session import ReadingSession

__all__ = [
    # Events
    "EventPublisher",
    "Listener",
    "StateChange",
    # Models
    "DIFFICULTY_LEVELS",
    "PARTS_OF_SPEECH",
    "DifficultyLevel",
    "LanguageSide",
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
    # Validation
    "TokenValidationResult",
    "parse_tokens",
    "validate_translation_payload",
    # Sentence context
    "DEFAULT_TERMINATORS",
    "SentenceContextExtractor",
    "SentencePair",
    "TokenSentenceContexts",
    "boundary_mask",
    "build_boundary_pattern",
    "extract_sentence",
    "sentence_bounds",
    "token_boundary_mask",
    # Translation cache
    "CacheKey",
    "SentenceSupplier",
    "TranslationCache",
    "TranslationCacheStats",
    # Orientation
    "CanonicalContext",
    "CanonicalPair",
    "canonical_pair",
    "canonical_sentences",
    "display_side",
    "resolve_canonical_context",
    # Saved vocabulary
    "RawVocabularyItem",
    "SavedVocabularyIndex",
    "VocabularyEntry",
    "build_index",
    # Collaborators
    "LanguageLookup",
    "TranslationBackend",
    "VocabularyStore",
    # Word interaction
    "SaveOutcome",
    "TranslationStatus",
    "WordInteractionController",
    "WordKey",
    "WordMetadata",
    "WordState",
    # Session
    "ReadingSession",
]
