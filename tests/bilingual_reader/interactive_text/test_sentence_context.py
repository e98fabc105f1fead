"""Tests for sentence context extraction."""

from __future__ import annotations

import pytest

from bilingual_reader.interactive_text import (
    LanguageSide,
    SentenceContextExtractor,
    TokenSentenceContexts,
    extract_sentence,
    project_tokens,
    sentence_bounds,
    token_boundary_mask,
)
from tests.helpers.reader_doubles import punct, space, word

pytestmark = pytest.mark.reader


class TestExtractSentence:
    def test_single_sentence_on_both_sides(self, hello_world_tokens):
        contexts = TokenSentenceContexts(hello_world_tokens)

        assert contexts.sentence_at(0, LanguageSide.SOURCE) == "Hello world!"
        assert contexts.sentence_at(0, LanguageSide.TARGET) == "Hola mundo!"

    def test_second_sentence_excludes_first(self, two_sentence_tokens):
        contexts = TokenSentenceContexts(two_sentence_tokens)

        sentence = contexts.sentence_at(9, LanguageSide.SOURCE)

        assert sentence == "The dog barks."
        assert "cat" not in sentence
        assert contexts.sentence_at(9, LanguageSide.TARGET) == "El perro ladra."

    def test_boundary_position_has_no_sentence(self, two_sentence_tokens):
        texts = project_tokens(two_sentence_tokens, LanguageSide.SOURCE)
        assert extract_sentence(texts, 5) == ""
        assert sentence_bounds(texts, 5) is None
        assert extract_sentence(["The", " ", "cat", "."], 3) == ""

    def test_boundary_closes_preceding_sentence(self, two_sentence_tokens):
        texts = project_tokens(two_sentence_tokens, LanguageSide.SOURCE)
        assert extract_sentence(texts, 4) == "The cat sleeps."
        assert sentence_bounds(texts, 4) == (0, 5)

    def test_whitespace_after_boundary_starts_next_sentence(self, two_sentence_tokens):
        texts = project_tokens(two_sentence_tokens, LanguageSide.SOURCE)
        assert sentence_bounds(texts, 6) == (6, 12)
        assert extract_sentence(texts, 6) == "The dog barks."

    def test_trailing_unterminated_sentence(self):
        texts = ["One", ".", " ", "two", " ", "three"]
        assert extract_sentence(texts, 4) == "two three"
        assert sentence_bounds(texts, 5) == (2, 5)

    def test_text_without_boundaries_is_one_sentence(self):
        texts = ["no", " ", "punctuation", " ", "here"]
        assert extract_sentence(texts, 2) == "no punctuation here"

    def test_boundary_regex_allows_trailing_whitespace(self):
        texts = ["Stop", "! ", "Go", "?\n"]
        assert extract_sentence(texts, 2) == "Go?"


class TestEdgeCases:
    """Out-of-range and degenerate positions never raise."""

    def test_empty_stream(self):
        assert extract_sentence([], 0) == ""
        assert sentence_bounds([], 3) is None

    def test_negative_position_yields_first_sentence(self):
        texts = ["A", ".", " ", "B", "."]
        assert extract_sentence(texts, -4) == "A."

    def test_position_past_end_yields_trailing_sentence(self):
        texts = ["A", ".", " ", "B"]
        assert extract_sentence(texts, 10) == "B"

    def test_position_past_end_after_boundary_is_empty(self):
        texts = ["A", ".", " ", "B", "."]
        assert extract_sentence(texts, 5) == ""
        assert extract_sentence(texts, 99) == ""

    def test_whitespace_between_boundaries_is_empty(self):
        texts = ["Wait", ".", " ", "!", " ", "Go", "."]
        assert extract_sentence(texts, 2) == ""
        assert extract_sentence(texts, 3) == ""
        assert extract_sentence(texts, 5) == "Go."

    def test_boundary_directly_after_boundary_is_empty(self):
        texts = ["Really", "?", "!"]
        assert extract_sentence(texts, 2) == ""

    def test_none_position_on_token_contexts(self, hello_world_tokens):
        contexts = TokenSentenceContexts(hello_world_tokens)
        assert contexts.sentence_at(None, LanguageSide.SOURCE) == ""


class TestStructuralSymmetry:
    def test_bounds_identical_across_projections(self, two_sentence_tokens):
        contexts = TokenSentenceContexts(two_sentence_tokens)
        source = contexts.extractor(LanguageSide.SOURCE)
        target = contexts.extractor(LanguageSide.TARGET)

        for position in range(-1, len(two_sentence_tokens) + 2):
            assert source.sentence_bounds(position) == target.sentence_bounds(position)

    def test_word_with_terminal_text_is_not_a_boundary(self):
        # "etc." is a word on the source side only; punctuation decides boundaries.
        tokens = (
            word("etc.", "etcétera"),
            space(),
            word("more", "más"),
            punct("."),
        )
        mask = token_boundary_mask(tokens)
        assert mask == [False, False, False, True]

        contexts = TokenSentenceContexts(tokens)
        pair = contexts.sentences_at(2)
        assert pair.source_sentence == "etc. more."
        assert pair.target_sentence == "etcétera más."
        assert pair.for_side(LanguageSide.TARGET) == "etcétera más."


class TestExtractor:
    def test_memoises_per_position(self):
        extractor = SentenceContextExtractor(["A", ".", " ", "B", "."])
        first = extractor.extract(3)
        assert extractor(3) is first
        assert first == "B."

    def test_mismatched_mask_rejected(self):
        with pytest.raises(ValueError):
            SentenceContextExtractor(["A", "."], [False])

    def test_custom_terminators(self):
        tokens = (word("Hi", "你好"), punct("。"), word("Bye", "再见"))
        contexts = TokenSentenceContexts(tokens, terminators="。")
        assert contexts.sentence_at(2, LanguageSide.TARGET) == "再见"
        assert contexts.sentence_at(0, LanguageSide.TARGET) == "你好。"
