"""Validation of token payloads returned by the story generation step.

Validation is two-tiered:

* required fields (token ``type``, the four word/lemma fields of a word
  token, ``value`` of punctuation and whitespace tokens) must be present and
  non-empty strings, otherwise the whole payload is rejected;
* metadata fields (``pos``, ``difficulty``, ``from_definition``) that are
  missing or invalid are set to ``None`` and reported as warnings.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Annotated, Any, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, TypeAdapter, ValidationError

from bilingual_reader import logging_manager as log_mgr
from bilingual_reader.errors import TokenValidationError

from .models import (
    DIFFICULTY_LEVELS,
    PARTS_OF_SPEECH,
    PunctuationToken,
    Token,
    TranslationWithTokens,
    WhitespaceToken,
    WordToken,
)

logger = log_mgr.get_logger().getChild("token_validation")

RequiredText = Annotated[StrictStr, Field(min_length=1)]


class _WordPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["word"]
    from_word: RequiredText
    from_lemma: RequiredText
    to_word: RequiredText
    to_lemma: RequiredText
    pos: Any = None
    difficulty: Any = None
    from_definition: Any = None


class _PunctuationPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["punctuation"]
    value: RequiredText


class _WhitespacePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["whitespace"]
    value: RequiredText


_TOKEN_ADAPTER: TypeAdapter[Any] = TypeAdapter(
    Annotated[
        Union[_WordPayload, _PunctuationPayload, _WhitespacePayload],
        Field(discriminator="type"),
    ]
)


@dataclass
class TokenValidationResult:
    """Outcome of validating one generation payload."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    data: Optional[TranslationWithTokens] = None


def _format_errors(index: int, exc: ValidationError) -> List[str]:
    messages: List[str] = []
    for entry in exc.errors():
        location = ".".join(str(part) for part in entry.get("loc", ()) if part not in {None, ""})
        prefix = f"{location}: " if location else ""
        messages.append(f"Token at index {index}: {prefix}{entry.get('msg', 'invalid value')}")
    return messages


def _coerce_choice(
    value: Any,
    *,
    name: str,
    choices: tuple[str, ...],
    index: int,
    warnings: List[str],
) -> Optional[str]:
    if not value or not isinstance(value, str):
        warnings.append(f"Word token at index {index} missing or invalid {name}, setting to null")
        return None
    normalized = value.strip().lower()
    if normalized not in choices:
        warnings.append(
            f'Word token at index {index} has invalid {name} "{value}", setting to null'
        )
        return None
    return normalized


def _build_word(payload: _WordPayload, index: int, warnings: List[str]) -> WordToken:
    pos = _coerce_choice(
        payload.pos, name="pos", choices=PARTS_OF_SPEECH, index=index, warnings=warnings
    )
    difficulty = _coerce_choice(
        payload.difficulty,
        name="difficulty",
        choices=DIFFICULTY_LEVELS,
        index=index,
        warnings=warnings,
    )
    definition = payload.from_definition
    if not isinstance(definition, str) or not definition.strip():
        warnings.append(
            f"Word token at index {index} missing or invalid from_definition, setting to null"
        )
        definition = None
    return WordToken(
        source_word=payload.from_word,
        source_lemma=payload.from_lemma,
        target_word=payload.to_word,
        target_lemma=payload.to_lemma,
        part_of_speech=pos,  # type: ignore[arg-type]
        difficulty=difficulty,  # type: ignore[arg-type]
        definition=definition,
    )


def _validate_token(raw: Any, index: int, warnings: List[str]) -> tuple[Optional[Token], List[str]]:
    if not isinstance(raw, Mapping):
        return None, [f"Token at index {index} is not an object"]
    if not isinstance(raw.get("type"), str) or not raw.get("type"):
        return None, [f"Token at index {index} missing or invalid type"]
    try:
        payload = _TOKEN_ADAPTER.validate_python(dict(raw))
    except ValidationError as exc:
        return None, _format_errors(index, exc)

    if isinstance(payload, _WordPayload):
        return _build_word(payload, index, warnings), []
    if isinstance(payload, _PunctuationPayload):
        return PunctuationToken(value=payload.value), []
    return WhitespaceToken(value=payload.value), []


def validate_translation_payload(raw: str | Mapping[str, Any]) -> TokenValidationResult:
    """Validate a ``{"translation": ..., "tokens": [...]}`` payload."""

    if isinstance(raw, str):
        try:
            parsed: Any = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error(
                "JSON parse error",
                extra={"event": "tokens.validation.parse_error", "error": str(exc)},
            )
            return TokenValidationResult(is_valid=False, errors=["Failed to parse JSON response"])
    else:
        parsed = raw

    if not isinstance(parsed, Mapping):
        return TokenValidationResult(is_valid=False, errors=["Response is not a valid object"])

    translation = parsed.get("translation")
    if not translation or not isinstance(translation, str):
        return TokenValidationResult(
            is_valid=False, errors=["Missing or invalid translation field"]
        )

    raw_tokens = parsed.get("tokens")
    if not isinstance(raw_tokens, list):
        return TokenValidationResult(is_valid=False, errors=["Missing or invalid tokens array"])

    warnings: List[str] = []
    tokens: List[Token] = []
    for index, raw_token in enumerate(raw_tokens):
        token, errors = _validate_token(raw_token, index, warnings)
        if errors or token is None:
            logger.warning(
                "Token validation failed",
                extra={"event": "tokens.validation.failed", "errors": errors},
            )
            return TokenValidationResult(is_valid=False, errors=errors, warnings=warnings)
        tokens.append(token)

    logger.info(
        "Token validation successful",
        extra={
            "event": "tokens.validation.complete",
            "token_count": len(tokens),
            "word_count": sum(1 for token in tokens if isinstance(token, WordToken)),
            "warning_count": len(warnings),
        },
    )
    return TokenValidationResult(
        is_valid=True,
        warnings=warnings,
        data=TranslationWithTokens(translation=translation, tokens=tuple(tokens)),
    )


def parse_tokens(raw: str | Mapping[str, Any]) -> tuple[Token, ...]:
    """Return the validated tokens of ``raw`` or raise :class:`TokenValidationError`."""

    result = validate_translation_payload(raw)
    if not result.is_valid or result.data is None:
        raise TokenValidationError("Invalid token payload", result.errors)
    return result.data.tokens


__all__ = ["TokenValidationResult", "parse_tokens", "validate_translation_payload"]
