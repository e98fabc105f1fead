"""Language code to numeric identifier lookup."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

import regex

from . import logging_manager as log_mgr

logger = log_mgr.get_logger().getChild("languages")

_LANG_CODE_PATTERN = regex.compile(r"^[a-z]{2,3}([_-][a-z0-9]{2,4})?$", regex.IGNORECASE)


def normalize_language_code(value: Optional[str]) -> Optional[str]:
    """Return ``value`` lower-cased with ``_`` replaced by ``-``, or ``None`` if blank."""

    if value is None:
        return None
    cleaned = value.strip().replace("_", "-").lower()
    return cleaned or None


class LanguageRegistry:
    """Resolve language codes (``"en"``, ``"pt-BR"``) to store identifiers.

    Lookups are case-insensitive; a regional code with no registered entry
    falls back to its base code (``"pt-br"`` -> ``"pt"``).
    """

    def __init__(self, codes: Mapping[str, int]) -> None:
        self._ids: Dict[str, int] = {}
        self._names: Dict[str, str] = {}
        for code, language_id in codes.items():
            normalized = normalize_language_code(code)
            if not normalized:
                continue
            self._ids[normalized] = int(language_id)

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> "LanguageRegistry":
        """Build a registry from store rows carrying ``id``, ``code`` and ``name``."""

        codes: Dict[str, int] = {}
        names: Dict[str, str] = {}
        for row in rows:
            code = normalize_language_code(str(row.get("code") or ""))
            language_id = row.get("id")
            if not code or language_id is None:
                logger.debug(
                    "Skipping language row without code or id",
                    extra={"event": "languages.row_skipped", "row": dict(row)},
                )
                continue
            codes[code] = int(language_id)
            name = row.get("name")
            if isinstance(name, str) and name.strip():
                names[name.strip().lower()] = code
        registry = cls(codes)
        registry._names = names
        return registry

    def id_for(self, code: Optional[str]) -> Optional[int]:
        """Return the identifier for ``code`` (or a language name), ``None`` if unknown."""

        normalized = normalize_language_code(code)
        if normalized is None:
            return None
        if normalized in self._ids:
            return self._ids[normalized]
        if _LANG_CODE_PATTERN.match(normalized) and "-" in normalized:
            base = normalized.split("-", 1)[0]
            if base in self._ids:
                return self._ids[base]
        named = self._names.get(normalized)
        if named is not None:
            return self._ids.get(named)
        return None

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and self.id_for(code) is not None

    def __len__(self) -> int:
        return len(self._ids)


__all__ = ["LanguageRegistry", "normalize_language_code"]
