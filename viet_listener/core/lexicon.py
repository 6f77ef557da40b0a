"""Phrase → translation lexicon with runtime learning and export.

WHY: Dictionary knowledge is the strongest segmentation signal. The
lexicon is loaded once from a JSON file, queried for every candidate span,
and extended at runtime when the scorer detects a compound the dictionary
did not know about.

HOW: A plain dict holds all entries. Lookups try the lowercased phrase
first and the exact phrase second, matching how dictionary files mix
normalized and original-case keys. Learned phrases are tracked separately
so they can be exported without dumping the whole dictionary.

RULES:
- Keys are phrases of 1..MAX_SPAN syllables joined by single spaces
- Lookup: lowercase key first, exact key second; empty translations count
  as absent
- learn() stores under the lowercased key and records the phrase as learned
- Learned entries are process-lifetime only; export_learned() is the only
  way to persist them
- Files are validated with jsonschema on load
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path

import jsonschema

from viet_listener.core.files import write_json_atomic
from viet_listener.errors import LexiconFormatError

logger = logging.getLogger(__name__)

MAX_SPAN = 4
"""Longest phrase, in syllables, that a lexicon key may cover."""

LEXICON_SCHEMA = {
    "type": "object",
    "additionalProperties": {"type": "string"},
}


class Lexicon:
    """Mutable phrase → translation mapping.

    RULES:
    - lookup() never raises; it returns None for unknown phrases
    - The learned set only ever grows within a process
    """

    def __init__(self, entries: Mapping[str, str] | None = None) -> None:
        self._entries: dict[str, str] = dict(entries or {})
        self._learned: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, phrase: object) -> bool:
        return isinstance(phrase, str) and self.lookup(phrase) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def lookup(self, phrase: str) -> str | None:
        """Return the translation for a phrase, or None if absent.

        HOW: Case-insensitive primary check, case-sensitive fallback.
        """
        translation = self._entries.get(phrase.lower())
        if translation:
            return translation
        translation = self._entries.get(phrase)
        if translation:
            return translation
        return None

    def learn(self, phrase: str, translation: str) -> None:
        """Insert a detected compound for the rest of the process lifetime."""
        key = phrase.lower()
        self._entries[key] = translation
        self._learned[key] = translation
        logger.debug("Learned compound %r -> %r", key, translation)

    @property
    def learned_count(self) -> int:
        return len(self._learned)

    def learned_entries(self) -> dict[str, str]:
        """Return a copy of every entry learned at runtime."""
        return dict(self._learned)

    def export_learned(self, path: str | Path) -> int:
        """Write the learned entries to a JSON file, replacing it atomically.

        Returns:
            Number of entries written.
        """
        entries = self.learned_entries()
        write_json_atomic(path, entries)
        logger.info("Exported %d learned entries to %s", len(entries), path)
        return len(entries)

    @classmethod
    def from_file(cls, path: str | Path) -> Lexicon:
        """Load a lexicon from a JSON object file.

        Raises:
            FileNotFoundError: If the file does not exist.
            LexiconFormatError: If the file is not a JSON object of strings.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise LexiconFormatError(f"{path}: invalid JSON ({exc})") from exc

        try:
            jsonschema.validate(instance=data, schema=LEXICON_SCHEMA)
        except jsonschema.ValidationError as exc:
            raise LexiconFormatError(f"{path}: {exc.message}") from exc

        return cls(data)


def load_lexicon(path: str | Path, missing_ok: bool = True) -> Lexicon:
    """Load the lexicon file, or an empty lexicon when it is missing.

    WHY: The server and CLI remain usable without a dictionary file; they
    then rely on the oracle for every span.

    RULES:
    - Missing file + missing_ok → empty Lexicon and a warning
    - Missing file + not missing_ok → FileNotFoundError
    - Malformed file → LexiconFormatError regardless of missing_ok
    """
    path = Path(path)
    if not path.is_file():
        if not missing_ok:
            raise FileNotFoundError(f"Lexicon file not found: {path}")
        logger.warning("%s not found, relying on the translation oracle for all words", path)
        return Lexicon()

    lexicon = Lexicon.from_file(path)
    logger.info("Dictionary loaded: %d entries", len(lexicon))
    return lexicon
