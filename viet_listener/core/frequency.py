"""Vocabulary counting and the cumulative word-frequency table.

WHY: Learners study the words they actually hear. Each processed
recording session contributes word counts, and the counts accumulate
across sessions into one table sorted by frequency.

HOW: extract_vocabulary() greedy-segments every utterance (no oracle
calls) and counts lowercased words. merge_word_frequency() loads the
persisted table, adds the new counts, re-sorts, and rewrites the file
atomically. generate_study_sheet() renders the run's top words as a
markdown table.

RULES:
- Table file: JSON list of {"word", "count"}, sorted by count descending
- Merge is additive (missing words default to 0) and NOT idempotent:
  merging the same counts twice adds them twice
- Ties keep their previous order; new words follow existing ones
- The file is replaced in full via temp file + os.replace, never partially
- Utterance files are JSONL with a "vietnamese" field per line
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

import jsonschema

from viet_listener.core.files import write_json_atomic
from viet_listener.core.greedy import greedy_segment
from viet_listener.core.lexicon import Lexicon
from viet_listener.core.models import FrequencyEntry, VocabularyEntry
from viet_listener.errors import FrequencyTableFormatError

logger = logging.getLogger(__name__)

FREQUENCY_TABLE_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "word": {"type": "string"},
            "count": {"type": "integer", "minimum": 0},
        },
        "required": ["word", "count"],
    },
}


def extract_vocabulary(
    utterances: Iterable[str],
    lexicon: Lexicon,
) -> dict[str, VocabularyEntry]:
    """Count words across utterances using the greedy segmenter.

    Returns:
        Lowercased word → VocabularyEntry, in first-seen order. The
        translation is the lexicon entry, or "" when there is none.
    """
    counts: dict[str, VocabularyEntry] = {}
    for utterance in utterances:
        for word in greedy_segment(utterance, lexicon):
            key = word.lower()
            entry = counts.get(key)
            if entry is not None:
                entry.count += 1
            else:
                counts[key] = VocabularyEntry(
                    word=key,
                    count=1,
                    translation=lexicon.lookup(word) or "",
                )
    return counts


def load_frequency_table(path: str | Path) -> list[FrequencyEntry]:
    """Load the persisted table; a missing file is an empty table.

    Raises:
        FrequencyTableFormatError: If the file is not a list of {word, count}.
    """
    path = Path(path)
    if not path.is_file():
        return []

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise FrequencyTableFormatError(f"{path}: invalid JSON ({exc})") from exc

    try:
        jsonschema.validate(instance=data, schema=FREQUENCY_TABLE_SCHEMA)
    except jsonschema.ValidationError as exc:
        raise FrequencyTableFormatError(f"{path}: {exc.message}") from exc

    return [FrequencyEntry(word=item["word"], count=item["count"]) for item in data]


def merge_counts(
    existing: Iterable[FrequencyEntry],
    delta: Mapping[str, int],
) -> list[FrequencyEntry]:
    """Add delta counts onto an existing table and re-sort it.

    Pure function; the inputs are not modified.
    """
    merged: dict[str, int] = {}
    for entry in existing:
        merged[entry.word] = entry.count
    for word, count in delta.items():
        merged[word] = merged.get(word, 0) + count

    table = [FrequencyEntry(word=w, count=c) for w, c in merged.items()]
    table.sort(key=lambda e: e.count, reverse=True)
    return table


def write_frequency_table(path: str | Path, entries: Iterable[FrequencyEntry]) -> None:
    """Rewrite the whole table atomically."""
    write_json_atomic(path, [{"word": e.word, "count": e.count} for e in entries])


def merge_word_frequency(
    path: str | Path,
    delta: Mapping[str, int],
) -> list[FrequencyEntry]:
    """Load, merge, and rewrite the frequency table at path.

    Returns:
        The merged table as written.
    """
    table = merge_counts(load_frequency_table(path), delta)
    write_frequency_table(path, table)
    logger.info("Merged %d word(s) into %s (%d total)", len(delta), path, len(table))
    return table


def vocabulary_counts(vocabulary: Mapping[str, VocabularyEntry]) -> dict[str, int]:
    """Reduce a vocabulary mapping to word → count for merging."""
    return {word: entry.count for word, entry in vocabulary.items()}


def generate_study_sheet(
    vocabulary: Mapping[str, VocabularyEntry],
    date: str,
    limit: int = 30,
) -> str:
    """Render the most frequent translated words as a markdown table.

    RULES:
    - Only words with a lexicon translation are listed
    - Sorted by count descending, at most ``limit`` rows
    """
    ranked = sorted(
        (entry for entry in vocabulary.values() if entry.translation),
        key=lambda e: e.count,
        reverse=True,
    )[:limit]

    lines = [
        f"# Vietnamese Study Sheet — {date}",
        "",
        f"> Top {len(ranked)} words by frequency from conversation",
        "",
        "| # | Vietnamese | English | Count |",
        "|---|-----------|---------|-------|",
    ]
    for i, entry in enumerate(ranked, start=1):
        lines.append(f"| {i} | {entry.word} | {entry.translation} | {entry.count} |")
    return "\n".join(lines) + "\n"


def load_utterances(path: str | Path) -> list[str]:
    """Read the "vietnamese" text of every utterance in a JSONL file.

    RULES:
    - Blank lines are skipped
    - Lines without a non-empty "vietnamese" string are skipped with a warning
    - Invalid JSON raises ValueError naming the line number
    """
    utterances: list[str] = []
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{path}:{lineno}: invalid JSON ({exc})") from exc
        text = record.get("vietnamese") if isinstance(record, dict) else None
        if not isinstance(text, str) or not text.strip():
            logger.warning("%s:%d: no vietnamese text, skipping", path, lineno)
            continue
        utterances.append(text)
    return utterances
