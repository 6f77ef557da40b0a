"""Command-line interface for Viet Listener.

WHY: Segmentation and vocabulary counting are useful outside the browser
app: checking how a sentence splits, building the cumulative frequency
table from transcribed conversations, and starting the API server.

HOW: argparse with three subcommands. ``segment`` runs the optimal (or
greedy) segmenter through a SegmentationSession via asyncio.run().
``vocab`` greedy-segments JSONL utterance files, merges the counts into the
word-frequency table, and optionally writes a study sheet. ``serve`` starts
the FastAPI app with uvicorn.

RULES:
- segment prints one ``word<TAB>translation<TAB>origin`` line per word to
  stdout
- Status messages go to stderr (not stdout)
- User-facing errors print ``Error: ...`` and exit with status 1
- --lexicon-only never contacts the oracle, even when an API key is set
"""

from __future__ import annotations

import argparse
import asyncio
import datetime
import logging
import sys
from pathlib import Path
from typing import List, Optional

from viet_listener import __version__
from viet_listener.config import (
    DICTIONARY_PATH,
    SERVER_HOST,
    SERVER_PORT,
    STUDY_SHEET_LIMIT,
    WORD_FREQUENCY_PATH,
)
from viet_listener.core.frequency import (
    extract_vocabulary,
    generate_study_sheet,
    load_utterances,
    merge_word_frequency,
    vocabulary_counts,
)
from viet_listener.core.lexicon import load_lexicon
from viet_listener.core.models import SpanOrigin
from viet_listener.core.session import create_session
from viet_listener.errors import VietListenerError


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


# ---------------------------------------------------------------------------
# segment
# ---------------------------------------------------------------------------


async def _run_segment(args: argparse.Namespace) -> None:
    """Segment one text and print the words with their translations.

    RULES:
    - --greedy uses dictionary longest-match only (no oracle)
    - --export-learned writes compounds learned during this run
    - --greedy learns nothing, so argparse rejects it with --export-learned
    """
    session = create_session(
        dictionary_path=args.dictionary,
        use_oracle=not (args.lexicon_only or args.greedy),
    )

    if args.greedy:
        for word in session.segment_greedy(args.text):
            translation = session.lexicon.lookup(word)
            origin = SpanOrigin.LEXICON if translation else SpanOrigin.FALLBACK
            print("{}\t{}\t{}".format(word, translation or word, origin.value))
        return

    async with session:
        segmentation = await session.segment(args.text)

    for span in segmentation.spans:
        print("{}\t{}\t{}".format(span.text, span.translation, span.origin.value))

    status = session.status()
    _status("{} word(s), score {}, backend: {}, {} compound(s) learned".format(
        len(segmentation.spans),
        segmentation.total_score,
        status["backend"],
        status["learned_count"],
    ))

    if args.export_learned:
        count = session.lexicon.export_learned(args.export_learned)
        _status("Exported {} learned entries to {}".format(count, args.export_learned))


# ---------------------------------------------------------------------------
# vocab
# ---------------------------------------------------------------------------


def _run_vocab(args: argparse.Namespace) -> None:
    """Count vocabulary across utterance files and merge into the frequency table."""
    lexicon = load_lexicon(args.dictionary)

    utterances: List[str] = []
    for path in args.jsonl:
        if not Path(path).is_file():
            _fail("File not found: {}".format(path))
        loaded = load_utterances(path)
        _status("Loaded {} utterance(s) from {}".format(len(loaded), path))
        utterances.extend(loaded)

    vocabulary = extract_vocabulary(utterances, lexicon)
    _status("Found {} unique word(s)".format(len(vocabulary)))

    table = merge_word_frequency(args.frequency_file, vocabulary_counts(vocabulary))
    _status("Word frequency table: {} word(s) in {}".format(len(table), args.frequency_file))

    if args.study_sheet:
        sheet = generate_study_sheet(
            vocabulary,
            datetime.date.today().isoformat(),
            limit=STUDY_SHEET_LIMIT,
        )
        out = Path(args.study_sheet)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(sheet, encoding="utf-8")
        _status("Study sheet saved: {}".format(out))


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


def _run_serve(args: argparse.Namespace) -> None:
    from viet_listener.server.app import run_api

    run_api(host=args.host, port=args.port)


# ---------------------------------------------------------------------------
# Parser and entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable: tests can inspect the parser without running anything.
    """
    parser = argparse.ArgumentParser(
        prog="viet-listener",
        description="Segment Vietnamese text into words with translations, "
                    "count vocabulary, and serve the practice API.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s {}".format(__version__),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    seg = subparsers.add_parser("segment", help="Segment a Vietnamese sentence into words.")
    seg.add_argument("text", help="Vietnamese text to segment.")
    greedy_or_export = seg.add_mutually_exclusive_group()
    greedy_or_export.add_argument(
        "--greedy",
        action="store_true",
        help="Use dictionary longest-match instead of the optimal segmenter.",
    )
    seg.add_argument(
        "--lexicon-only",
        action="store_true",
        help="Never call the translation oracle; unknown words pass through.",
    )
    seg.add_argument(
        "--dictionary",
        default=DICTIONARY_PATH,
        help="Lexicon JSON file (default: %(default)s).",
    )
    greedy_or_export.add_argument(
        "--export-learned",
        default=None,
        help="Write compounds learned during this run to this JSON file (not with --greedy).",
    )
    seg.set_defaults(handler=lambda args: asyncio.run(_run_segment(args)))

    vocab = subparsers.add_parser(
        "vocab",
        help="Count vocabulary in JSONL utterance files and update the frequency table.",
    )
    vocab.add_argument(
        "jsonl",
        nargs="+",
        help="JSONL files with one {\"vietnamese\": ...} utterance per line.",
    )
    vocab.add_argument(
        "--frequency-file",
        default=WORD_FREQUENCY_PATH,
        help="Cumulative word-frequency JSON table (default: %(default)s).",
    )
    vocab.add_argument(
        "--study-sheet",
        default=None,
        help="Write a markdown study sheet of the top words to this path.",
    )
    vocab.add_argument(
        "--dictionary",
        default=DICTIONARY_PATH,
        help="Lexicon JSON file (default: %(default)s).",
    )
    vocab.set_defaults(handler=_run_vocab)

    serve = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default=SERVER_HOST, help="Bind address (default: %(default)s).")
    serve.add_argument(
        "--port",
        type=int,
        default=SERVER_PORT,
        help="Port (default: %(default)s).",
    )
    serve.set_defaults(handler=_run_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.handler(args)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except (VietListenerError, ValueError, OSError) as exc:
        _fail(str(exc))


if __name__ == "__main__":
    main()
