"""Tests for the DP segmenter and the full optimal segmentation pipeline.

WHY: The optimizer is where the score tiers turn into word boundaries.
These tests cover the worked examples, exact cover, determinism, lexicon
precedence, fallback visibility, and tie-breaking.

HOW: solve() is tested on hand-built span tables. segment_optimal() is run
with asyncio.run() against the lexicon fixture and FakeOracle instances.
"""

from __future__ import annotations

import asyncio

import pytest

from viet_listener.core.lexicon import Lexicon
from viet_listener.core.models import Span, SpanOrigin
from viet_listener.core.optimizer import segment_optimal, solve
from viet_listener.errors import EmptyInputError, OracleUnavailableError


def _span(start, length, score, text=None):
    return Span(
        start=start,
        length=length,
        text=text or "s{}_{}".format(start, length),
        translation="t",
        origin=SpanOrigin.ORACLE,
        score=score,
    )


def _segment(text, lexicon, oracle=None):
    async def _run():
        if oracle is None:
            return await segment_optimal(text, lexicon)
        async with oracle:
            return await segment_optimal(text, lexicon, oracle)

    return asyncio.run(_run())


class TestSolve:

    def test_picks_highest_total(self):
        table = [
            {1: _span(0, 1, 1), 2: _span(0, 2, 16)},
            {1: _span(1, 1, 1)},
        ]
        spans = solve(table, 2)
        assert [(s.start, s.length) for s in spans] == [(0, 2)]

    def test_singles_beat_weaker_grouping(self):
        table = [
            {1: _span(0, 1, 5), 2: _span(0, 2, 2)},
            {1: _span(1, 1, 5)},
        ]
        assert [(s.start, s.length) for s in solve(table, 2)] == [(0, 1), (1, 1)]

    def test_tie_keeps_first_evaluated_candidate(self):
        # best[2] is first reached by the length-2 span from start 0; the
        # later path through start 1 only ties and does not replace it.
        table = [
            {1: _span(0, 1, 1), 2: _span(0, 2, 2)},
            {1: _span(1, 1, 1)},
        ]
        assert [(s.start, s.length) for s in solve(table, 2)] == [(0, 2)]

    def test_tie_between_split_points_keeps_smaller_start(self):
        # Both (0,2)+(2,1) and (0,1)+(1,2) total 3; best[3] is reached from
        # start 1 first, so the second split is kept.
        table = [
            {1: _span(0, 1, 1), 2: _span(0, 2, 2)},
            {1: _span(1, 1, 0), 2: _span(1, 2, 2)},
            {1: _span(2, 1, 1)},
        ]
        assert [(s.start, s.length) for s in solve(table, 3)] == [(0, 1), (1, 2)]

    def test_empty_input(self):
        assert solve([], 0) == []

    def test_unreachable_end_raises(self):
        table = [{2: _span(0, 2, 2)}, {}, {}]
        with pytest.raises(ValueError):
            solve(table, 3)

    def test_inconsistent_table_raises(self):
        # The span in row 2 claims to start at 1, where nothing ends.
        table = [{2: _span(0, 2, 2)}, {}, {1: _span(1, 1, 1)}]
        with pytest.raises(ValueError, match="no span ending at syllable 1"):
            solve(table, 3)


class TestLexiconOnly:

    def test_worked_example(self):
        lex = Lexicon({"cái này": "this"})

        seg = _segment("cái này là của ai", lex)

        assert [s.text for s in seg.spans] == ["cái này", "là", "của", "ai"]
        assert seg.spans[0].score == 20
        assert seg.spans[0].origin is SpanOrigin.LEXICON
        assert seg.spans[0].translation == "this"
        assert [s.score for s in seg.spans[1:]] == [1, 1, 1]
        assert all(s.origin is SpanOrigin.FALLBACK for s in seg.spans[1:])
        assert seg.total_score == 23

    def test_unknown_words_pass_through_as_themselves(self):
        seg = _segment("máy bay", Lexicon())
        assert seg.words() == [
            {"word": "máy", "translation": "máy", "origin": "identity-fallback"},
            {"word": "bay", "translation": "bay", "origin": "identity-fallback"},
        ]

    def test_empty_input_raises_before_any_work(self, lexicon, make_oracle):
        oracle = make_oracle({})
        with pytest.raises(EmptyInputError):
            _segment(" ?! ", lexicon, oracle)
        assert oracle.batches == []

    def test_lexicon_precedence_over_sub_spans(self, lexicon):
        seg = _segment("tôi ăn cơm", lexicon)
        assert [s.text for s in seg.spans] == ["tôi", "ăn cơm"]


class TestWithOracle:

    def test_compound_detected_and_grouped(self, make_oracle):
        lex = Lexicon()
        oracle = make_oracle({
            "tôi": "I", "đi": "go", "máy": "machine", "bay": "fly",
            "máy bay": "airplane",
        })

        seg = _segment("tôi đi máy bay", lex, oracle)

        assert [s.text for s in seg.spans] == ["tôi", "đi", "máy bay"]
        assert seg.spans[2].translation == "airplane"
        assert seg.spans[2].origin is SpanOrigin.ORACLE
        assert seg.spans[2].score == 16
        assert lex.lookup("máy bay") == "airplane"

    def test_unresolved_spans_go_out_in_one_request(self, lexicon, make_oracle):
        oracle = make_oracle({})
        _segment("máy bay bay cao", lexicon, oracle)
        assert len(oracle.batches) == 1
        assert len(oracle.requested) == len(set(oracle.requested))

    def test_learned_compound_skips_the_oracle_next_time(self, make_oracle):
        lex = Lexicon()
        oracle = make_oracle({"máy": "machine", "bay": "fly", "máy bay": "airplane"})

        async def _run():
            async with oracle:
                await segment_optimal("máy bay", lex, oracle)
                oracle.batches.clear()
                return await segment_optimal("máy bay", lex, oracle)

        seg = asyncio.run(_run())
        assert seg.spans[0].origin is SpanOrigin.LEXICON
        assert seg.spans[0].score == 20
        assert oracle.batches == []

    def test_missing_items_are_visible_fallbacks(self, make_oracle):
        oracle = make_oracle({"tôi": "I"})

        seg = _segment("tôi đói", Lexicon(), oracle)

        by_text = {s.text: s for s in seg.spans}
        assert by_text["tôi"].origin is SpanOrigin.ORACLE
        assert by_text["đói"].origin is SpanOrigin.FALLBACK
        assert by_text["đói"].translation == "đói"

    def test_malformed_response_falls_back_instead_of_failing(self, make_oracle):
        oracle = make_oracle({"tôi": "I"}, malformed_on={"tôi"})

        seg = _segment("tôi đói", Lexicon(), oracle)

        assert all(s.origin is SpanOrigin.FALLBACK for s in seg.spans)
        assert [s.text for s in seg.spans] == ["tôi", "đói"]

    def test_oracle_failure_propagates(self, make_oracle):
        oracle = make_oracle({}, fail_on={"đói"})
        with pytest.raises(OracleUnavailableError):
            _segment("tôi đói", Lexicon(), oracle)

    def test_non_compound_translation_stays_weak(self, make_oracle):
        lex = Lexicon({"con": "child", "này": "this"})
        oracle = make_oracle({"con này": "this child"})

        seg = _segment("con này", lex, oracle)

        # 10 + 10 from the lexicon singles beats 2 × 1 for the grouping
        assert [s.text for s in seg.spans] == ["con", "này"]
        assert lex.learned_count == 0


class TestProperties:

    SENTENCES = [
        "cái này là của ai",
        "xin chào bạn tôi ăn cơm không",
        "Cảm ơn, bạn! Tôi không ăn cơm.",
        "một hai ba bốn năm sáu bảy",
    ]

    @pytest.mark.parametrize("text", SENTENCES)
    def test_exact_cover(self, text, lexicon, make_oracle):
        oracle = make_oracle({"một hai": "one two", "ba bốn": "thirty-four"})

        seg = _segment(text, lexicon, oracle)

        assert sum(s.length for s in seg.spans) == len(seg.syllables)
        rebuilt = " ".join(s.text for s in seg.spans).split(" ")
        assert rebuilt == list(seg.syllables)
        position = 0
        for span in seg.spans:
            assert span.start == position
            position = span.end

    @pytest.mark.parametrize("text", SENTENCES)
    def test_deterministic(self, text, make_oracle):
        translations = {"một": "one", "hai": "two", "một hai": "twelve", "bạn tôi": "my friend"}

        def _once():
            lex = Lexicon({"cái này": "this", "ăn cơm": "eat"})
            seg = _segment(text, lex, make_oracle(translations))
            return [(s.start, s.length, s.score, s.origin) for s in seg.spans]

        assert _once() == _once()

    def test_lexicon_phrase_is_never_split(self, make_oracle):
        # Even if the oracle claims every sub-span is a compound, the
        # four-syllable lexicon entry (40) beats any split (at most 8 × 4 = 32).
        lex = Lexicon({"thành phố hồ chí": "Ho Chi city"})
        oracle = make_oracle({
            "thành": "become", "phố": "street", "hồ": "lake", "chí": "will",
            "thành phố": "city", "hồ chí": "Ho Chi", "phố hồ": "lake street x",
            "thành phố hồ": "city lake", "phố hồ chí": "Ho Chi street",
        })

        seg = _segment("thành phố hồ chí", lex, oracle)

        assert len(seg.spans) == 1
        assert seg.spans[0].origin is SpanOrigin.LEXICON
        assert seg.spans[0].score == 40
