"""Tests for the FastAPI practice API.

WHY: Validates every endpoint: happy paths, the camelCase wire format,
legacy field aliases, and the mapping of core errors to status codes.

HOW: The FastAPI TestClient drives the app in-process. The lifespan is not
run; instead get_session is overridden with a session built from the
sample lexicon and a FakeOracle, and get_progress_path points into
tmp_path.

RULES:
- All tests use the FastAPI TestClient (synchronous)
- No external translation service is ever called
- Dependency overrides are cleared after each test
"""

from __future__ import annotations

import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from viet_listener import __version__
from viet_listener.core.session import SegmentationSession
from viet_listener.server.app import (
    app,
    get_progress,
    get_progress_path,
    get_session,
    save_progress,
)


TRANSLATIONS = {
    "Xin chào bạn!": "Hello friend!",
    "cảm ơn": "thank you",
    "I am hungry": "Tôi đói",
    "I want to say: I am hungry": "Tôi muốn nói tôi đói",
    "Reply: I am hungry": "Đói quá",
    "Tôi đói": "I'm hungry",
    "Tôi muốn nói tôi đói": "I want to say I'm hungry",
    "Đói quá": "So hungry",
}


@pytest.fixture
def client_factory(lexicon, make_oracle, tmp_path):
    """Build a TestClient around a session with the given oracle settings."""
    entered = []

    def _make(oracle_kwargs=None, with_oracle=True):
        oracle = make_oracle(TRANSLATIONS, **(oracle_kwargs or {})) if with_oracle else None
        session = SegmentationSession(lexicon, oracle)
        asyncio.run(session.__aenter__())
        entered.append(session)
        app.dependency_overrides[get_session] = lambda: session
        app.dependency_overrides[get_progress_path] = lambda: tmp_path / "progress.json"
        return TestClient(app)

    yield _make

    app.dependency_overrides.clear()
    for session in entered:
        asyncio.run(session.__aexit__(None, None, None))


@pytest.fixture
def client(client_factory):
    return client_factory()


# ---------------------------------------------------------------------------
# POST /api/translate
# ---------------------------------------------------------------------------


class TestTranslate:

    def test_vi_to_en(self, client):
        resp = client.post("/api/translate", json={"text": "Xin chào bạn!", "direction": "vi-to-en"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["sentence"] == {"original": "Xin chào bạn!", "translation": "Hello friend!"}
        assert body["words"] == [
            {"word": "Xin chào", "translation": "hello", "fromLexicon": True, "origin": "lexicon"},
            {"word": "bạn", "translation": "friend, you", "fromLexicon": True, "origin": "lexicon"},
        ]

    def test_direction_defaults_to_vi_to_en(self, client):
        resp = client.post("/api/translate", json={"text": "cảm ơn"})
        assert resp.status_code == 200
        assert [w["word"] for w in resp.json()["words"]] == ["cảm ơn"]

    def test_en_to_vi(self, client):
        resp = client.post("/api/translate", json={"text": "I am hungry", "direction": "en-to-vi"})
        assert resp.status_code == 200
        assert resp.json()["sentence"]["translation"] == "Tôi đói"
        assert resp.json()["words"] == []

    def test_mode_is_accepted_for_direction(self, client, lexicon):
        resp = client.post("/api/translate", json={"text": "I am hungry", "mode": "en-to-vi"})

        assert resp.status_code == 200
        assert resp.json()["sentence"]["translation"] == "Tôi đói"
        assert resp.json()["words"] == []
        assert lexicon.learned_entries() == {}

    def test_untranslated_words_are_flagged(self, client):
        resp = client.post("/api/translate", json={"text": "máy bay"})
        words = resp.json()["words"]
        assert {w["origin"] for w in words} == {"identity-fallback"}
        assert all(w["translation"] == w["word"] for w in words)
        assert not any(w["fromLexicon"] for w in words)

    def test_empty_text_is_400(self, client):
        resp = client.post("/api/translate", json={"text": " ?! "})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "No text provided"

    def test_invalid_direction_is_422(self, client):
        resp = client.post("/api/translate", json={"text": "cảm ơn", "direction": "vi-to-fr"})
        assert resp.status_code == 422

    def test_oracle_failure_is_502(self, client_factory):
        client = client_factory({"fail_on": {"máy"}})
        resp = client.post("/api/translate", json={"text": "máy bay"})
        assert resp.status_code == 502
        assert "Translation oracle error 500" in resp.json()["detail"]

    def test_no_oracle_is_503(self, client_factory):
        client = client_factory(with_oracle=False)
        resp = client.post("/api/translate", json={"text": "cảm ơn"})
        assert resp.status_code == 503


# ---------------------------------------------------------------------------
# POST /api/suggest
# ---------------------------------------------------------------------------


class TestSuggest:

    def test_ranked_suggestions(self, client):
        resp = client.post("/api/suggest", json={
            "englishText": "I am hungry",
            "learnedWords": {"tôi": 3, "đói": 2},
        })

        assert resp.status_code == 200
        suggestions = resp.json()["suggestions"]
        assert [s["vietnamese"] for s in suggestions] == [
            "Tôi đói", "Tôi muốn nói tôi đói", "Đói quá",
        ]
        first = suggestions[0]
        assert first == {
            "vietnamese": "Tôi đói",
            "english": "I'm hungry",
            "words": [
                {"word": "Tôi", "known": True, "frequency": 3},
                {"word": "đói", "known": True, "frequency": 2},
            ],
            "knownRatio": 1.0,
            "knownCount": 2,
        }
        assert suggestions[1]["knownRatio"] == pytest.approx(0.6)
        assert suggestions[2]["knownRatio"] == pytest.approx(0.5)

    def test_legacy_field_names(self, client):
        resp = client.post("/api/suggest", json={
            "targetEnglishText": "I am hungry",
            "knownWordFrequencies": {"quá": 1},
        })
        assert resp.status_code == 200
        assert resp.json()["suggestions"][0]["vietnamese"] == "Đói quá"

    def test_missing_text_is_422(self, client):
        assert client.post("/api/suggest", json={}).status_code == 422

    def test_blank_text_is_400(self, client):
        assert client.post("/api/suggest", json={"englishText": "  "}).status_code == 400

    def test_no_oracle_is_503(self, client_factory):
        client = client_factory(with_oracle=False)
        resp = client.post("/api/suggest", json={"englishText": "hi"})
        assert resp.status_code == 503


# ---------------------------------------------------------------------------
# Status, lexicon, progress, health
# ---------------------------------------------------------------------------


class TestStatus:

    def test_status_with_oracle(self, client):
        client.post("/api/translate", json={"text": "cảm ơn"})

        body = client.get("/api/status").json()

        assert body["hasApiKey"] is True
        assert body["backend"] == "fake"
        assert body["dictionarySize"] == 9
        assert body["learnedCount"] == 0
        assert body["cacheSize"] >= 1

    def test_status_without_oracle(self, client_factory):
        body = client_factory(with_oracle=False).get("/api/status").json()
        assert body == {
            "hasApiKey": False,
            "backend": "dictionary only",
            "dictionarySize": 9,
            "learnedCount": 0,
            "cacheSize": 0,
        }

    def test_session_not_initialized_is_503(self):
        app.dependency_overrides.clear()
        resp = TestClient(app).get("/api/status")
        assert resp.status_code == 503


class TestLearned:

    def test_learned_entries(self, client, lexicon):
        lexicon.learn("máy bay", "airplane")
        resp = client.get("/api/lexicon/learned")
        assert resp.json() == {"count": 1, "entries": {"máy bay": "airplane"}}


class TestProgress:

    def test_file_endpoints_run_in_threadpool(self):
        assert not asyncio.iscoroutinefunction(get_progress)
        assert not asyncio.iscoroutinefunction(save_progress)

    def test_empty_when_no_file(self, client):
        assert client.get("/api/progress").json() == {}

    def test_save_then_load(self, client, tmp_path):
        progress = {"sessions": 3, "words": {"tôi": {"seen": 4}}}

        resp = client.post("/api/progress", json=progress)

        assert resp.json() == {"saved": True}
        assert json.loads((tmp_path / "progress.json").read_text(encoding="utf-8")) == progress
        assert client.get("/api/progress").json() == progress

    def test_corrupt_file_reads_as_empty(self, client, tmp_path):
        (tmp_path / "progress.json").write_text("{", encoding="utf-8")
        assert client.get("/api/progress").json() == {}


class TestHealthAndCors:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "version": __version__}

    def test_cors_preflight(self, client):
        resp = client.options(
            "/api/translate",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_openapi_lists_endpoints(self, client):
        paths = client.get("/openapi.json").json()["paths"]
        for path in ["/api/translate", "/api/suggest", "/api/status", "/api/progress", "/health"]:
            assert path in paths
