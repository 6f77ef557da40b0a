"""FastAPI application exposing segmentation, translation, and suggestions.

WHY: The browser practice app needs an HTTP API to translate what the
learner hears word by word, propose Vietnamese replies built from familiar
vocabulary, and persist practice progress. FastAPI provides request
validation and automatic OpenAPI documentation.

HOW: A single FastAPI app with endpoints grouped by tags. One
SegmentationSession (lexicon + oracle + cache) is built in the lifespan and
shared by every request through the get_session dependency. Core errors
are mapped to HTTP status codes in the endpoints.

RULES:
- All endpoints have OpenAPI summaries and descriptions
- Error responses use a consistent ErrorResponse schema
- EmptyInputError → 400, OracleUnavailableError → 502,
  OracleNotConfiguredError → 503
- CORS is open to any origin (the practice app is served from anywhere)
- Tests override get_session / get_progress_path instead of touching globals
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, Any

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from viet_listener import __version__
from viet_listener.config import PROGRESS_PATH, SERVER_HOST, SERVER_PORT
from viet_listener.core.files import write_json_atomic
from viet_listener.core.session import SegmentationSession, create_session
from viet_listener.errors import (
    EmptyInputError,
    OracleNotConfiguredError,
    OracleUnavailableError,
)
from viet_listener.server.models import (
    ErrorResponse,
    HealthResponse,
    LearnedEntriesResponse,
    ProgressSavedResponse,
    SentenceTranslation,
    StatusResponse,
    SuggestionInfo,
    SuggestionWordInfo,
    SuggestRequest,
    SuggestResponse,
    TranslateRequest,
    TranslateResponse,
    WordTranslation,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and session setup
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared session on startup, close its HTTP client on shutdown."""
    session = create_session()
    async with session:
        app.state.session = session
        status = session.status()
        logger.info(
            "Server ready: backend=%s, dictionary=%d entries",
            status["backend"],
            status["dictionary_size"],
        )
        yield
        app.state.session = None


app = FastAPI(
    lifespan=lifespan,
    title="Viet Listener API",
    description=(
        "REST API for Vietnamese listening practice: word-by-word translation "
        "of heard sentences, reply suggestions ranked by familiar vocabulary, "
        "and practice progress persistence."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def get_session(request: Request) -> SegmentationSession:
    """Return the session built in the lifespan."""
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Session not initialized")
    return session


def get_progress_path() -> Path:
    return Path(PROGRESS_PATH)


SessionDep = Annotated[SegmentationSession, Depends(get_session)]


# ---------------------------------------------------------------------------
# Endpoints: Translation
# ---------------------------------------------------------------------------


@app.post(
    "/api/translate",
    response_model=TranslateResponse,
    tags=["translation"],
    summary="Translate a sentence word by word",
    description=(
        "Translate the whole sentence and, for vi-to-en, segment it into "
        "words with per-word translations. Words are chosen by dictionary "
        "knowledge and compound detection; unknown words pass through "
        "untranslated with origin 'identity-fallback'."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Empty input"},
        502: {"model": ErrorResponse, "description": "Translation oracle unavailable"},
        503: {"model": ErrorResponse, "description": "No translation API key configured"},
    },
)
async def translate(request: TranslateRequest, session: SessionDep) -> TranslateResponse:
    try:
        result = await session.translate_sentence(request.text, request.direction.value)
    except EmptyInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except OracleNotConfiguredError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except OracleUnavailableError as exc:
        logger.error("Translate failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc))

    return TranslateResponse(
        sentence=SentenceTranslation(original=result.original, translation=result.translation),
        words=[
            WordTranslation(
                word=span.text,
                translation=span.translation,
                from_lexicon=span.from_lexicon,
                origin=span.origin.value,
            )
            for span in result.words
        ],
    )


@app.post(
    "/api/suggest",
    response_model=SuggestResponse,
    tags=["translation"],
    summary="Suggest Vietnamese replies",
    description=(
        "Translate an English reply into up to three Vietnamese phrasings, "
        "mark which words the learner already knows, back-translate each "
        "phrasing, and sort them by the share of known words."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Empty input"},
        502: {"model": ErrorResponse, "description": "Translation oracle unavailable"},
        503: {"model": ErrorResponse, "description": "No translation API key configured"},
    },
)
async def suggest(request: SuggestRequest, session: SessionDep) -> SuggestResponse:
    try:
        suggestions = await session.suggest(request.english_text, request.known_words)
    except EmptyInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except OracleNotConfiguredError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except OracleUnavailableError as exc:
        logger.error("Suggest failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc))

    return SuggestResponse(
        suggestions=[
            SuggestionInfo(
                vietnamese=s.vietnamese,
                english=s.english,
                words=[
                    SuggestionWordInfo(word=w.word, known=w.known, frequency=w.frequency)
                    for w in s.words
                ],
                known_ratio=s.known_ratio,
                known_count=s.known_count,
            )
            for s in suggestions
        ]
    )


# ---------------------------------------------------------------------------
# Endpoints: Lexicon and status
# ---------------------------------------------------------------------------


@app.get(
    "/api/status",
    response_model=StatusResponse,
    tags=["status"],
    summary="Backend and dictionary status",
    description="Report the oracle backend, dictionary size, learned compounds, and cache size.",
)
async def get_status(session: SessionDep) -> StatusResponse:
    return StatusResponse(**session.status())


@app.get(
    "/api/lexicon/learned",
    response_model=LearnedEntriesResponse,
    tags=["lexicon"],
    summary="Compounds learned at runtime",
    description=(
        "Return every compound the segmenter detected and added to the "
        "dictionary since the server started."
    ),
)
async def get_learned(session: SessionDep) -> LearnedEntriesResponse:
    entries = session.lexicon.learned_entries()
    return LearnedEntriesResponse(count=len(entries), entries=entries)


# ---------------------------------------------------------------------------
# Endpoints: Practice progress
# ---------------------------------------------------------------------------


@app.get(
    "/api/progress",
    tags=["progress"],
    summary="Load practice progress",
    description="Return the saved practice progress document, or {} when none exists.",
)
def get_progress(
    path: Annotated[Path, Depends(get_progress_path)],
) -> Any:
    if not path.is_file():
        return {}
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning("%s is not valid JSON, returning empty progress", path)
        return {}


@app.post(
    "/api/progress",
    response_model=ProgressSavedResponse,
    tags=["progress"],
    summary="Save practice progress",
    description="Replace the saved practice progress document with the request body.",
)
def save_progress(
    body: Annotated[Any, Body(description="Practice progress document (any JSON).")],
    path: Annotated[Path, Depends(get_progress_path)],
) -> ProgressSavedResponse:
    write_json_atomic(path, body)
    return ProgressSavedResponse(saved=True)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api(host: str = SERVER_HOST, port: int = SERVER_PORT) -> None:
    """Entry point for the viet-listener-api console script."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    uvicorn.run(app, host=host, port=port)
