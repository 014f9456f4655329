"""
FastAPI application for the career matching service.
Uses the Supabase REST API for storage and an OpenAI-compatible gateway
for scoring.
"""
import asyncio
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime
from typing import Awaitable, List, Optional, Set

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from ai.llm_client import ScoringClient
from auth import AuthUser, get_current_user
from core.config import Settings, get_settings
from core.errors import GENERIC_FAILURE_MESSAGE, CareerMatchingError, PartialPersistFailure
from core.log import configure_logging, get_logger
from database import (
    StoreError,
    fetch_assessment,
    fetch_assessment_matches,
    fetch_assessments,
    fetch_questions,
)
from matching.engine import MatchingEngine
from matching.persister import MatchPersister
from models.assessment import Answer
from supabase_client import SupabaseClient

logger = get_logger(__name__)


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class AnswerSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: str = Field(alias="questionId", min_length=1)
    answer_text: str = Field(alias="answerText")

    @field_validator("answer_text")
    @classmethod
    def answer_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("answerText must not be empty")
        return value


class MatchCareersRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    assessment_id: str = Field(alias="assessmentId", min_length=1)
    answers: List[AnswerSubmission] = Field(default_factory=list)


class MatchCareersResponse(BaseModel):
    success: bool = True
    matches: int


# ============================================================================
# APPLICATION
# ============================================================================

def create_app(
    settings: Optional[Settings] = None,
    store_transport: Optional[httpx.AsyncBaseTransport] = None,
    scoring_http: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Build the app. Transports can be injected so tests never reach the
    network.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        app.state.store_http = httpx.AsyncClient(
            timeout=settings.store_timeout_seconds,
            transport=store_transport,
        )
        app.state.scorer = ScoringClient(settings, http_client=scoring_http)
        try:
            yield
        finally:
            await app.state.store_http.aclose()

    app = FastAPI(title="Career Matching API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)
    _register_routes(app)
    return app


def get_store(request: Request, user: AuthUser = Depends(get_current_user)) -> SupabaseClient:
    settings: Settings = request.app.state.settings
    return SupabaseClient(
        settings.supabase_url,
        settings.supabase_anon_key,
        http=request.app.state.store_http,
        access_token=user.token,
    )


def get_engine(request: Request, store: SupabaseClient = Depends(get_store)) -> MatchingEngine:
    return MatchingEngine(store=store, scorer=request.app.state.scorer)


# ============================================================================
# ERROR HANDLING
# ============================================================================

def _error_response(status_code: int, message: str, code: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "code": code, **extra})


def _register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(CareerMatchingError)
    async def handle_matching_error(request: Request, exc: CareerMatchingError):
        extra = {}
        if isinstance(exc, PartialPersistFailure):
            extra["matches"] = exc.matches_written
        return _error_response(exc.status_code, exc.user_message, type(exc).__name__, **extra)

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        logger.error("Store request failed on %s: %s", exc.table, exc.detail)
        return _error_response(500, "Failed to load data.", "StoreError")

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
        return _error_response(400, "Invalid request body.", "InvalidRequest")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail), "HTTPError")

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return _error_response(500, GENERIC_FAILURE_MESSAGE, "InternalError")


_inflight_runs: Set[asyncio.Task] = set()


def _consume_outcome(task: asyncio.Task) -> None:
    # The run may outlive an aborted request; failures were logged by the engine
    _inflight_runs.discard(task)
    if not task.cancelled():
        task.exception()


async def run_to_completion(run: Awaitable[int]) -> int:
    """
    Await a pipeline run that keeps going if the awaiting request is
    cancelled, so a dropped client never leaves matches without the
    completion flag.
    """
    task = asyncio.ensure_future(run)
    _inflight_runs.add(task)
    task.add_done_callback(_consume_outcome)
    return await asyncio.shield(task)


# ============================================================================
# ROUTES
# ============================================================================

def _register_routes(app: FastAPI) -> None:

    @app.get("/health")
    async def health_check():
        """Health check endpoint for monitoring"""
        return {
            "status": "healthy",
            "service": "career-matching",
            "timestamp": datetime.now().isoformat(),
        }

    @app.post("/match-careers", response_model=MatchCareersResponse)
    async def match_careers(
            submission: MatchCareersRequest,
            engine: MatchingEngine = Depends(get_engine),
    ):
        """Score the career catalog against an assessment's answers and save the matches"""
        answers = [Answer(a.question_id, a.answer_text) for a in submission.answers]

        written = await run_to_completion(engine.run(submission.assessment_id, answers))

        return MatchCareersResponse(matches=written)

    @app.get("/assessments")
    async def list_assessments(store: SupabaseClient = Depends(get_store)):
        """The caller's assessments, newest first (row-level security scopes them)"""
        return {"assessments": [asdict(a) for a in await fetch_assessments(store)]}

    @app.post("/assessments/{assessment_id}/complete", response_model=MatchCareersResponse)
    async def complete_assessment(
            assessment_id: str,
            store: SupabaseClient = Depends(get_store),
    ):
        """Retry only the completion update after matches were already saved"""
        assessment = await fetch_assessment(store, assessment_id)
        if assessment is None:
            raise HTTPException(status_code=404, detail="Assessment not found")

        stored = await MatchPersister(store).complete_assessment(assessment.id)
        return MatchCareersResponse(matches=stored)

    @app.get("/assessments/{assessment_id}/matches")
    async def get_assessment_matches(
            assessment_id: str,
            store: SupabaseClient = Depends(get_store),
    ):
        """Career matches for an assessment, best score first"""
        return {"matches": await fetch_assessment_matches(store, assessment_id)}

    @app.get("/questions")
    async def list_questions(store: SupabaseClient = Depends(get_store)):
        """Questionnaire in display order"""
        return {"questions": [asdict(q) for q in await fetch_questions(store)]}


app = create_app()


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
