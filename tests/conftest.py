"""Pytest configuration and shared fixtures.

The store and the scoring gateway are both faked at the HTTP layer with
httpx.MockTransport, so the real clients run unchanged.
"""
import itertools
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from ai.llm_client import ScoringClient
from core.config import Settings
from core.log import LOGGER_NAME
from models.assessment import Answer
from supabase_client import SupabaseClient

STORE_URL = "https://store.test"
GATEWAY_URL = "https://gateway.test/v1"


class FakeStore:
    """In-memory stand-in for the PostgREST endpoints the service uses."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            "careers": [],
            "questions": [],
            "assessments": [],
            "career_matches": [],
        }
        self.failures: Dict[Tuple[str, str], int] = {}
        self.requests: List[httpx.Request] = []
        self._ids = itertools.count(1)

    def fail(self, method: str, table: str, status: int = 500) -> None:
        self.failures[(method, table)] = status

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        table = request.url.path.rsplit("/", 1)[-1]

        status = self.failures.get((request.method, table))
        if status:
            return httpx.Response(status, json={"message": f"{table} unavailable"})

        params = list(request.url.params.multi_items())
        filters = [(k, v) for k, v in params if k not in ("select", "order")]
        rows = [r for r in self.tables[table] if _matches(r, filters)]

        if request.method == "GET":
            select = dict(params).get("select", "*")
            result = [self._embed(r, select) for r in rows]
            for key, value in params:
                if key == "order":
                    column, _, direction = value.partition(".")
                    result.sort(key=lambda r: r[column], reverse=direction == "desc")
            return httpx.Response(200, json=result)

        body = json.loads(request.content)
        if request.method == "POST":
            inserted = []
            for row in body if isinstance(body, list) else [body]:
                row = {"id": f"{table}-{next(self._ids)}", **row}
                self.tables[table].append(row)
                inserted.append(row)
            return httpx.Response(201, json=inserted)

        if request.method == "PATCH":
            for row in rows:
                row.update(body)
            return httpx.Response(200, json=rows)

        return httpx.Response(405)

    def _embed(self, row: Dict[str, Any], select: str) -> Dict[str, Any]:
        if "careers" not in select or "career_id" not in row:
            return dict(row)
        career = next(c for c in self.tables["careers"] if c["id"] == row["career_id"])
        return {**row, "careers": career}


def _matches(row: Dict[str, Any], filters: List[Tuple[str, str]]) -> bool:
    for column, expr in filters:
        op, _, expected = expr.partition(".")
        assert op == "eq", f"unsupported filter {expr}"
        value = row.get(column)
        actual = ("true" if value else "false") if isinstance(value, bool) else str(value)
        if actual != expected:
            return False
    return True


class FakeGateway:
    """Chat-completion endpoint returning a canned reply."""

    def __init__(self):
        self.status = 200
        self.content: Optional[str] = "[]"
        self.error: Optional[Exception] = None
        self.requests: List[httpx.Request] = []

    def reply(self, content: Optional[str]) -> None:
        self.status, self.content = 200, content

    def reply_matches(self, matches: List[Dict[str, Any]]) -> None:
        self.reply(json.dumps(matches))

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.status != 200:
            return httpx.Response(self.status, json={"error": {"message": "gateway says no"}})
        return httpx.Response(200, json=chat_completion(self.content))

    @property
    def last_body(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


def chat_completion(content: Optional[str]) -> Dict[str, Any]:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 0,
        "model": "test-model",
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }
        ],
    }


# ── Fixtures ────────────────────────────────────────────────────────

@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url=STORE_URL,
        supabase_anon_key="anon-key",
        scoring_api_key="scoring-key",
        scoring_base_url=GATEWAY_URL,
        scoring_model="test-model",
        scoring_timeout_seconds=5,
    )


@pytest.fixture
def careers() -> List[Dict[str, Any]]:
    return [
        {
            "id": "career-analyst",
            "title": "Data Analyst",
            "description": "Turns data into business insight",
            "required_skills": ["SQL", "Statistics"],
            "education_level": "Bachelor's",
            "average_salary": "$70k",
            "growth_outlook": "Strong",
            "work_environment": "Office",
        },
        {
            "id": "career-nurse",
            "title": "Nurse",
            "description": "Provides patient care",
            "required_skills": ["Empathy"],
            "education_level": "Bachelor's",
            "average_salary": "$75k",
            "growth_outlook": "Strong",
            "work_environment": "Hospital",
        },
    ]


@pytest.fixture
def fake_store(careers) -> FakeStore:
    store = FakeStore()
    store.tables["careers"] = careers
    store.tables["assessments"] = [
        {"id": "assessment-1", "user_id": "user-1", "completed": False,
         "created_at": "2024-05-01T10:00:00Z", "completed_at": None},
    ]
    store.tables["questions"] = [
        {"id": "q2", "question_text": "Who do you like helping?", "category": "values", "question_order": 2},
        {"id": "q1", "question_text": "What puzzles do you enjoy?", "category": "interests", "question_order": 1},
    ]
    return store


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def answers() -> List[Answer]:
    return [
        Answer("q1", "I enjoy solving math puzzles"),
        Answer("q2", "I like helping people"),
    ]


@pytest.fixture
def app_logs(caplog):
    """caplog for the application logger, which does not propagate once configured."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(caplog.handler)
    yield caplog
    logger.removeHandler(caplog.handler)


@pytest.fixture
async def store_client(fake_store, settings):
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake_store.handle))
    yield SupabaseClient(settings.supabase_url, settings.supabase_anon_key, http, access_token="user-token")
    await http.aclose()


@pytest.fixture
async def scorer(gateway, settings):
    http = httpx.AsyncClient(transport=httpx.MockTransport(gateway.handle))
    yield ScoringClient(settings, http_client=http)
    await http.aclose()
