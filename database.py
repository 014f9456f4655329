"""
Store accessors for assessments, questions, careers and career matches.
Uses the Supabase REST interface with the caller's token (RLS applies).
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from models.assessment import Assessment, CareerMatch, Question
from models.career import Career
from supabase_client import SupabaseClient


class StoreError(Exception):
    """The store rejected a request or could not be reached."""

    def __init__(self, table: str, detail: Any):
        super().__init__(f"{table}: {detail}")
        self.table = table
        self.detail = detail


def _unwrap(table: str, result: Dict[str, Any]) -> List[Dict[str, Any]]:
    if result.get("error"):
        raise StoreError(table, result["error"])
    return result.get("data") or []


# ── Catalog ─────────────────────────────────────────────────────────

async def fetch_careers(client: SupabaseClient) -> List[Career]:
    result = await client.query("careers").select("*").execute()
    return [Career.from_row(row) for row in _unwrap("careers", result)]


async def fetch_questions(client: SupabaseClient) -> List[Question]:
    result = await client.query("questions") \
        .select("*") \
        .order("question_order") \
        .execute()
    return [Question.from_row(row) for row in _unwrap("questions", result)]


# ── Assessments ─────────────────────────────────────────────────────

async def fetch_assessments(client: SupabaseClient) -> List[Assessment]:
    """Assessments visible to the caller, newest first."""
    result = await client.query("assessments") \
        .select("*") \
        .order("created_at", desc=True) \
        .execute()
    return [Assessment.from_row(row) for row in _unwrap("assessments", result)]


async def fetch_assessment(client: SupabaseClient, assessment_id: str) -> Optional[Assessment]:
    result = await client.query("assessments") \
        .select("*") \
        .eq("id", assessment_id) \
        .execute()
    rows = _unwrap("assessments", result)
    return Assessment.from_row(rows[0]) if rows else None


async def mark_assessment_completed(
    client: SupabaseClient,
    assessment_id: str,
    completed_at: datetime,
) -> int:
    """Set the completion flag. Returns the number of assessments updated."""
    result = await client.query("assessments") \
        .update({"completed": True, "completed_at": completed_at.isoformat()}) \
        .eq("id", assessment_id) \
        .execute()
    return len(_unwrap("assessments", result))


# ── Career matches ──────────────────────────────────────────────────

async def insert_career_matches(client: SupabaseClient, matches: List[CareerMatch]) -> int:
    """Insert all matches in one request. Returns the number of rows written."""
    result = await client.query("career_matches") \
        .insert([m.to_row() for m in matches]) \
        .execute()
    return len(_unwrap("career_matches", result))


async def fetch_assessment_matches(client: SupabaseClient, assessment_id: str) -> List[Dict[str, Any]]:
    """Matches for an assessment with their career embedded, best score first."""
    result = await client.query("career_matches") \
        .select("*, careers (*)") \
        .eq("assessment_id", assessment_id) \
        .order("match_score", desc=True) \
        .execute()
    return _unwrap("career_matches", result)


async def count_assessment_matches(client: SupabaseClient, assessment_id: str) -> int:
    result = await client.query("career_matches") \
        .select("id") \
        .eq("assessment_id", assessment_id) \
        .execute()
    return len(_unwrap("career_matches", result))
