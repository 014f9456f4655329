"""
Parsing and validation of the scoring model's output.

The parser checks shape only: every entry must name a career that exists
in this run's catalog and carry a numeric score and a reasoning string.
Scores and ordering are taken as the model reports them; the >= 60 cutoff
and descending order are instructions to the model, not checks made here.
A single bad entry rejects the whole batch.
"""
import json
import math
import re
from numbers import Real
from typing import Any, List

from core.errors import MalformedResponse
from core.log import get_logger
from models.assessment import ScoredCareer

logger = get_logger(__name__)

WRAPPER_KEY = "matches"


def _strip_fences(text: str) -> str:
    """Strip markdown code fences (```json ... ```) some models wrap around JSON."""
    text = text.strip()
    text = re.sub(r"^```(?:json)?\s*\n?", "", text)
    text = re.sub(r"\n?```\s*$", "", text)
    return text.strip()


def _extract_entries(parsed: Any) -> list:
    if isinstance(parsed, list):
        return parsed

    if isinstance(parsed, dict):
        if isinstance(parsed.get(WRAPPER_KEY), list):
            return parsed[WRAPPER_KEY]

        # Tolerate other wrapper names, but only when the choice is unambiguous
        arrays = [v for v in parsed.values() if isinstance(v, list)]
        if len(arrays) == 1:
            return arrays[0]
        raise MalformedResponse(
            f"Expected one array field in response object, found {len(arrays)}"
        )

    raise MalformedResponse(f"Unexpected response type: {type(parsed).__name__}")


def _validate_entry(position: int, entry: Any, catalog_size: int) -> ScoredCareer:
    if not isinstance(entry, dict):
        raise MalformedResponse(f"Entry {position} is not an object")

    index = entry.get("careerIndex")
    if isinstance(index, bool) or not isinstance(index, int):
        raise MalformedResponse(f"Entry {position} has a non-integer careerIndex: {index!r}")
    if not 0 <= index < catalog_size:
        raise MalformedResponse(
            f"Entry {position} careerIndex {index} outside catalog of {catalog_size}"
        )

    score = entry.get("score")
    if isinstance(score, bool) or not isinstance(score, Real):
        raise MalformedResponse(f"Entry {position} has a non-numeric score: {score!r}")
    # json.loads lets NaN, Infinity and overflowing literals like 1e400 through
    if not math.isfinite(score):
        raise MalformedResponse(f"Entry {position} has a non-finite score: {score!r}")

    reasoning = entry.get("reasoning")
    if not isinstance(reasoning, str):
        raise MalformedResponse(f"Entry {position} has no reasoning text")

    return ScoredCareer(career_index=index, score=int(round(score)), reasoning=reasoning)


def parse_matches(raw_text: str, catalog_size: int) -> List[ScoredCareer]:
    """
    Turn the model's raw text into validated matches, in the model's order.

    Accepts a bare JSON array, or an object wrapping the array (under
    "matches", or as its only array-valued field).

    Raises:
        MalformedResponse: invalid JSON, unexpected shape, or any invalid entry
    """
    try:
        parsed = json.loads(_strip_fences(raw_text or ""))
    except json.JSONDecodeError as e:
        logger.error("[LLM] Failed to parse response: %r", raw_text)
        raise MalformedResponse("Scoring response is not valid JSON", e) from e

    try:
        entries = _extract_entries(parsed)
        return [
            _validate_entry(position, entry, catalog_size)
            for position, entry in enumerate(entries)
        ]
    except MalformedResponse as e:
        logger.error("[LLM] Rejected response (%s): %r", e, raw_text)
        raise
