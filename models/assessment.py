from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Assessment:
    """One user's attempt at the questionnaire."""

    id: str
    user_id: str
    completed: bool = False
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "Assessment":
        return cls(
            id=str(row["id"]),
            user_id=str(row.get("user_id") or ""),
            completed=bool(row.get("completed")),
            created_at=_parse_timestamp(row.get("created_at")),
            completed_at=_parse_timestamp(row.get("completed_at")),
        )


@dataclass(frozen=True)
class Question:
    id: str
    question_text: str
    category: str
    question_order: int

    @classmethod
    def from_row(cls, row: dict) -> "Question":
        return cls(
            id=str(row["id"]),
            question_text=row.get("question_text") or "",
            category=row.get("category") or "",
            question_order=int(row.get("question_order") or 0),
        )


@dataclass(frozen=True)
class Answer:
    """A free-text response to one question of one assessment."""

    question_id: str
    answer_text: str


@dataclass(frozen=True)
class ScoredCareer:
    """
    A validated entry from the scoring model's output.
    career_index points into the run's CatalogSnapshot.
    """

    career_index: int
    score: int
    reasoning: str


@dataclass(frozen=True)
class CareerMatch:
    """A persisted association between an assessment and a career."""

    assessment_id: str
    career_id: str
    match_score: int
    reasoning: str

    def to_row(self) -> dict:
        return {
            "assessment_id": self.assessment_id,
            "career_id": self.career_id,
            "match_score": self.match_score,
            "reasoning": self.reasoning,
        }


def _parse_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    # PostgREST returns ISO 8601, sometimes with a trailing Z
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
