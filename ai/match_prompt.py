"""
Prompt construction for career matching.

Pure string building: the same answers and catalog always produce the
same prompt. Careers are numbered from 0 in catalog order, and the model
refers back to them by that number.
"""
from typing import Iterable

from models.assessment import Answer
from models.career import CatalogSnapshot

ANSWER_DELIMITER = "; "
MIN_INCLUDED_SCORE = 60

# ── System prompt ───────────────────────────────────────────────────

SYSTEM_PROMPT = (
    "You are a career counseling expert. Analyze assessment responses and match "
    "them to suitable careers with accuracy and helpful reasoning."
)

# ── Prompt building ─────────────────────────────────────────────────


def format_answers(answers: Iterable[Answer]) -> str:
    return ANSWER_DELIMITER.join(a.answer_text for a in answers)


def format_catalog(catalog: CatalogSnapshot) -> str:
    return "\n".join(
        f"{i}. {career.title} - {career.description}"
        for i, career in enumerate(catalog)
    )


def build_match_prompt(answers: Iterable[Answer], catalog: CatalogSnapshot) -> str:
    """Build the user prompt listing every answer and every career."""
    return f"""Based on the following user responses to a career assessment, analyze which careers from the list would be the best matches. Rate each career from 0-100 and provide brief reasoning.

User Responses: {format_answers(answers)}

Available Careers:
{format_catalog(catalog)}

Return your analysis as a JSON array with this structure:
[{{"careerIndex": 0, "score": 85, "reasoning": "Great match because..."}}]

"careerIndex" is the number shown before each career above.
Only include careers with a score of {MIN_INCLUDED_SCORE} or higher. Order by score descending."""
