"""
Matching orchestration layer.

Runs one career-matching pass for an assessment:
catalog read -> prompt -> scoring call -> parse -> persist.
Each step consumes the previous step's output, so they run strictly in
order. The catalog snapshot read at the start is the only one used for
the whole run.
"""
from typing import List, Optional

from ai.llm_client import ScoringClient
from ai.match_parser import parse_matches
from ai.match_prompt import build_match_prompt
from core.errors import CareerMatchingError
from core.log import get_logger
from matching.catalog import read_catalog
from matching.persister import MatchPersister
from models.assessment import Answer
from supabase_client import SupabaseClient

logger = get_logger(__name__)


class MatchingEngine:
    def __init__(
        self,
        store: SupabaseClient,
        scorer: ScoringClient,
        persister: Optional[MatchPersister] = None,
    ):
        self.store = store
        self.scorer = scorer
        self.persister = persister or MatchPersister(store)

    async def run(self, assessment_id: str, answers: List[Answer]) -> int:
        """
        Score the catalog against the answers and store the matches.

        Returns:
            Number of career matches written.
        """
        logger.info("Processing career matching for assessment %s", assessment_id)
        try:
            self.scorer.ensure_configured()

            catalog = await read_catalog(self.store)
            prompt = build_match_prompt(answers, catalog)

            raw = await self.scorer.score(prompt)
            matches = parse_matches(raw, len(catalog))
            logger.info(
                "Model returned %d matches for assessment %s", len(matches), assessment_id
            )

            written = await self.persister.persist(assessment_id, matches, catalog)
        except CareerMatchingError as e:
            logger.error(
                "Career matching failed for assessment %s at step %s: %s",
                assessment_id, e.step, e,
            )
            raise

        logger.info("Career matching completed for assessment %s", assessment_id)
        return written
