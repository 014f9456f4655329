"""
Writes a run's matches and marks the assessment completed.

The two writes are sequential, not one transaction. If the matches are
stored but the assessment update fails, PartialPersistFailure is raised so
the caller can retry the update alone via complete_assessment().
"""
from datetime import datetime, timezone
from typing import Callable, List

from core.errors import PartialPersistFailure, PersistFailure
from core.log import get_logger
from database import (
    StoreError,
    count_assessment_matches,
    insert_career_matches,
    mark_assessment_completed,
)
from models.assessment import CareerMatch, ScoredCareer
from models.career import CatalogSnapshot
from supabase_client import SupabaseClient

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MatchPersister:
    def __init__(self, client: SupabaseClient, clock: Callable[[], datetime] = _utcnow):
        self.client = client
        self.clock = clock

    @staticmethod
    def build_records(
        assessment_id: str,
        matches: List[ScoredCareer],
        catalog: CatalogSnapshot,
    ) -> List[CareerMatch]:
        return [
            CareerMatch(
                assessment_id=assessment_id,
                career_id=catalog[m.career_index].id,
                match_score=m.score,
                reasoning=m.reasoning,
            )
            for m in matches
        ]

    async def persist(
        self,
        assessment_id: str,
        matches: List[ScoredCareer],
        catalog: CatalogSnapshot,
    ) -> int:
        """Store all matches in one insert, then complete the assessment."""
        records = self.build_records(assessment_id, matches, catalog)

        written = 0
        if records:
            try:
                written = await insert_career_matches(self.client, records)
            except StoreError as e:
                raise PersistFailure(f"Could not save career matches: {e}", e) from e
            logger.info("Saved %d career matches for assessment %s", written, assessment_id)

        await self._mark_completed(assessment_id, matches_written=written)
        return written

    async def complete_assessment(self, assessment_id: str) -> int:
        """
        Retry only the completion update. Returns how many matches are
        currently stored for the assessment.
        """
        try:
            stored = await count_assessment_matches(self.client, assessment_id)
        except StoreError as e:
            raise PersistFailure(f"Could not read career matches: {e}", e) from e

        await self._mark_completed(assessment_id, matches_written=stored)
        return stored

    async def _mark_completed(self, assessment_id: str, matches_written: int) -> None:
        try:
            updated = await mark_assessment_completed(self.client, assessment_id, self.clock())
        except StoreError as e:
            raise PartialPersistFailure(
                f"Could not mark assessment completed: {e}", matches_written, e
            ) from e

        if updated == 0:
            raise PartialPersistFailure(
                f"Assessment {assessment_id} not found or not writable", matches_written
            )
