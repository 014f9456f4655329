"""
Scoring client for career matching.

Calls an OpenAI-compatible chat-completion gateway and returns the raw
message text. Failures are classified so the caller can tell quota and
billing problems apart from everything else. Nothing is retried here.
"""
from typing import Optional

import httpx
import openai
from openai import AsyncOpenAI

from ai.match_prompt import SYSTEM_PROMPT
from core.config import Settings
from core.errors import MisconfiguredClient, PaymentRequired, RateLimited, UpstreamError
from core.log import get_logger

logger = get_logger(__name__)


class ScoringClient:
    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._http_client = http_client
        self._client: Optional[AsyncOpenAI] = None

    def ensure_configured(self) -> None:
        """Fail before any network call when credentials are missing."""
        if not self.settings.scoring_api_key:
            raise MisconfiguredClient("SCORING_API_KEY is not configured")
        if not self.settings.scoring_base_url:
            raise MisconfiguredClient("SCORING_BASE_URL is not configured")

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self.ensure_configured()
            self._client = AsyncOpenAI(
                api_key=self.settings.scoring_api_key,
                base_url=self.settings.scoring_base_url,
                timeout=self.settings.scoring_timeout_seconds,
                max_retries=0,
                http_client=self._http_client,
            )
        return self._client

    async def score(self, prompt: str) -> str:
        """
        Send the matching prompt and return the model's raw message content.

        Raises:
            MisconfiguredClient: no credential or endpoint configured
            RateLimited: upstream returned 429
            PaymentRequired: upstream returned 402
            UpstreamError: any other status, transport failure or timeout
        """
        client = self.client
        try:
            response = await client.chat.completions.create(
                model=self.settings.scoring_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
            )
        except openai.RateLimitError as e:
            logger.warning("[LLM] Rate limit exceeded: %s", _error_body(e))
            raise RateLimited("Scoring service rate limit exceeded", e) from e
        except openai.APIStatusError as e:
            logger.error("[LLM] Gateway error %s: %s", e.status_code, _error_body(e))
            if e.status_code == 402:
                raise PaymentRequired("Scoring service credits exhausted", e) from e
            raise UpstreamError(f"Scoring service returned {e.status_code}", e) from e
        except openai.APITimeoutError as e:
            logger.error("[LLM] Request timed out after %ss", self.settings.scoring_timeout_seconds)
            raise UpstreamError("Scoring service timed out", e) from e
        except openai.APIConnectionError as e:
            logger.error("[LLM] Connection failed: %s", e)
            raise UpstreamError("Scoring service unreachable", e) from e

        choices = getattr(response, "choices", None)
        if not choices:
            raise UpstreamError("Scoring service returned no choices")

        return choices[0].message.content or ""


def _error_body(error: openai.APIStatusError) -> str:
    try:
        return error.response.text
    except (AttributeError, httpx.ResponseNotRead):
        return str(error)
