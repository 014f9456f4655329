"""Tests for the scoring client and its failure taxonomy."""
import httpx
import pytest

from ai.llm_client import ScoringClient
from ai.match_prompt import SYSTEM_PROMPT
from core.errors import MisconfiguredClient, PaymentRequired, RateLimited, UpstreamError


class TestRequest:
    async def test_returns_message_content(self, scorer, gateway):
        gateway.reply('[{"careerIndex": 0, "score": 82, "reasoning": "fit"}]')

        raw = await scorer.score("prompt text")

        assert raw == '[{"careerIndex": 0, "score": 82, "reasoning": "fit"}]'

    async def test_sends_model_messages_and_json_format(self, scorer, gateway):
        await scorer.score("prompt text")

        body = gateway.last_body
        assert body["model"] == "test-model"
        assert body["messages"] == [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": "prompt text"},
        ]
        assert body["response_format"] == {"type": "json_object"}

    async def test_authenticates_against_configured_gateway(self, scorer, gateway):
        await scorer.score("prompt text")

        request = gateway.requests[-1]
        assert str(request.url) == "https://gateway.test/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer scoring-key"

    async def test_missing_content_becomes_empty_string(self, scorer, gateway):
        gateway.reply(None)

        assert await scorer.score("prompt text") == ""


class TestFailureTaxonomy:
    async def test_429_is_rate_limited(self, scorer, gateway):
        gateway.status = 429

        with pytest.raises(RateLimited):
            await scorer.score("prompt text")

    async def test_402_is_payment_required(self, scorer, gateway):
        gateway.status = 402

        with pytest.raises(PaymentRequired):
            await scorer.score("prompt text")

    @pytest.mark.parametrize("status", [400, 401, 500, 503])
    async def test_other_statuses_are_upstream_errors(self, scorer, gateway, status):
        gateway.status = status

        with pytest.raises(UpstreamError):
            await scorer.score("prompt text")

    async def test_timeout_is_upstream_error(self, scorer, gateway):
        gateway.error = httpx.ReadTimeout("too slow")

        with pytest.raises(UpstreamError):
            await scorer.score("prompt text")

    async def test_connection_failure_is_upstream_error(self, scorer, gateway):
        gateway.error = httpx.ConnectError("refused")

        with pytest.raises(UpstreamError):
            await scorer.score("prompt text")

    async def test_failures_are_not_retried(self, scorer, gateway):
        gateway.status = 429

        with pytest.raises(RateLimited):
            await scorer.score("prompt text")

        assert len(gateway.requests) == 1


class TestConfiguration:
    async def test_missing_key_fails_before_network(self, settings, gateway):
        settings = settings.model_copy(update={"scoring_api_key": None})
        http = httpx.AsyncClient(transport=httpx.MockTransport(gateway.handle))
        client = ScoringClient(settings, http_client=http)

        with pytest.raises(MisconfiguredClient):
            client.ensure_configured()
        with pytest.raises(MisconfiguredClient):
            await client.score("prompt text")

        assert gateway.requests == []
        await http.aclose()

    def test_missing_base_url_is_misconfigured(self, settings):
        client = ScoringClient(settings.model_copy(update={"scoring_base_url": ""}))

        with pytest.raises(MisconfiguredClient):
            client.ensure_configured()

    def test_configured_client_passes(self, settings):
        ScoringClient(settings).ensure_configured()
