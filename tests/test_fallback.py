"""Tests for the generative resellability fallback."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from carscout.api.openrouter import GenerativeClient, GenerativeResellability
from carscout.valuation import GenerativeFallbackEstimator, ResellabilitySource


def _client_returning(**values):
    client = MagicMock()
    client.estimate_resellability = AsyncMock(return_value=GenerativeResellability(**values))
    return client


class TestGenerativeFallbackEstimator:

    def test_in_range_values_pass_through(self):
        client = _client_returning(median_days_to_sell=9, resellability_score=7, price_percentile=35)

        outcome = asyncio.run(GenerativeFallbackEstimator(client).estimate("Honda", "Fit", 2015, 8000))

        assert outcome.value.median_days_to_sell == 9
        assert outcome.value.resellability_score == 7
        assert outcome.value.price_percentile == 35
        assert outcome.value.comp_count == 0
        assert outcome.value.source == ResellabilitySource.AI_ESTIMATE
        assert not outcome.is_degraded
        client.estimate_resellability.assert_awaited_once_with("Honda", "Fit", 2015, 8000)

    def test_out_of_range_values_are_clamped(self):
        client = _client_returning(median_days_to_sell=120, resellability_score=14, price_percentile=-5)

        value = asyncio.run(GenerativeFallbackEstimator(client).estimate("Honda", "Fit", 2015, 8000)).value

        assert value.median_days_to_sell == 60
        assert value.resellability_score == 10
        assert value.price_percentile == 0

    def test_low_values_are_clamped(self):
        client = _client_returning(median_days_to_sell=0.2, resellability_score=0, price_percentile=250)

        value = asyncio.run(GenerativeFallbackEstimator(client).estimate("Honda", "Fit", 2015, 8000)).value

        assert value.median_days_to_sell == 1
        assert value.resellability_score == 1
        assert value.price_percentile == 100

    def test_client_failure_yields_neutral_ai_estimate(self):
        client = MagicMock()
        client.estimate_resellability = AsyncMock(side_effect=RuntimeError("rate limited"))

        outcome = asyncio.run(GenerativeFallbackEstimator(client).estimate("Honda", "Fit", 2015, 8000))

        assert outcome.value.median_days_to_sell == 14
        assert outcome.value.comp_count == 0
        assert outcome.value.price_percentile == 50
        assert outcome.value.resellability_score == 5
        assert outcome.value.source == ResellabilitySource.AI_ESTIMATE
        assert outcome.degraded == ["ai_estimate_failed"]

    def test_non_finite_values_yield_neutral(self):
        client = _client_returning(
            median_days_to_sell=float("nan"), resellability_score=6, price_percentile=50
        )

        outcome = asyncio.run(GenerativeFallbackEstimator(client).estimate("Honda", "Fit", 2015, 8000))

        assert outcome.value.resellability_score == 5
        assert outcome.degraded == ["ai_estimate_failed"]

    def test_unconfigured_client_yields_neutral(self):
        estimator = GenerativeFallbackEstimator(GenerativeClient(api_key=""))

        outcome = asyncio.run(estimator.estimate("Honda", "Fit", 2015, 8000))

        assert outcome.value.source == ResellabilitySource.AI_ESTIMATE
        assert outcome.is_degraded


class TestGenerativeClient:

    @pytest.fixture
    def client(self):
        return GenerativeClient(api_key="test-key", model="test/model", base_url="https://llm.test/v1")

    def test_parse_plain_json(self, client):
        parsed = client.parse_response(
            '{"median_days_to_sell": 12, "resellability_score": 6, "price_percentile": 40}'
        )
        assert parsed == GenerativeResellability(12.0, 6.0, 40.0)

    def test_parse_fenced_json(self, client):
        content = '```json\n{"median_days_to_sell": "8", "resellability_score": 7, "price_percentile": 55}\n```'
        assert client.parse_response(content).median_days_to_sell == 8.0

    def test_parse_json_wrapped_in_prose(self, client):
        content = (
            'Sure! Here is my estimate: {"median_days_to_sell": 20, '
            '"resellability_score": 5, "price_percentile": 60} Hope that helps.'
        )
        assert client.parse_response(content).price_percentile == 60.0

    @pytest.mark.parametrize(
        "content",
        [
            "I cannot estimate that.",
            '{"median_days_to_sell": 12}',
            '{"median_days_to_sell": "soon", "resellability_score": 6, "price_percentile": 40}',
            "[1, 2, 3]",
        ],
    )
    def test_parse_rejects_bad_payloads(self, client, content):
        with pytest.raises(ValueError):
            client.parse_response(content)

    def test_estimate_calls_chat_completions(self, client):
        message = SimpleNamespace(
            content='{"median_days_to_sell": 11, "resellability_score": 7, "price_percentile": 30}'
        )
        response = SimpleNamespace(choices=[SimpleNamespace(message=message)])
        sdk = MagicMock()
        sdk.chat.completions.create = AsyncMock(return_value=response)
        client._client = sdk

        parsed = asyncio.run(client.estimate_resellability("Mazda", "3", 2017, 11500))

        assert parsed.resellability_score == 7.0
        kwargs = sdk.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "test/model"
        assert "Mazda" in kwargs["messages"][1]["content"]

    def test_unconfigured_raises(self):
        with pytest.raises(RuntimeError):
            asyncio.run(GenerativeClient(api_key="").estimate_resellability("Mazda", "3", 2017, 11500))
