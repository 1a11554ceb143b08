"""Generative resellability client (OpenRouter, OpenAI-compatible API).

Asks an LLM for a days-to-sell / score / percentile triple when there are
too few comparable sales. Returned numbers are raw; clamping and fallback
live in carscout.valuation.fallback.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from carscout.config import settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a used-car market analyst for private-party sales. "
    "Respond only with valid JSON."
)

RESELLABILITY_PROMPT = """Estimate how quickly this vehicle would resell as a private-party sale.

Make: {make}
Model: {model}
Year: {year}
Asking price: ${price}

Return a JSON object with these fields:
- "median_days_to_sell": integer, typical days for comparable vehicles to sell
- "resellability_score": integer 1-10 (10 = sells fastest)
- "price_percentile": integer 0-100, share of comparable sales priced below the asking price

Return ONLY valid JSON, no other text."""

_FENCE_RE = re.compile(r"```(?:json)?\s*|```")


@dataclass(frozen=True)
class GenerativeResellability:
    median_days_to_sell: float
    resellability_score: float
    price_percentile: float


class GenerativeClient:
    """Lazy OpenAI SDK client pointed at OpenRouter."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.openrouter_api_key
        self.model = model or settings.openrouter_model
        self.base_url = base_url or settings.openrouter_base_url
        self.timeout = timeout if timeout is not None else settings.external_timeout_seconds
        self._client = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def estimate_resellability(
        self, make: str, model: str, year: int, price: float
    ) -> GenerativeResellability:
        """
        Ask the model for a resellability triple.

        Raises:
            RuntimeError: if no API key is configured.
            ValueError: if the response is not the expected JSON shape.
            openai.OpenAIError: on transport/API failures.
        """
        if not self.is_configured:
            raise RuntimeError("OpenRouter API key is not configured")

        prompt = RESELLABILITY_PROMPT.format(make=make, model=model, year=year, price=price)
        response = await self._get_client().chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.2,
            max_tokens=200,
        )
        content = response.choices[0].message.content or ""
        return self.parse_response(content)

    def parse_response(self, content: str) -> GenerativeResellability:
        data = _parse_json(content)
        try:
            return GenerativeResellability(
                median_days_to_sell=float(data["median_days_to_sell"]),
                resellability_score=float(data["resellability_score"]),
                price_percentile=float(data["price_percentile"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Unexpected resellability payload: {data!r}") from e


def _parse_json(content: str) -> dict[str, Any]:
    text = _FENCE_RE.sub("", content or "").strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # Some models wrap the object in prose
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise ValueError(f"No JSON object in model response: {content[:200]!r}")
        data = json.loads(text[start : end + 1])
    if not isinstance(data, dict):
        raise ValueError("Model response is not a JSON object")
    return data


# Global client instance
generative_client = GenerativeClient()
