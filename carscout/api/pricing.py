"""External vehicle pricing API client (KBB/NADA-style).

Optional collaborator: when no URL/key is configured the client reports
itself unconfigured and the retention model is authoritative.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from carscout.config import settings

logger = logging.getLogger(__name__)


class PricingAPIError(Exception):
    """Raised when the pricing API is unreachable or returns unusable data."""


@dataclass(frozen=True)
class PricingQuote:
    value: int
    low: int
    high: int


class PricingAPI:
    """Thin async wrapper around GET {pricing_api_url}/valuation."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.pricing_api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.pricing_api_key
        self.timeout = timeout if timeout is not None else settings.external_timeout_seconds
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    async def get_quote(
        self,
        make: str,
        model: str,
        year: int,
        mileage: int,
        condition: str,
    ) -> PricingQuote:
        """
        Fetch a value/range triple for a vehicle.

        Raises:
            PricingAPIError: on missing configuration, HTTP/transport errors,
                timeouts or a response without a usable value.
        """
        if not self.is_configured:
            raise PricingAPIError("Pricing API is not configured")

        params = {
            "make": make,
            "model": model,
            "year": year,
            "mileage": mileage,
            "condition": condition,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.get(f"{self.base_url}/valuation", params=params, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise PricingAPIError(f"Pricing API timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise PricingAPIError(f"Pricing API request failed: {e}") from e
        except ValueError as e:
            raise PricingAPIError(f"Pricing API returned invalid JSON: {e}") from e

        return self.parse_quote(data)

    def parse_quote(self, data: Any) -> PricingQuote:
        """Map the provider's field names onto a PricingQuote."""
        if not isinstance(data, dict):
            raise PricingAPIError("Pricing API response is not an object")

        value = _first_number(data, "estimatedValue", "value")
        if value is None or value <= 0:
            raise PricingAPIError("Pricing API response has no estimated value")

        low = _first_number(data, "lowValue", "rangeLow")
        high = _first_number(data, "highValue", "rangeHigh")
        low = value if low is None or low <= 0 else low
        high = value if high is None or high <= 0 else high

        # Keep low <= value <= high even when the provider's range is inconsistent
        low, high = min(low, value), max(high, value)
        return PricingQuote(value=int(round(value)), low=int(round(low)), high=int(round(high)))


def _first_number(data: dict, *keys: str) -> Optional[float]:
    for key in keys:
        raw = data.get(key)
        if raw in (None, ""):
            continue
        try:
            return float(raw)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring non-numeric pricing field {key}={raw!r}")
    return None


# Global client instance
pricing_api = PricingAPI()
