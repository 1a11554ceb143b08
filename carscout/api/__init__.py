"""External API clients."""

from carscout.api.pricing import PricingAPI, PricingAPIError, PricingQuote
from carscout.api.openrouter import GenerativeClient, GenerativeResellability

__all__ = [
    "PricingAPI",
    "PricingAPIError",
    "PricingQuote",
    "GenerativeClient",
    "GenerativeResellability",
]
