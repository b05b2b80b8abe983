"""
Exchange Rate Cache
USD-based exchange rates for price display, fetched over HTTP and kept for a TTL
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from fightcamp.config import settings

logger = logging.getLogger(__name__)

Rates = Dict[str, float]

# Served when the feed is unreachable
FALLBACK_RATES: Rates = {
    "USD": 1,
    "THB": 35.5,
    "AUD": 1.52,
    "IDR": 15750,
    "EUR": 0.92,
    "GBP": 0.79,
    "JPY": 150,
    "CNY": 7.2,
    "SGD": 1.35,
    "MYR": 4.75,
    "NZD": 1.65,
    "CAD": 1.35,
    "HKD": 7.8,
    "INR": 83,
    "KRW": 1330,
    "PHP": 56,
    "VND": 24500,
}


@dataclass
class CachedRates:
    value: Rates
    fetched_at: float


async def fetch_rates(url: Optional[str] = None) -> Rates:
    """Load rates from the exchange-rate feed; USD is always 1"""
    async with httpx.AsyncClient() as client:
        response = await client.get(url or settings.EXCHANGE_RATE_URL, timeout=10.0)
        response.raise_for_status()
        data = response.json()
    return {"USD": 1, **data.get("rates", {})}


class ExchangeRateCache:
    """
    One cache per application, created at startup and handed to routes
    through a dependency.
    """

    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        fetcher: Callable[[], Awaitable[Rates]] = fetch_rates,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.EXCHANGE_RATE_TTL_SECONDS
        self.fetcher = fetcher
        self.clock = clock
        self.cached: Optional[CachedRates] = None

    def is_fresh(self, now: Optional[float] = None) -> bool:
        if self.cached is None:
            return False
        now = self.clock() if now is None else now
        return now - self.cached.fetched_at < self.ttl_seconds

    async def get_rates(self) -> Dict[str, Any]:
        """
        Rates for the currency switcher

        Returns:
            {"success", "rates", "cached"} and "error" when the fallback table is served
        """
        if self.is_fresh():
            return {"success": True, "rates": self.cached.value, "cached": True}

        try:
            rates = await self.fetcher()
        except Exception as e:
            logger.error(f"Error fetching exchange rates: {str(e)}")
            return {"success": False, "rates": dict(FALLBACK_RATES), "error": "Using fallback rates", "cached": False}

        self.cached = CachedRates(value=rates, fetched_at=self.clock())
        return {"success": True, "rates": rates, "cached": False}
