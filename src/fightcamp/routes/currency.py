"""
Currency Routes
Exchange rates for displaying prices in the visitor's currency
"""

from fastapi import APIRouter, Depends

from fightcamp.dependencies.services import get_exchange_rate_cache
from fightcamp.services.exchange_rates import ExchangeRateCache

router = APIRouter(prefix="/currency", tags=["Currency"])


@router.get("/rates")
async def get_rates(cache: ExchangeRateCache = Depends(get_exchange_rate_cache)):
    return await cache.get_rates()
