"""
/api/market endpoint
"""
import logging

import httpx
from fastapi import APIRouter

from krishi.config import settings
from krishi.schemas import MarketRequest, MarketResponse
from krishi.tools.market import fetch_market_prices, mock_market_data

log = logging.getLogger("krishimitra.market")

router = APIRouter(tags=["market"])

FALLBACK_WARNING = "Using mock data due to API error"

@router.post("/market", response_model=MarketResponse, response_model_exclude_none=True)
async def market(req: MarketRequest):
    """
    Mandi prices for a commodity. Upstream trouble never fails the request:
    the seeded quotes are served instead, flagged with a warning.
    """
    if not settings.market_configured:
        log.info("Market API not configured, returning mock data")
        return MarketResponse(data=mock_market_data(req.commodity), source="mock")

    try:
        data = await fetch_market_prices(req.commodity)
    except (httpx.HTTPError, ValueError) as e:
        log.warning("Market API call failed, returning mock data as fallback: %s", e)
        return MarketResponse(
            data=mock_market_data(req.commodity),
            source="fallback",
            warning=FALLBACK_WARNING,
        )

    return MarketResponse(data=data, source="api")
