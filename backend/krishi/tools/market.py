# backend/krishi/tools/market.py
import datetime as dt
import logging
import time
from typing import Any, Dict, List, Optional

from krishi.config import settings
from krishi.http import get_http_client
from krishi.schemas import MarketData
from krishi.utils.numbers import to_float

log = logging.getLogger("krishimitra.market")

def t(): return time.perf_counter()

# -------------------------------
# Seeded mandi quotes (INR/quintal, tomato & potato INR/kg)
# -------------------------------
# commodity -> (display name, trend, [(market, min, max, modal), ...])
MOCK_MANDI_TABLE: Dict[str, Dict[str, Any]] = {
    "wheat": {
        "commodity": "Wheat",
        "trend": "rising",
        "quotes": [
            ("Delhi (Azadpur)", 2150, 2250, 2200),
            ("Punjab (Khanna)", 2100, 2200, 2150),
            ("Haryana (Karnal)", 2120, 2220, 2170),
        ],
    },
    "rice": {
        "commodity": "Rice",
        "trend": "stable",
        "quotes": [
            ("Andhra Pradesh (Kurnool)", 1850, 1950, 1900),
            ("West Bengal (Burdwan)", 1800, 1900, 1850),
            ("Tamil Nadu (Thanjavur)", 1820, 1920, 1870),
        ],
    },
    "tomato": {
        "commodity": "Tomato",
        "trend": "falling",
        "quotes": [
            ("Maharashtra (Pune)", 25, 35, 30),
            ("Karnataka (Bangalore)", 20, 30, 25),
            ("Tamil Nadu (Coimbatore)", 22, 32, 27),
        ],
    },
    "onion": {
        "commodity": "Onion",
        "trend": "rising",
        "quotes": [
            ("Maharashtra (Lasalgaon)", 1800, 2000, 1900),
            ("Karnataka (Hassan)", 1700, 1900, 1800),
            ("Gujarat (Rajkot)", 1750, 1950, 1850),
        ],
    },
    "potato": {
        "commodity": "Potato",
        "trend": "stable",
        "quotes": [
            ("Uttar Pradesh (Agra)", 12, 18, 15),
            ("West Bengal (Hooghly)", 10, 16, 13),
            ("Punjab (Jalandhar)", 11, 17, 14),
        ],
    },
}

DEFAULT_COMMODITY = "wheat"


def _today() -> str:
    return dt.date.today().isoformat()


def mock_market_data(commodity: str) -> Dict[str, Any]:
    """Seeded quotes for a commodity; unknown names get the wheat table."""
    key = (commodity or "").strip().lower()
    entry = MOCK_MANDI_TABLE.get(key) or MOCK_MANDI_TABLE[DEFAULT_COMMODITY]
    today = _today()
    return {
        "commodity": entry["commodity"],
        "mandiPrices": [
            {"market": market, "min": lo, "max": hi, "modal": modal, "date": today}
            for market, lo, hi, modal in entry["quotes"]
        ],
        "trend": entry["trend"],
    }


def _normalize_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "market": row.get("market") or row.get("mandi_name") or "Unknown market",
        "min": to_float(row.get("min_price")),
        "max": to_float(row.get("max_price")),
        "modal": to_float(row.get("modal_price")),
        "date": row.get("date") or _today(),
    }


def normalize_market_payload(payload: Dict[str, Any], commodity: str) -> Dict[str, Any]:
    """
    Reshape an upstream market payload into MarketData.
    Raises ValueError (pydantic's ValidationError included) on a malformed payload.
    """
    if not isinstance(payload, dict):
        raise ValueError("market payload is not a JSON object")
    rows: Optional[List[Dict[str, Any]]] = payload.get("mandiPrices")
    if rows is not None and not isinstance(rows, list):
        raise ValueError("mandiPrices is not a list")
    data = MarketData.model_validate({
        "commodity": payload.get("commodity") or commodity,
        "mandiPrices": [_normalize_row(r) for r in rows or [] if isinstance(r, dict)],
        "trend": payload.get("trend") or "stable",
    })
    return data.model_dump()


async def fetch_market_prices(commodity: str) -> Dict[str, Any]:
    """
    Query the configured market API for a commodity.
    Raises httpx errors / ValueError; the caller decides whether to degrade.
    """
    start = t()
    params = {"commodity": commodity, "api_key": settings.MARKET_API_KEY}

    client = get_http_client()
    r = await client.get(settings.MARKET_API_URL, params=params, timeout=settings.MARKET_TIMEOUT_SEC)
    r.raise_for_status()
    data = normalize_market_payload(r.json(), commodity)

    total_ms = round((t() - start) * 1000)
    log.info("⏱️  Market prices for %s: %sms (%d mandis)", commodity, total_ms, len(data["mandiPrices"]))
    return data
