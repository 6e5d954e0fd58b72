"""
BitOasis REST API Client

Async HTTP client for the BitOasis public ticker.

Endpoint Used:
    GET /v3/exchange/ticker/{BASE}-{QUOTE}

Response Shape:
    {"ticker": {"bid": "370000.0", "ask": "370500.0",
                "daily_percentage_change": 1.2},
     "volume_24h": 12.5}

BitOasis does not timestamp its ticker, so quotes are stamped on receipt.
"""

import time
from typing import Any, Dict, Optional

import aiohttp

from core.logging import get_logger, log_api_request, log_api_response
from core.schemas import Quote, TradingPair
from core.utils.time import current_utc_datetime


class BitOasisAPIClient:
    """
    Async HTTP client for BitOasis REST API.

    Attributes:
        base_url: BitOasis API base URL (".../v3")
        timeout: Total request timeout in seconds
        session: aiohttp ClientSession, created in __aenter__
    """

    EXCHANGE = "BitOasis"

    def __init__(self, base_url: str = "https://api.bitoasis.net/v3", timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = get_logger(__name__)
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        self.logger.debug("BitOasisAPIClient session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.debug("BitOasisAPIClient session closed")

    async def _get(self, endpoint: str, params: Dict[str, Any] = None) -> Any:
        if not self.session:
            raise RuntimeError("BitOasisAPIClient session not initialized. Use 'async with' or start().")

        url = f"{self.base_url}{endpoint}"
        log_api_request(self.EXCHANGE, endpoint, params)
        started = time.monotonic()

        async with self.session.get(url, params=params) as response:
            log_api_response(self.EXCHANGE, endpoint, response.status, time.monotonic() - started)
            if response.status != 200:
                raise Exception(f"HTTP {response.status}: {await response.text()}")
            return await response.json()

    async def get_ticker(self, pair: TradingPair) -> Optional[Quote]:
        """
        Fetch the ticker for a pair.

        Returns:
            Quote, or None if the request fails or bid/ask are missing
        """
        try:
            data = await self._get(f"/exchange/ticker/{pair.to_venue_symbol('-')}")
            ticker = (data or {}).get("ticker") or {}

            if not ticker.get("bid") or not ticker.get("ask"):
                raise ValueError("Invalid response from BitOasis API: missing bid/ask")

            return Quote(
                exchange=self.EXCHANGE,
                pair=pair,
                bid=float(ticker["bid"]),
                ask=float(ticker["ask"]),
                timestamp=current_utc_datetime(),
                change_24h=float(ticker.get("daily_percentage_change") or 0),
                volume_24h=float(data.get("volume_24h") or 0),
            )

        except Exception as e:
            self.logger.error(f"Failed to fetch BitOasis ticker for {pair.value}: {e}")
            return None
