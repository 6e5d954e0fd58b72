"""
OKX REST API Client

Async HTTP client for the OKX public market endpoints.

API Documentation:
    https://www.okx.com/docs-v5/en/#public-data-rest-api-get-ticker

Endpoint Used:
    GET /api/v5/market/ticker?instId=BTC-AED

Response Shape:
    {"code": "0", "msg": "", "data": [{"instId": "BTC-AED", "bidPx": "...",
     "askPx": "...", "open24h": "...", "volCcy24h": "...", "ts": "1704110400000"}]}

Usage:
    async with OKXAPIClient() as client:
        quote = await client.get_ticker(TradingPair.BTC_AED)
"""

import time
from typing import Any, Dict, Optional

import aiohttp

from core.logging import get_logger, log_api_request, log_api_response
from core.schemas import Quote, TradingPair
from core.utils.time import to_utc_datetime


class OKXAPIError(Exception):
    """OKX answered with a non-zero code or an unusable payload."""


class OKXAPIClient:
    """
    Async HTTP client for OKX REST API.

    Attributes:
        base_url: OKX API base URL (".../api/v5")
        timeout: Total request timeout in seconds
        session: aiohttp ClientSession, created in __aenter__

    Notes:
        - One attempt per call. The aggregation cycle is the retry loop.
        - Errors propagate from _get(); get_ticker() turns them into None.
    """

    EXCHANGE = "OKX"

    def __init__(self, base_url: str = "https://www.okx.com/api/v5", timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = get_logger(__name__)
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        self.logger.debug("OKXAPIClient session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.debug("OKXAPIClient session closed")

    # ============================================
    # HTTP Request Handler
    # ============================================

    async def _get(self, endpoint: str, params: Dict[str, Any] = None) -> Any:
        """
        GET an OKX endpoint and return the `data` field.

        Raises:
            RuntimeError: If the session is not open
            OKXAPIError: On HTTP errors or a non-zero OKX code
        """
        if not self.session:
            raise RuntimeError("OKXAPIClient session not initialized. Use 'async with' or start().")

        url = f"{self.base_url}{endpoint}"
        log_api_request(self.EXCHANGE, endpoint, params)
        started = time.monotonic()

        async with self.session.get(url, params=params) as response:
            log_api_response(self.EXCHANGE, endpoint, response.status, time.monotonic() - started)
            if response.status != 200:
                raise OKXAPIError(f"HTTP {response.status}: {await response.text()}")
            payload = await response.json()

        if payload.get("code") != "0" or payload.get("data") is None:
            raise OKXAPIError(f"OKX API error: {payload.get('msg') or 'invalid response'}")

        return payload["data"]

    # ============================================
    # Market Data Methods
    # ============================================

    async def get_ticker(self, pair: TradingPair) -> Optional[Quote]:
        """
        Fetch the spot ticker for a pair and normalize it.

        Returns:
            Quote, or None on any transport or payload failure

        Notes:
            - change_24h is computed from the mid price against open24h, in
              percent; 0 when open24h is 0
            - volume_24h is volCcy24h (quote currency volume)
        """
        inst_id = pair.to_venue_symbol("-")

        try:
            data = await self._get("/market/ticker", {"instId": inst_id})
            ticker = next((t for t in data if t.get("instId") == inst_id), None)
            if ticker is None:
                raise OKXAPIError(f"{inst_id} not found in OKX response")

            bid = float(ticker["bidPx"])
            ask = float(ticker["askPx"])
            open_24h = float(ticker.get("open24h") or 0)
            mid = (bid + ask) / 2
            change_24h = ((mid - open_24h) / open_24h) * 100 if open_24h else 0.0

            return Quote(
                exchange=self.EXCHANGE,
                pair=pair,
                bid=bid,
                ask=ask,
                timestamp=to_utc_datetime(ticker["ts"]),
                change_24h=change_24h,
                volume_24h=float(ticker.get("volCcy24h") or 0),
            )

        except Exception as e:
            self.logger.error(f"Failed to fetch OKX ticker for {pair.value}: {e}")
            return None
