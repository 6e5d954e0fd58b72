"""
OKX Venue Adapter

Poll-based adapter: each fetch_price() is one REST round trip to the OKX
spot ticker endpoint.

Structure:
    exchanges/okx/
    ├── __init__.py          # This file (OKXExchange)
    └── api_client.py        # REST client with aiohttp
"""

from typing import Optional

from core.config import settings
from core.exchange_interface import ExchangeInterface
from core.logging import get_logger
from core.schemas import Quote, TradingPair
from .api_client import OKXAPIClient


class OKXExchange(ExchangeInterface):
    """
    OKX connector.

    Example:
        >>> exchange = OKXExchange()
        >>> await exchange.start()
        >>> quote = await exchange.fetch_price(TradingPair.BTC_AED)
        >>> await exchange.stop()
    """

    name = "OKX"
    fee_schedule = "okx"
    supported_pairs = frozenset({TradingPair.BTC_AED, TradingPair.USDT_AED})

    def __init__(self, client: Optional[OKXAPIClient] = None):
        self.client = client or OKXAPIClient(
            base_url=settings.okx_base_url,
            timeout=settings.request_timeout,
        )
        self.logger = get_logger(__name__)

    async def start(self) -> None:
        if self.client.session is None:
            await self.client.__aenter__()
        self.logger.info("✓ OKX connector ready")

    async def stop(self) -> None:
        await self.client.__aexit__(None, None, None)

    async def fetch_price(self, pair: TradingPair) -> Optional[Quote]:
        if not self.supports_pair(pair):
            return None
        try:
            return await self.client.get_ticker(pair)
        except Exception as e:
            self.logger.error(f"OKX fetch_price failed for {pair.value}: {e}")
            return None
