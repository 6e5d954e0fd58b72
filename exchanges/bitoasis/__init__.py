"""
BitOasis Venue Adapter

Poll-based adapter over the BitOasis REST ticker.

Structure:
    exchanges/bitoasis/
    ├── __init__.py          # This file (BitOasisExchange)
    └── api_client.py        # REST client with aiohttp
"""

from typing import Optional

from core.config import settings
from core.exchange_interface import ExchangeInterface
from core.logging import get_logger
from core.schemas import Quote, TradingPair
from .api_client import BitOasisAPIClient


class BitOasisExchange(ExchangeInterface):
    """BitOasis connector."""

    name = "BitOasis"
    fee_schedule = "bitoasis"
    supported_pairs = frozenset({TradingPair.BTC_AED, TradingPair.USDT_AED})

    def __init__(self, client: Optional[BitOasisAPIClient] = None):
        self.client = client or BitOasisAPIClient(
            base_url=settings.bitoasis_base_url,
            timeout=settings.request_timeout,
        )
        self.logger = get_logger(__name__)

    async def start(self) -> None:
        if self.client.session is None:
            await self.client.__aenter__()
        self.logger.info("✓ BitOasis connector ready")

    async def stop(self) -> None:
        await self.client.__aexit__(None, None, None)

    async def fetch_price(self, pair: TradingPair) -> Optional[Quote]:
        if not self.supports_pair(pair):
            return None
        try:
            return await self.client.get_ticker(pair)
        except Exception as e:
            self.logger.error(f"BitOasis fetch_price failed for {pair.value}: {e}")
            return None
