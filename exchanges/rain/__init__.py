"""
Rain Venue Adapter

Stream-based adapter: Rain pushes ticker updates over a WebSocket and
fetch_price() reads the last one received per pair.

Structure:
    exchanges/rain/
    ├── __init__.py          # This file (RainExchange)
    └── ws_client.py         # Ticker subscription over StreamClient
"""

from typing import Any, Dict, Optional

from core.config import settings
from core.exchange_interface import StreamingExchange
from core.schemas import Quote, TradingPair
from core.utils.time import current_utc_datetime
from .ws_client import RainWSClient


class RainExchange(StreamingExchange):
    """
    Rain connector.

    Example:
        >>> exchange = RainExchange()
        >>> await exchange.start()
        >>> await exchange.fetch_price(TradingPair.BTC_AED)   # None until first tick
    """

    name = "Rain"
    fee_schedule = "rain"
    supported_pairs = frozenset({TradingPair.BTC_AED, TradingPair.USDT_AED})

    def __init__(self, ws_client: Optional[RainWSClient] = None):
        super().__init__(ws_client or RainWSClient(
            url=settings.rain_ws_url,
            pairs=sorted(self.supported_pairs, key=lambda p: p.value),
            reconnect_delay=settings.ws_reconnect_delay,
        ))

    def parse_message(self, message: Dict[str, Any]) -> Optional[Quote]:
        if message.get("channel") != RainWSClient.CHANNEL:
            return None

        pair = TradingPair(str(message["pair"]).replace("-", "/").upper())

        return Quote(
            exchange=self.name,
            pair=pair,
            bid=float(message["bid"]),
            ask=float(message["ask"]),
            timestamp=current_utc_datetime(),
            change_24h=float(message.get("change24h") or 0),
            volume_24h=float(message.get("volume24h") or 0),
        )
