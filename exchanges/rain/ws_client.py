"""
Rain WebSocket Client

Ticker stream for Rain.

Subscription:
    {"event": "subscribe", "pair": ["BTC-AED", "USDT-AED"], "channel": "ticker"}

Ticker Message:
    {"channel": "ticker", "pair": "BTC-AED", "bid": "370000", "ask": "370600",
     "change24h": "0.8", "volume24h": "14.2"}
"""

from typing import Any, Dict, Iterable, List

from core.schemas import TradingPair
from core.stream_client import StreamClient


class RainWSClient(StreamClient):
    """Reconnecting Rain ticker stream for a set of pairs."""

    exchange = "Rain"
    CHANNEL = "ticker"

    def __init__(self, url: str, pairs: Iterable[TradingPair], reconnect_delay: float = 5.0):
        super().__init__(url, reconnect_delay=reconnect_delay)
        self.pairs = list(pairs)

    def subscription_messages(self) -> List[Dict[str, Any]]:
        return [{
            "event": "subscribe",
            "pair": [p.to_venue_symbol("-") for p in self.pairs],
            "channel": self.CHANNEL,
        }]
