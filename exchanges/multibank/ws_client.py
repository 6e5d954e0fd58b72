"""
Multibank WebSocket Client

Ticker stream for Multibank (Binance-style combined subscription).

Subscription:
    {"method": "SUBSCRIBE", "params": ["btcaed@ticker"], "id": 1}

Ticker Message:
    {"e": "ticker", "s": "BTCAED", "b": "370100", "a": "370700",
     "p": "1.1", "v": "3.4"}
"""

from typing import Any, Dict, Iterable, List

from core.schemas import TradingPair
from core.stream_client import StreamClient


class MultibankWSClient(StreamClient):
    """Reconnecting Multibank ticker stream for a set of pairs."""

    exchange = "Multibank"

    def __init__(self, url: str, pairs: Iterable[TradingPair], reconnect_delay: float = 5.0):
        super().__init__(url, reconnect_delay=reconnect_delay)
        self.pairs = list(pairs)

    def subscription_messages(self) -> List[Dict[str, Any]]:
        return [{
            "method": "SUBSCRIBE",
            "params": [f"{p.to_venue_symbol('').lower()}@ticker" for p in self.pairs],
            "id": 1,
        }]
