"""
Multibank Venue Adapter

Stream-based adapter over the Multibank ticker stream. Only BTC/AED is
listed.

Structure:
    exchanges/multibank/
    ├── __init__.py          # This file (MultibankExchange)
    └── ws_client.py         # Ticker subscription over StreamClient
"""

from typing import Any, Dict, Optional

from core.config import settings
from core.exchange_interface import StreamingExchange
from core.schemas import Quote, TradingPair
from core.utils.time import current_utc_datetime
from .ws_client import MultibankWSClient


class MultibankExchange(StreamingExchange):
    """Multibank connector."""

    name = "Multibank"
    fee_schedule = "multibank"
    supported_pairs = frozenset({TradingPair.BTC_AED})

    # "BTCAED" -> TradingPair.BTC_AED
    SYMBOLS = {p.to_venue_symbol(""): p for p in TradingPair}

    def __init__(self, ws_client: Optional[MultibankWSClient] = None):
        super().__init__(ws_client or MultibankWSClient(
            url=settings.multibank_ws_url,
            pairs=sorted(self.supported_pairs, key=lambda p: p.value),
            reconnect_delay=settings.ws_reconnect_delay,
        ))

    def parse_message(self, message: Dict[str, Any]) -> Optional[Quote]:
        if message.get("e") != "ticker":
            return None

        symbol = str(message["s"]).upper()
        pair = self.SYMBOLS.get(symbol)
        if pair is None:
            self.logger.debug(f"Multibank: ignoring ticker for unknown symbol {symbol}")
            return None

        return Quote(
            exchange=self.name,
            pair=pair,
            bid=float(message["b"]),
            ask=float(message["a"]),
            timestamp=current_utc_datetime(),
            change_24h=float(message.get("p") or 0),
            volume_24h=float(message.get("v") or 0),
        )
