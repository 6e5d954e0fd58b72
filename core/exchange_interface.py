"""
Exchange Interface - Capability Set for All Venues

Every venue adapter exposes the same small set of capabilities so the
aggregator never needs to know whether quotes come from a REST poll or a
persistent stream:

    - fetch_price(pair): latest Quote for a pair, or None
    - get_name(): venue display name
    - get_default_fees() / get_fees_by_volume(volume): fee lookups
    - start() / stop(): lifecycle, a no-op for venues without resources

Two variants implement it:

    Poll-based (OKX, BitOasis)
        fetch_price() performs one REST round trip. Every failure (network,
        timeout, malformed payload, pair missing) becomes None. No retries:
        the next aggregation cycle is the retry.

    Stream-based (Rain, Multibank)
        start() opens a reconnecting WebSocket and keeps the last Quote per
        pair. fetch_price() only reads that map, so it never blocks and never
        fails; a pair with no message yet reads as None.

Fees always come from the shared Fee Schedule Table (core.fees) keyed by
`fee_schedule`.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, Optional

from core import fees as fee_table
from core.logging import get_logger
from core.schemas import Fees, Quote, TradingPair
from core.stream_client import StreamClient


class ExchangeInterface(ABC):
    """
    Abstract contract for a venue adapter.

    Class Attributes:
        name: Venue display name used in snapshots ("OKX", "Rain", ...)
        fee_schedule: Key of the venue in the fee table ("okx", "rain", ...)
        supported_pairs: Pairs this venue can quote
        streaming: True for adapters backed by a persistent stream

    Example Implementation:
        >>> class DummyExchange(ExchangeInterface):
        ...     name = "Dummy"
        ...     fee_schedule = "rain"
        ...     supported_pairs = frozenset({TradingPair.BTC_AED})
        ...
        ...     async def fetch_price(self, pair):
        ...         return None
    """

    name: str
    fee_schedule: str
    supported_pairs: FrozenSet[TradingPair] = frozenset()
    streaming: bool = False

    @abstractmethod
    async def fetch_price(self, pair: TradingPair) -> Optional[Quote]:
        """
        Latest quote for a pair.

        Returns:
            Quote, or None when the venue is down, has not sent data for the
            pair yet, or does not list the pair. Callers treat all three the
            same way.

        Notes:
            Implementations must not raise for transport or payload errors.
        """
        ...

    # ============================================
    # Lifecycle (optional)
    # ============================================

    async def start(self) -> None:
        """Open sessions or streams. Default does nothing."""
        pass

    async def stop(self) -> None:
        """Release sessions or streams. Default does nothing."""
        pass

    # ============================================
    # Identity & Fees
    # ============================================

    def get_name(self) -> str:
        return self.name

    def get_default_fees(self) -> Fees:
        return fee_table.get_default_fees(self.fee_schedule)

    def get_fees_by_volume(self, volume: float) -> Fees:
        return fee_table.get_fees_by_volume(self.fee_schedule, volume)

    def supports_pair(self, pair: TradingPair) -> bool:
        return pair in self.supported_pairs

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name='{self.name}')>"


class StreamingExchange(ExchangeInterface):
    """
    Adapter backed by a persistent venue stream.

    start() launches a background task that consumes the owned StreamClient
    and keeps the last Quote per pair. Each inbound message replaces the
    whole Quote for its pair, so fetch_price() never sees a half-updated
    entry. Subclasses only implement parse_message().

    Attributes:
        ws_client: The connection this adapter owns
    """

    streaming = True

    def __init__(self, ws_client: StreamClient):
        self.ws_client = ws_client
        self._latest: Dict[TradingPair, Quote] = {}
        self._task: Optional[asyncio.Task] = None
        self.logger = get_logger(f"{__name__}.{self.name.lower()}")

    @abstractmethod
    def parse_message(self, message: Dict[str, Any]) -> Optional[Quote]:
        """
        Turn one decoded stream message into a Quote.

        Returns None for messages that carry no quote (acks, heartbeats,
        other channels). May raise on malformed payloads.
        """
        ...

    def handle_message(self, message: Dict[str, Any]) -> None:
        try:
            quote = self.parse_message(message)
        except Exception as e:
            self.logger.warning(f"{self.name}: could not parse message ({e}): {str(message)[:200]}")
            return

        if quote is None:
            return
        if not self.supports_pair(quote.pair):
            self.logger.debug(f"{self.name}: ignoring quote for unsupported pair {quote.pair.value}")
            return

        self._latest[quote.pair] = quote

    async def _consume(self) -> None:
        async for message in self.ws_client.listen():
            self.handle_message(message)

    async def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._task = asyncio.create_task(self._consume(), name=f"stream_{self.name.lower()}")
        self.logger.info(f"{self.name} stream started")

    async def stop(self) -> None:
        await self.ws_client.close()
        if self._task:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        self.logger.info(f"{self.name} stream stopped")

    async def fetch_price(self, pair: TradingPair) -> Optional[Quote]:
        return self._latest.get(pair)
