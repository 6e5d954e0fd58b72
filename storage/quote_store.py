"""
Quote Persistence

Narrow interface the aggregator uses to hand off every raw Quote it
aggregates. The production relational store lives outside this service; the
in-memory implementation keeps a bounded per-pair history for local runs and
tests.
"""

from abc import ABC, abstractmethod
from collections import defaultdict, deque
from typing import Deque, DefaultDict, List

from core.logging import get_logger
from core.schemas import Quote, TradingPair


class QuoteStore(ABC):
    """Destination for raw quotes. Implementations may raise; callers log."""

    @abstractmethod
    async def save_quote(self, quote: Quote) -> None:
        ...


class InMemoryQuoteStore(QuoteStore):
    """
    Keeps the most recent `max_per_pair` quotes for each pair.

    Example:
        >>> store = InMemoryQuoteStore(max_per_pair=100)
        >>> await store.save_quote(quote)
        >>> store.history(TradingPair.BTC_AED)[-1] is quote
        True
    """

    def __init__(self, max_per_pair: int = 1000) -> None:
        self._history: DefaultDict[TradingPair, Deque[Quote]] = defaultdict(lambda: deque(maxlen=max_per_pair))
        self._logger = get_logger(__name__)

    async def save_quote(self, quote: Quote) -> None:
        self._history[quote.pair].append(quote)
        self._logger.debug(f"Stored {quote.exchange} {quote.pair.value} quote")

    def history(self, pair: TradingPair) -> List[Quote]:
        """Stored quotes for a pair, oldest first."""
        return list(self._history.get(pair, ()))
