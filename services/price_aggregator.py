"""
Price Aggregator - Update Cycle

Every `interval` seconds, and immediately whenever the Volume Context
changes, runs one aggregation pass:

    for each pair (sequentially):
        fetch_price(pair) on every venue concurrently
        drop None / failed venues
        if nothing is left: keep the previous snapshot untouched
        else: flag best bid / ask / spread on raw prices, attach fees for the
              current volume, sort by venue name, persist raw quotes,
              publish the Snapshot

Passes may overlap (a volume update while a scheduled pass is in flight).
Each pass takes a generation number and a snapshot is only published if
its generation is newer than the last one published for that pair.

States: IDLE -> RUNNING -> STOPPED (terminal). stop() cancels the timer and
stops the venues; passes already in flight finish but their results are
discarded.
"""

import asyncio
import math
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from core.config import settings
from core.exchange_interface import ExchangeInterface
from core.exchange_manager import ExchangeManager
from core.logging import get_logger
from core.schemas import FeeQuote, Fees, Quote, Snapshot, TradingPair
from services.broadcast import PriceBroadcaster
from services.volume_context import VolumeContext
from storage.quote_store import QuoteStore


class AggregatorState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


# ============================================
# Snapshot Construction
# ============================================

def _same_price(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=1e-9, abs_tol=1e-12)


def build_snapshot(
    pair: TradingPair,
    priced_quotes: Sequence[Tuple[Quote, Fees]],
    generation: int = 0
) -> Snapshot:
    """
    Build a Snapshot from quotes and the fees resolved for each.

    Best-price flags compare raw bid/ask, not fee-adjusted prices. Ties all
    get the flag; prices within float rounding of the best count as ties.

    Raises:
        ValueError: If priced_quotes is empty

    Example:
        A bid 10 / ask 12, B bid 11 / ask 13, C bid 9 / ask 11
        -> B is highest bid, C is lowest ask, all three share the lowest spread
    """
    if not priced_quotes:
        raise ValueError(f"Cannot build a {pair.value} snapshot without quotes")

    quotes = [quote for quote, _ in priced_quotes]
    best_bid = max(q.bid for q in quotes)
    best_ask = min(q.ask for q in quotes)
    best_spread = min(q.spread for q in quotes)

    fee_quotes = [
        FeeQuote.from_quote(
            quote,
            fees,
            is_highest_bid=_same_price(quote.bid, best_bid),
            is_lowest_ask=_same_price(quote.ask, best_ask),
            is_lowest_spread=_same_price(quote.spread, best_spread),
        )
        for quote, fees in priced_quotes
    ]
    fee_quotes.sort(key=lambda q: q.exchange.lower())

    return Snapshot(pair=pair, quotes=tuple(fee_quotes), generation=generation)


# ============================================
# Aggregator
# ============================================

class PriceAggregator:
    """
    Background service that turns venue quotes into published snapshots.

    Example:
        >>> aggregator = PriceAggregator(ExchangeManager(), PriceBroadcaster(), VolumeContext())
        >>> await aggregator.start()
        >>> ...
        >>> await aggregator.stop()
    """

    def __init__(
        self,
        manager: ExchangeManager,
        broadcaster: PriceBroadcaster,
        volume: VolumeContext,
        pairs: Optional[Iterable[TradingPair]] = None,
        interval: Optional[float] = None,
        store: Optional[QuoteStore] = None,
    ) -> None:
        self._manager = manager
        self._broadcaster = broadcaster
        self._volume = volume
        self._store = store
        self.pairs: List[TradingPair] = list(pairs) if pairs is not None else settings.pairs_list
        self.interval = interval if interval is not None else settings.update_interval_seconds

        self._state = AggregatorState.IDLE
        self._generation = 0
        self._published_generation: Dict[TradingPair, int] = {}
        self._ticker: Optional[asyncio.Task] = None
        self._passes: Set[asyncio.Task] = set()
        self._persist_tasks: Set[asyncio.Task] = set()
        self._remove_volume_listener = None
        self._logger = get_logger(__name__)

    @property
    def state(self) -> AggregatorState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    # ============================================
    # Lifecycle
    # ============================================

    async def start(self) -> None:
        """
        Start venues, the periodic timer and the volume listener.

        Raises:
            RuntimeError: If the aggregator was already stopped
        """
        if self._state == AggregatorState.RUNNING:
            return
        if self._state == AggregatorState.STOPPED:
            raise RuntimeError("PriceAggregator cannot be restarted after stop()")

        self._logger.info(
            f"Starting price aggregator for {', '.join(p.value for p in self.pairs)} "
            f"(interval={self.interval}s)"
        )
        self._state = AggregatorState.RUNNING
        await self._manager.start_all()
        self._remove_volume_listener = self._volume.add_listener(self._on_volume_change)
        self._ticker = asyncio.create_task(self._run(), name="price_aggregator")

    async def stop(self) -> None:
        if self._state == AggregatorState.STOPPED:
            return

        self._logger.info("Stopping price aggregator...")
        self._state = AggregatorState.STOPPED

        if self._remove_volume_listener:
            self._remove_volume_listener()
            self._remove_volume_listener = None

        if self._ticker:
            self._ticker.cancel()
            await asyncio.gather(self._ticker, return_exceptions=True)
            self._ticker = None

        await self._manager.stop_all()
        self._logger.info("Price aggregator stopped")

    async def _run(self) -> None:
        while self._state == AggregatorState.RUNNING:
            self.trigger()
            await asyncio.sleep(self.interval)

    def trigger(self) -> Optional[asyncio.Task]:
        """
        Launch one aggregation pass in the background.

        The pass runs as its own task so that stop() never aborts it midway.

        Returns:
            The pass task, or None if the aggregator is stopped
        """
        if self._state == AggregatorState.STOPPED:
            return None
        task = asyncio.create_task(self.run_cycle(), name=f"aggregation_pass_{self._generation + 1}")
        self._passes.add(task)
        task.add_done_callback(self._passes.discard)
        return task

    def _on_volume_change(self, volume: float) -> None:
        if self._state != AggregatorState.RUNNING:
            return
        try:
            self.trigger()
            self._logger.info(f"Volume changed to {volume:,.2f}; running out-of-cycle aggregation")
        except RuntimeError as e:
            self._logger.warning(f"Cannot trigger aggregation outside the event loop: {e}")

    async def wait_for_pending(self) -> None:
        """Wait for in-flight passes and persistence writes to finish."""
        while self._passes or self._persist_tasks:
            await asyncio.gather(*self._passes, *self._persist_tasks, return_exceptions=True)

    # ============================================
    # Aggregation Pass
    # ============================================

    async def run_cycle(self) -> Dict[TradingPair, Snapshot]:
        """
        Run one aggregation pass over every configured pair.

        Returns:
            Snapshots published by this pass, keyed by pair. Pairs with no
            quotes, stale results and passes finishing after stop() are absent.
        """
        if self._state == AggregatorState.STOPPED:
            return {}

        self._generation += 1
        generation = self._generation
        cycle_start = asyncio.get_running_loop().time()
        published: Dict[TradingPair, Snapshot] = {}

        for pair in self.pairs:
            try:
                snapshot = await self._aggregate_pair(pair, generation)
            except Exception as e:
                self._logger.error(f"Aggregation failed for {pair.value}: {e}")
                continue

            if snapshot is not None and self._publish(snapshot):
                published[pair] = snapshot

        elapsed = asyncio.get_running_loop().time() - cycle_start
        self._logger.debug(f"Aggregation pass #{generation} published {len(published)} pair(s) in {elapsed:.2f}s")
        return published

    async def _aggregate_pair(self, pair: TradingPair, generation: int) -> Optional[Snapshot]:
        venues = self._manager.all()
        results = await asyncio.gather(*(self._safe_fetch(venue, pair) for venue in venues))

        collected = [(venue, quote) for venue, quote in zip(venues, results) if quote is not None]
        if not collected:
            self._logger.warning(f"No quotes available for {pair.value}; keeping previous snapshot")
            return None

        # Fees reflect the volume in effect now, not when the quote arrived
        volume = self._volume.value
        priced = [(quote, venue.get_fees_by_volume(volume)) for venue, quote in collected]
        return build_snapshot(pair, priced, generation)

    async def _safe_fetch(self, venue: ExchangeInterface, pair: TradingPair) -> Optional[Quote]:
        try:
            return await venue.fetch_price(pair)
        except Exception as e:
            self._logger.error(f"{venue.get_name()} fetch_price({pair.value}) raised: {e}")
            return None

    def _publish(self, snapshot: Snapshot) -> bool:
        pair = snapshot.pair

        if self._state == AggregatorState.STOPPED:
            self._logger.debug(f"Discarding {pair.value} snapshot #{snapshot.generation}: aggregator stopped")
            return False

        if snapshot.generation <= self._published_generation.get(pair, 0):
            self._logger.debug(
                f"Discarding stale {pair.value} snapshot #{snapshot.generation} "
                f"(already published #{self._published_generation[pair]})"
            )
            return False

        self._published_generation[pair] = snapshot.generation
        self._persist(snapshot.quotes)
        self._broadcaster.publish(pair, snapshot)
        return True

    # ============================================
    # Persistence (fire-and-forget)
    # ============================================

    def _persist(self, quotes: Sequence[Quote]) -> None:
        if self._store is None:
            return
        for quote in quotes:
            raw = Quote(**quote.model_dump(include=set(Quote.model_fields)))
            task = asyncio.create_task(self._store.save_quote(raw))
            self._persist_tasks.add(task)
            task.add_done_callback(self._on_persist_done)

    def _on_persist_done(self, task: asyncio.Task) -> None:
        self._persist_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._logger.error(f"Failed to persist quote: {error}")
