"""
Snapshot Cache & Broadcast Channel

Holds the latest Snapshot per pair and pushes every new one to the
subscribers of that pair.

- Delivery is fire-and-forget: each publish calls each current subscriber
  once, in subscription order. Missed snapshots are not buffered.
- A subscriber that raises is logged and does not affect the others.
- Publishes for one pair come from the aggregator's sequential pair loop, so
  no lock is needed here.

Usage:
    broadcaster = PriceBroadcaster()
    unsubscribe = broadcaster.subscribe(TradingPair.BTC_AED, on_snapshot, send_current=True)
    broadcaster.publish(TradingPair.BTC_AED, snapshot)
    unsubscribe()
"""

from collections import defaultdict
from typing import Callable, DefaultDict, Dict, List, Optional

from core.logging import get_logger
from core.schemas import Snapshot, TradingPair


SnapshotCallback = Callable[[Snapshot], None]


class PriceBroadcaster:
    """
    Per-pair snapshot cache with synchronous fan-out to callbacks.

    Callbacks must not block; transports that need to await should hand the
    snapshot to a queue (see app.main).
    """

    def __init__(self) -> None:
        self._snapshots: Dict[TradingPair, Snapshot] = {}
        self._subscribers: DefaultDict[TradingPair, List[SnapshotCallback]] = defaultdict(list)
        self._logger = get_logger(__name__)

    def publish(self, pair: TradingPair, snapshot: Snapshot) -> int:
        """
        Cache a snapshot and deliver it to the pair's subscribers.

        Returns:
            Number of subscribers the snapshot was delivered to
        """
        self._snapshots[pair] = snapshot

        delivered = 0
        for callback in list(self._subscribers.get(pair, [])):
            try:
                callback(snapshot)
                delivered += 1
            except Exception as e:
                self._logger.error(f"Subscriber for {pair.value} failed: {e}")

        self._logger.debug(f"Published {pair.value} snapshot #{snapshot.generation} to {delivered} subscriber(s)")
        return delivered

    def subscribe(
        self,
        pair: TradingPair,
        callback: SnapshotCallback,
        send_current: bool = False
    ) -> Callable[[], None]:
        """
        Register a callback for a pair.

        Args:
            pair: Pair to follow
            callback: Called with every Snapshot published for the pair
            send_current: Immediately deliver the cached snapshot, if any

        Returns:
            A function that removes this subscription (idempotent)
        """
        self._subscribers[pair].append(callback)
        self._logger.debug(f"Subscriber added to {pair.value}. total={len(self._subscribers[pair])}")

        if send_current:
            current = self._snapshots.get(pair)
            if current is not None:
                try:
                    callback(current)
                except Exception as e:
                    self._logger.error(f"Subscriber for {pair.value} failed on current snapshot: {e}")

        def unsubscribe() -> None:
            subscribers = self._subscribers.get(pair, [])
            if callback in subscribers:
                subscribers.remove(callback)
                self._logger.debug(f"Subscriber removed from {pair.value}. total={len(subscribers)}")

        return unsubscribe

    def get_snapshot(self, pair: TradingPair) -> Optional[Snapshot]:
        return self._snapshots.get(pair)

    def subscriber_count(self, pair: TradingPair) -> int:
        return len(self._subscribers.get(pair, []))


class PairSubscription:
    """
    One client's subscription, which can switch pairs.

    Example:
        >>> sub = PairSubscription(broadcaster, queue.put_nowait, TradingPair.BTC_AED)
        >>> sub.select_pair(TradingPair.USDT_AED)   # pushes cached USDT/AED at once
        >>> sub.close()
    """

    def __init__(self, broadcaster: PriceBroadcaster, callback: SnapshotCallback, pair: TradingPair):
        self._broadcaster = broadcaster
        self._callback = callback
        self._unsubscribe: Optional[Callable[[], None]] = None
        self.pair: Optional[TradingPair] = None
        self.select_pair(pair)

    def select_pair(self, pair: TradingPair) -> None:
        """Move the subscription to another pair and send its current snapshot."""
        if pair == self.pair and self._unsubscribe is not None:
            return
        self.close()
        self.pair = pair
        self._unsubscribe = self._broadcaster.subscribe(pair, self._callback, send_current=True)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
