"""
Exchange Manager - Registry for Venue Adapters

Holds the venue adapters the aggregator reads from and drives their lifecycle.

Design Benefits:
    - Single source of truth for which venues are aggregated
    - Adapters are injected, so tests can register fakes
    - start_all()/stop_all() tolerate a single venue failing

Example Usage:
    manager = ExchangeManager()          # OKX, BitOasis, Rain, Multibank
    await manager.start_all()
    okx = manager.get_exchange("okx")
    quote = await okx.fetch_price(TradingPair.BTC_AED)
    await manager.stop_all()
"""

from typing import Dict, Iterable, List, Optional

from core.exchange_interface import ExchangeInterface
from core.logging import logger


class ExchangeManager:
    """
    Central registry of venue adapters, keyed by lowercase venue name.

    Attributes:
        exchanges: Mapping of lowercase name to adapter
                   Example: {"okx": OKXExchange(), "rain": RainExchange()}
    """

    def __init__(self, exchanges: Optional[Iterable[ExchangeInterface]] = None):
        """
        Register adapters.

        Args:
            exchanges: Adapters to register. Defaults to the four production
                       venues built from settings.
        """
        if exchanges is None:
            exchanges = self._default_exchanges()

        self.exchanges: Dict[str, ExchangeInterface] = {}
        for exchange in exchanges:
            key = exchange.get_name().lower()
            if key in self.exchanges:
                raise ValueError(f"Exchange '{exchange.get_name()}' registered twice")
            self.exchanges[key] = exchange

        logger.info(f"ExchangeManager initialized with {len(self.exchanges)} exchange(s): {', '.join(self.exchanges.keys())}")

    @staticmethod
    def _default_exchanges() -> List[ExchangeInterface]:
        # Each venue module imports from core, so import lazily
        from exchanges.okx import OKXExchange
        from exchanges.bitoasis import BitOasisExchange
        from exchanges.rain import RainExchange
        from exchanges.multibank import MultibankExchange

        return [OKXExchange(), BitOasisExchange(), RainExchange(), MultibankExchange()]

    # ============================================
    # Exchange Retrieval Methods
    # ============================================

    def get_exchange(self, name: str) -> ExchangeInterface:
        """
        Get an adapter by name (case-insensitive).

        Raises:
            ValueError: If the exchange is not registered
        """
        name = name.lower()

        if name not in self.exchanges:
            available = ", ".join(self.exchanges.keys())
            logger.error(f"Exchange '{name}' not found. Available: {available}")
            raise ValueError(
                f"Exchange '{name}' is not supported. "
                f"Available exchanges: {available}"
            )

        return self.exchanges[name]

    def has_exchange(self, name: str) -> bool:
        return name.lower() in self.exchanges

    def list_exchanges(self) -> List[str]:
        return [exchange.get_name() for exchange in self.exchanges.values()]

    def all(self) -> List[ExchangeInterface]:
        return list(self.exchanges.values())

    # ============================================
    # Lifecycle Management
    # ============================================

    async def start_all(self) -> None:
        """
        Start every adapter.

        A venue that fails to start is logged and skipped; it will simply
        contribute no quotes.
        """
        logger.info("Starting all exchanges...")

        for name, exchange in self.exchanges.items():
            try:
                await exchange.start()
                logger.info(f"✓ {exchange.get_name()} started")
            except Exception as e:
                logger.error(f"✗ Failed to start {name}: {e}")

        logger.info("All exchanges started")

    async def stop_all(self) -> None:
        """Stop every adapter, continuing past individual failures."""
        logger.info("Stopping all exchanges...")

        for name, exchange in self.exchanges.items():
            try:
                await exchange.stop()
                logger.info(f"✓ {exchange.get_name()} stopped")
            except Exception as e:
                logger.error(f"✗ Error stopping {name}: {e}")

        logger.info("All exchanges stopped")

    # ============================================
    # Status
    # ============================================

    async def status(self) -> Dict[str, Dict[str, object]]:
        """
        Per-venue status for health reporting.

        Returns:
            {"OKX": {"streaming": False, "pairs": ["BTC/AED", "USDT/AED"],
                     "pairs_with_data": [...]}, ...}

        Notes:
            pairs_with_data is only reported for streaming venues, since a
            poll venue would need a network round trip to answer.
        """
        result: Dict[str, Dict[str, object]] = {}
        for exchange in self.exchanges.values():
            entry: Dict[str, object] = {
                "streaming": exchange.streaming,
                "pairs": sorted(p.value for p in exchange.supported_pairs),
            }
            if exchange.streaming:
                with_data = []
                for pair in exchange.supported_pairs:
                    if await exchange.fetch_price(pair) is not None:
                        with_data.append(pair.value)
                entry["pairs_with_data"] = sorted(with_data)
            result[exchange.get_name()] = entry
        return result

    def __repr__(self) -> str:
        return f"<ExchangeManager(exchanges={list(self.exchanges.keys())})>"

    def __len__(self) -> int:
        return len(self.exchanges)
