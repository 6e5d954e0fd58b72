"""
Normalized Data Schemas

Pydantic models for everything that flows through the price feed. Whatever a
venue sends (REST ticker, order-book stream, ticker stream) is normalized into
these shapes before it reaches the aggregator.

Models:
    - TradingPair: Closed set of pairs the feed aggregates
    - Fees: A maker/taker fee pair
    - FeeTier (+ OKXFeeTier, MultibankFeeTier, BitOasisFeeTier): Volume brackets
    - FixedFees: Flat fees for venues without a tier ladder
    - Quote: One venue's bid/ask for one pair at one instant
    - FeeQuote: Quote enriched with fees and best-price flags
    - Snapshot: All FeeQuotes for one pair from one aggregation pass
    - TierInfo: Current tier name and what the next tier would unlock

Quotes, FeeQuotes and Snapshots are frozen: a newer value always replaces an
older one, nothing is patched in place.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, computed_field

from core.utils.time import to_iso8601


# ============================================
# Trading Pairs
# ============================================

class TradingPair(str, Enum):
    """Pairs aggregated across venues."""

    BTC_AED = "BTC/AED"
    USDT_AED = "USDT/AED"

    @property
    def base(self) -> str:
        return self.value.split("/")[0]

    @property
    def quote(self) -> str:
        return self.value.split("/")[1]

    def to_venue_symbol(self, separator: str = "-") -> str:
        """
        Render the pair the way a venue spells it.

        Example:
            >>> TradingPair.BTC_AED.to_venue_symbol()
            'BTC-AED'
            >>> TradingPair.BTC_AED.to_venue_symbol("")
            'BTCAED'
        """
        return f"{self.base}{separator}{self.quote}"


# ============================================
# Fee Schemas
# ============================================

class Fees(BaseModel):
    """
    Maker/taker fee rates as fractions (0.004 == 0.4%).

    Negative values are maker rebates and are kept as-is.
    """

    model_config = ConfigDict(frozen=True)

    maker: float
    taker: float


class FeeTier(BaseModel):
    """
    One volume bracket of a venue's fee schedule.

    Attributes:
        min_volume: Inclusive lower bound of the bracket
        max_volume: Inclusive upper bound, None for the open-ended top tier
        maker_fee: Maker fee rate
        taker_fee: Taker fee rate
    """

    model_config = ConfigDict(frozen=True)

    min_volume: float = Field(..., description="Inclusive lower volume bound")
    max_volume: Optional[float] = Field(None, description="Inclusive upper volume bound (None = unbounded)")
    maker_fee: float
    taker_fee: float

    @property
    def fees(self) -> Fees:
        return Fees(maker=self.maker_fee, taker=self.taker_fee)

    def contains(self, volume: float) -> bool:
        """True if volume falls inside [min_volume, max_volume]."""
        return volume >= self.min_volume and (self.max_volume is None or volume <= self.max_volume)


class OKXFeeTier(FeeTier):
    vip_level: int
    withdrawal_limit: float


class MultibankFeeTier(FeeTier):
    tier_level: int
    maker_discount: float
    taker_discount: float


class BitOasisFeeTier(FeeTier):
    pass


class FixedFees(BaseModel):
    """Flat maker/taker fees for a venue without volume tiers."""

    model_config = ConfigDict(frozen=True)

    maker_fee: float
    taker_fee: float

    @property
    def fees(self) -> Fees:
        return Fees(maker=self.maker_fee, taker=self.taker_fee)


class TierInfo(BaseModel):
    """
    Where a trading volume sits in a venue's fee schedule.

    Attributes:
        current_tier: Display name of the tier ("Standard", "VIP 3", "Tier 2")
        next_tier_volume: min_volume of the next tier, None at the top
        next_tier_fees: Fees of the next tier, None at the top
    """

    model_config = ConfigDict(frozen=True)

    current_tier: str
    next_tier_volume: Optional[float] = None
    next_tier_fees: Optional[Fees] = None


# ============================================
# Quote Schemas
# ============================================

class Quote(BaseModel):
    """
    Normalized top-of-book quote from one venue for one pair.

    bid <= ask is expected but deliberately not validated: flaky feeds do send
    crossed books and those quotes still take part in aggregation.

    Example:
        >>> q = Quote(
        ...     exchange="OKX",
        ...     pair=TradingPair.BTC_AED,
        ...     bid=370000.0,
        ...     ask=370500.0,
        ...     timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        ... )
        >>> q.mid_price
        370250.0
    """

    model_config = ConfigDict(frozen=True)

    exchange: str = Field(..., description="Venue display name", examples=["OKX", "Rain"])
    pair: TradingPair
    bid: float
    ask: float
    timestamp: datetime = Field(..., description="Quote time in UTC")
    change_24h: float = Field(0.0, description="24h price change in percent")
    volume_24h: float = Field(0.0, description="24h traded volume")

    @computed_field
    @property
    def mid_price(self) -> float:
        return (self.bid + self.ask) / 2

    @property
    def spread(self) -> float:
        return self.ask - self.bid


class FeeQuote(Quote):
    """
    Quote with fees resolved for the volume in effect at aggregation time,
    plus the cross-venue best-price flags for its Snapshot.
    """

    fees: Fees
    is_lowest_ask: bool = False
    is_highest_bid: bool = False
    is_lowest_spread: bool = False

    @classmethod
    def from_quote(cls, quote: Quote, fees: Fees, **flags: bool) -> "FeeQuote":
        return cls(**quote.model_dump(exclude={"mid_price"}), fees=fees, **flags)

    def to_message(self) -> Dict[str, Any]:
        """Wire shape consumed by clients (camelCase keys, ISO-8601 time)."""
        return {
            "exchange": self.exchange,
            "price": self.mid_price,
            "bid": self.bid,
            "ask": self.ask,
            "pair": self.pair.value,
            "lastUpdated": to_iso8601(self.timestamp),
            "change24h": self.change_24h,
            "volume24h": self.volume_24h,
            "fees": {"maker": self.fees.maker, "taker": self.fees.taker},
            "isLowestAsk": self.is_lowest_ask,
            "isHighestBid": self.is_highest_bid,
            "isLowestSpread": self.is_lowest_spread,
        }


class Snapshot(BaseModel):
    """
    Merged view of every venue for one pair, produced by one aggregation pass.

    Attributes:
        pair: The pair this snapshot covers
        quotes: FeeQuotes sorted by venue name
        generation: Index of the aggregation pass that built it
    """

    model_config = ConfigDict(frozen=True)

    pair: TradingPair
    quotes: Tuple[FeeQuote, ...]
    generation: int = 0

    def get(self, exchange: str) -> Optional[FeeQuote]:
        for quote in self.quotes:
            if quote.exchange.lower() == exchange.lower():
                return quote
        return None

    def to_message(self) -> Dict[str, Any]:
        return {
            "pair": self.pair.value,
            "quotes": [q.to_message() for q in self.quotes],
        }
