"""
Fee Schedule Table

Static per-venue fee schedules and the lookups the aggregator uses to attach
fees to quotes.

Tiered venues (OKX, Multibank, BitOasis) list brackets in ascending
min_volume order; Rain charges a flat fee. Boundary values are kept exactly as
the venues publish them, including the one-unit gaps between OKX/Multibank
brackets (1000000 / 1000001) and the shared edges of BitOasis brackets
(50000 / 50000). A volume that lands in a gap resolves to the entry-level fees.

Usage:
    from core.fees import get_fees_by_volume, get_exchange_tier

    get_fees_by_volume("okx", 50_000_001)     # Fees(maker=0.0, taker=0.0035)
    get_exchange_tier("OKX", 0).current_tier  # "Standard"
"""

from typing import Dict, List, Sequence, Union

from core.schemas import (
    BitOasisFeeTier,
    FeeTier,
    Fees,
    FixedFees,
    MultibankFeeTier,
    OKXFeeTier,
    TierInfo,
)


class UnknownVenueError(ValueError):
    """Raised when a fee lookup names a venue that has no fee schedule."""


FeeSchedule = Union[Sequence[FeeTier], FixedFees]


# ============================================
# Fee Tables
# ============================================

OKX_TIERS: List[OKXFeeTier] = [
    OKXFeeTier(vip_level=0, min_volume=0, max_volume=1_000_000, maker_fee=0.004, taker_fee=0.006, withdrawal_limit=3_500_000),
    OKXFeeTier(vip_level=1, min_volume=1_000_001, max_volume=5_000_000, maker_fee=0.003, taker_fee=0.0055, withdrawal_limit=3_500_000),
    OKXFeeTier(vip_level=2, min_volume=5_000_001, max_volume=10_000_000, maker_fee=0.0025, taker_fee=0.005, withdrawal_limit=3_500_000),
    OKXFeeTier(vip_level=3, min_volume=10_000_001, max_volume=25_000_000, maker_fee=0.00225, taker_fee=0.0045, withdrawal_limit=3_500_000),
    OKXFeeTier(vip_level=4, min_volume=25_000_001, max_volume=50_000_000, maker_fee=0.002, taker_fee=0.004, withdrawal_limit=3_500_000),
    OKXFeeTier(vip_level=5, min_volume=50_000_001, max_volume=100_000_000, maker_fee=0.0, taker_fee=0.0035, withdrawal_limit=35_000_000),
    OKXFeeTier(vip_level=6, min_volume=100_000_001, max_volume=500_000_000, maker_fee=-0.00005, taker_fee=0.003, withdrawal_limit=35_000_000),
    OKXFeeTier(vip_level=7, min_volume=500_000_001, max_volume=1_000_000_000, maker_fee=-0.0001, taker_fee=0.0025, withdrawal_limit=35_000_000),
    OKXFeeTier(vip_level=8, min_volume=1_000_000_001, max_volume=None, maker_fee=-0.0001, taker_fee=0.002, withdrawal_limit=35_000_000),
]

# Multibank brackets are USD thresholds converted to AED at 3.6725
MULTIBANK_TIERS: List[MultibankFeeTier] = [
    MultibankFeeTier(tier_level=1, min_volume=0, max_volume=36_725, maker_fee=0.003, taker_fee=0.005, maker_discount=0, taker_discount=0),
    MultibankFeeTier(tier_level=2, min_volume=36_726, max_volume=918_125, maker_fee=0.0029, taker_fee=0.0048, maker_discount=0.04, taker_discount=0.04),
    MultibankFeeTier(tier_level=3, min_volume=918_126, max_volume=3_672_500, maker_fee=0.0026, taker_fee=0.0044, maker_discount=0.12, taker_discount=0.12),
    MultibankFeeTier(tier_level=4, min_volume=3_672_501, max_volume=18_362_500, maker_fee=0.0021, taker_fee=0.0035, maker_discount=0.3, taker_discount=0.3),
    MultibankFeeTier(tier_level=5, min_volume=18_362_501, max_volume=183_625_000, maker_fee=0.0018, taker_fee=0.003, maker_discount=0.4, taker_discount=0.4),
    MultibankFeeTier(tier_level=6, min_volume=183_625_001, max_volume=None, maker_fee=0.0012, taker_fee=0.002, maker_discount=0.6, taker_discount=0.6),
]

BITOASIS_TIERS: List[BitOasisFeeTier] = [
    BitOasisFeeTier(min_volume=0, max_volume=50_000, maker_fee=0.004, taker_fee=0.006),
    BitOasisFeeTier(min_volume=50_000, max_volume=200_000, maker_fee=0.0026, taker_fee=0.0053),
    BitOasisFeeTier(min_volume=200_000, max_volume=500_000, maker_fee=0.00225, taker_fee=0.0046),
    BitOasisFeeTier(min_volume=500_000, max_volume=1_000_000, maker_fee=0.00215, taker_fee=0.0045),
    BitOasisFeeTier(min_volume=1_000_000, max_volume=2_000_000, maker_fee=0.002, taker_fee=0.0044),
    BitOasisFeeTier(min_volume=2_000_000, max_volume=3_500_000, maker_fee=0.0016, taker_fee=0.0043),
    BitOasisFeeTier(min_volume=3_500_000, max_volume=10_000_000, maker_fee=0.0012, taker_fee=0.0041),
    BitOasisFeeTier(min_volume=10_000_000, max_volume=20_000_000, maker_fee=0.001, taker_fee=0.0035),
    BitOasisFeeTier(min_volume=20_000_000, max_volume=None, maker_fee=0.001, taker_fee=0.0035),
]

RAIN_FEES = FixedFees(maker_fee=0.0, taker_fee=0.0005)

EXCHANGE_FEES: Dict[str, FeeSchedule] = {
    "okx": OKX_TIERS,
    "multibank": MULTIBANK_TIERS,
    "bitoasis": BITOASIS_TIERS,
    "rain": RAIN_FEES,
}


# ============================================
# Lookups
# ============================================

def _schedule(exchange: str) -> FeeSchedule:
    key = exchange.lower()
    if key not in EXCHANGE_FEES:
        raise UnknownVenueError(
            f"Unknown venue '{exchange}'. Known venues: {', '.join(EXCHANGE_FEES)}"
        )
    return EXCHANGE_FEES[key]


def get_default_fees(exchange: str) -> Fees:
    """
    Entry-level fees for a venue.

    Returns the first tier's fees for tiered venues and the flat fees for
    fixed-fee venues.

    Raises:
        UnknownVenueError: If the venue has no fee schedule
    """
    schedule = _schedule(exchange)
    if isinstance(schedule, FixedFees):
        return schedule.fees
    if not schedule:
        raise UnknownVenueError(f"No fee tiers defined for '{exchange}'")
    return schedule[0].fees


def get_fees_by_volume(exchange: str, volume: float) -> Fees:
    """
    Fees for a venue at a given trading volume.

    Scans tiers in ascending order and keeps the last one containing the
    volume, so a value sitting on a shared edge (BitOasis 50000) resolves to
    the higher bracket. Falls back to get_default_fees() if no tier matches.

    Raises:
        UnknownVenueError: If the venue has no fee schedule

    Example:
        >>> get_fees_by_volume("okx", 1_000_001)
        Fees(maker=0.003, taker=0.0055)
        >>> get_fees_by_volume("bitoasis", 50_000)
        Fees(maker=0.0026, taker=0.0053)
    """
    schedule = _schedule(exchange)
    if isinstance(schedule, FixedFees):
        return schedule.fees

    match = None
    for tier in schedule:
        if tier.contains(volume):
            match = tier

    if match is None:
        return get_default_fees(exchange)
    return match.fees


def _tier_name(tier: FeeTier, index: int) -> str:
    if isinstance(tier, OKXFeeTier):
        return "Standard" if tier.vip_level == 0 else f"VIP {tier.vip_level}"
    if isinstance(tier, MultibankFeeTier):
        return f"Tier {tier.tier_level}"
    return "Standard" if index == 0 else f"VIP {index}"


def get_exchange_tier(exchange: str, volume: float) -> TierInfo:
    """
    Describe where a volume sits in a venue's schedule.

    The current tier is the highest one whose min_volume has been reached,
    scanning upward until the first unreached tier. Fixed-fee venues are
    always "Standard" with nothing above.

    Raises:
        UnknownVenueError: If the venue has no fee schedule

    Example:
        >>> get_exchange_tier("OKX", 50_000_001)
        TierInfo(current_tier='VIP 5', next_tier_volume=100000001.0, ...)
    """
    schedule = _schedule(exchange)
    if isinstance(schedule, FixedFees):
        return TierInfo(current_tier="Standard")

    current_index = 0
    for i, tier in enumerate(schedule):
        if volume >= tier.min_volume:
            current_index = i
        else:
            break

    current = schedule[current_index]
    next_tier = schedule[current_index + 1] if current_index + 1 < len(schedule) else None

    return TierInfo(
        current_tier=_tier_name(current, current_index),
        next_tier_volume=next_tier.min_volume if next_tier else None,
        next_tier_fees=next_tier.fees if next_tier else None,
    )


# ============================================
# Volume Ladder
# ============================================

def get_all_volume_tiers() -> List[float]:
    """Sorted unique positive tier thresholds across every tiered venue."""
    thresholds = set()
    for schedule in EXCHANGE_FEES.values():
        if isinstance(schedule, FixedFees):
            continue
        for tier in schedule:
            if tier.min_volume > 0:
                thresholds.add(tier.min_volume)
    return sorted(thresholds)


def get_next_volume_tier(current_volume: float) -> float:
    """First threshold above current_volume, or current_volume at the top."""
    for threshold in get_all_volume_tiers():
        if threshold > current_volume:
            return threshold
    return current_volume


def get_previous_volume_tier(current_volume: float) -> float:
    """Last threshold below current_volume, or 0 at the bottom."""
    for threshold in reversed(get_all_volume_tiers()):
        if threshold < current_volume:
            return threshold
    return 0


# ============================================
# Schedule Validation
# ============================================

def validate_fee_schedule() -> None:
    """
    Check every tiered schedule is ascending and only its last tier is open-ended.

    Raises:
        ValueError: If a schedule is empty, out of order, or has an
            unbounded tier before the last one
    """
    for name, schedule in EXCHANGE_FEES.items():
        if isinstance(schedule, FixedFees):
            continue
        if not schedule:
            raise ValueError(f"Fee schedule for '{name}' has no tiers")
        for prev, tier in zip(schedule, schedule[1:]):
            if tier.min_volume < prev.min_volume:
                raise ValueError(f"Fee tiers for '{name}' are not in ascending min_volume order")
            if prev.max_volume is None:
                raise ValueError(f"Fee schedule for '{name}' has an unbounded tier before the last one")
