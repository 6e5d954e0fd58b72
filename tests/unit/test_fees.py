"""
Unit Tests for the Fee Schedule Table

These tests verify that:
- Volume lookups pick the right bracket, including edges and gaps
- Unknown venues are rejected
- Tier naming and next-tier information follow each venue's convention
- The cross-venue volume ladder is sorted and unique
- Schedule validation catches malformed tables

Run with:
    pytest tests/unit/test_fees.py -v
"""

import pytest
from pydantic import ValidationError

from core import fees
from core.fees import (
    BITOASIS_TIERS,
    EXCHANGE_FEES,
    MULTIBANK_TIERS,
    OKX_TIERS,
    UnknownVenueError,
    get_all_volume_tiers,
    get_default_fees,
    get_exchange_tier,
    get_fees_by_volume,
    get_next_volume_tier,
    get_previous_volume_tier,
    validate_fee_schedule,
)
from core.schemas import FeeTier, Fees, FixedFees


# ============================================
# Tests for get_fees_by_volume
# ============================================

class TestFeesByVolume:
    """Tests for volume-based fee resolution"""

    @pytest.mark.parametrize("venue", ["okx", "multibank", "bitoasis"])
    def test_min_volume_of_every_tier_resolves_to_that_tier(self, venue):
        """Verify each tier's lower bound maps to the tier's own fees"""
        for tier in EXCHANGE_FEES[venue]:
            assert get_fees_by_volume(venue, tier.min_volume) == tier.fees

    def test_okx_vip5_fees(self):
        """Verify 50,000,001 AED lands in OKX VIP 5"""
        assert get_fees_by_volume("okx", 50_000_001) == Fees(maker=0.0, taker=0.0035)

    def test_okx_upper_bound_is_inclusive(self):
        """Verify max_volume belongs to its own tier"""
        assert get_fees_by_volume("okx", 1_000_000) == Fees(maker=0.004, taker=0.006)
        assert get_fees_by_volume("okx", 1_000_001) == Fees(maker=0.003, taker=0.0055)

    def test_volume_in_gap_falls_back_to_default(self):
        """Verify a volume between two brackets gets entry-level fees"""
        assert get_fees_by_volume("okx", 1_000_000.5) == get_default_fees("okx")
        assert get_fees_by_volume("multibank", 36_725.5) == get_default_fees("multibank")

    def test_shared_edge_resolves_to_higher_tier(self):
        """Verify BitOasis 50,000 (shared by two tiers) takes the later tier"""
        assert get_fees_by_volume("bitoasis", 50_000) == Fees(maker=0.0026, taker=0.0053)
        assert get_fees_by_volume("bitoasis", 49_999) == Fees(maker=0.004, taker=0.006)

    def test_open_ended_top_tier(self):
        """Verify volumes above every bound use the unbounded tier"""
        assert get_fees_by_volume("okx", 5_000_000_000) == Fees(maker=-0.0001, taker=0.002)
        assert get_fees_by_volume("multibank", 1e12) == Fees(maker=0.0012, taker=0.002)

    def test_negative_volume_returns_default(self):
        """Verify negative volume behaves like no matching tier"""
        assert get_fees_by_volume("okx", -1) == get_default_fees("okx")

    def test_venue_name_is_case_insensitive(self):
        """Verify 'OKX' and 'okx' resolve the same schedule"""
        assert get_fees_by_volume("OKX", 0) == get_fees_by_volume("okx", 0)

    def test_rain_is_constant(self):
        """Verify Rain ignores volume entirely"""
        for volume in (0, 1, 50_000_001, 1e12, -5):
            assert get_fees_by_volume("rain", volume) == Fees(maker=0.0, taker=0.0005)

    def test_unknown_venue_raises(self):
        """Verify unknown venue raises UnknownVenueError (a ValueError)"""
        with pytest.raises(UnknownVenueError, match="Unknown venue"):
            get_fees_by_volume("kraken", 100)

        with pytest.raises(ValueError):
            get_default_fees("kraken")


class TestDefaultFees:
    """Tests for get_default_fees"""

    def test_tiered_venue_uses_first_tier(self):
        assert get_default_fees("okx") == OKX_TIERS[0].fees
        assert get_default_fees("multibank") == MULTIBANK_TIERS[0].fees
        assert get_default_fees("bitoasis") == BITOASIS_TIERS[0].fees

    def test_fixed_venue_uses_flat_fees(self):
        assert get_default_fees("rain") == Fees(maker=0.0, taker=0.0005)


# ============================================
# Tests for get_exchange_tier
# ============================================

class TestExchangeTier:
    """Tests for tier naming and next-tier information"""

    def test_okx_entry_tier(self):
        """Verify OKX at zero volume is Standard with VIP 1 next"""
        info = get_exchange_tier("OKX", 0)

        assert info.current_tier == "Standard"
        assert info.next_tier_volume == 1_000_001
        assert info.next_tier_fees == Fees(maker=0.003, taker=0.0055)

    def test_okx_vip_level_name(self):
        info = get_exchange_tier("okx", 50_000_001)

        assert info.current_tier == "VIP 5"
        assert info.next_tier_volume == 100_000_001

    def test_okx_top_tier_has_no_next(self):
        info = get_exchange_tier("okx", 5_000_000_000)

        assert info.current_tier == "VIP 8"
        assert info.next_tier_volume is None
        assert info.next_tier_fees is None

    def test_unreached_tier_stops_scan(self):
        """Verify a volume in a gap keeps the lower tier"""
        assert get_exchange_tier("okx", 1_000_000.5).current_tier == "Standard"

    def test_multibank_uses_tier_level(self):
        assert get_exchange_tier("multibank", 0).current_tier == "Tier 1"

        info = get_exchange_tier("multibank", 1_000_000)
        assert info.current_tier == "Tier 3"
        assert info.next_tier_volume == 3_672_501

    def test_bitoasis_uses_position(self):
        assert get_exchange_tier("bitoasis", 0).current_tier == "Standard"

        info = get_exchange_tier("bitoasis", 60_000)
        assert info.current_tier == "VIP 1"
        assert info.next_tier_volume == 200_000

    def test_fixed_fee_venue_is_standard(self):
        info = get_exchange_tier("rain", 1_000_000_000)

        assert info.current_tier == "Standard"
        assert info.next_tier_volume is None
        assert info.next_tier_fees is None

    def test_unknown_venue_raises(self):
        with pytest.raises(UnknownVenueError):
            get_exchange_tier("kraken", 0)


# ============================================
# Tests for the Volume Ladder
# ============================================

class TestVolumeLadder:
    """Tests for the cross-venue threshold ladder"""

    def test_ladder_is_sorted_unique_and_positive(self):
        tiers = get_all_volume_tiers()

        assert tiers == sorted(set(tiers))
        assert all(t > 0 for t in tiers)

    def test_ladder_contains_every_venue(self):
        tiers = get_all_volume_tiers()

        assert 1_000_001 in tiers       # OKX
        assert 36_726 in tiers          # Multibank
        assert 50_000 in tiers          # BitOasis

    def test_next_tier(self):
        assert get_next_volume_tier(0) == 36_726
        assert get_next_volume_tier(36_726) == 50_000

    def test_next_tier_at_top_returns_input(self):
        assert get_next_volume_tier(5_000_000_000) == 5_000_000_000

    def test_previous_tier(self):
        assert get_previous_volume_tier(50_000) == 36_726
        assert get_previous_volume_tier(36_726) == 0
        assert get_previous_volume_tier(0) == 0


# ============================================
# Tests for Schedule Validation
# ============================================

class TestScheduleValidation:
    """Tests for validate_fee_schedule and tier models"""

    def test_shipped_schedule_is_valid(self):
        validate_fee_schedule()

    def test_out_of_order_tiers_rejected(self, monkeypatch):
        monkeypatch.setitem(fees.EXCHANGE_FEES, "broken", [
            FeeTier(min_volume=100, max_volume=200, maker_fee=0.1, taker_fee=0.1),
            FeeTier(min_volume=0, max_volume=99, maker_fee=0.2, taker_fee=0.2),
        ])

        with pytest.raises(ValueError, match="ascending"):
            validate_fee_schedule()

    def test_unbounded_tier_must_be_last(self, monkeypatch):
        monkeypatch.setitem(fees.EXCHANGE_FEES, "broken", [
            FeeTier(min_volume=0, max_volume=None, maker_fee=0.1, taker_fee=0.1),
            FeeTier(min_volume=100, max_volume=None, maker_fee=0.2, taker_fee=0.2),
        ])

        with pytest.raises(ValueError, match="unbounded"):
            validate_fee_schedule()

    def test_fixed_fees_skip_validation(self, monkeypatch):
        monkeypatch.setitem(fees.EXCHANGE_FEES, "flat", FixedFees(maker_fee=0, taker_fee=0))
        validate_fee_schedule()

    def test_tier_rejects_non_numeric_bounds(self):
        with pytest.raises(ValidationError):
            FeeTier(min_volume="lots", max_volume=None, maker_fee=0.1, taker_fee=0.1)
