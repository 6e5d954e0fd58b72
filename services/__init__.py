"""
Services Package

Long-running pieces that sit between the venues and the transport:
- PriceAggregator: periodic and volume-triggered aggregation passes
- PriceBroadcaster: latest snapshot cache and per-pair fan-out
- VolumeContext: process-wide trading volume used for fee tiers
"""
