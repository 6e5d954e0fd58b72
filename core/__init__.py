"""
Core Package

Contains the venue-agnostic core logic including:
- ExchangeInterface / StreamingExchange: Contract every venue adapter follows
- ExchangeManager: Registry that starts, stops and enumerates venue adapters
- Fees: Static per-venue fee schedules and volume-tier resolution
- Schemas: Pydantic models for quotes, fees and snapshots

This layer ensures all venues follow the same interface, so the aggregator never
needs to know whether a venue is polled or streamed.
"""
