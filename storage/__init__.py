"""
Storage Package

Quote persistence behind the QuoteStore interface.

Current implementation:
- In-memory bounded history per pair

The aggregator writes raw quotes fire-and-forget, so a slow or failing store
never delays a snapshot.
"""
