"""
FastAPI Application Package

Thin transport around the price aggregator: REST endpoints for snapshots and
fee tiers, and a WebSocket endpoint that pushes snapshots and accepts volume
updates and pair selection.
"""
