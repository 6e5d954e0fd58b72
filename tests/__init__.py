"""
Test Suite

Structure:
- tests/unit/: Tests for fee tables, schemas, venues, broadcast and the aggregator

Uses pytest with pytest-asyncio for testing async functionality. Network access
is never required: REST clients and WebSocket connections are patched.
"""
