"""
Unit Tests for the FastAPI Transport

The lifespan is not entered, so no venue connections are opened; snapshots are
published into the broadcaster directly.

Run with:
    pytest tests/unit/test_app.py -v
"""

import pytest
from datetime import datetime, timezone
from fastapi.testclient import TestClient

from app import main
from core.schemas import FeeQuote, Fees, Quote, Snapshot, TradingPair
from services.broadcast import PriceBroadcaster
from services.volume_context import VolumeContext


def make_snapshot(pair, bid):
    quote = Quote(
        exchange="Rain",
        pair=pair,
        bid=bid,
        ask=bid + 1,
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    return Snapshot(pair=pair, quotes=(FeeQuote.from_quote(quote, Fees(maker=0.0, taker=0.0005)),), generation=1)


@pytest.fixture
def broadcaster(monkeypatch):
    fresh = PriceBroadcaster()
    monkeypatch.setattr(main, "broadcaster", fresh)
    return fresh


@pytest.fixture
def volume(monkeypatch):
    fresh = VolumeContext()
    monkeypatch.setattr(main, "volume_context", fresh)
    return fresh


@pytest.fixture
def client(broadcaster, volume):
    return TestClient(main.app)


# ============================================
# REST Endpoints
# ============================================

class TestRestEndpoints:
    """Tests for the REST surface"""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "idle"
        assert body["environment"] == main.settings.environment
        assert set(body["exchanges"]) == {"OKX", "BitOasis", "Rain", "Multibank"}

    def test_prices_not_available_yet(self, client):
        response = client.get("/prices", params={"pair": "BTC/AED"})
        assert response.status_code == 404

    def test_prices_returns_cached_snapshot(self, client, broadcaster):
        snapshot = make_snapshot(TradingPair.BTC_AED, 370000)
        broadcaster.publish(TradingPair.BTC_AED, snapshot)

        response = client.get("/prices", params={"pair": "btc/aed"})

        assert response.status_code == 200
        assert response.json() == snapshot.to_message()

    def test_prices_unknown_pair(self, client):
        response = client.get("/prices", params={"pair": "ETH/AED"})
        assert response.status_code == 400

    def test_update_volume(self, client, volume):
        response = client.post("/volume", json={"volume": 1_500_000})

        assert response.status_code == 200
        assert volume.value == 1_500_000

    def test_update_volume_rejects_non_numeric(self, client, volume):
        response = client.post("/volume", json={"volume": "a lot"})

        assert response.status_code == 422
        assert volume.value == 0

    def test_fee_tier_for_explicit_volume(self, client):
        response = client.get("/fees/tier", params={"exchange": "okx", "volume": 50_000_001})

        assert response.status_code == 200
        body = response.json()
        assert body["current_tier"] == "VIP 5"
        assert body["next_tier_volume"] == 100_000_001
        assert body["next_tier_fees"] == {"maker": -0.00005, "taker": 0.003}

    def test_fee_tier_defaults_to_current_volume(self, client, volume):
        volume.update(60_000)

        response = client.get("/fees/tier", params={"exchange": "bitoasis"})

        assert response.json()["current_tier"] == "VIP 1"

    def test_fee_tier_reports_volume_ladder_neighbours(self, client):
        response = client.get("/fees/tier", params={"exchange": "multibank", "volume": 36_726})

        body = response.json()
        assert body["volume"] == 36_726
        assert body["next_volume_tier"] == 50_000
        assert body["previous_volume_tier"] == 0

    def test_fee_tier_ladder_uses_current_volume(self, client, volume):
        response = client.get("/fees/tier", params={"exchange": "rain"})

        body = response.json()
        assert body["current_tier"] == "Standard"
        assert body["next_volume_tier"] == 36_726
        assert body["previous_volume_tier"] == 0

    def test_fee_tier_unknown_venue(self, client):
        response = client.get("/fees/tier", params={"exchange": "kraken"})
        assert response.status_code == 404

    def test_volume_tiers(self, client):
        tiers = client.get("/fees/volume-tiers").json()["tiers"]
        assert tiers == sorted(tiers)


# ============================================
# WebSocket Stream
# ============================================

class TestPriceStream:
    """Tests for the WebSocket price stream"""

    def test_stream_pair_switch_and_volume(self, client, broadcaster, volume):
        broadcaster.publish(TradingPair.BTC_AED, make_snapshot(TradingPair.BTC_AED, 370000))
        broadcaster.publish(TradingPair.USDT_AED, make_snapshot(TradingPair.USDT_AED, 3.67))

        with client.websocket_connect("/ws/prices?pair=BTC/AED") as ws:
            first = ws.receive_json()

            ws.send_json({"type": "select_pair", "pair": "USDT/AED"})
            second = ws.receive_json()

            ws.send_json({"type": "volume_update", "volume": 2_000_000})
            ws.send_json({"type": "ping"})
            error = ws.receive_json()

        assert first["pair"] == "BTC/AED"
        assert second["pair"] == "USDT/AED"
        assert second["quotes"][0]["bid"] == 3.67
        assert error == {"type": "error", "message": "Unknown message type 'ping'"}
        assert volume.value == 2_000_000
        assert broadcaster.subscriber_count(TradingPair.USDT_AED) == 0

    def test_stream_rejects_unknown_pair(self, client):
        with client.websocket_connect("/ws/prices?pair=ETH/AED") as ws:
            message = ws.receive_json()

        assert message["type"] == "error"

    def test_invalid_commands_report_errors(self, client, volume):
        with client.websocket_connect("/ws/prices") as ws:
            ws.send_json({"type": "select_pair", "pair": "DOGE/AED"})
            bad_pair = ws.receive_json()

            ws.send_json({"type": "volume_update", "volume": "lots"})
            bad_volume = ws.receive_json()

        assert bad_pair["type"] == "error"
        assert bad_volume["type"] == "error"
        assert volume.value == 0
