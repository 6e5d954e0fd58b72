"""
Unit Tests for Stream-Based Venues (Rain, Multibank) and the Stream Client

These tests verify that:
- A pair with no message yet reads as None
- Ticker messages replace the latest Quote for their pair
- Malformed or unrelated messages are ignored
- The stream client re-subscribes after every reconnect
- start()/stop() manage the background consumer

Run with:
    pytest tests/unit/test_stream_exchanges.py -v
"""

import asyncio
import json

import pytest

from core import stream_client
from core.schemas import Fees, TradingPair
from core.stream_client import StreamClient
from exchanges.multibank import MultibankExchange
from exchanges.multibank.ws_client import MultibankWSClient
from exchanges.rain import RainExchange
from exchanges.rain.ws_client import RainWSClient


# ============================================
# Test Doubles
# ============================================

class FakeStreamClient:
    """Yields canned messages, then waits until closed."""

    def __init__(self, messages):
        self.messages = messages
        self.closed = False
        self._done = asyncio.Event()

    async def listen(self):
        for message in self.messages:
            yield message
        await self._done.wait()

    async def close(self):
        self.closed = True
        self._done.set()


class FakeConnection:
    """Stands in for a websockets connection."""

    def __init__(self, frames):
        self.frames = frames
        self.sent = []

    async def send(self, data):
        self.sent.append(json.loads(data))

    async def close(self):
        pass

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for frame in self.frames:
            yield frame


class FakeConnect:
    def __init__(self, connection):
        self.connection = connection

    async def __aenter__(self):
        return self.connection

    async def __aexit__(self, exc_type, exc, tb):
        return False


def rain_ticker(pair="BTC-AED", bid="370000", ask="370600"):
    return {"channel": "ticker", "pair": pair, "bid": bid, "ask": ask, "change24h": "0.8", "volume24h": "14.2"}


def multibank_ticker(symbol="BTCAED", bid="370100", ask="370700"):
    return {"e": "ticker", "s": symbol, "b": bid, "a": ask, "p": "1.1", "v": "3.4"}


# ============================================
# Tests for Rain
# ============================================

class TestRainExchange:
    """Tests for Rain message handling"""

    @pytest.mark.asyncio
    async def test_no_message_yet_returns_none(self):
        exchange = RainExchange(ws_client=FakeStreamClient([]))

        assert await exchange.fetch_price(TradingPair.BTC_AED) is None

    @pytest.mark.asyncio
    async def test_ticker_sets_latest_quote(self):
        exchange = RainExchange(ws_client=FakeStreamClient([]))

        exchange.handle_message(rain_ticker())
        quote = await exchange.fetch_price(TradingPair.BTC_AED)

        assert quote.exchange == "Rain"
        assert quote.bid == 370000.0
        assert quote.ask == 370600.0
        assert quote.change_24h == 0.8
        assert quote.volume_24h == 14.2

    @pytest.mark.asyncio
    async def test_newer_ticker_replaces_whole_quote(self):
        exchange = RainExchange(ws_client=FakeStreamClient([]))

        exchange.handle_message(rain_ticker(bid="1", ask="2"))
        exchange.handle_message({"channel": "ticker", "pair": "BTC-AED", "bid": "3", "ask": "4"})
        quote = await exchange.fetch_price(TradingPair.BTC_AED)

        assert (quote.bid, quote.ask) == (3.0, 4.0)
        assert quote.change_24h == 0.0

    @pytest.mark.asyncio
    async def test_pairs_are_tracked_independently(self):
        exchange = RainExchange(ws_client=FakeStreamClient([]))

        exchange.handle_message(rain_ticker(pair="USDT-AED", bid="3.67", ask="3.68"))

        assert await exchange.fetch_price(TradingPair.BTC_AED) is None
        assert (await exchange.fetch_price(TradingPair.USDT_AED)).bid == 3.67

    @pytest.mark.parametrize("message", [
        {"event": "subscribed", "channel": "ticker"},
        {"channel": "ticker", "pair": "BTC-AED", "bid": "abc", "ask": "1"},
        {"channel": "ticker", "pair": "ETH-AED", "bid": "1", "ask": "2"},
        {"channel": "trades", "pair": "BTC-AED"},
    ])
    @pytest.mark.asyncio
    async def test_malformed_or_unrelated_messages_ignored(self, message):
        exchange = RainExchange(ws_client=FakeStreamClient([]))
        exchange.handle_message(rain_ticker())

        exchange.handle_message(message)

        assert (await exchange.fetch_price(TradingPair.BTC_AED)).bid == 370000.0

    def test_subscription_payload(self):
        client = RainWSClient(url="wss://example", pairs=[TradingPair.BTC_AED, TradingPair.USDT_AED])

        assert client.subscription_messages() == [
            {"event": "subscribe", "pair": ["BTC-AED", "USDT-AED"], "channel": "ticker"}
        ]

    def test_fixed_fees(self):
        exchange = RainExchange(ws_client=FakeStreamClient([]))

        assert exchange.streaming is True
        assert exchange.get_fees_by_volume(1e9) == Fees(maker=0.0, taker=0.0005)


# ============================================
# Tests for Multibank
# ============================================

class TestMultibankExchange:
    """Tests for Multibank message handling"""

    @pytest.mark.asyncio
    async def test_ticker_sets_latest_quote(self):
        exchange = MultibankExchange(ws_client=FakeStreamClient([]))

        exchange.handle_message(multibank_ticker())
        quote = await exchange.fetch_price(TradingPair.BTC_AED)

        assert quote.exchange == "Multibank"
        assert quote.bid == 370100.0
        assert quote.change_24h == 1.1
        assert quote.volume_24h == 3.4

    @pytest.mark.asyncio
    async def test_usdt_is_not_listed(self):
        exchange = MultibankExchange(ws_client=FakeStreamClient([]))

        exchange.handle_message(multibank_ticker(symbol="USDTAED", bid="3.6", ask="3.7"))

        assert exchange.supports_pair(TradingPair.USDT_AED) is False
        assert await exchange.fetch_price(TradingPair.USDT_AED) is None

    @pytest.mark.asyncio
    async def test_unknown_symbol_and_missing_fields_ignored(self):
        exchange = MultibankExchange(ws_client=FakeStreamClient([]))

        exchange.handle_message(multibank_ticker(symbol="ETHAED"))
        exchange.handle_message({"e": "ticker", "s": "BTCAED"})
        exchange.handle_message({"result": None, "id": 1})

        assert await exchange.fetch_price(TradingPair.BTC_AED) is None

    def test_subscription_payload(self):
        client = MultibankWSClient(url="wss://example", pairs=[TradingPair.BTC_AED])

        assert client.subscription_messages() == [
            {"method": "SUBSCRIBE", "params": ["btcaed@ticker"], "id": 1}
        ]


# ============================================
# Tests for StreamingExchange Lifecycle
# ============================================

class TestStreamingLifecycle:
    """Tests for start/stop of the background consumer"""

    @pytest.mark.asyncio
    async def test_start_consumes_stream_and_stop_closes_it(self):
        client = FakeStreamClient([rain_ticker(), rain_ticker(pair="USDT-AED", bid="3.67", ask="3.68")])
        exchange = RainExchange(ws_client=client)

        await exchange.start()
        for _ in range(5):
            await asyncio.sleep(0)

        assert (await exchange.fetch_price(TradingPair.BTC_AED)).bid == 370000.0
        assert (await exchange.fetch_price(TradingPair.USDT_AED)).ask == 3.68

        await exchange.stop()

        assert client.closed is True
        assert exchange._task is None

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        client = FakeStreamClient([])
        exchange = MultibankExchange(ws_client=client)

        await exchange.stop()

        assert client.closed is True


# ============================================
# Tests for StreamClient Reconnect
# ============================================

class TestStreamClientReconnect:
    """Tests for decoding, reconnect and re-subscription"""

    @pytest.mark.asyncio
    async def test_resubscribes_after_reconnect(self, monkeypatch):
        connections = [
            FakeConnection(['{"n": 1}', "not json", "[1, 2]"]),
            FakeConnection(['{"n": 2}']),
        ]
        opened = list(connections)

        def fake_connect(url, **kwargs):
            return FakeConnect(connections.pop(0))

        monkeypatch.setattr(stream_client.websockets, "connect", fake_connect)
        client = RainWSClient(url="wss://example", pairs=[TradingPair.BTC_AED], reconnect_delay=0)

        received = []
        stream = client.listen()
        async for message in stream:
            received.append(message)
            if len(received) == 2:
                await client.close()
                break
        await stream.aclose()

        assert received == [{"n": 1}, {"n": 2}]
        assert client.connections == 2
        for connection in opened:
            assert connection.sent == client.subscription_messages()

    @pytest.mark.asyncio
    async def test_reconnects_after_connect_error(self, monkeypatch):
        attempts = []

        def fake_connect(url, **kwargs):
            attempts.append(url)
            if len(attempts) == 1:
                raise OSError("connection refused")
            return FakeConnect(FakeConnection(['{"ok": true}']))

        monkeypatch.setattr(stream_client.websockets, "connect", fake_connect)
        client = StreamClient(url="wss://example", reconnect_delay=0)

        stream = client.listen()
        message = await stream.__anext__()
        await client.close()
        await stream.aclose()

        assert message == {"ok": True}
        assert len(attempts) == 2
        assert client.is_connected is False

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        client = StreamClient(url="wss://example")

        await client.close()
        await client.close()

        assert client.is_running is False
