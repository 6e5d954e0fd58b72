"""
Reconnecting WebSocket Stream Client

Owned connection object for stream-based venues. A venue adapter receives one
of these at construction, starts listening in start() and closes it in stop().
Nothing here is process-global: two adapters never share a connection.

It handles:
- Connecting and (re)sending the venue's subscription messages on every open
- JSON decoding, skipping frames that are not valid JSON objects
- Reconnecting after a fixed delay whenever the connection drops
- Graceful shutdown that also cancels a pending reconnect

Usage:
    client = RainWSClient(pairs=[TradingPair.BTC_AED])
    async for message in client.listen():
        handle(message)
    ...
    await client.close()
"""

import asyncio
import json
from typing import Any, AsyncGenerator, Dict, List, Optional

import websockets

from core.logging import get_logger, log_websocket_event


class StreamClient:
    """
    Async WebSocket client with fixed-delay reconnect.

    Subclasses set `exchange` and implement subscription_messages().

    Attributes:
        url: WebSocket endpoint
        reconnect_delay: Seconds to wait before reconnecting after a drop
        ping_interval: Keepalive ping period passed to websockets.connect
        connections: Number of successful connections so far
    """

    exchange: str = "stream"

    def __init__(self, url: str, reconnect_delay: float = 5.0, ping_interval: Optional[float] = 20):
        self.url = url
        self.reconnect_delay = reconnect_delay
        self.ping_interval = ping_interval
        self.connections = 0

        self._ws = None
        self._is_running = False
        self.logger = get_logger(__name__)

    def subscription_messages(self) -> List[Dict[str, Any]]:
        """Payloads sent after every (re)connect."""
        return []

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def is_connected(self) -> bool:
        return self._ws is not None

    # ============================================
    # Message Streaming with Auto-Reconnect
    # ============================================

    async def listen(self) -> AsyncGenerator[Dict[str, Any], None]:
        """
        Yield decoded JSON objects until close() is called.

        A dropped or failed connection is logged and retried after
        `reconnect_delay` seconds; subscriptions are re-sent on reopen.
        Cancelling the consuming task cancels a pending reconnect sleep.
        """
        self._is_running = True

        while self._is_running:
            try:
                async with websockets.connect(self.url, ping_interval=self.ping_interval) as ws:
                    self._ws = ws
                    self.connections += 1
                    for payload in self.subscription_messages():
                        await ws.send(json.dumps(payload))
                    log_websocket_event(self.exchange, "connected", details=self.url)

                    async for raw in ws:
                        try:
                            message = json.loads(raw)
                        except (json.JSONDecodeError, TypeError):
                            self.logger.warning(f"{self.exchange}: dropping non-JSON frame: {str(raw)[:100]}")
                            continue

                        if not isinstance(message, dict):
                            self.logger.debug(f"{self.exchange}: ignoring non-object message")
                            continue

                        yield message

                if self._is_running:
                    log_websocket_event(self.exchange, "disconnected", details="connection closed by server")

            except asyncio.CancelledError:
                raise

            except Exception as e:
                log_websocket_event(self.exchange, "error", details=str(e))

            finally:
                self._ws = None

            if self._is_running:
                self.logger.info(f"{self.exchange}: reconnecting in {self.reconnect_delay}s...")
                await asyncio.sleep(self.reconnect_delay)

        self.logger.info(f"{self.exchange}: stream listener stopped")

    async def close(self) -> None:
        """
        Stop listening and close the live connection, if any.

        Safe to call multiple times.
        """
        self._is_running = False
        ws = self._ws
        if ws is not None:
            try:
                await ws.close()
            except Exception as e:
                self.logger.debug(f"{self.exchange}: error while closing stream: {e}")
