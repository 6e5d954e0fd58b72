"""
FastAPI Application - AED Price Aggregator Transport

Thin transport around the aggregation core: it owns the component wiring and
lifecycle, forwards client commands into the core and pushes Snapshots out.

Endpoints:
    - GET  /health                  Venue status and aggregator state
    - GET  /prices?pair=BTC/AED     Latest cached snapshot for a pair
    - POST /volume                  {"volume": 1500000} -> Volume Context
    - GET  /fees/tier               ?exchange=okx&volume=... -> tier info
    - GET  /fees/volume-tiers       Volume ladder across venues
    - WS   /ws/prices?pair=BTC/AED  Snapshot pushes; accepts
                                    {"type": "volume_update", "volume": n}
                                    {"type": "select_pair", "pair": "USDT/AED"}

Usage:
    uvicorn app.main:app --host 0.0.0.0 --port 8000
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from core.config import settings, validate_configuration
from core.exchange_manager import ExchangeManager
from core.fees import (
    UnknownVenueError,
    get_all_volume_tiers,
    get_exchange_tier,
    get_next_volume_tier,
    get_previous_volume_tier,
    validate_fee_schedule,
)
from core.logging import logger, set_log_level
from core.schemas import Snapshot, TradingPair
from services.broadcast import PairSubscription, PriceBroadcaster
from services.price_aggregator import PriceAggregator
from services.volume_context import VolumeContext
from storage.quote_store import InMemoryQuoteStore


# ============================================
# Component Wiring
# ============================================

broadcaster = PriceBroadcaster()
volume_context = VolumeContext()
quote_store = InMemoryQuoteStore(max_per_pair=settings.quote_history_size)
manager = ExchangeManager()
aggregator = PriceAggregator(manager, broadcaster, volume_context, store=quote_store)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the aggregator on startup and stop it on shutdown."""
    logger.info("=== Application Starting ===")
    try:
        validate_configuration()
        set_log_level(settings.log_level)
        validate_fee_schedule()
        await aggregator.start()
        logger.info("=== Started Successfully ===")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    logger.info("=== Shutting Down ===")
    try:
        await aggregator.stop()
        logger.info("=== Shutdown Complete ===")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


app = FastAPI(
    title="AED Price Aggregator",
    description="Live BTC/AED and USDT/AED quotes across UAE venues with volume-tiered fees.",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


def _parse_pair(value: str) -> TradingPair:
    try:
        return TradingPair(value.upper())
    except ValueError:
        valid = ", ".join(p.value for p in TradingPair)
        raise HTTPException(status_code=400, detail=f"Unknown pair '{value}'. Valid pairs: {valid}")


class VolumeUpdate(BaseModel):
    volume: float


# ============================================
# REST Endpoints
# ============================================

@app.get("/health", tags=["System"])
async def health_check():
    return {
        "status": aggregator.state.value,
        "environment": settings.environment,
        "generation": aggregator.generation,
        "volume": volume_context.value,
        "exchanges": await manager.status(),
    }


@app.get("/prices", tags=["Prices"])
async def get_prices(pair: str = Query(TradingPair.BTC_AED.value)):
    snapshot = broadcaster.get_snapshot(_parse_pair(pair))
    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"No prices available yet for {pair}")
    return snapshot.to_message()


@app.post("/volume", tags=["Fees"])
async def update_volume(update: VolumeUpdate):
    try:
        volume_context.update(update.volume)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"volume": volume_context.value}


@app.get("/fees/tier", tags=["Fees"])
async def get_fee_tier(exchange: str, volume: Optional[float] = Query(None)):
    """
    Tier info for one venue, plus the nearest thresholds on the cross-venue
    volume ladder around the volume used.
    """
    if volume is None:
        volume = volume_context.value
    try:
        info = get_exchange_tier(exchange, volume)
    except UnknownVenueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {
        **info.model_dump(),
        "volume": volume,
        "next_volume_tier": get_next_volume_tier(volume),
        "previous_volume_tier": get_previous_volume_tier(volume),
    }


@app.get("/fees/volume-tiers", tags=["Fees"])
async def get_volume_tiers():
    return {"tiers": get_all_volume_tiers()}


# ============================================
# WebSocket Stream
# ============================================

@app.websocket("/ws/prices")
async def ws_prices(websocket: WebSocket, pair: str = Query(TradingPair.BTC_AED.value)):
    """
    Push snapshots for one pair; the client can switch pairs or declare its
    trading volume over the same socket.
    """
    await websocket.accept()

    try:
        current = TradingPair(pair.upper())
    except ValueError:
        await websocket.send_json({"type": "error", "message": f"Unknown pair '{pair}'"})
        await websocket.close(code=1008)
        return

    queue: asyncio.Queue = asyncio.Queue(maxsize=100)

    def enqueue(snapshot: Snapshot) -> None:
        if queue.full():
            # Drop the oldest snapshot when full
            queue.get_nowait()
        queue.put_nowait(snapshot)

    subscription = PairSubscription(broadcaster, enqueue, current)
    logger.info(f"Client connected to price stream ({current.value})")

    async def sender() -> None:
        while True:
            snapshot = await queue.get()
            await websocket.send_json(snapshot.to_message())

    sender_task = asyncio.create_task(sender())
    try:
        while True:
            message: Dict[str, Any] = await websocket.receive_json()
            kind = message.get("type")
            if kind == "volume_update":
                try:
                    volume_context.update(message.get("volume", 0))
                except (TypeError, ValueError) as e:
                    await websocket.send_json({"type": "error", "message": str(e)})
            elif kind == "select_pair":
                try:
                    subscription.select_pair(TradingPair(str(message.get("pair", "")).upper()))
                except ValueError:
                    await websocket.send_json({"type": "error", "message": f"Unknown pair '{message.get('pair')}'"})
            else:
                await websocket.send_json({"type": "error", "message": f"Unknown message type '{kind}'"})
    except WebSocketDisconnect:
        pass
    finally:
        sender_task.cancel()
        subscription.close()
        logger.info("Client disconnected from price stream")
