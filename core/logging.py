"""
Unified Logging Configuration

Every module in the price feed logs through this module instead of print().
Loggers are namespaced under "pricefeed" so the whole service can be filtered
or re-leveled as one unit.

Usage:
    from core.logging import logger, get_logger

    logger.info("Aggregator started")
    log = get_logger(__name__)   # -> "pricefeed.services.price_aggregator"

Configuration:
    The level comes from LOG_LEVEL (see core.config.Settings.log_level).
"""

import logging
import sys
from typing import Optional


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    include_module: bool = True
) -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (uses default if None)
        include_timestamp: Include timestamp in log messages
        include_module: Include logger name in log messages

    Returns:
        logging.Logger: The "pricefeed" logger

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Price feed started")
        2024-01-01 12:00:00 [INFO] pricefeed Price feed started
    """
    if log_format is None:
        format_parts = []

        if include_timestamp:
            format_parts.append("%(asctime)s")

        format_parts.append("[%(levelname)s]")

        if include_module:
            format_parts.append("%(name)s")

        format_parts.append("%(message)s")

        log_format = " ".join(format_parts)

    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True
    )

    app_logger = logging.getLogger("pricefeed")
    app_logger.setLevel(level)

    return app_logger


# ============================================
# Initialize Logger with Settings
# ============================================

try:
    from core.config import settings
    log_level = settings.log_level if hasattr(settings, "log_level") else "INFO"
except ImportError:
    log_level = "INFO"

logger = setup_logging(log_level=log_level)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger of "pricefeed" for a module.

    Args:
        name: Name for the logger (typically __name__)

    Returns:
        logging.Logger: Logger named "pricefeed.<name>"
    """
    return logging.getLogger(f"pricefeed.{name}")


def set_log_level(level: str) -> None:
    """
    Change the log level at runtime.

    Args:
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))


# ============================================
# Log Helper Functions
# ============================================

def log_api_request(exchange: str, endpoint: str, params: dict = None) -> None:
    """
    Log an outgoing venue REST request.

    Example:
        >>> log_api_request("OKX", "/market/ticker", {"instId": "BTC-AED"})
        [DEBUG] API Request: OKX /market/ticker | Params: {'instId': 'BTC-AED'}
    """
    if params:
        logger.debug(f"API Request: {exchange} {endpoint} | Params: {params}")
    else:
        logger.debug(f"API Request: {exchange} {endpoint}")


def log_api_response(exchange: str, endpoint: str, status: int, response_time: float = None) -> None:
    """
    Log a venue REST response with status and timing.

    Example:
        >>> log_api_response("BitOasis", "/exchange/ticker/BTC-AED", 200, 0.342)
        [DEBUG] API Response: BitOasis /exchange/ticker/BTC-AED | Status: 200 | Time: 0.342s
    """
    time_str = f" | Time: {response_time:.3f}s" if response_time else ""
    logger.debug(f"API Response: {exchange} {endpoint} | Status: {status}{time_str}")


def log_websocket_event(exchange: str, event: str, pair: str = None, details: str = None) -> None:
    """
    Log a venue stream lifecycle event.

    "error" events are logged at ERROR, "disconnected" at WARNING and
    everything else at INFO.

    Example:
        >>> log_websocket_event("Rain", "connected", details="wss://ws.rain.bh")
        [INFO] WebSocket: Rain connected | wss://ws.rain.bh
    """
    pair_str = f" | Pair: {pair}" if pair else ""
    details_str = f" | {details}" if details else ""

    if event == "error":
        level = logging.ERROR
    elif event == "disconnected":
        level = logging.WARNING
    else:
        level = logging.INFO
    logger.log(level, f"WebSocket: {exchange} {event}{pair_str}{details_str}")


logger.debug("Logging system initialized")
