"""
Configuration Management Module

Loads, validates and exposes the price feed configuration from environment
variables (.env file) using Pydantic Settings.

Key Features:
- Loads configuration from .env file
- Converts comma-separated strings to lists (pairs, CORS origins)
- Validates pairs against the TradingPair enumeration
- Provides defaults matching the reference deployment (15s update cycle,
  5s stream reconnect delay)

Usage:
    from core.config import settings

    print(settings.update_interval_seconds)
    print(settings.pairs_list)  # [TradingPair.BTC_AED, TradingPair.USDT_AED]
"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

from core.schemas import TradingPair


class Settings(BaseSettings):
    """
    Application Settings

    Values are loaded from environment variables or the .env file.

    Attributes:
        supported_pairs: Comma-separated pairs aggregated every cycle
        update_interval_seconds: Period of the scheduled aggregation pass
        ws_reconnect_delay: Fixed delay before a dropped venue stream reconnects
        request_timeout: Total timeout for a single venue REST round trip
        okx_base_url: OKX REST base URL
        bitoasis_base_url: BitOasis REST base URL
        rain_ws_url: Rain WebSocket URL
        multibank_ws_url: Multibank WebSocket URL
        quote_history_size: Per-pair cap of the in-memory quote store
        app_host / app_port: Transport server bind address
        environment / debug / log_level: Runtime flags
        cors_origins: Comma-separated allowed origins for the transport
    """

    # ============================================
    # Aggregation Configuration
    # ============================================

    supported_pairs: str = Field(
        default="BTC/AED,USDT/AED",
        description="Comma-separated list of trading pairs"
    )

    update_interval_seconds: float = Field(
        default=15.0,
        description="Seconds between scheduled aggregation passes"
    )

    ws_reconnect_delay: float = Field(
        default=5.0,
        description="Fixed delay before reconnecting a dropped venue stream (seconds)"
    )

    request_timeout: float = Field(
        default=10.0,
        description="HTTP request timeout for poll-based venues (seconds)"
    )

    quote_history_size: int = Field(
        default=1000,
        description="Maximum number of persisted quotes kept per pair in memory"
    )

    # ============================================
    # Venue Endpoints
    # ============================================

    okx_base_url: str = Field(
        default="https://www.okx.com/api/v5",
        description="OKX REST API base URL"
    )

    bitoasis_base_url: str = Field(
        default="https://api.bitoasis.net/v3",
        description="BitOasis REST API base URL"
    )

    rain_ws_url: str = Field(
        default="wss://ws.rain.bh",
        description="Rain ticker WebSocket URL"
    )

    multibank_ws_url: str = Field(
        default="wss://www.multibank.io/api/v1/ws",
        description="Multibank ticker WebSocket URL"
    )

    # ============================================
    # Application Configuration
    # ============================================

    app_host: str = Field(
        default="0.0.0.0",
        description="Transport server host address"
    )

    app_port: int = Field(
        default=8000,
        description="Transport server port"
    )

    environment: str = Field(
        default="development",
        description="Application environment (development, production)"
    )

    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False
    )

    # ============================================
    # Derived Values
    # ============================================

    @property
    def pairs_list(self) -> List[TradingPair]:
        """
        Parse supported_pairs into TradingPair values.

        Raises:
            ValueError: If a configured pair is not a known TradingPair

        Example:
            >>> settings.pairs_list
            [<TradingPair.BTC_AED: 'BTC/AED'>, <TradingPair.USDT_AED: 'USDT/AED'>]
        """
        return [TradingPair(p.strip().upper()) for p in self.supported_pairs.split(",") if p.strip()]

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert comma-separated CORS origins string to a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration() -> None:
    """
    Validate critical configuration settings on application startup.

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    # logging.py imports config.py, so import lazily here
    from core.logging import logger

    try:
        pairs = settings.pairs_list
    except ValueError as e:
        valid = ", ".join(p.value for p in TradingPair)
        raise ValueError(f"SUPPORTED_PAIRS contains an unknown pair ({e}). Must be among: {valid}")

    if not pairs:
        raise ValueError("SUPPORTED_PAIRS must contain at least one pair")

    if settings.update_interval_seconds <= 0:
        raise ValueError(f"UPDATE_INTERVAL_SECONDS must be positive, got {settings.update_interval_seconds}")

    if settings.ws_reconnect_delay <= 0:
        raise ValueError(f"WS_RECONNECT_DELAY must be positive, got {settings.ws_reconnect_delay}")

    if settings.request_timeout <= 0:
        raise ValueError(f"REQUEST_TIMEOUT must be positive, got {settings.request_timeout}")

    if not (1 <= settings.app_port <= 65535):
        raise ValueError(f"Invalid port number: {settings.app_port}. Must be between 1 and 65535")

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if settings.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{settings.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    logger.info("Configuration validated successfully")
    logger.info(f"Tracking pairs: {', '.join(p.value for p in pairs)}")
    logger.info(f"Update interval: {settings.update_interval_seconds}s")
    logger.info(f"Stream reconnect delay: {settings.ws_reconnect_delay}s")
    logger.info(f"Environment: {settings.environment} (debug={settings.debug})")
    logger.info(f"Server: {settings.app_host}:{settings.app_port}")
    logger.info(f"Log level: {settings.log_level.upper()}")
