"""
Configuration Management Module

This module handles loading, validating, and providing access to application configuration
from environment variables (.env file).

Uses Pydantic Settings for automatic validation and type conversion.

Key Features:
- Loads configuration from .env file
- Validates all required settings
- Provides type-safe access to configuration values
- Converts comma-separated strings to lists (CORS origins)
- Handles optional settings with sensible defaults

Usage:
    from core.config import settings

    # Access configuration values
    print(settings.binance_base_url)
    print(settings.cache_ttl)
"""

from typing import Dict, List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Application Settings

    This class defines all configuration parameters for the application.
    Values are automatically loaded from environment variables or .env file.

    Attributes:
        binance_base_url: Base URL for Binance Spot API
        bybit_base_url: Base URL for Bybit V5 API
        mexc_base_url: Base URL for Mexc Spot API
        coingecko_base_url: Base URL for CoinGecko API
        coingecko_api_key: CoinGecko demo API key (optional)
        app_host: Host address for FastAPI server
        app_port: Port number for FastAPI server
        environment: Current environment (development, production)
        debug: Enable debug mode with verbose logging
        request_timeout: Timeout for HTTP requests in seconds
        max_retries: Attempts per request when an API rate limits us
        retry_backoff: Base delay between rate-limit retries in seconds
        cache_ttl: Coin snapshot cache time-to-live in seconds
    """

    # ============================================
    # Exchange API Configuration
    # ============================================

    binance_base_url: str = Field(
        default="https://api.binance.com",
        description="Binance Spot API base URL"
    )

    bybit_base_url: str = Field(
        default="https://api.bybit.com",
        description="Bybit V5 API base URL"
    )

    mexc_base_url: str = Field(
        default="https://api.mexc.com",
        description="Mexc Spot API base URL"
    )

    # ============================================
    # CoinGecko API Configuration
    # ============================================

    coingecko_base_url: str = Field(
        default="https://api.coingecko.com",
        description="CoinGecko API base URL"
    )

    coingecko_api_key: str = Field(
        default="",
        description="CoinGecko demo API key (optional, raises rate limits)"
    )

    # ============================================
    # Application Configuration
    # ============================================

    app_host: str = Field(
        default="0.0.0.0",
        description="FastAPI server host address"
    )

    app_port: int = Field(
        default=8000,
        description="FastAPI server port"
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

    # ============================================
    # Transport & Performance
    # ============================================

    request_timeout: int = Field(
        default=30,
        description="HTTP request timeout in seconds"
    )

    max_retries: int = Field(
        default=3,
        description="Attempts per request when rate limited (1 = no retry)"
    )

    retry_backoff: float = Field(
        default=1.5,
        description="Base delay between rate-limit retries (seconds, grows linearly)"
    )

    # ============================================
    # CORS Configuration
    # ============================================

    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    # ============================================
    # Caching Configuration
    # ============================================

    cache_ttl: int = Field(
        default=600,
        description="Coin snapshot cache TTL in seconds"
    )

    # ============================================
    # Pydantic Settings Configuration
    # ============================================

    model_config = SettingsConfigDict(
        # Look for .env file in the project root
        env_file=".env",
        # Ignore extra fields in .env that aren't defined here
        extra="ignore",
        # Case-insensitive environment variable matching
        case_sensitive=False
    )

    # ============================================
    # Custom Properties
    # ============================================

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Convert comma-separated CORS origins string to a list.

        Returns:
            List of allowed origin URLs (e.g., ["http://localhost:3000", "https://myapp.com"])

        Example:
            >>> settings.cors_origins_list
            ['http://localhost:3000', 'http://localhost:5173']
        """
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def coingecko_headers(self) -> Dict[str, str]:
        """
        Get HTTP headers for CoinGecko API requests.

        Returns:
            Dictionary of headers including the demo API key if configured
        """
        headers = {"Accept": "application/json"}

        if self.coingecko_api_key:
            headers["x-cg-demo-api-key"] = self.coingecko_api_key

        return headers


# ============================================
# Global Settings Instance
# ============================================

# Create a single instance of settings to be imported throughout the application
settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration(config: Settings = None) -> None:
    """
    Validate critical configuration settings on application startup.

    Args:
        config: Settings to validate (defaults to the global settings)

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    # Import logger here to avoid circular import
    # (logging.py imports config.py, so we can't import at module level)
    from core.logging import logger

    config = config or settings

    base_urls = {
        "BINANCE_BASE_URL": config.binance_base_url,
        "BYBIT_BASE_URL": config.bybit_base_url,
        "MEXC_BASE_URL": config.mexc_base_url,
        "COINGECKO_BASE_URL": config.coingecko_base_url,
    }
    for name, url in base_urls.items():
        if not url.startswith(("http://", "https://")):
            raise ValueError(f"{name} must be an http(s) URL, got: '{url}'")

    if not (1 <= config.app_port <= 65535):
        raise ValueError(f"Invalid port number: {config.app_port}. Must be between 1 and 65535")

    if config.request_timeout <= 0:
        raise ValueError(f"REQUEST_TIMEOUT must be positive, got: {config.request_timeout}")

    if config.max_retries < 1:
        raise ValueError(f"MAX_RETRIES must be at least 1, got: {config.max_retries}")

    if config.cache_ttl <= 0:
        raise ValueError(f"CACHE_TTL must be positive, got: {config.cache_ttl}")

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{config.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    logger.info("Configuration validated successfully")
    logger.info(f"Exchanges: binance={config.binance_base_url}, bybit={config.bybit_base_url}, mexc={config.mexc_base_url}")
    logger.info(f"CoinGecko API: {config.coingecko_base_url} (api key: {'yes' if config.coingecko_api_key else 'no'})")
    logger.info(f"Server: {config.app_host}:{config.app_port}")
    logger.info(f"Log level: {config.log_level.upper()}")
    logger.info(f"Snapshot cache TTL: {config.cache_ttl}s")
