"""
Unit Tests for Configuration Module

These tests verify that the configuration system works correctly:
- Default values are applied when needed
- Validation catches invalid configurations
- Property methods work as expected

Run with:
    pytest tests/unit/test_config.py -v
"""

import pytest
from core.config import Settings, settings, validate_configuration


class TestConfigurationLoading:
    """Test that configuration loads correctly"""

    def test_exchange_base_urls_loaded(self):
        """Verify every exchange API URL is set"""
        for url, name in (
            (settings.binance_base_url, "binance"),
            (settings.bybit_base_url, "bybit"),
            (settings.mexc_base_url, "mexc"),
        ):
            assert name in url.lower()
            assert url.startswith("http")

    def test_coingecko_base_url_loaded(self):
        assert settings.coingecko_base_url.startswith("http")

    def test_app_port_is_valid_integer(self):
        """Verify app port is a valid integer"""
        assert isinstance(settings.app_port, int)
        assert 1 <= settings.app_port <= 65535

    def test_debug_mode_is_boolean(self):
        """Verify debug setting is a boolean"""
        assert isinstance(settings.debug, bool)

    def test_cache_ttl_is_positive(self):
        assert settings.cache_ttl > 0


class TestConfigurationProperties:
    """Test property methods and computed values"""

    def test_cors_origins_list_strips_whitespace(self):
        config = Settings(cors_origins=" http://a.test , http://b.test ,")
        assert config.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_coingecko_headers_without_api_key(self):
        config = Settings(coingecko_api_key="")
        assert "x-cg-demo-api-key" not in config.coingecko_headers

    def test_coingecko_headers_include_api_key_when_set(self):
        """Verify API key is included in headers when configured"""
        config = Settings(coingecko_api_key="demo-key")
        assert config.coingecko_headers["x-cg-demo-api-key"] == "demo-key"


class TestConfigurationValidation:
    """Test configuration validation function"""

    def test_validate_configuration_succeeds(self):
        """Verify validation passes with default configuration"""
        try:
            validate_configuration(Settings())
        except ValueError as e:
            pytest.fail(f"Configuration validation failed: {e}")

    def test_rejects_non_http_url(self):
        with pytest.raises(ValueError, match="MEXC_BASE_URL"):
            validate_configuration(Settings(mexc_base_url="ftp://api.mexc.com"))

    def test_rejects_invalid_port(self):
        with pytest.raises(ValueError, match="port"):
            validate_configuration(Settings(app_port=70000))

    def test_rejects_zero_retries(self):
        with pytest.raises(ValueError, match="MAX_RETRIES"):
            validate_configuration(Settings(max_retries=0))

    def test_rejects_non_positive_cache_ttl(self):
        with pytest.raises(ValueError, match="CACHE_TTL"):
            validate_configuration(Settings(cache_ttl=0))

    def test_rejects_unknown_log_level(self):
        with pytest.raises(ValueError, match="LOG_LEVEL"):
            validate_configuration(Settings(log_level="VERBOSE"))


if __name__ == "__main__":
    # Allow running this test file directly
    pytest.main([__file__, "-v"])
