"""
Exchange Connectors Package

This package contains individual exchange connector modules.
Each exchange (Binance, Bybit, Mexc) has its own subfolder with:
- api_client.py: REST API logic and normalization to our schemas
- __init__.py: Main exchange class implementing ExchangeInterface

Shared helpers used by more than one connector live in common.py.
The modular design allows adding new exchanges without modifying existing code.
"""
