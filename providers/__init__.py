"""
Reference Data Providers Package

Market-data registries that are not exchanges. A provider supplies the
canonical identity (id + name) of coins and per-exchange symbol maps.

Providers:
    - coingecko: CoinGecko public/demo API
"""
