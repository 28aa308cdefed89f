"""
Services Package

Application services built on the exchange connectors and CoinGecko:
- coin_aggregator: canonical spot-coin snapshot across exchanges
- coins_service: cached access to that snapshot
- kline_service: waterfall kline retrieval
- market_data_service: CoinGecko asset info
"""
