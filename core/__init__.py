"""
Core Package

Contains the exchange-agnostic core logic including:
- ExchangeInterface: Abstract base class defining the contract for all exchanges
- ExchangeManager: Central coordinator that manages multiple exchange connectors
- HttpClient: Shared async transport returning Result values
- Schemas: Pydantic models for normalized data structures (coins, pairs, klines)
- Result / exceptions: Outcome type and error taxonomy

This layer ensures all exchanges follow the same interface, making the system modular and scalable.
"""
