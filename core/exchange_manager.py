"""
Exchange Manager — Central Registry for Exchange Connectors

This module provides a centralized manager for all exchange connectors.
The ExchangeManager holds an explicit ExchangeId -> connector map that is
built once at startup; callers never search a list for "the adapter whose
id matches".

Design Benefits:
    - Single source of truth for available exchanges
    - Centralized lifecycle management (initialize/shutdown)
    - Unknown exchange ids fail loudly with UnmappedExchangeError

Example Usage:
    manager = ExchangeManager()
    await manager.initialize_all()

    binance = manager.get_exchange(ExchangeId.BINANCE)
    result = await binance.list_spot_coins()

    # Tests inject their own connectors:
    manager = ExchangeManager([StubExchange(ExchangeId.BINANCE, ...)])
"""

from typing import Dict, Iterable, List, Optional
from core.exceptions import UnmappedExchangeError
from core.exchange_interface import ExchangeInterface
from core.logging import logger
from core.schemas import ExchangeId


class ExchangeManager:
    """
    Central Manager for Exchange Connectors

    Attributes:
        exchanges: Dictionary mapping exchange ids to exchange instances, in
                   registration order
                   Example: {ExchangeId.BINANCE: BinanceExchange(), ...}

    Example:
        >>> manager = ExchangeManager()
        >>> await manager.initialize_all()
        >>> print(manager.list_exchanges())
        ['binance', 'bybit', 'mexc']
        >>> await manager.shutdown_all()
    """

    def __init__(self, exchanges: Optional[Iterable[ExchangeInterface]] = None):
        """
        Initialize the Exchange Manager and register all exchanges.

        Args:
            exchanges: Connectors to register. Defaults to one instance of
                       every supported exchange.

        Raises:
            ValueError: If two connectors claim the same exchange id
        """
        if exchanges is None:
            # Import here to avoid circular imports
            # Each exchange module imports from core, so we can't import at module level
            from exchanges.binance import BinanceExchange
            from exchanges.bybit import BybitExchange
            from exchanges.mexc import MexcExchange

            exchanges = [BinanceExchange(), BybitExchange(), MexcExchange()]

        self.exchanges: Dict[ExchangeId, ExchangeInterface] = {}
        for exchange in exchanges:
            if exchange.exchange_id in self.exchanges:
                raise ValueError(f"Exchange '{exchange.name}' registered twice")
            self.exchanges[exchange.exchange_id] = exchange

        logger.info(f"ExchangeManager initialized with {len(self.exchanges)} exchange(s): {', '.join(self.list_exchanges())}")

    # ============================================
    # Exchange Retrieval Methods
    # ============================================

    def get_exchange(self, exchange_id: ExchangeId) -> ExchangeInterface:
        """
        Get an exchange connector by id.

        Args:
            exchange_id: Exchange id (ExchangeId or its string value)

        Returns:
            ExchangeInterface: The requested exchange instance

        Raises:
            UnmappedExchangeError: If no connector is registered for the id
        """
        try:
            return self.exchanges[ExchangeId(exchange_id)]
        except (KeyError, ValueError):
            available = ", ".join(self.list_exchanges())
            raise UnmappedExchangeError(
                f"Exchange '{exchange_id}' is not configured. Available exchanges: {available}",
                source=str(exchange_id),
            )

    def has_exchange(self, exchange_id: ExchangeId) -> bool:
        try:
            return ExchangeId(exchange_id) in self.exchanges
        except ValueError:
            return False

    def list_exchanges(self) -> List[str]:
        """
        Get a list of all registered exchange ids.

        Returns:
            List[str]: Exchange ids in registration order
        """
        return [exchange_id.value for exchange_id in self.exchanges]

    def all_exchanges(self) -> List[ExchangeInterface]:
        return list(self.exchanges.values())

    # ============================================
    # Lifecycle Management
    # ============================================

    async def initialize_all(self) -> None:
        """
        Initialize all registered exchanges.

        A connector that fails to initialize is logged and skipped so the
        remaining exchanges still come up.
        """
        logger.info("Initializing all exchanges...")

        for exchange_id, exchange in self.exchanges.items():
            try:
                await exchange.initialize()
                logger.info(f"✓ {exchange_id.value.capitalize()} initialized successfully")
            except Exception as e:
                logger.error(f"✗ Failed to initialize {exchange_id.value}: {e}")

        logger.info("All exchanges initialized")

    async def shutdown_all(self) -> None:
        """Shutdown all exchanges gracefully."""
        logger.info("Shutting down all exchanges...")

        for exchange_id, exchange in self.exchanges.items():
            try:
                await exchange.shutdown()
                logger.info(f"✓ {exchange_id.value.capitalize()} shut down successfully")
            except Exception as e:
                logger.error(f"✗ Error shutting down {exchange_id.value}: {e}")

        logger.info("All exchanges shut down")

    # ============================================
    # Utility Methods
    # ============================================

    def __repr__(self) -> str:
        """String representation of the manager."""
        return f"<ExchangeManager(exchanges={self.list_exchanges()})>"

    def __len__(self) -> int:
        """Number of registered exchanges."""
        return len(self.exchanges)
