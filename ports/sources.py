"""
Price history source protocol.

The indicator engine only ever consumes an ordered list of chart points;
where they come from (a market-data API, a cache, synthesized demo data)
is the adapter's business.
"""

from abc import abstractmethod
from typing import Protocol, runtime_checkable

from domain.models import ChartPoint, StockQuote


@runtime_checkable
class PriceHistorySource(Protocol):
    """
    Protocol for price history providers.

    Implementations must:
    - Return points ordered chronologically ascending (oldest first)
    - Fail explicitly with FetchError/DataError, no silent fallbacks
    """

    @property
    def source_name(self) -> str:
        """Unique identifier for this data source."""
        ...

    @abstractmethod
    def get_history(self, symbol: str, days: int = 30) -> list[ChartPoint]:
        """
        Fetch daily history for a symbol.

        Raises:
            FetchError: If the provider cannot be reached
            DataError: If the provider returns nothing usable
        """
        ...

    @abstractmethod
    def get_quote(self, symbol: str) -> StockQuote | None:
        """
        Latest quote snapshot, or None if the source has none for the symbol.

        Raises:
            FetchError: If the provider cannot be reached
        """
        ...
