from abc import ABC, abstractmethod
from typing import Any


class BaseWarehouse(ABC):
    """Contract for data warehouse adapters."""

    @abstractmethod
    def fetch_rows(self, sql: str) -> list[dict[str, Any]]:
        """Run a query and return its rows as column-name mappings, in order.

        Raises:
            WarehouseError: on connection or query failure.
        """
