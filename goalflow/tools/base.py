"""Capability interfaces for tool backends.

The executor only talks to these abstract classes, so real integrations and
test doubles can be swapped in without touching the scheduler.
"""

from abc import ABC, abstractmethod
from typing import Any

from ..models import ToolName


class ToolBackend(ABC):
    """Base class for all tool backends."""

    name: ToolName
    description: str


class RepositoryTools(ToolBackend):
    """Repository analysis (e.g., GitHub)."""

    name = ToolName.GITHUB
    description = "Inspect source repositories: metadata, statistics, recent commits."

    @abstractmethod
    async def analyze_repository(self, owner: str, repo: str) -> dict[str, Any]:
        """Full analysis: info, stats, recent activity and a summary."""

    @abstractmethod
    async def get_recent_commits(self, owner: str, repo: str, days: int = 7) -> list[dict[str, Any]]:
        """Commits made within the last `days` days."""

    @abstractmethod
    async def get_repository_stats(self, owner: str, repo: str) -> dict[str, Any]:
        """Contributor, branch, release and pull-request counts."""


class MarketDataTools(ToolBackend):
    """Cryptocurrency market data."""

    name = ToolName.TRADING
    description = "Spot prices, price history and market overviews for crypto pairs."

    @abstractmethod
    async def get_crypto_price(self, symbol: str) -> dict[str, Any]:
        """Current price for a pair such as 'BTC-USD'."""

    @abstractmethod
    async def get_crypto_price_history(self, symbol: str, days: int = 7) -> list[dict[str, Any]]:
        """Daily closes for the last `days` days."""

    @abstractmethod
    async def get_market_data(self, symbols: list[str]) -> dict[str, Any]:
        """Prices for several pairs at once."""


class DataTools(ToolBackend):
    """Data analytics over arbitrary JSON-like values."""

    name = ToolName.DATA
    description = "Analyze, aggregate and report on structured or free-text data."

    @abstractmethod
    async def process_data(self, data: Any) -> dict[str, Any]:
        pass

    @abstractmethod
    async def aggregate_results(self, results: list[Any]) -> dict[str, Any]:
        pass

    @abstractmethod
    async def generate_report(self, data: Any) -> dict[str, Any]:
        pass


class HTTPTools(ToolBackend):
    """Generic HTTP pass-through."""

    name = ToolName.API
    description = "Issue an HTTP request and return the parsed response body."

    @abstractmethod
    async def request(
        self,
        url: str,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: Any = None
    ) -> Any:
        """
        Send a request.

        Raises:
            HTTPRequestError: On a non-success status, carrying status and reason.
        """
