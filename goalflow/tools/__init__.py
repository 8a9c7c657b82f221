"""Tool backends the executor dispatches to."""

from .base import ToolBackend, RepositoryTools, MarketDataTools, DataTools, HTTPTools
from .github import GitHubTools
from .trading import CoinbaseMarketData
from .data import LocalDataTools
from .http import AiohttpHTTPTools

__all__ = [
    "ToolBackend",
    "RepositoryTools",
    "MarketDataTools",
    "DataTools",
    "HTTPTools",
    "GitHubTools",
    "CoinbaseMarketData",
    "LocalDataTools",
    "AiohttpHTTPTools",
]
