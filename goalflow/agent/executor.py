"""Task executor that routes tasks to tool backends."""

import logging
from typing import Any, Awaitable, Callable

from ..errors import InvalidTaskParamsError, UnsupportedOperationError
from ..models import Task, ToolName
from ..tools.base import DataTools, HTTPTools, MarketDataTools, RepositoryTools
from ..tools.data import LocalDataTools
from ..tools.github import GitHubTools
from ..tools.http import AiohttpHTTPTools
from ..tools.trading import CoinbaseMarketData

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], Awaitable[Any]]


class TaskExecutor:
    """
    Executes a single task against its tool backend.

    Dispatch is two-level: tool category, then function name. The executor
    only extracts arguments from the task params (applying defaults) and
    forwards them; backend errors propagate unchanged, with no retry and no
    result transformation.
    """

    def __init__(
        self,
        github: RepositoryTools | None = None,
        trading: MarketDataTools | None = None,
        data: DataTools | None = None,
        http: HTTPTools | None = None
    ):
        """
        Initialize executor with tool backends.

        Args:
            github: Repository analysis backend
            trading: Market data backend
            data: Data analytics backend
            http: Generic HTTP backend
        """
        self.github = github or GitHubTools()
        self.trading = trading or CoinbaseMarketData()
        self.data = data or LocalDataTools()
        self.http = http or AiohttpHTTPTools()

        self.handlers: dict[str, dict[str, Handler]] = {
            ToolName.GITHUB.value: {
                "analyzeRepository": self._analyze_repository,
                "getRecentCommits": self._get_recent_commits,
                "getRepositoryStats": self._get_repository_stats,
            },
            ToolName.TRADING.value: {
                "getCryptoPrice": self._get_crypto_price,
                "getCryptoPriceHistory": self._get_crypto_price_history,
                "getMarketData": self._get_market_data,
            },
            ToolName.DATA.value: {
                "processData": self._process_data,
                "aggregateResults": self._aggregate_results,
                "generateReport": self._generate_report,
            },
            ToolName.API.value: {
                "makeRequest": self._make_request,
            },
        }

    def supports(self, tool: str, function: str) -> bool:
        return function in self.handlers.get(tool, {})

    async def execute(self, task: Task) -> Any:
        """
        Execute a task and return the backend's result.

        Raises:
            UnsupportedOperationError: Unknown tool category or function
            InvalidTaskParamsError: A required parameter is missing
            Exception: Anything the backend raises, unchanged
        """
        functions = self.handlers.get(task.tool)
        if functions is None or task.function not in functions:
            raise UnsupportedOperationError(task.tool, task.function)

        logger.info(f"Executing {task.type.value} task {task.id}: {task.tool}.{task.function}")
        return await functions[task.function](task.params)

    # =========================================================================
    # Repository analysis
    # =========================================================================

    async def _analyze_repository(self, params: dict[str, Any]) -> Any:
        return await self.github.analyze_repository(_require(params, "owner"), _require(params, "repo"))

    async def _get_recent_commits(self, params: dict[str, Any]) -> Any:
        return await self.github.get_recent_commits(
            _require(params, "owner"),
            _require(params, "repo"),
            _int_param(params, "days", 7),
        )

    async def _get_repository_stats(self, params: dict[str, Any]) -> Any:
        return await self.github.get_repository_stats(_require(params, "owner"), _require(params, "repo"))

    # =========================================================================
    # Market data
    # =========================================================================

    async def _get_crypto_price(self, params: dict[str, Any]) -> Any:
        return await self.trading.get_crypto_price(_require(params, "symbol"))

    async def _get_crypto_price_history(self, params: dict[str, Any]) -> Any:
        return await self.trading.get_crypto_price_history(
            _require(params, "symbol"),
            _int_param(params, "days", 7),
        )

    async def _get_market_data(self, params: dict[str, Any]) -> Any:
        symbols = _require(params, "symbols")
        if isinstance(symbols, str):
            symbols = [s.strip() for s in symbols.split(",") if s.strip()]
        if not isinstance(symbols, list):
            raise InvalidTaskParamsError("Parameter 'symbols' must be a list of strings")
        return await self.trading.get_market_data(symbols)

    # =========================================================================
    # Data analytics
    # =========================================================================

    async def _process_data(self, params: dict[str, Any]) -> Any:
        # Planner-emitted tasks carry the goal text as "description"
        if "data" in params:
            return await self.data.process_data(params["data"])
        return await self.data.process_data(_require(params, "description"))

    async def _aggregate_results(self, params: dict[str, Any]) -> Any:
        results = _require(params, "results")
        if isinstance(results, dict):
            results = list(results.values())
        return await self.data.aggregate_results(results)

    async def _generate_report(self, params: dict[str, Any]) -> Any:
        return await self.data.generate_report(_require(params, "data"))

    # =========================================================================
    # Generic HTTP
    # =========================================================================

    async def _make_request(self, params: dict[str, Any]) -> Any:
        url = params.get("url") or params.get("endpoint")
        if not url:
            raise InvalidTaskParamsError("Missing required parameter 'url'")
        return await self.http.request(
            url,
            params.get("method") or "GET",
            params.get("headers"),
            params.get("body"),
        )


def _require(params: dict[str, Any], name: str) -> Any:
    value = params.get(name)
    if value is None or value == "":
        raise InvalidTaskParamsError(f"Missing required parameter '{name}'")
    return value


def _int_param(params: dict[str, Any], name: str, default: int) -> int:
    value = params.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InvalidTaskParamsError(f"Parameter '{name}' must be an integer, got {value!r}") from e
