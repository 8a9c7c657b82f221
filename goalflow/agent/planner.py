"""Goal planner that decomposes free-form text into executable tasks."""

import logging
import re

from ..models import PlannerResult, Task, TaskType, ToolName

logger = logging.getLogger(__name__)


# Detectors run against the lower-cased description
GITHUB_PATTERN = re.compile(r"\b(github|repo|repository|commit|pull request|issue)\b")
CRYPTO_PATTERN = re.compile(r"\b(price|crypto|bitcoin|eth|btc|trading|exchange)\b")
DATA_PATTERN = re.compile(r"\b(analyze|process|aggregate|compute|calculate)\b")
API_PATTERN = re.compile(r"\b(api|endpoint|request|fetch|call)\b")

# Repository extraction, tried in order against the original text
REPOSITORY_PATTERNS = [
    re.compile(r"github\.com/([^/\s]+)/([^/\s'\"]+)"),
    re.compile(r"'([^'/]+)/([^'/]+)'"),
    re.compile(r'"([^"/]+)/([^"/]+)"'),
    re.compile(r"\b([a-zA-Z0-9-]+)/([a-zA-Z0-9_.-]+)\b"),
]

CRYPTO_SYMBOL_PATTERN = re.compile(
    r"\b((?:BTC|ETH|ADA|DOT|LINK|UNI|AAVE|COMP)-USD|bitcoin|ethereum|cardano|polkadot)\b",
    re.IGNORECASE,
)

CRYPTO_NAMES = {
    "bitcoin": "BTC-USD",
    "ethereum": "ETH-USD",
    "cardano": "ADA-USD",
    "polkadot": "DOT-USD",
}

DEFAULT_SYMBOL = "BTC-USD"

# Generic API extraction is intentionally shallow: fixed endpoint, method sniffed from the text
API_PLACEHOLDER_ENDPOINT = "/api/data"

# Estimated milliseconds per task type
TASK_DURATIONS = {
    TaskType.GITHUB_ANALYSIS: 5000,
    TaskType.CRYPTO_PRICE: 3000,
    TaskType.DATA_PROCESSING: 4000,
    TaskType.API_CALL: 2500,
    TaskType.COMPUTATION: 3500,
}
DEFAULT_TASK_DURATION = 2000


class Planner:
    """
    Creates task lists from goal descriptions.

    Decomposition is deterministic keyword detection, not language
    understanding. Four independent detectors (repository, market price,
    data processing, generic API) each contribute zero or more tasks, in
    that order. A description matching nothing yields an empty plan,
    which is still a successful one.
    """

    def plan(self, description: str) -> PlannerResult:
        """
        Plan a goal.

        Never raises: any internal error is logged and reported as an
        unsuccessful, empty result.
        """
        try:
            logger.info(f"Planning goal: {description[:80]!r}")
            tasks = self.decompose(description)
            result = PlannerResult(
                success=True,
                tasks=tasks,
                estimated_duration=self.estimate_duration(tasks),
                required_tools=self.required_tools(tasks),
            )
        except Exception as e:
            logger.exception(f"Planning failed: {e}")
            return PlannerResult(success=False, tasks=[], estimated_duration=0, required_tools=[])

        logger.debug(f"Planned {len(result.tasks)} task(s) using {result.required_tools}")
        return result

    def decompose(self, description: str) -> list[Task]:
        """Run every detector and collect the tasks they emit, in detector order."""
        text = description.lower()
        tasks: list[Task] = []

        if GITHUB_PATTERN.search(text):
            repository = self.extract_repository(description)
            if repository:
                owner, repo = repository
                tasks.append(self._github_task(owner, repo))

        if CRYPTO_PATTERN.search(text):
            for symbol in self.extract_crypto_symbols(description):
                tasks.append(self._crypto_task(symbol))

        if self._wants_data_processing(text, tasks):
            tasks.append(self._data_task(description))

        if API_PATTERN.search(text):
            method = self.extract_api_method(description)
            if method:
                tasks.append(self._api_task(API_PLACEHOLDER_ENDPOINT, method))

        return tasks

    def _wants_data_processing(self, text: str, tasks: list[Task]) -> bool:
        keywords = set(DATA_PATTERN.findall(text))
        # "analyze the repo ..." is the repository analysis itself, not a separate data task
        if any(task.type == TaskType.GITHUB_ANALYSIS for task in tasks):
            keywords.discard("analyze")
        return bool(keywords)

    # =========================================================================
    # Extraction
    # =========================================================================

    def extract_repository(self, description: str) -> tuple[str, str] | None:
        """Return (owner, repo) from the first pattern that matches."""
        for pattern in REPOSITORY_PATTERNS:
            match = pattern.search(description)
            if match and match.group(1) and match.group(2):
                owner = match.group(1).strip()
                repo = match.group(2).strip()
                if repo.endswith(".git"):
                    repo = repo[:-4]
                if owner and repo:
                    return owner, repo
        return None

    def extract_crypto_symbols(self, description: str) -> list[str]:
        """
        Find every crypto pair mentioned, normalized to 'TICKER-USD'.

        Duplicates are dropped keeping first-seen order. Falls back to
        BTC-USD when the price detector fired but nothing specific was named.
        """
        symbols: list[str] = []
        for match in CRYPTO_SYMBOL_PATTERN.finditer(description):
            symbol = normalize_symbol(match.group(1))
            if symbol not in symbols:
                symbols.append(symbol)
        return symbols or [DEFAULT_SYMBOL]

    def extract_api_method(self, description: str) -> str | None:
        """
        HTTP method named in the text, or None.

        Only the upper-case tokens GET and POST count. Without one there is
        no request to make, so no API task is emitted.
        """
        if "POST" in description:
            return "POST"
        if "GET" in description:
            return "GET"
        return None

    # =========================================================================
    # Estimates
    # =========================================================================

    def estimate_duration(self, tasks: list[Task]) -> int:
        """Sum of per-type weights, in milliseconds."""
        return sum(TASK_DURATIONS.get(task.type, DEFAULT_TASK_DURATION) for task in tasks)

    def required_tools(self, tasks: list[Task]) -> list[str]:
        """Tool categories referenced by the tasks, de-duplicated in emission order."""
        return list(dict.fromkeys(task.tool for task in tasks))

    # =========================================================================
    # Task construction
    # =========================================================================

    def _github_task(self, owner: str, repo: str) -> Task:
        return Task(
            type=TaskType.GITHUB_ANALYSIS,
            tool=ToolName.GITHUB.value,
            function="analyzeRepository",
            params={"owner": owner, "repo": repo},
        )

    def _crypto_task(self, symbol: str) -> Task:
        return Task(
            type=TaskType.CRYPTO_PRICE,
            tool=ToolName.TRADING.value,
            function="getCryptoPrice",
            params={"symbol": symbol},
        )

    def _data_task(self, description: str) -> Task:
        return Task(
            type=TaskType.DATA_PROCESSING,
            tool=ToolName.DATA.value,
            function="processData",
            params={"description": description},
        )

    def _api_task(self, endpoint: str, method: str) -> Task:
        return Task(
            type=TaskType.API_CALL,
            tool=ToolName.API.value,
            function="makeRequest",
            params={"endpoint": endpoint, "method": method},
        )


def normalize_symbol(symbol: str) -> str:
    """'bitcoin' -> 'BTC-USD', 'eth-usd' -> 'ETH-USD'."""
    return CRYPTO_NAMES.get(symbol.lower(), symbol.upper())
