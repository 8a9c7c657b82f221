"""Configuration for goalflow."""

import os
import re
from pathlib import Path
from dataclasses import dataclass, field

from dotenv import load_dotenv


DEFAULT_AGENT_NAMES = ["GitHub Agent", "Trading Agent", "Data Agent", "API Agent"]


def _load_dotenv() -> bool:
    """Load .env file if it exists."""
    # Look for .env in project root
    env_path = Path(__file__).parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        return True
    return False


# Load .env on module import
_dotenv_loaded = _load_dotenv()


def agent_id_from_name(name: str) -> str:
    """Derive a stable agent id from its display name ("GitHub Agent" -> "github-agent")."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


@dataclass
class Config:
    """
    Application configuration.

    Non-sensitive settings are read from the environment once at construction.
    Tokens are accessed via properties and retrieved from the environment at
    runtime so they never end up in reprs or logs.
    """

    # Agent pool (fixed for the lifetime of an orchestrator)
    agent_names: list[str] = field(default_factory=lambda: list(DEFAULT_AGENT_NAMES))

    # Tool backends
    github_api_url: str = "https://api.github.com"
    market_data_url: str = "https://api.exchange.coinbase.com"
    http_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        """Load non-sensitive settings from environment."""
        agents = os.getenv("GOALFLOW_AGENTS")
        if agents:
            names = [name.strip() for name in agents.split(",") if name.strip()]
            if names:
                self.agent_names = names

        self.github_api_url = os.getenv("GITHUB_API_URL", self.github_api_url).rstrip("/")
        self.market_data_url = os.getenv("MARKET_DATA_URL", self.market_data_url).rstrip("/")
        self.http_timeout = float(os.getenv("GOALFLOW_HTTP_TIMEOUT", self.http_timeout))
        self.log_level = os.getenv("GOALFLOW_LOG_LEVEL", self.log_level).upper()

    # =========================================================================
    # Secure token access (retrieved at runtime, not stored)
    # =========================================================================

    @property
    def github_token(self) -> str | None:
        """Get GitHub token from environment."""
        return os.getenv("GITHUB_TOKEN")

    @property
    def agent_specs(self) -> list[tuple[str, str]]:
        """(id, name) pairs for the agent pool."""
        return [(agent_id_from_name(name), name) for name in self.agent_names]

    def __repr__(self) -> str:
        """Safe repr that doesn't expose tokens."""
        return (
            f"Config("
            f"agents={self.agent_names!r}, "
            f"github_api_url='{self.github_api_url}', "
            f"market_data_url='{self.market_data_url}', "
            f"has_github_token={bool(self.github_token)})"
        )


# Global config instance
config = Config()
