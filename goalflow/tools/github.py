"""GitHub repository analysis over the public REST API."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import aiohttp

from .base import RepositoryTools
from .http import read_body
from ..config import config
from ..errors import HTTPRequestError

logger = logging.getLogger(__name__)

# GitHub caps list endpoints at 100 items per page; counts below are per first page.
PAGE_SIZE = 100


class GitHubTools(RepositoryTools):
    """
    Repository analysis backed by api.github.com.

    Set GITHUB_TOKEN to raise the rate limit from 60 to 5000 requests/hour.
    """

    def __init__(self, api_url: str | None = None, token: str | None = None, timeout: float | None = None):
        self.api_url = (api_url or config.github_api_url).rstrip("/")
        self._token = token
        self.timeout = aiohttp.ClientTimeout(total=timeout or config.http_timeout)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        token = self._token or config.github_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _get(self, session: aiohttp.ClientSession, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.api_url}{path}"
        async with session.get(url, params=params) as response:
            if response.status >= 400:
                raise HTTPRequestError(response.status, response.reason, url=url)
            return await read_body(response)

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(headers=self._headers(), timeout=self.timeout)

    async def analyze_repository(self, owner: str, repo: str) -> dict[str, Any]:
        logger.info(f"Analyzing repository {owner}/{repo}")

        async with self._session() as session:
            info, stats, commits = await asyncio.gather(
                self._get_info(session, owner, repo),
                self._get_stats(session, owner, repo),
                self._get_commits(session, owner, repo, days=30),
            )

        return {
            "repository": f"{owner}/{repo}",
            "info": info,
            "stats": stats,
            "recent_activity": commits,
            "analysis_date": datetime.now(timezone.utc).isoformat(),
            "summary": summarize_repository(info, stats, commits),
        }

    async def get_recent_commits(self, owner: str, repo: str, days: int = 7) -> list[dict[str, Any]]:
        async with self._session() as session:
            return await self._get_commits(session, owner, repo, days=days)

    async def get_repository_stats(self, owner: str, repo: str) -> dict[str, Any]:
        async with self._session() as session:
            return await self._get_stats(session, owner, repo)

    async def _get_info(self, session: aiohttp.ClientSession, owner: str, repo: str) -> dict[str, Any]:
        data = await self._get(session, f"/repos/{owner}/{repo}")
        license_info = data.get("license") or {}
        return {
            "name": data.get("name", repo),
            "owner": (data.get("owner") or {}).get("login", owner),
            "description": data.get("description"),
            "language": data.get("language"),
            "stars": data.get("stargazers_count", 0),
            "forks": data.get("forks_count", 0),
            "watchers": data.get("subscribers_count", data.get("watchers_count", 0)),
            "open_issues": data.get("open_issues_count", 0),
            "created_at": data.get("created_at"),
            "updated_at": data.get("updated_at"),
            "size": data.get("size", 0),
            "license": license_info.get("spdx_id"),
        }

    async def _get_stats(self, session: aiohttp.ClientSession, owner: str, repo: str) -> dict[str, Any]:
        base = f"/repos/{owner}/{repo}"
        page = {"per_page": PAGE_SIZE}
        contributors, branches, releases, open_pulls, closed_pulls = await asyncio.gather(
            self._get(session, f"{base}/contributors", page),
            self._get(session, f"{base}/branches", page),
            self._get(session, f"{base}/releases", page),
            self._get(session, f"{base}/pulls", {**page, "state": "open"}),
            self._get(session, f"{base}/pulls", {**page, "state": "closed"}),
        )
        return {
            "contributors": len(contributors or []),
            "branches": len(branches or []),
            "releases": len(releases or []),
            "pull_requests": {
                "open": len(open_pulls or []),
                "closed": len(closed_pulls or []),
            },
        }

    async def _get_commits(
        self,
        session: aiohttp.ClientSession,
        owner: str,
        repo: str,
        days: int = 7
    ) -> list[dict[str, Any]]:
        since = datetime.now(timezone.utc) - timedelta(days=days)
        data = await self._get(
            session,
            f"/repos/{owner}/{repo}/commits",
            {"since": since.strftime("%Y-%m-%dT%H:%M:%SZ"), "per_page": PAGE_SIZE},
        )
        commits = []
        for item in data or []:
            commit = item.get("commit") or {}
            author = commit.get("author") or {}
            commits.append({
                "sha": item.get("sha"),
                "message": (commit.get("message") or "").split("\n", 1)[0],
                "author": author.get("name"),
                "date": author.get("date"),
            })
        return commits


def summarize_repository(info: dict[str, Any], stats: dict[str, Any], commits: list[dict[str, Any]]) -> str:
    """One-paragraph human readable summary of an analysis."""
    language = info.get("language") or "an unknown language"
    activity = "active" if commits else "quiet"
    return (
        f"{info.get('owner')}/{info.get('name')} is written in {language} with "
        f"{info.get('stars', 0):,} stars and {info.get('forks', 0):,} forks. "
        f"{stats.get('contributors', 0)} contributors, "
        f"{stats.get('pull_requests', {}).get('open', 0)} open pull requests. "
        f"Repository has been {activity} over the last 30 days ({len(commits)} commits)."
    )
