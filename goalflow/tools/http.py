"""Generic HTTP pass-through backed by aiohttp."""

import json
import logging
from typing import Any

import aiohttp

from .base import HTTPTools
from ..config import config
from ..errors import HTTPRequestError

logger = logging.getLogger(__name__)


async def read_body(response: aiohttp.ClientResponse) -> Any:
    """Parse a response body as JSON when possible, falling back to text."""
    text = await response.text()
    if not text:
        return None
    if response.content_type == "application/json" or text.lstrip()[:1] in ("{", "["):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            logger.debug(f"Response from {response.url} is not valid JSON, returning text")
    return text


class AiohttpHTTPTools(HTTPTools):
    """
    Issue arbitrary HTTP requests.

    A new session is opened per request unless one is injected, which keeps the
    tool safe to share between concurrently running tasks.
    """

    def __init__(self, session: aiohttp.ClientSession | None = None, timeout: float | None = None):
        self._session = session
        self.timeout = aiohttp.ClientTimeout(total=timeout or config.http_timeout)

    async def request(
        self,
        url: str,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: Any = None
    ) -> Any:
        request_headers = {"Content-Type": "application/json"}
        if headers:
            request_headers.update(headers)

        data = json.dumps(body) if body is not None else None

        if self._session is not None:
            return await self._send(self._session, url, method, request_headers, data)

        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            return await self._send(session, url, method, request_headers, data)

    async def _send(
        self,
        session: aiohttp.ClientSession,
        url: str,
        method: str,
        headers: dict[str, str],
        data: str | None
    ) -> Any:
        logger.debug(f"{method.upper()} {url}")
        async with session.request(method.upper(), url, headers=headers, data=data) as response:
            if response.status >= 400:
                raise HTTPRequestError(response.status, response.reason, url=url)
            return await read_body(response)
