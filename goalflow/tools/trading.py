"""Crypto market data from the Coinbase Exchange public API."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import aiohttp

from .base import MarketDataTools
from .http import read_body
from ..config import config
from ..errors import HTTPRequestError, ToolError

logger = logging.getLogger(__name__)

ONE_DAY_SECONDS = 86400


class CoinbaseMarketData(MarketDataTools):
    """Spot prices and daily candles. No API key required."""

    def __init__(self, api_url: str | None = None, timeout: float | None = None):
        self.api_url = (api_url or config.market_data_url).rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout or config.http_timeout)

    async def _get(self, session: aiohttp.ClientSession, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.api_url}{path}"
        async with session.get(url, params=params) as response:
            if response.status >= 400:
                raise HTTPRequestError(response.status, response.reason, url=url)
            return await read_body(response)

    async def get_crypto_price(self, symbol: str) -> dict[str, Any]:
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            return await self._ticker(session, symbol)

    async def get_crypto_price_history(self, symbol: str, days: int = 7) -> list[dict[str, Any]]:
        symbol = symbol.upper()
        end = datetime.now(timezone.utc)
        start = end - timedelta(days=days)

        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            candles = await self._get(
                session,
                f"/products/{symbol}/candles",
                {"granularity": ONE_DAY_SECONDS, "start": start.isoformat(), "end": end.isoformat()},
            )

        if not isinstance(candles, list):
            raise ToolError(f"Unexpected candle payload for {symbol}")

        # Candles arrive newest first as [time, low, high, open, close, volume]
        history = [
            {
                "date": datetime.fromtimestamp(row[0], tz=timezone.utc).date().isoformat(),
                "low": float(row[1]),
                "high": float(row[2]),
                "open": float(row[3]),
                "close": float(row[4]),
                "volume": float(row[5]),
            }
            for row in candles
        ]
        history.reverse()
        return history

    async def get_market_data(self, symbols: list[str]) -> dict[str, Any]:
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            tickers = await asyncio.gather(*(self._ticker(session, symbol) for symbol in symbols))

        return {
            "symbols": [ticker["symbol"] for ticker in tickers],
            "prices": {ticker["symbol"]: ticker["price"] for ticker in tickers},
            "retrieved_at": datetime.now(timezone.utc).isoformat(),
        }

    async def _ticker(self, session: aiohttp.ClientSession, symbol: str) -> dict[str, Any]:
        symbol = symbol.upper()
        logger.info(f"Fetching ticker for {symbol}")
        data = await self._get(session, f"/products/{symbol}/ticker")

        try:
            price = float(data["price"])
        except (TypeError, KeyError, ValueError) as e:
            raise ToolError(f"No price in ticker response for {symbol}") from e

        return {
            "symbol": symbol,
            "price": price,
            "bid": _as_float(data.get("bid")),
            "ask": _as_float(data.get("ask")),
            "volume_24h": _as_float(data.get("volume")),
            "time": data.get("time"),
        }


def _as_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
