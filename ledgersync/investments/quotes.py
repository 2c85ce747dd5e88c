"""
Market quote clients.

Defines the contract price lookups use and a Yahoo Finance implementation.
"""

from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx
import structlog

from ledgersync.core.exceptions import QuoteError

logger = structlog.get_logger()


class BaseQuoteClient(ABC):
    """
    Abstract base class for quote services.

    Implementations return the latest per-unit market price for a symbol.
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    @abstractmethod
    async def get_price(self, symbol: str) -> Optional[Decimal]:
        """
        Fetch the latest market price.

        Args:
            symbol: Ticker symbol (e.g. 'INFY.NS', '0P0000XVKR.BO')

        Returns:
            Price, or None if the service has no price for the symbol

        Raises:
            QuoteError: If the service cannot be reached or replies badly
        """
        pass

    @abstractmethod
    def get_source_name(self) -> str:
        pass


class YahooQuoteClient(BaseQuoteClient):
    """Quote client backed by the Yahoo Finance chart endpoint."""

    BASE_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"

    def __init__(self, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            timeout: Request timeout in seconds
            client: Shared HTTP client; one is created per call if omitted
        """
        super().__init__(timeout=timeout)
        self._client = client

    def get_source_name(self) -> str:
        return "yahoo"

    async def get_price(self, symbol: str) -> Optional[Decimal]:
        url = self.BASE_URL.format(symbol=symbol)
        params = {"interval": "1d", "range": "1d"}
        headers = {"User-Agent": "Mozilla/5.0 (ledgersync price updater)"}

        try:
            if self._client is not None:
                response = await self._client.get(url, params=params, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise QuoteError(f"Quote request for {symbol} failed: {e}") from e

        if response.status_code == 404:
            logger.warning("quote.symbol_not_found", symbol=symbol)
            return None
        if response.status_code >= 400:
            raise QuoteError(f"Quote service returned {response.status_code} for {symbol}")

        try:
            data = response.json()
        except ValueError as e:
            raise QuoteError(f"Quote reply for {symbol} is not JSON") from e
        return self._parse_price(symbol, data)

    @staticmethod
    def _parse_price(symbol: str, data: dict) -> Optional[Decimal]:
        try:
            results = data["chart"]["result"]
        except (KeyError, TypeError) as e:
            raise QuoteError(f"Unexpected quote payload for {symbol}") from e
        if not results:
            return None

        price = (results[0].get("meta") or {}).get("regularMarketPrice")
        if price is None:
            return None
        try:
            value = Decimal(str(price))
        except InvalidOperation as e:
            raise QuoteError(f"Non-numeric price for {symbol}: {price!r}") from e
        return value if value.is_finite() and value > 0 else None
