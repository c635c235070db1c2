"""
Spot price feed backed by the Coinbase public prices API.
"""

import logging
import math
from typing import Any, Optional

import httpx

from phoenix_mm.constants import DEFAULT_PRICE_FEED_URL
from phoenix_mm.exceptions import PriceFeedError
from phoenix_mm.types import PriceResult

logger = logging.getLogger(__name__)

INVALID_RESPONSE = "Invalid response structure"


def parse_spot_price(payload: Any) -> float:
    """Extract the spot price from a ``{"data": {"amount": "..."}}`` document.

    Raises:
        PriceFeedError: If the field is missing, empty or not a finite number.
    """
    data = payload.get("data") if isinstance(payload, dict) else None
    amount = data.get("amount") if isinstance(data, dict) else None
    if amount is None or amount == "" or isinstance(amount, bool):
        raise PriceFeedError(INVALID_RESPONSE)

    try:
        price = float(amount)
    except (TypeError, ValueError) as e:
        raise PriceFeedError(INVALID_RESPONSE) from e

    if not math.isfinite(price):
        raise PriceFeedError(INVALID_RESPONSE)
    return price


class SpotPriceFeed:
    """Fetches one spot price per call; never raises for feed problems."""

    def __init__(
        self,
        url: str = DEFAULT_PRICE_FEED_URL,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._http_client = http_client

    @property
    def url(self) -> str:
        return self._url

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def fetch(self) -> PriceResult:
        """Get the current spot price.

        Returns:
            A successful result with the price, or a failed result naming why
            no price is available (HTTP status, malformed body, transport error).
        """
        client = await self._get_http_client()
        try:
            response = await client.get(self._url)
        except httpx.HTTPError as e:
            logger.debug("Price feed request failed: %s", e)
            return PriceResult.failure(f"Price feed request failed: {e}")

        if not response.is_success:
            return PriceResult.failure(f"HTTP error! Status: {response.status_code}")

        try:
            payload = response.json()
        except ValueError:
            return PriceResult.failure(INVALID_RESPONSE)

        try:
            return PriceResult.success(parse_spot_price(payload))
        except PriceFeedError as e:
            return PriceResult.failure(e.message)
