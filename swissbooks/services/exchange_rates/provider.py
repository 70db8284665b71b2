"""
Exchange Rate Providers

A provider returns one ExchangeRateTable per call: a point-in-time
snapshot of "CHF per one unit of X".

The default provider queries open.er-api.com (free, no API key) with CHF
as base currency. The service answers "how much X does 1 CHF buy", so
every non-CHF rate is inverted before it goes into the table.

CRITICAL: There is no silent fallback here. Tax totals must be based on
real rates, so a network or format problem raises ExchangeRateError and
the caller aborts the run.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from swissbooks.config import ExchangeRateSettings, get_settings
from swissbooks.currency.converter import BASE_CURRENCY, ExchangeRateTable


logger = structlog.get_logger(__name__)


class ExchangeRateError(Exception):
    """Rates could not be fetched or the response was unusable."""
    pass


class ExchangeRateProvider(ABC):
    """Source of exchange rate snapshots."""

    @property
    @abstractmethod
    def source(self) -> str:
        """Human-readable name of the rate source, printed in reports."""
        pass

    @abstractmethod
    async def fetch_rates(self) -> ExchangeRateTable:
        """
        Fetch a fresh snapshot.

        Returns:
            Table with CHF -> 1 and one entry per reported currency

        Raises:
            ExchangeRateError: On any transport or parse failure
        """
        pass


class OpenERApiProvider(ExchangeRateProvider):
    """
    open.er-api.com provider.

    Transport errors (connection refused, timeouts) are retried with
    exponential backoff. HTTP error statuses and malformed payloads are
    not retried.
    """

    def __init__(
        self,
        settings: Optional[ExchangeRateSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            settings: Endpoint, timeout and retry configuration.
                      Defaults to the environment settings.
            client: HTTP client to use. If None, one is created per fetch.
        """
        self._settings = settings or get_settings().exchange_rates
        self._client = client

    @property
    def source(self) -> str:
        return httpx.URL(self._settings.api_url).host or self._settings.api_url

    async def fetch_rates(self) -> ExchangeRateTable:
        logger.info("exchange_rates_fetch_started", url=self._settings.api_url)

        try:
            payload = await self._get_with_retry()
        except httpx.HTTPStatusError as e:
            raise ExchangeRateError(
                f"Failed to fetch exchange rates: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ExchangeRateError(f"Failed to fetch exchange rates: {e}") from e

        table = ExchangeRateTable(
            rates=self._invert_rates(payload),
            fetched_at=datetime.utcnow(),
            source=self.source,
        )
        logger.info(
            "exchange_rates_fetched",
            source=table.source,
            currency_count=len(table.rates),
        )
        return table

    async def _get_with_retry(self) -> Any:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_attempts),
            wait=wait_exponential(multiplier=self._settings.retry_backoff_seconds, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._get()

    async def _get(self) -> Any:
        if self._client is not None:
            response = await self._client.get(self._settings.api_url)
        else:
            async with httpx.AsyncClient(
                timeout=self._settings.timeout_seconds,
                follow_redirects=True,
            ) as client:
                response = await client.get(self._settings.api_url)

        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise ExchangeRateError(f"Failed to parse exchange rates: {e}") from e

    @staticmethod
    def _invert_rates(payload: Any) -> dict[str, float]:
        """Turn "X per CHF" into "CHF per X"."""
        if not isinstance(payload, Mapping):
            raise ExchangeRateError("Invalid response format from exchange rate API")
        if payload.get("result") == "error":
            raise ExchangeRateError(
                f"Exchange rate API reported an error: {payload.get('error-type', 'unknown')}"
            )

        raw_rates = payload.get("rates")
        if not isinstance(raw_rates, Mapping) or not raw_rates:
            raise ExchangeRateError("Invalid response format from exchange rate API")

        rates = {BASE_CURRENCY: 1.0}
        for currency, rate in raw_rates.items():
            currency = str(currency).upper()
            if currency == BASE_CURRENCY:
                continue
            if isinstance(rate, bool) or not isinstance(rate, (int, float)) or rate <= 0:
                raise ExchangeRateError(
                    f"Failed to parse exchange rates: invalid rate for {currency}: {rate!r}"
                )
            rates[currency] = 1 / rate
        return rates


class StaticExchangeRateProvider(ExchangeRateProvider):
    """
    Fixed rates, already expressed as CHF per unit.

    For offline runs, reruns against a recorded snapshot, and tests.
    """

    def __init__(
        self,
        rates: Mapping[str, float],
        fetched_at: Optional[datetime] = None,
        source: str = "static",
    ):
        self._table = ExchangeRateTable(
            rates=dict(rates),
            fetched_at=fetched_at or datetime.utcnow(),
            source=source,
        )

    @property
    def source(self) -> str:
        return self._table.source

    async def fetch_rates(self) -> ExchangeRateTable:
        return self._table
