"""Access to the payment storage service."""

from __future__ import annotations

import asyncio
from datetime import datetime

import aiohttp

from paygate.models import (
    PaymentProcessorRequest,
    SummaryResponse,
    format_timestamp,
)

SUMMARY_ATTEMPTS = 3
RETRY_DELAY = 0.1


class SummaryUnavailableError(RuntimeError):
    """The storage service did not return a summary."""


class Repository:
    """Records payments in the storage service and reads summaries back."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str = "http://localhost",
        retry_delay: float = RETRY_DELAY,
        attempts: int = SUMMARY_ATTEMPTS,
    ) -> None:
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._retry_delay = retry_delay
        self._attempts = attempts

    def _url(self, endpoint: str) -> str:
        return f"{self._base_url}{endpoint}"

    async def _post(self, endpoint: str, body: dict | None = None) -> bool:
        try:
            async with self._session.post(self._url(endpoint), json=body) as response:
                response.raise_for_status()
        except (aiohttp.ClientError, asyncio.TimeoutError):
            return False
        return True

    async def insert_default(self, request: PaymentProcessorRequest) -> None:
        if not await self._post("/payments/default", request.to_dict()):
            print("Failed to insert payment")

    async def insert_fallback(self, request: PaymentProcessorRequest) -> None:
        if not await self._post("/payments/fallback", request.to_dict()):
            print("Failed to insert payment")

    async def purge_payments(self) -> None:
        if not await self._post("/purge-payments"):
            print("Failed to purge payments")

    async def get_summary(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> SummaryResponse:
        """Fetch the summary, within [start, end] when both are given."""
        endpoint = "/summary"
        if start is not None and end is not None:
            endpoint = f"/summary?from={format_timestamp(start)}&to={format_timestamp(end)}"
        for _ in range(self._attempts):
            try:
                async with self._session.get(self._url(endpoint)) as response:
                    response.raise_for_status()
                    return SummaryResponse.from_dict(await response.json())
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError):
                pass
            await asyncio.sleep(self._retry_delay)
        raise SummaryUnavailableError(
            f"summary unavailable after {self._attempts} attempts"
        )