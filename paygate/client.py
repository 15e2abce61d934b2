"""HTTP client for the payment processors."""

from __future__ import annotations

import asyncio

import aiohttp

from paygate.models import PaymentProcessorRequest

DEFAULT_PROCESSOR_URL = "http://payment-processor-default:8080/payments"
FALLBACK_PROCESSOR_URL = "http://payment-processor-fallback:8080/payments"


class ProcessorClient:
    """Sends payments to the default or the fallback payment processor."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        default_url: str = DEFAULT_PROCESSOR_URL,
        fallback_url: str = FALLBACK_PROCESSOR_URL,
    ) -> None:
        self._session = session
        self._default_url = default_url
        self._fallback_url = fallback_url

    async def _capture(self, url: str, request: PaymentProcessorRequest) -> bool:
        try:
            async with self._session.post(url, json=request.to_dict()) as response:
                return 200 <= response.status < 300
        except (aiohttp.ClientError, asyncio.TimeoutError):
            return False

    async def capture_default(self, request: PaymentProcessorRequest) -> bool:
        """Send a payment to the default processor; True if it was accepted."""
        return await self._capture(self._default_url, request)

    async def capture_fallback(self, request: PaymentProcessorRequest) -> bool:
        """Send a payment to the fallback processor; True if it was accepted."""
        return await self._capture(self._fallback_url, request)