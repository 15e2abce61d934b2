"""Request handling for summary and purge operations."""

from __future__ import annotations

from datetime import datetime

from paygate.models import SummaryResponse
from paygate.repository import Repository


class Controller:
    """Forwards summary and purge requests to the repository."""

    def __init__(self, repository: Repository) -> None:
        self._repository = repository

    async def purge_payments(self) -> None:
        await self._repository.purge_payments()

    async def get_summary(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> SummaryResponse:
        return await self._repository.get_summary(start, end)