import uuid
from datetime import datetime, timedelta, timezone

import aiohttp
import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

from paygate.controller import Controller
from paygate.database import create_app as create_database_app
from paygate.models import PaymentProcessorRequest, SummaryOrigin, SummaryResponse
from paygate.repository import Repository, SummaryUnavailableError

MOMENT = datetime(2025, 7, 15, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def stack():
    async with TestServer(create_database_app()) as server, aiohttp.ClientSession() as session:
        url = str(server.make_url("")).rstrip("/")
        repository = Repository(session, base_url=url, retry_delay=0)
        yield Controller(repository), repository


def _payment(amount):
    return PaymentProcessorRequest(uuid.uuid4(), amount, MOMENT)


@pytest.mark.asyncio
async def test_get_summary_reports_stored_payments(stack):
    controller, repository = stack
    await repository.insert_default(_payment(12.25))
    summary = await controller.get_summary(None, None)
    assert summary.default == SummaryOrigin(1, 12.25)


@pytest.mark.asyncio
async def test_get_summary_applies_window(stack):
    controller, repository = stack
    await repository.insert_fallback(_payment(2.0))
    hour = timedelta(hours=1)
    assert await controller.get_summary(MOMENT + hour, MOMENT + 2 * hour) == SummaryResponse()


@pytest.mark.asyncio
async def test_purge_payments_clears_summary(stack):
    controller, repository = stack
    await repository.insert_default(_payment(2.0))
    await controller.purge_payments()
    assert await controller.get_summary() == SummaryResponse()


@pytest.mark.asyncio
async def test_get_summary_propagates_unavailability():
    async with aiohttp.ClientSession() as session:
        controller = Controller(Repository(session, base_url="http://127.0.0.1:1", retry_delay=0))
        with pytest.raises(SummaryUnavailableError):
            await controller.get_summary()