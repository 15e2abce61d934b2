import asyncio
import uuid
from contextlib import asynccontextmanager

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from paygate.client import ProcessorClient
from paygate.controller import Controller
from paygate.database import create_app as create_database_app
from paygate.gateway import create_app
from paygate.models import SummaryOrigin, SummaryResponse
from paygate.repository import Repository
from paygate.service import Service


def _processor_app():
    async def handle(request):
        await request.json()
        return web.Response()

    app = web.Application()
    app.router.add_post("/payments", handle)
    return app


@asynccontextmanager
async def _gateway():
    async with TestServer(_processor_app()) as processor, TestServer(
        create_database_app()
    ) as database, aiohttp.ClientSession() as session:
        client = ProcessorClient(
            session,
            default_url=str(processor.make_url("/payments")),
            fallback_url=str(processor.make_url("/payments")),
        )
        repository = Repository(
            session, base_url=str(database.make_url("")).rstrip("/"), retry_delay=0
        )
        service = Service(client, repository, interval=0.01)
        app = create_app(service, Controller(repository))
        async with TestClient(TestServer(app)) as http:
            service.initialize_dispatcher()
            service.initialize_workers()
            try:
                yield http, service
            finally:
                await service.close()


async def _summary_when(http, predicate, timeout=3.0, params=None):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        response = await http.get("/payments-summary", params=params)
        summary = SummaryResponse.from_dict(await response.json())
        if predicate(summary):
            return summary
        if loop.time() > deadline:
            raise AssertionError("summary did not reach the expected state")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_payment_is_accepted_and_summarised():
    async with _gateway() as (http, _):
        response = await http.post(
            "/payments", json={"correlationId": str(uuid.uuid4()), "amount": 10.5}
        )
        assert response.status == 202
        summary = await _summary_when(http, lambda s: s.default.total_requests == 1)
    assert summary.default == SummaryOrigin(total_requests=1, total_amount=10.5)
    assert summary.fallback == SummaryOrigin()


@pytest.mark.asyncio
async def test_purge_payments_resets_summary():
    async with _gateway() as (http, _):
        await http.post("/payments", json={"correlationId": str(uuid.uuid4()), "amount": 3.0})
        await _summary_when(http, lambda s: s.default.total_requests == 1)
        response = await http.post("/purge-payments")
        assert response.status == 200
        summary = await _summary_when(http, lambda s: True)
    assert summary == SummaryResponse()


@pytest.mark.asyncio
async def test_summary_window_outside_payments_is_empty():
    async with _gateway() as (http, _):
        await http.post("/payments", json={"correlationId": str(uuid.uuid4()), "amount": 3.0})
        await _summary_when(http, lambda s: s.default.total_requests == 1)
        params = {"from": "2000-01-01T00:00:00.000Z", "to": "2000-01-02T00:00:00.000Z"}
        summary = await _summary_when(http, lambda s: True, params=params)
    assert summary == SummaryResponse()


@pytest.mark.asyncio
async def test_invalid_payment_body_is_rejected():
    async with _gateway() as (http, service):
        not_json = await http.post("/payments", data=b"not json")
        missing = await http.post("/payments", json={"amount": 1.0})
        bad_id = await http.post("/payments", json={"correlationId": "nope", "amount": 1.0})
        assert not_json.status == 400
        assert missing.status == 400
        assert bad_id.status == 400
        assert len(service) == 0


@pytest.mark.asyncio
async def test_invalid_summary_query_is_rejected():
    async with _gateway() as (http, _):
        response = await http.get(
            "/payments-summary", params={"from": "garbage", "to": "2000-01-01T00:00:00Z"}
        )
        assert response.status == 400


@pytest.mark.asyncio
async def test_unavailable_storage_fails_summary():
    async with aiohttp.ClientSession() as session:
        repository = Repository(session, base_url="http://127.0.0.1:1", retry_delay=0)
        client = ProcessorClient(session, default_url="http://127.0.0.1:1/payments")
        app = create_app(Service(client, repository), Controller(repository))
        async with TestClient(TestServer(app)) as http:
            response = await http.get("/payments-summary")
            assert response.status == 500