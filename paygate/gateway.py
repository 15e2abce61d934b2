"""Payment gateway HTTP service exposed over a Unix socket."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import os
from pathlib import Path

import aiohttp
from aiohttp import web

from paygate.client import DEFAULT_PROCESSOR_URL, FALLBACK_PROCESSOR_URL, ProcessorClient
from paygate.controller import Controller
from paygate.models import PaymentRequest, SummaryQuery
from paygate.repository import Repository, SummaryUnavailableError
from paygate.service import Service

VERSION = "6.1"
DATABASE_SOCKET = "/sockets/database.sock"

SERVICE = web.AppKey("service", Service)
CONTROLLER = web.AppKey("controller", Controller)


async def _payments(request: web.Request) -> web.Response:
    try:
        payment = PaymentRequest.from_dict(await request.json())
    except ValueError as exc:
        raise web.HTTPBadRequest(text=str(exc)) from exc
    request.app[SERVICE].submit(payment)
    return web.Response(status=202)


async def _purge_payments(request: web.Request) -> web.Response:
    await request.app[CONTROLLER].purge_payments()
    return web.Response()


async def _payments_summary(request: web.Request) -> web.Response:
    try:
        query = SummaryQuery.from_mapping(request.query)
        summary = await request.app[CONTROLLER].get_summary(query.start, query.end)
    except ValueError as exc:
        raise web.HTTPBadRequest(text=str(exc)) from exc
    except SummaryUnavailableError as exc:
        raise web.HTTPInternalServerError(text=str(exc)) from exc
    return web.json_response(summary.to_dict())


def create_app(service: Service, controller: Controller) -> web.Application:
    """Build the gateway application around a service and a controller."""
    app = web.Application()
    app[SERVICE] = service
    app[CONTROLLER] = controller
    app.router.add_post("/payments", _payments)
    app.router.add_post("/purge-payments", _purge_payments)
    app.router.add_get("/payments-summary", _payments_summary)
    return app


async def _serve(socket: Path) -> None:
    async with aiohttp.ClientSession() as processor_session, aiohttp.ClientSession(
        connector=aiohttp.UnixConnector(path=DATABASE_SOCKET)
    ) as database_session:
        client = ProcessorClient(
            processor_session, default_url=DEFAULT_PROCESSOR_URL, fallback_url=FALLBACK_PROCESSOR_URL
        )
        repository = Repository(database_session)
        controller = Controller(repository)
        service = Service(client, repository)
        print(f"VERSION: {VERSION}", flush=True)
        service.initialize_dispatcher()
        service.initialize_workers()

        with contextlib.suppress(OSError):
            socket.unlink(missing_ok=True)
        runner = web.AppRunner(create_app(service, controller))
        await runner.setup()
        try:
            await web.UnixSite(runner, str(socket)).start()
            os.chmod(socket, 0o766)
            await asyncio.Event().wait()
        finally:
            await service.close()
            await runner.cleanup()


def main(argv: list[str] | None = None) -> None:
    """Serve the gateway on the Unix socket given by SOCKET_PATH."""
    parser = argparse.ArgumentParser(prog="paygate-gateway")
    parser.parse_args(argv)
    socket_path = os.environ.get("SOCKET_PATH")
    if not socket_path:
        parser.error("SOCKET_PATH is not set")
    asyncio.run(_serve(Path(socket_path)))


if __name__ == "__main__":
    main()