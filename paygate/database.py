"""In-memory payment storage service exposed over a Unix socket."""

from __future__ import annotations

import argparse
import asyncio
import math
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from aiohttp import web

from paygate.models import SummaryOrigin, SummaryQuery, SummaryResponse, parse_timestamp

VERSION = "6.1"
SOCKET_MODE = 0o766


@dataclass(frozen=True)
class StoredPayment:
    """A recorded payment: its amount and when it was requested."""

    amount: float
    requested_at: datetime

    @classmethod
    def from_dict(cls, data: Any) -> StoredPayment:
        if not isinstance(data, Mapping):
            raise ValueError("payment must be an object")
        try:
            amount = data["amount"]
            requested_at = data["requestedAt"]
        except KeyError as exc:
            raise ValueError(f"missing field {exc.args[0]!r}") from None
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise ValueError("field 'amount' must be a number")
        return cls(amount=float(amount), requested_at=parse_timestamp(requested_at))


def _round_cents(value: float) -> float:
    scaled = value * 100.0
    rounded = math.copysign(math.floor(abs(scaled) + 0.5), scaled)
    return rounded / 100.0


def _totals(payments: Iterable[StoredPayment]) -> SummaryOrigin:
    count = 0
    amount = 0.0
    for payment in payments:
        count += 1
        amount += payment.amount
    return SummaryOrigin(total_requests=count, total_amount=_round_cents(amount))


class PaymentStore:
    """Payments recorded for one processor."""

    def __init__(self, payments: Iterable[StoredPayment] = ()) -> None:
        self._payments: list[StoredPayment] = list(payments)

    def __len__(self) -> int:
        return len(self._payments)

    def append(self, payment: StoredPayment) -> None:
        self._payments.append(payment)

    def summary(self, start: datetime | None = None, end: datetime | None = None) -> SummaryOrigin:
        """Count and total the payments, limited to [start, end] when both are given."""
        if start is not None and end is not None:
            selected = (p for p in self._payments if start <= p.requested_at <= end)
            return _totals(selected)
        return _totals(self._payments)

    def clear(self) -> None:
        self._payments.clear()


DEFAULT_STORE = web.AppKey("default_store", PaymentStore)
FALLBACK_STORE = web.AppKey("fallback_store", PaymentStore)


async def _read_payment(request: web.Request) -> StoredPayment:
    try:
        return StoredPayment.from_dict(await request.json())
    except ValueError as exc:
        raise web.HTTPBadRequest(text=str(exc)) from exc


async def _insert_default(request: web.Request) -> web.Response:
    request.app[DEFAULT_STORE].append(await _read_payment(request))
    return web.Response()


async def _insert_fallback(request: web.Request) -> web.Response:
    request.app[FALLBACK_STORE].append(await _read_payment(request))
    return web.Response()


async def _summary(request: web.Request) -> web.Response:
    try:
        query = SummaryQuery.from_mapping(request.query)
    except ValueError as exc:
        raise web.HTTPBadRequest(text=str(exc)) from exc
    response = SummaryResponse(
        default=request.app[DEFAULT_STORE].summary(query.start, query.end),
        fallback=request.app[FALLBACK_STORE].summary(query.start, query.end),
    )
    return web.json_response(response.to_dict())


async def _purge(request: web.Request) -> web.Response:
    request.app[FALLBACK_STORE].clear()
    request.app[DEFAULT_STORE].clear()
    return web.Response()


def create_app() -> web.Application:
    """Build the storage application with empty default and fallback stores."""
    app = web.Application()
    app[DEFAULT_STORE] = PaymentStore()
    app[FALLBACK_STORE] = PaymentStore()
    app.router.add_get("/summary", _summary)
    app.router.add_post("/payments/default", _insert_default)
    app.router.add_post("/payments/fallback", _insert_fallback)
    app.router.add_post("/purge-payments", _purge)
    return app


async def _serve(app: web.Application, socket: Path) -> None:
    runner = web.AppRunner(app)
    await runner.setup()
    try:
        site = web.UnixSite(runner, str(socket))
        await site.start()
        os.chmod(socket, SOCKET_MODE)
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


def main(argv: list[str] | None = None) -> None:
    """Serve the storage application on the Unix socket given by SOCKET_PATH."""
    parser = argparse.ArgumentParser(prog="paygate-database")
    parser.add_argument(
        "--socket-path",
        default=os.environ.get("SOCKET_PATH"),
        help="Unix socket to listen on (default: $SOCKET_PATH)",
    )
    args = parser.parse_args(argv)
    if not args.socket_path:
        parser.error("SOCKET_PATH is not set")

    print(f"VERSION: {VERSION}", flush=True)
    socket = Path(args.socket_path)
    if socket.exists():
        try:
            socket.unlink()
        except OSError:
            pass
    asyncio.run(_serve(create_app(), socket))


if __name__ == "__main__":
    main()