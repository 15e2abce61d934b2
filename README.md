# paygate

paygate is made of two small HTTP services. Both are built on aiohttp and listen on a Unix domain socket.

- **Gateway** (`paygate-gateway`): accepts payments, queues them and sends them to a payment processor in the background. It also serves a summary of the payments that have been recorded.
- **Database** (`paygate-database`): an in-memory ledger. It records processed payments and gives totals for each processor.

## Installation

```
pip install .
```

To also install the test dependencies:

```
pip install ".[test]"
```

## Running

Start the database:

```
SOCKET_PATH=/sockets/database.sock paygate-database
```

The database also accepts `--socket-path PATH`. This option takes precedence over `SOCKET_PATH`.

Start the gateway:

```
SOCKET_PATH=/sockets/gateway.sock paygate-gateway
```

The gateway takes its socket path only from `SOCKET_PATH`.

Both commands:

- print `VERSION: 6.1` at startup;
- remove any file already at the socket path;
- set the new socket's permissions to `0o766`.

Either command exits with an error if it has no socket path.

The gateway reaches the database through `/sockets/database.sock`. It sends payments to the processor at `http://payment-processor-default:8080/payments`. These locations are fixed.

## Gateway API

| Method | Path | Description |
| --- | --- | --- |
| `POST` | `/payments` | Body `{"correlationId": "<uuid>", "amount": 19.9}`. The payment is queued and the response is `202 Accepted`. A malformed body gets `400`. |
| `POST` | `/purge-payments` | Asks the database to clear every recorded payment. |
| `GET` | `/payments-summary?from=...&to=...` | Returns totals for each processor. `from` and `to` are optional RFC 3339 timestamps; the range applies only when both are given. A bad timestamp gets `400`. If the database gives no summary after three attempts, the response is `500`. |

Example summary response:

```json
{
  "default": {"totalRequests": 3, "totalAmount": 59.7},
  "fallback": {"totalRequests": 0, "totalAmount": 0.0}
}
```

## Database API

| Method | Path | Description |
| --- | --- | --- |
| `POST` | `/payments/default` | Records a payment made through the default processor. Body `{"amount": ..., "requestedAt": ...}`. |
| `POST` | `/payments/fallback` | Records a payment made through the fallback processor. |
| `GET` | `/summary?from=...&to=...` | Gives the count and total amount for each processor, with amounts rounded to cents. The range applies only when both bounds are given, and both bounds are inclusive. |
| `POST` | `/purge-payments` | Removes all recorded payments. |

Malformed bodies and timestamps get `400`.

## Processing model

A dispatcher runs about once a second. Each time, it takes one queued payment and sends it to the default processor. A payment that fails goes back on the queue.

If the processor accepts a payment within 200 ms, the dispatcher:

1. marks the processor as healthy;
2. hands the rest of the queue to two workers.

While the processor is healthy, the workers send payments to it. A worker marks the processor unhealthy when a payment fails or takes longer than 200 ms. A failed payment is requeued. Once the processor is unhealthy, the workers return the payments they receive to the dispatcher's queue.

Every accepted payment is recorded in the database under the default processor.

## Library use

The pieces can also be used from Python:

- `paygate.models`: the data classes and timestamp helpers. This includes `PaymentRequest`, `PaymentProcessorRequest`, `SummaryResponse`, `SummaryOrigin`, `SummaryQuery`, `parse_timestamp` and `format_timestamp`.
- `paygate.database.PaymentStore`: an in-memory store with `append`, `summary(start, end)` and `clear`.
- `paygate.client.ProcessorClient`: has `capture_default` and `capture_fallback`. It takes an `aiohttp.ClientSession`, and both URLs can be overridden.
- `paygate.repository.Repository`: a client for the database API. `get_summary` raises `SummaryUnavailableError` once its attempts are used up.
- `paygate.controller.Controller`: wraps a repository.
- `paygate.service.Service`: has `submit`, `initialize_dispatcher`, `initialize_workers` and `close`. The worker count, the latency threshold and the dispatch interval can be set.

The applications can be built with `paygate.database.create_app()` and `paygate.gateway.create_app(service, controller)`.

## What it does not do

- Recorded payments are kept only in memory. They are lost when the database stops.
- The gateway never sends payments to the fallback processor and never records payments under it. Fallback totals stay at zero unless something else posts to `/payments/fallback`.
- The gateway does not query a processor's health. Health is judged only from how payments turn out.