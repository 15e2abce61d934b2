"""Background dispatch of queued payments to the default processor."""

from __future__ import annotations

import asyncio
import time
from collections import deque

from paygate.client import ProcessorClient
from paygate.models import PaymentProcessorRequest, PaymentRequest
from paygate.repository import Repository

TRIGGER_MS = 200
WORKERS = 2
DISPATCH_INTERVAL = 1.0


class Service:
    """Queues payments and forwards them to the default processor.

    A dispatcher takes one payment per tick. When the processor answers
    quickly, the processor is marked healthy and the rest of the queue is
    handed to workers, which keep going until a payment fails or is slow.
    """

    def __init__(
        self,
        client: ProcessorClient,
        repository: Repository,
        *,
        workers: int = WORKERS,
        trigger_ms: int = TRIGGER_MS,
        interval: float = DISPATCH_INTERVAL,
    ) -> None:
        self._client = client
        self._repository = repository
        self._workers = workers
        self._trigger_ms = trigger_ms
        self._interval = interval
        self._healthy = False
        self._queue: deque[PaymentRequest] = deque()
        self._channel: asyncio.Queue[PaymentRequest] = asyncio.Queue()
        self._tasks: list[asyncio.Task] = []

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def healthy(self) -> bool:
        """Whether the default processor is currently considered healthy."""
        return self._healthy

    def submit(self, request: PaymentRequest) -> None:
        self._queue.append(request)

    async def _capture(self, request: PaymentProcessorRequest) -> tuple[bool, int]:
        started = time.monotonic()
        success = await self._client.capture_default(request)
        elapsed_ms = int((time.monotonic() - started) * 1000)
        return success, elapsed_ms

    async def _dispatch(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while True:
            if self._queue:
                request = self._queue.popleft()
                processor_request = request.to_processor()
                success, elapsed_ms = await self._capture(processor_request)
                if success:
                    await self._repository.insert_default(processor_request)
                    if elapsed_ms <= self._trigger_ms:
                        self._healthy = True
                        while self._queue:
                            self._channel.put_nowait(self._queue.popleft())
                else:
                    self._queue.append(request)
            await asyncio.sleep(max(deadline - loop.time(), 0.0))
            deadline += self._interval

    async def _work(self) -> None:
        while True:
            request = await self._channel.get()
            if not self._healthy:
                self._queue.append(request)
                continue
            processor_request = request.to_processor()
            success, elapsed_ms = await self._capture(processor_request)
            if success:
                await self._repository.insert_default(processor_request)
            else:
                self._queue.append(request)
            if not success or elapsed_ms > self._trigger_ms:
                self._healthy = False

    def initialize_dispatcher(self) -> None:
        """Start the dispatcher task on the running event loop."""
        self._tasks.append(asyncio.get_running_loop().create_task(self._dispatch()))

    def initialize_workers(self) -> None:
        """Start the worker tasks on the running event loop."""
        loop = asyncio.get_running_loop()
        self._tasks.extend(loop.create_task(self._work()) for _ in range(self._workers))

    async def close(self) -> None:
        """Stop the dispatcher and the workers."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)