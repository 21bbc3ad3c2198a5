"""Background generation with main-loop delivery.

Producers run on a worker pool. Each finished request is parked in a
locked queue until the main loop drains it, so callbacks only ever run
on the draining thread and need no locking of their own.
"""

import threading
from collections import deque
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

import structlog

from .exceptions import DispatcherClosedError

logger = structlog.get_logger()

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


@dataclass(frozen=True)
class ThreadInfo(Generic[OutputT]):
    """A finished request waiting to be handed to its callback."""

    callback: Callable[[OutputT], None]
    future: "Future[OutputT]"


class DispatchQueue(Generic[InputT, OutputT]):
    """Runs ``producer(payload)`` off-thread and delivers results on drain.

    Usage:
        queue = DispatchQueue(generate_map_data, name="map_data")
        queue.request(center, on_map_data)

        # once per tick, on the main thread
        queue.process_completed()

    Results are delivered in completion order. A drain only handles the
    entries present when it starts; anything finishing meanwhile waits
    for the next drain. There is no cancellation: every request is
    delivered eventually.
    """

    def __init__(
        self,
        producer: Callable[[InputT], OutputT],
        name: str = "dispatch",
        max_workers: int | None = None,
        executor: Executor | None = None,
    ):
        self.producer = producer
        self.name = name

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=name
        )

        self._lock = threading.Lock()
        self._completed: deque[ThreadInfo[OutputT]] = deque()
        self._in_flight = 0
        self._closed = False

    @property
    def in_flight(self) -> int:
        """Requests still being computed."""
        with self._lock:
            return self._in_flight

    @property
    def ready(self) -> int:
        """Finished requests waiting for the next drain."""
        with self._lock:
            return len(self._completed)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def request(self, payload: InputT, callback: Callable[[OutputT], None]) -> "Future[OutputT]":
        """Start computing ``producer(payload)`` in the background.

        Args:
            payload: Input handed to the producer.
            callback: Called with the result during a later drain.

        Returns:
            Future for the producer call. Waiting on it does not deliver
            the result; only ``process_completed`` does.

        Raises:
            DispatcherClosedError: If the queue has been shut down.
        """
        with self._lock:
            if self._closed:
                raise DispatcherClosedError(f"Dispatch queue '{self.name}' is shut down")
            future = self._executor.submit(self.producer, payload)
            self._in_flight += 1

        # May run immediately on this thread if the future is already done
        future.add_done_callback(lambda f: self._enqueue(callback, f))
        logger.debug("dispatch_requested", queue=self.name)
        return future

    def _enqueue(self, callback: Callable[[OutputT], None], future: "Future[OutputT]") -> None:
        with self._lock:
            self._in_flight -= 1
            self._completed.append(ThreadInfo(callback=callback, future=future))

    def process_completed(self) -> int:
        """Deliver every result that was ready when the call started.

        Must be called from the consuming thread. If a producer raised,
        its exception is re-raised here; entries after it in the same
        snapshot go back to the front of the queue.

        Returns:
            Number of callbacks invoked.
        """
        with self._lock:
            if not self._completed:
                return 0
            drained = self._completed
            self._completed = deque()

        delivered = 0
        try:
            while drained:
                info = drained.popleft()
                info.callback(info.future.result())
                delivered += 1
        finally:
            if drained:
                with self._lock:
                    self._completed.extendleft(reversed(drained))

        logger.debug("dispatch_drained", queue=self.name, delivered=delivered)
        return delivered

    def shutdown(self, wait: bool = True) -> None:
        """Refuse new requests and release the worker pool.

        Results that finish after shutdown are still queued and can be
        drained.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
        logger.debug("dispatch_shutdown", queue=self.name)

    def __enter__(self) -> "DispatchQueue[InputT, OutputT]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
