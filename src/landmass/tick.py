"""Async main loop that drains finished generation work once per tick."""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

import structlog

from .config import TickSettings
from .mapgen import MapGenerator

logger = structlog.get_logger()


@dataclass
class TickResult:
    """Result of a completed tick."""

    tick_id: int
    delivered: int
    duration_ms: float = 0.0


# Type alias for tick callbacks
TickCallback = Callable[[TickResult], Awaitable[None]]


class TickLoop:
    """
    Cooperative main loop for a map generator.

    Generation runs on worker threads; this loop is the single consumer
    that hands results to their callbacks, so chunk state only changes
    on the loop's thread.

    Usage:
        generator = MapGenerator(config)
        loop = TickLoop(generator)

        generator.request_map_data(center, on_map_data)

        # Start the loop
        await loop.run()
    """

    def __init__(
        self,
        generator: MapGenerator,
        settings: TickSettings | None = None,
        on_tick_complete: TickCallback | None = None,
    ):
        self.generator = generator
        self.settings = settings or generator.config.tick
        self.on_tick_complete = on_tick_complete

        self._tick = 0
        self._running = False
        self._stop_event = asyncio.Event()

    @property
    def current_tick(self) -> int:
        """Current tick ID."""
        return self._tick

    @property
    def is_running(self) -> bool:
        """Whether the tick loop is currently running."""
        return self._running

    async def run(self) -> None:
        """Run the tick loop until stopped."""
        self._running = True
        self._stop_event.clear()

        logger.info("tick_loop_started", tick_duration_ms=self.settings.tick_duration_ms)

        try:
            while self._running:
                tick_start = time.time() * 1000

                result = self._process_tick()

                if self.on_tick_complete:
                    await self.on_tick_complete(result)

                self._tick += 1

                # Wait for remainder of tick duration
                elapsed = time.time() * 1000 - tick_start
                remaining = self.settings.tick_duration_ms - elapsed
                if remaining > 0:
                    try:
                        await asyncio.wait_for(
                            self._stop_event.wait(), timeout=remaining / 1000
                        )
                    except asyncio.TimeoutError:
                        pass  # Normal - tick duration elapsed
                else:
                    await asyncio.sleep(0)

        finally:
            self._running = False
            logger.info("tick_loop_stopped", ticks=self._tick)

    def _process_tick(self) -> TickResult:
        """Drain the generator's queues and return what was delivered."""
        start = time.time()
        delivered = self.generator.update()
        elapsed_ms = (time.time() - start) * 1000

        if delivered:
            logger.debug(
                "tick_processed",
                tick_id=self._tick,
                delivered=delivered,
                in_flight=self.generator.in_flight,
                duration_ms=elapsed_ms,
            )

        return TickResult(tick_id=self._tick, delivered=delivered, duration_ms=elapsed_ms)

    def stop(self) -> None:
        """Signal the tick loop to stop."""
        self._running = False
        self._stop_event.set()


async def run_ticks(
    generator: MapGenerator,
    num_ticks: int,
    tick_callback: TickCallback | None = None,
) -> list[TickResult]:
    """
    Run a fixed number of ticks without waiting between them (useful for testing).

    Args:
        generator: Generator whose queues are drained
        num_ticks: Number of ticks to run
        tick_callback: Optional async callback after each tick

    Returns:
        List of TickResults
    """
    results: list[TickResult] = []

    for tick_id in range(num_ticks):
        start = time.time()
        delivered = generator.update()
        result = TickResult(
            tick_id=tick_id,
            delivered=delivered,
            duration_ms=(time.time() - start) * 1000,
        )
        results.append(result)

        if tick_callback:
            await tick_callback(result)

        await asyncio.sleep(0)

    return results
