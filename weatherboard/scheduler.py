"""Recurring refresh timer with an explicit, cancellable handle.

The timer only launches ticks; it never waits for one to finish, so a slow
sweep can overlap the next tick. Tick failures are logged and counted but
never stop the timer.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 60_000

TickCallback = Callable[[], Awaitable[object]]


class RefreshScheduler:
    """Idle -> start() -> Running -> stop() -> Idle."""

    def __init__(self) -> None:
        self._timer: asyncio.Task[None] | None = None
        self._ticks: set[asyncio.Task[object]] = set()
        self.interval_ms: int | None = None
        self.total_ticks = 0
        self.failed_ticks = 0

    @property
    def is_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self, on_tick: TickCallback, interval_ms: int = DEFAULT_INTERVAL_MS) -> None:
        """Begin firing `on_tick` every `interval_ms`. Must be called inside a running loop."""
        if self.is_running:
            raise RuntimeError("Scheduler already running")
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self.interval_ms = interval_ms
        self._timer = asyncio.get_running_loop().create_task(
            self._run(on_tick, interval_ms / 1000)
        )
        logger.info("Refresh scheduler started, every %dms", interval_ms)

    def stop(self) -> None:
        """Cancel the timer. Safe to call when already stopped."""
        if self._timer is None:
            return
        self._timer.cancel()
        self._timer = None
        logger.info(
            "Refresh scheduler stopped after %d ticks (%d failed)",
            self.total_ticks, self.failed_ticks,
        )

    async def drain(self) -> None:
        """Wait for ticks already launched to finish."""
        if self._ticks:
            await asyncio.gather(*self._ticks, return_exceptions=True)

    async def _run(self, on_tick: TickCallback, interval_s: float) -> None:
        while True:
            await asyncio.sleep(interval_s)
            self.total_ticks += 1
            try:
                tick = asyncio.ensure_future(on_tick())
            except Exception:
                self.failed_ticks += 1
                logger.exception("Refresh tick failed to launch")
                continue
            self._ticks.add(tick)
            tick.add_done_callback(self._tick_done)

    def _tick_done(self, tick: "asyncio.Future[object]") -> None:
        self._ticks.discard(tick)
        if tick.cancelled():
            return
        exc = tick.exception()
        if exc is not None:
            self.failed_ticks += 1
            logger.error("Refresh tick failed", exc_info=exc)
