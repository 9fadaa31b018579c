"""
TickScheduler - drives SignalRegistry.tick() at a fixed cadence.

One scheduler per overlay session. The cadence runs as a single asyncio
task; restarting it bumps a generation token so a superseded loop can
never tick again, even if it wakes up before its cancellation lands.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Optional

from signal_overlay.models import RegistrySnapshot
from signal_overlay.simulation.registry import SignalRegistry

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    IDLE = "idle"
    RUNNING = "running"


class TickScheduler:
    """
    Fixed-cadence tick driver for one registry.

    Usage:
        async with TickScheduler(registry) as scheduler:
            registry.replace_all(signals)
            scheduler.sync()
            ...
        # cadence cancelled here, no tick fires afterwards
    """

    def __init__(
        self,
        registry: SignalRegistry,
        interval: float = 1.0,
        on_tick: Optional[Callable[[RegistrySnapshot], None]] = None,
    ):
        """
        Args:
            registry: Registry to tick
            interval: Seconds between ticks
            on_tick: Called with each snapshot after the tick
        """
        if interval <= 0:
            raise ValueError("interval must be positive")

        self.registry = registry
        self.interval = interval
        self.on_tick = on_tick

        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self._closed = False

        # Stats
        self.tick_count = 0
        self.skipped_ticks = 0
        self.last_tick_duration = 0.0

    @property
    def state(self) -> SchedulerState:
        if self._task is not None and not self._task.done():
            return SchedulerState.RUNNING
        return SchedulerState.IDLE

    @property
    def is_running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    async def __aenter__(self) -> "TickScheduler":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def sync(self) -> SchedulerState:
        """
        Match the cadence to the registry after its membership changed.

        Non-empty registry: (re)start a fresh cadence. Empty: stop. A
        running cadence also stops by itself once the registry is empty.
        """
        if self.registry.is_empty:
            self.stop()
        else:
            self.start()
        return self.state

    def start(self) -> None:
        """Start a new cadence, replacing any running one. Needs a running loop."""
        if self._closed:
            raise RuntimeError("scheduler is closed")

        self.stop()
        self._generation += 1
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._generation),
            name=f"tick-scheduler-{self._generation}",
        )
        logger.info(
            "scheduler_started",
            extra={"interval": self.interval, "signal_count": len(self.registry)}
        )

    def stop(self) -> None:
        """Cancel the cadence. Idempotent."""
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.info("scheduler_stopped", extra={"tick_count": self.tick_count})

    async def aclose(self) -> None:
        """Cancel the cadence, wait for it to finish and refuse further starts."""
        task = self._task
        self.stop()
        self._closed = True
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    def _fire(self, generation: int) -> bool:
        if generation != self._generation:
            return False
        if self.registry.is_empty:
            # Cleared without sync(); nothing left to tick
            logger.info("scheduler_idle", extra={"tick_count": self.tick_count})
            self._task = None
            return False

        started = time.monotonic()
        snapshot = self.registry.tick()
        self.tick_count += 1
        elapsed = time.monotonic() - started
        self.last_tick_duration = elapsed

        if self.on_tick is not None:
            try:
                self.on_tick(snapshot)
            except Exception:
                logger.error("on_tick_callback_error", exc_info=True)

        if elapsed > self.interval:
            logger.warning("tick_overrun", extra={"elapsed": elapsed, "interval": self.interval})
        return True

    async def _run(self, generation: int) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.interval

        while True:
            try:
                await asyncio.sleep(max(0.0, deadline - loop.time()))
            except asyncio.CancelledError:
                break

            if not self._fire(generation):
                break

            deadline += self.interval
            now = loop.time()
            if now >= deadline:
                # Coalesce missed deadlines instead of bursting ticks
                missed = int((now - deadline) // self.interval) + 1
                self.skipped_ticks += missed
                deadline += missed * self.interval
