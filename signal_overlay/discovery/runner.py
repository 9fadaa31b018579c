"""
DiscoveryRunner - retry policy around a discovery source.

The retry policy belongs here, outside the simulation core:
wait before the first attempt, retry after 2s when nothing usable was
found and after 3s when the attempt failed, up to a maximum number of
attempts.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, Optional

from signal_overlay.discovery.sources import DiscoveryError, DiscoverySource
from signal_overlay.events.publisher import EventPublisher
from signal_overlay.models import LatLng
from signal_overlay.simulation.factory import SeedResult, SignalFactory

if TYPE_CHECKING:
    from signal_overlay.events.bus import EventBus

logger = logging.getLogger(__name__)


class DiscoveryRunner(EventPublisher):
    """
    Runs a discovery source until it produces signals or gives up.

    Usage:
        runner = DiscoveryRunner(source, SignalFactory())
        result = await runner.run(anchor)
        if result is not None:
            registry.replace_all(result.signals)
    """

    def __init__(
        self,
        source: DiscoverySource,
        factory: SignalFactory,
        event_bus: Optional["EventBus"] = None,
        initial_delay: float = 2.0,
        empty_retry_delay: float = 2.0,
        error_retry_delay: float = 3.0,
        max_attempts: int = 5,
        attempt_timeout: float = 10.0,
        on_attempt: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            source: Discovery source to query
            factory: Factory adapting candidates into signals
            event_bus: Bus for discovery status text events
            initial_delay: Seconds to wait before the first attempt
            empty_retry_delay: Seconds to wait after an attempt that produced nothing
            error_retry_delay: Seconds to wait after a failed attempt
            max_attempts: Attempts before giving up
            attempt_timeout: Upper bound on one attempt, in seconds
            on_attempt: Called with the source name before each attempt
        """
        EventPublisher.__init__(self, event_bus, "discovery")
        self.source = source
        self.factory = factory
        self.initial_delay = initial_delay
        self.empty_retry_delay = empty_retry_delay
        self.error_retry_delay = error_retry_delay
        self.max_attempts = max_attempts
        self.attempt_timeout = attempt_timeout
        self.on_attempt = on_attempt

        self.attempts = 0

    async def attempt(self, anchor: LatLng) -> SeedResult:
        """
        One discovery attempt.

        Raises:
            DiscoveryError: On source failure or timeout
        """
        self.attempts += 1
        if self.on_attempt is not None:
            self.on_attempt(self.source.name)

        try:
            candidates = await asyncio.wait_for(
                self.source.discover(anchor),
                timeout=self.attempt_timeout,
            )
        except asyncio.TimeoutError as e:
            raise DiscoveryError(f"{self.source.name} discovery timed out") from e

        return self.factory.from_candidates(candidates)

    async def run(self, anchor: LatLng) -> Optional[SeedResult]:
        """
        Attempt discovery until signals are produced.

        Returns:
            The first SeedResult that produced signals, or None when every
            attempt came back empty or failed
        """
        delay = self.initial_delay

        for attempt in range(1, self.max_attempts + 1):
            await asyncio.sleep(delay)

            try:
                result = await self.attempt(anchor)
            except DiscoveryError as e:
                logger.warning(
                    "discovery_attempt_failed",
                    extra={"source": self.source.name, "attempt": attempt, "error": str(e)}
                )
                self.publish_text("discovery", f"Discovery failed: {e}", "warning")
                delay = self.error_retry_delay
                continue

            if result.produced:
                logger.info(
                    "discovery_succeeded",
                    extra={
                        "source": self.source.name,
                        "attempt": attempt,
                        "signal_count": len(result.signals),
                        "dropped": result.dropped,
                    }
                )
                self.publish_text(
                    "discovery",
                    f"Discovered {len(result.signals)} signals via {self.source.name}"
                )
                return result

            logger.info(
                "discovery_empty",
                extra={"source": self.source.name, "attempt": attempt, "dropped": result.dropped}
            )
            self.publish_text("discovery", "No signals discovered yet", "debug")
            delay = self.empty_retry_delay

        logger.info(
            "discovery_exhausted",
            extra={"source": self.source.name, "attempts": self.max_attempts}
        )
        self.publish_text("discovery", "Discovery gave up; keeping current signals", "info")
        return None
