"""
OverlaySession - one active overlay context.

The session wires the simulation together for as long as a map and a
location are available:
- resolves an anchor through the location provider
- seeds the demo layout and starts the tick cadence
- optionally runs signal discovery in the background and swaps in what it finds
- on teardown stops the cadence before clearing the registry, so no tick
  fires after the context is gone

Render adapters observe the session through its event bus.
"""

import asyncio
import logging
import uuid
from typing import Iterable, Optional

from signal_overlay.config import Config
from signal_overlay.discovery import (
    DiscoveryRunner,
    DiscoverySource,
    OverpassDiscoverySource,
    StaticDiscoverySource,
)
from signal_overlay.events import EventBus, EventPublisher
from signal_overlay.location import LocationProvider, resolve_anchor
from signal_overlay.models import LatLng, RegistrySnapshot, TrafficSignal
from signal_overlay.simulation import SignalFactory, SignalRegistry, TickScheduler
from signal_overlay.telemetry import create_overlay_metrics, create_span, record_exception

logger = logging.getLogger(__name__)


def discovery_source_from_config() -> Optional[DiscoverySource]:
    """Discovery source selected by configuration, or None if disabled."""
    if not Config.DISCOVERY_ENABLED:
        return None
    if Config.DISCOVERY_SOURCE == "file":
        return StaticDiscoverySource(Config.DISCOVERY_FILE)
    return OverpassDiscoverySource(
        url=Config.OVERPASS_URL,
        radius=Config.DISCOVERY_RADIUS,
        timeout=Config.DISCOVERY_TIMEOUT,
    )


class OverlaySession(EventPublisher):
    """
    Owns the registry and scheduler of one overlay context.

    Usage:
        async with OverlaySession(location_provider=provider) as session:
            ConsoleRenderer().attach(session.event_bus)
            await session.wait_closed()
    """

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        location_provider: Optional[LocationProvider] = None,
        discovery_source: Optional[DiscoverySource] = None,
        tick_interval: Optional[float] = None,
        discovery_runner: Optional[DiscoveryRunner] = None,
    ):
        """
        Initialize the session.

        Args:
            event_bus: Bus shared with render adapters (created and owned if None)
            location_provider: Anchor source (fallback anchor if None)
            discovery_source: Optional source of real signal positions
            tick_interval: Seconds between ticks (Config.TICK_INTERVAL if None)
            discovery_runner: Pre-built runner, overrides discovery_source
        """
        self.session_id = uuid.uuid4().hex[:12]
        self._owns_bus = event_bus is None
        self.event_bus = event_bus or EventBus()
        EventPublisher.__init__(self, self.event_bus, "session")

        self.location_provider = location_provider
        self.factory = SignalFactory()
        self.registry = SignalRegistry(self.event_bus)
        self.scheduler = TickScheduler(
            self.registry,
            interval=tick_interval if tick_interval is not None else Config.TICK_INTERVAL,
            on_tick=self._on_tick,
        )

        self.metrics = create_overlay_metrics()

        if discovery_runner is None and discovery_source is not None:
            discovery_runner = DiscoveryRunner(
                discovery_source,
                self.factory,
                event_bus=self.event_bus,
                max_attempts=Config.DISCOVERY_MAX_ATTEMPTS,
                attempt_timeout=Config.DISCOVERY_TIMEOUT,
            )
        self.discovery_runner = discovery_runner
        if self.discovery_runner is not None:
            self.discovery_runner.on_attempt = self._on_discovery_attempt

        # State
        self.anchor: Optional[LatLng] = None
        self.running = False
        self._discovery_task: Optional[asyncio.Task] = None
        self._closed = asyncio.Event()
        self._last_phases: dict[str, str] = {}

    async def __aenter__(self) -> "OverlaySession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def start(self, anchor: Optional[LatLng] = None) -> RegistrySnapshot:
        """
        Resolve the anchor, seed the demo signals and start ticking.

        Args:
            anchor: Use this anchor instead of asking the location provider

        Returns:
            The snapshot of the seeded signals
        """
        if self.running:
            return self.registry.snapshot()

        if self._owns_bus:
            self.event_bus.start()

        self.running = True
        self.anchor = anchor or await resolve_anchor(self.location_provider)
        if not self.running:
            # stop() ran while the anchor was being resolved
            logger.info("session_start_aborted", extra={"session_id": self.session_id})
            return self.registry.snapshot()

        logger.info(
            "session_starting",
            extra={"session_id": self.session_id, "lat": self.anchor.lat, "lng": self.anchor.lng}
        )
        self.publish_text("session", f"Overlay started at {self.anchor.lat:.4f}, {self.anchor.lng:.4f}")

        snapshot = self.seed_demo()

        if self.discovery_runner is not None:
            self._discovery_task = asyncio.create_task(self._discover(self.anchor))

        return snapshot

    def install(self, signals: Iterable[TrafficSignal]) -> RegistrySnapshot:
        """Replace the signal set and restart the cadence against it."""
        if not self.running:
            raise RuntimeError("session is not running")

        snapshot = self.registry.replace_all(signals)
        self._last_phases = {s.id: s.phase.value for s in snapshot}
        self.scheduler.sync()
        return snapshot

    def seed_demo(self) -> RegistrySnapshot:
        """Install the demo layout around the current anchor."""
        return self.install(self.factory.demo_layout(self.anchor))

    async def stop(self) -> None:
        """Tear down: stop discovery and ticking, then clear the registry."""
        if not self.running:
            return
        self.running = False

        if self._discovery_task is not None:
            self._discovery_task.cancel()
            try:
                await self._discovery_task
            except asyncio.CancelledError:
                pass
            self._discovery_task = None

        await self.scheduler.aclose()
        self.registry.clear()

        logger.info(
            "session_stopped",
            extra={"session_id": self.session_id, "tick_count": self.scheduler.tick_count}
        )
        self.publish_text("session", "Overlay stopped")

        if self._owns_bus:
            self.event_bus.drain()
            self.event_bus.stop()

        self._closed.set()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def _discover(self, anchor: LatLng) -> None:
        with create_span("signal_discovery", source=self.discovery_runner.source.name):
            try:
                result = await self.discovery_runner.run(anchor)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                record_exception(e)
                logger.error("discovery_task_error", exc_info=True)
                return

        if result is not None and self.running:
            self.install(result.signals)

    def _on_discovery_attempt(self, source: str) -> None:
        self.metrics["discovery_attempts"].add(1, {"source": source})

    def _on_tick(self, snapshot: RegistrySnapshot) -> None:
        self.metrics["ticks"].add(1)

        for signal in snapshot:
            phase = signal.phase.value
            if self._last_phases.get(signal.id) != phase:
                self.metrics["phase_transitions"].add(1, {"phase": phase})
            self._last_phases[signal.id] = phase

        self.metrics["tick_duration"].record(self.scheduler.last_tick_duration * 1000)
