#!/usr/bin/env python3
"""
Signal Overlay - Console Client
===============================
Simulated traffic signal phases around the device's location, printed to
the terminal once per tick.

Features:
- Anchor from ANCHOR_LAT/ANCHOR_LNG, IP geolocation or the fallback anchor
- Four demo signals seeded around the anchor at startup
- Optional discovery of real signal positions (Overpass API or a JSON file)
- OpenTelemetry observability (traces, metrics, logs)

Usage:
    python main.py

Requirements:
    - Environment variables: see Config class
"""

import asyncio
import logging
import signal

# Configure logging BEFORE any other imports (critical for telemetry)
# This ensures OTEL handler captures console output
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    force=True,
)

from signal_overlay.config import Config
from signal_overlay.events import TextEvent
from signal_overlay.location import default_provider
from signal_overlay.overlay import OverlaySession, discovery_source_from_config
from signal_overlay.render import ConsoleRenderer
from signal_overlay.telemetry import get_logger, setup_telemetry


# =============================================================================
# MAIN APPLICATION
# =============================================================================

class OverlayClient:
    """Console front-end for one overlay session"""

    def __init__(self):
        self.session = OverlaySession(
            location_provider=default_provider(),
            discovery_source=discovery_source_from_config(),
        )
        self.renderer = ConsoleRenderer()
        self.loop = None
        self.shutdown_requested = False

        # Setup telemetry if enabled
        if Config.OTEL_ENABLED:
            try:
                setup_telemetry(
                    session_id=self.session.session_id,
                    endpoint=Config.OTEL_EXPORTER_ENDPOINT
                )
                print("✓ OpenTelemetry initialized")
            except Exception as e:
                print(f"⚠️  Failed to initialize telemetry: {e}")

        Config.LOGGER = get_logger(__name__, session_id=self.session.session_id)
        self.logger = Config.LOGGER

        # Setup signal handlers
        signal.signal(signal.SIGINT, self._handle_interrupt_signal)
        signal.signal(signal.SIGTERM, self._handle_interrupt_signal)

    def _handle_interrupt_signal(self, sig, frame):
        """Handle interrupt/termination signals (Ctrl+C, SIGTERM)"""
        signal_name = signal.Signals(sig).name
        print(f"\n🛑 Received {signal_name} - shutting down...")

        self.logger.info("interrupt_signal_received", extra={"signal": signal_name})

        if self.shutdown_requested or self.loop is None:
            return
        self.shutdown_requested = True
        self.loop.call_soon_threadsafe(
            lambda: asyncio.ensure_future(self.session.stop())
        )

    @staticmethod
    def _print_text(event: TextEvent):
        """Print text events next to the tick lines."""
        prefixes = {
            "debug": "🔍",
            "info": "ℹ️ ",
            "warning": "⚠️ ",
            "error": "✗",
        }
        prefix = prefixes.get(event.level, "•")
        print(f"{prefix} [{event.category}] {event.message}")

    async def run(self):
        """Main application loop"""
        print("\n" + "=" * 60)
        print("🚦 Signal Overlay")
        print("=" * 60)

        self.loop = asyncio.get_running_loop()
        self.renderer.attach(self.session.event_bus)
        self.session.event_bus.subscribe(event_type=TextEvent, callback=self._print_text)

        try:
            await self.session.start()
            self.logger.info(
                "overlay_running",
                extra={"tick_interval": Config.TICK_INTERVAL, "env": Config.ENV}
            )
            await self.session.wait_closed()
        finally:
            await self.session.stop()
            self.renderer.detach()

        print("👋 Goodbye!\n")


# =============================================================================
# ENTRY POINT
# =============================================================================

def main():
    """Application entry point"""
    # Before the client builds its scheduler from the settings
    Config.validate()

    client = OverlayClient()
    asyncio.run(client.run())


if __name__ == "__main__":
    main()
