#!/usr/bin/env python3
"""
Signal Overlay Web Dashboard
============================

A web-based view of the simulated traffic signals.
Accessible from any device on the same network via http://signals.local:8080

Features:
- Live marker table (phase colour, countdown, urgency blink, walk dot)
- Session event timeline (start, discovery, stop)
- Demo reseed button

Usage:
    python web.py

Environment Variables:
    WEB_HOSTNAME: mDNS hostname (default: "signals" -> signals.local)
    WEB_PORT: Server port (default: 8080)
"""

import asyncio
import logging
import sys

# Configure logging before other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    force=True,
)

from signal_overlay.config import Config
from signal_overlay.location import default_provider
from signal_overlay.overlay import OverlaySession, discovery_source_from_config
from signal_overlay.telemetry import setup_telemetry
from signal_overlay.web import WebDashboardServer


def main():
    """Main entry point for the web dashboard."""
    Config.validate()

    print("=" * 60)
    print("🌐 Signal Overlay - Web Dashboard")
    print("=" * 60)
    print()
    print(f"Access the dashboard at:")
    print(f"  • http://{Config.WEB_HOSTNAME}.local:{Config.WEB_PORT}")
    print(f"  • http://localhost:{Config.WEB_PORT}")
    print()
    print("=" * 60)

    session = OverlaySession(
        location_provider=default_provider(),
        discovery_source=discovery_source_from_config(),
    )

    if Config.OTEL_ENABLED:
        try:
            setup_telemetry(session_id=session.session_id, endpoint=Config.OTEL_EXPORTER_ENDPOINT)
        except Exception as e:
            print(f"⚠️  Failed to initialize telemetry: {e}")

    # Session lifetime follows the server lifespan
    server = WebDashboardServer(session)

    try:
        asyncio.run(server.start())
    except KeyboardInterrupt:
        print("\n🛑 Shutting down web dashboard...")

    sys.exit(0)


if __name__ == "__main__":
    main()
