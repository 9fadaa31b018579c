"""
Web dashboard module for the signal overlay.

Provides a browser-based marker view accessible via local network.
"""

from signal_overlay.web.mdns import DashboardAnnouncer, local_ipv4_addresses
from signal_overlay.web.server import ClientHub, WebDashboardServer, WebRenderer

__all__ = [
    "ClientHub",
    "DashboardAnnouncer",
    "WebDashboardServer",
    "WebRenderer",
    "local_ipv4_addresses",
]
