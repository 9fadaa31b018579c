"""
Optional discovery of real signal positions.

Sources return raw candidates; DiscoveryRunner owns the retry policy.
"""

from signal_overlay.discovery.sources import (
    DiscoveryError,
    DiscoverySource,
    OverpassDiscoverySource,
    StaticDiscoverySource,
    build_overpass_query,
    parse_overpass_elements,
)
from signal_overlay.discovery.runner import DiscoveryRunner

__all__ = [
    "DiscoveryError",
    "DiscoverySource",
    "OverpassDiscoverySource",
    "StaticDiscoverySource",
    "build_overpass_query",
    "parse_overpass_elements",
    "DiscoveryRunner",
]
