from signal_overlay.location.fetcher import fetch_location, parse_location
from signal_overlay.location.provider import LocationProvider, default_provider, resolve_anchor

__all__ = [
    "fetch_location",
    "parse_location",
    "LocationProvider",
    "default_provider",
    "resolve_anchor",
]
