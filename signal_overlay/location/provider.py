"""Anchor resolution for seeding demo signals"""

import logging
from typing import Awaitable, Callable, Optional

from signal_overlay.config import Config
from signal_overlay.location.fetcher import fetch_location
from signal_overlay.models import LatLng

logger = logging.getLogger(__name__)

LocationProvider = Callable[[], Awaitable[Optional[LatLng]]]


def default_provider() -> Optional[LocationProvider]:
    """
    Location provider selected by configuration.

    A fixed ANCHOR_LAT/ANCHOR_LNG wins over IP geolocation; None means
    no provider (the fallback anchor is used).
    """
    override = Config.anchor_override()
    if override is not None:
        async def fixed() -> Optional[LatLng]:
            return override
        return fixed

    if Config.LOCATION_ENABLED:
        async def geolocate() -> Optional[LatLng]:
            return await fetch_location(timeout=Config.LOCATION_TIMEOUT)
        return geolocate

    return None


async def resolve_anchor(provider: Optional[LocationProvider] = None) -> LatLng:
    """
    Ask the provider for an anchor, falling back to Config.FALLBACK_ANCHOR.

    Never raises for a failing provider; absence of a location is expected.
    """
    if provider is None:
        logger.info("anchor_fallback", extra={"reason": "no_provider"})
        return Config.FALLBACK_ANCHOR

    try:
        anchor = await provider()
    except Exception as e:
        logger.warning("anchor_provider_error", extra={"error": str(e)}, exc_info=True)
        anchor = None

    if anchor is None:
        logger.info("anchor_fallback", extra={"reason": "no_location"})
        return Config.FALLBACK_ANCHOR

    logger.info("anchor_resolved", extra={"lat": anchor.lat, "lng": anchor.lng})
    return anchor
