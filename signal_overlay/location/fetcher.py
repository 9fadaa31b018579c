"""Location fetcher using ipwho.is API"""

import asyncio
import logging
from typing import Optional

import aiohttp

from signal_overlay.config import Config
from signal_overlay.models import LatLng

logger = logging.getLogger(__name__)


def parse_location(data: dict) -> Optional[LatLng]:
    """
    Extract coordinates from an ipwho.is response body.

    Returns None if the lookup failed or the coordinates are unusable.
    """
    if not data.get("success", False):
        return None
    try:
        lat = float(data["latitude"])
        lng = float(data["longitude"])
    except (KeyError, TypeError, ValueError):
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return LatLng(lat, lng)


async def fetch_location(timeout: float = 3.0) -> Optional[LatLng]:
    """
    Fetch current location using IP-based geolocation from ipwho.is

    Args:
        timeout: Request timeout in seconds (default: 3.0)

    Returns:
        LatLng of the caller's approximate position, or None if fetch fails
    """
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(
                Config.LOCATION_URL,
                timeout=aiohttp.ClientTimeout(total=timeout)
            ) as response:
                if response.status != 200:
                    logger.warning("location_fetch_failed", extra={"status": response.status})
                    return None

                data = await response.json()
                return parse_location(data)

    except asyncio.TimeoutError:
        logger.warning("location_fetch_timeout", extra={"timeout": timeout})
        return None
    except aiohttp.ClientError as e:
        logger.warning("location_fetch_error", extra={"error": str(e)})
        return None
