"""
Discovery sources - optional, best-effort suppliers of real signal positions.

A source returns zero or more raw candidate records (loosely typed
mappings); SignalFactory.from_candidates() turns them into signals. An
empty list is a valid answer. DiscoveryError means the attempt failed and
may be retried by the caller.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Union

import aiohttp

from signal_overlay.models import LatLng

logger = logging.getLogger(__name__)


class DiscoveryError(Exception):
    """A discovery attempt failed (network, bad payload)."""


class DiscoverySource:
    """Base interface for discovery sources."""

    name = "base"

    async def discover(self, anchor: LatLng) -> list[dict]:
        """
        Return raw candidates near the anchor.

        Raises:
            DiscoveryError: If the attempt failed
        """
        raise NotImplementedError


class StaticDiscoverySource(DiscoverySource):
    """
    Candidates loaded from a JSON file.

    The file holds either a list of candidates or a GeoJSON
    FeatureCollection. The anchor is ignored.
    """

    name = "file"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def discover(self, anchor: LatLng) -> list[dict]:
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise DiscoveryError(f"cannot read {self.path}: {e}") from e

        if isinstance(data, dict) and data.get("type") == "FeatureCollection":
            data = data.get("features", [])
        if not isinstance(data, list):
            raise DiscoveryError(f"{self.path} does not contain a list of candidates")

        return [c for c in data if isinstance(c, dict)]


def build_overpass_query(anchor: LatLng, radius: int) -> str:
    """Overpass QL for traffic signal nodes within `radius` metres of the anchor."""
    return (
        "[out:json][timeout:25];"
        f"node[\"highway\"=\"traffic_signals\"](around:{radius},{anchor.lat},{anchor.lng});"
        "out body;"
    )


def parse_overpass_elements(data: dict) -> list[dict]:
    """
    Turn an Overpass JSON response into raw candidates.

    Node elements carry lat/lon and optional tags; the id is prefixed so it
    cannot collide with demo signal ids.
    """
    elements = data.get("elements")
    if not isinstance(elements, list):
        raise DiscoveryError("overpass response has no elements list")

    candidates = []
    for element in elements:
        if not isinstance(element, dict) or element.get("type") != "node":
            continue
        candidate = {
            "lat": element.get("lat"),
            "lon": element.get("lon"),
            "tags": element.get("tags", {}),
        }
        if element.get("id") is not None:
            candidate["id"] = f"osm_node_{element['id']}"
        candidates.append(candidate)
    return candidates


class OverpassDiscoverySource(DiscoverySource):
    """OpenStreetMap highway=traffic_signals nodes via the Overpass API."""

    name = "overpass"

    def __init__(self, url: str, radius: int = 500, timeout: float = 10.0):
        """
        Args:
            url: Overpass interpreter endpoint
            radius: Search radius in metres
            timeout: Request timeout in seconds
        """
        self.url = url
        self.radius = radius
        self.timeout = timeout

    async def discover(self, anchor: LatLng) -> list[dict]:
        query = build_overpass_query(anchor, self.radius)
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.url,
                    data={"data": query},
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status != 200:
                        raise DiscoveryError(f"overpass returned HTTP {response.status}")
                    data = await response.json(content_type=None)

        except asyncio.TimeoutError as e:
            raise DiscoveryError("overpass request timed out") from e
        except aiohttp.ClientError as e:
            raise DiscoveryError(f"overpass request failed: {e}") from e
        except json.JSONDecodeError as e:
            raise DiscoveryError("overpass returned invalid JSON") from e

        if not isinstance(data, dict):
            raise DiscoveryError("overpass returned an unexpected payload")

        candidates = parse_overpass_elements(data)
        logger.info(
            "overpass_candidates",
            extra={"candidate_count": len(candidates), "radius": self.radius}
        )
        return candidates
