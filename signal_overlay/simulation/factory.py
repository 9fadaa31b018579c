"""
SignalFactory - builds the initial signal set for an overlay session.

Two sources:
- demo_layout(): four signals at fixed offsets around an anchor
- from_candidates(): raw records from a discovery source, with loosely
  typed coordinate fields
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from signal_overlay.models import LatLng, TrafficSignal
from signal_overlay.simulation.phase_clock import initial_countdown, initial_phase

logger = logging.getLogger(__name__)

DEMO_SIGNAL_COUNT = 4
DEMO_OFFSET_DEGREES = 0.001


@dataclass
class SeedResult:
    """
    Outcome of adapting discovery candidates.

    Attributes:
        signals: Signals built from resolvable candidates
        dropped: Number of candidates without a usable coordinate
    """
    signals: list[TrafficSignal] = field(default_factory=list)
    dropped: int = 0

    @property
    def produced(self) -> bool:
        """False means the candidates yielded no signals at all."""
        return bool(self.signals)


def _number(value: Any) -> Optional[float]:
    """Coerce a loosely typed coordinate value, or None if unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _pair(lat: Any, lng: Any) -> Optional[LatLng]:
    lat, lng = _number(lat), _number(lng)
    if lat is None or lng is None:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return LatLng(lat, lng)


def _mapping(value: Any) -> Mapping:
    return value if isinstance(value, Mapping) else {}


def resolve_position(candidate: Mapping) -> Optional[LatLng]:
    """
    Find the best available coordinate in a raw candidate.

    Tried in order: lat/lng, lat/lon, latitude/longitude, GeoJSON
    geometry.coordinates ([lng, lat]), latlng.lat/lng, location.lat/lng.
    """
    for lat_key, lng_key in (("lat", "lng"), ("lat", "lon"), ("latitude", "longitude")):
        position = _pair(candidate.get(lat_key), candidate.get(lng_key))
        if position is not None:
            return position

    coordinates = _mapping(candidate.get("geometry")).get("coordinates")
    if isinstance(coordinates, (list, tuple)) and len(coordinates) >= 2:
        position = _pair(coordinates[1], coordinates[0])
        if position is not None:
            return position

    for key in ("latlng", "location"):
        nested = _mapping(candidate.get(key))
        position = _pair(nested.get("lat"), nested.get("lng"))
        if position is not None:
            return position

    return None


def resolve_label(candidate: Mapping, index: int) -> str:
    for name in (
        candidate.get("name"),
        _mapping(candidate.get("properties")).get("name"),
        _mapping(candidate.get("tags")).get("name"),
    ):
        if isinstance(name, str) and name.strip():
            return name.strip()
    return f"Traffic Signal {index + 1}"


class SignalFactory:
    """Creates staggered TrafficSignal records."""

    def make_signal(self, signal_id: str, position: LatLng, label: str, index: int) -> TrafficSignal:
        """Build one signal with the staggered phase and countdown for `index`."""
        phase = initial_phase(index)
        return TrafficSignal(
            id=signal_id,
            position=position,
            label=label,
            phase=phase,
            countdown=initial_countdown(phase, index),
            completed_cycles=0,
        )

    def demo_layout(self, anchor: LatLng) -> list[TrafficSignal]:
        """
        Four demo signals around `anchor`.

        Offsets depend only on the index, so the same anchor always yields
        the same layout.
        """
        signals = []
        for i in range(DEMO_SIGNAL_COUNT):
            dlat = (DEMO_OFFSET_DEGREES if i % 2 == 0 else -DEMO_OFFSET_DEGREES) * (i + 1)
            dlng = (DEMO_OFFSET_DEGREES if i < 2 else -DEMO_OFFSET_DEGREES) * (i + 1)
            signals.append(self.make_signal(
                signal_id=f"demo_signal_{i + 1}",
                position=anchor.offset(dlat, dlng),
                label=f"Traffic Signal {i + 1}",
                index=i,
            ))
        return signals

    def from_candidates(self, candidates: Iterable[Mapping]) -> SeedResult:
        """
        Adapt raw discovery candidates into signals.

        Candidates without a resolvable coordinate are dropped. The phase
        stagger uses each candidate's position in the raw sequence.
        """
        result = SeedResult()
        seen: set[str] = set()

        for index, candidate in enumerate(candidates):
            candidate = _mapping(candidate)
            position = resolve_position(candidate)
            if position is None:
                result.dropped += 1
                logger.debug("candidate_dropped", extra={"candidate_index": index})
                continue

            raw_id = candidate.get("id")
            signal_id = str(raw_id) if raw_id not in (None, "") else f"global_signal_{index}"
            base_id, suffix = signal_id, 0
            while signal_id in seen:
                suffix += 1
                signal_id = f"{base_id}_{suffix}"
            seen.add(signal_id)

            result.signals.append(self.make_signal(
                signal_id=signal_id,
                position=position,
                label=resolve_label(candidate, index),
                index=index,
            ))

        logger.info(
            "candidates_adapted",
            extra={"signal_count": len(result.signals), "dropped": result.dropped}
        )
        return result
