"""Configuration management from environment variables"""

import os
import sys
from typing import Optional

from dotenv import load_dotenv

from signal_overlay.models import LatLng

# Load environment variables
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return float("nan")


def _int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return -1


class Config:
    """Application configuration from environment variables"""

    # Logger (set by the entry point once telemetry is initialized)
    LOGGER = None

    # =========================================================================
    # HARDCODED CONFIGURATION
    # =========================================================================
    # Anchor used when no location can be resolved
    FALLBACK_ANCHOR = LatLng(28.7041, 77.1025)

    LOCATION_URL = "https://ipwho.is"

    # =========================================================================
    # SIMULATION
    # =========================================================================
    TICK_INTERVAL = _float("TICK_INTERVAL", 1.0)  # seconds between ticks

    # Fixed anchor (both must be set to take effect)
    ANCHOR_LAT = os.getenv("ANCHOR_LAT")
    ANCHOR_LNG = os.getenv("ANCHOR_LNG")

    # =========================================================================
    # LOCATION PROVIDER
    # =========================================================================
    LOCATION_ENABLED = _flag("LOCATION_ENABLED", "true")
    LOCATION_TIMEOUT = _float("LOCATION_TIMEOUT", 3.0)

    # =========================================================================
    # SIGNAL DISCOVERY (best effort)
    # =========================================================================
    DISCOVERY_ENABLED = _flag("DISCOVERY_ENABLED", "false")
    DISCOVERY_SOURCE = os.getenv("DISCOVERY_SOURCE", "overpass")  # "overpass" or "file"
    DISCOVERY_FILE = os.getenv("DISCOVERY_FILE")
    DISCOVERY_RADIUS = _int("DISCOVERY_RADIUS", 500)  # metres around the anchor
    DISCOVERY_TIMEOUT = _float("DISCOVERY_TIMEOUT", 10.0)
    DISCOVERY_MAX_ATTEMPTS = _int("DISCOVERY_MAX_ATTEMPTS", 5)
    OVERPASS_URL = os.getenv("OVERPASS_URL", "https://overpass-api.de/api/interpreter")

    # =========================================================================
    # WEB DASHBOARD
    # =========================================================================
    WEB_HOSTNAME = os.getenv("WEB_HOSTNAME", "signals")
    WEB_PORT = _int("WEB_PORT", 8080)

    # =========================================================================
    # TELEMETRY
    # =========================================================================
    OTEL_ENABLED = _flag("OTEL_ENABLED", "false")
    OTEL_EXPORTER_ENDPOINT = os.getenv("OTEL_EXPORTER_ENDPOINT", "http://localhost:4318")

    # Environment
    ENV = os.getenv("ENV", "production")

    @classmethod
    def errors(cls) -> list[str]:
        """Describe every invalid setting."""
        errors = []

        if not cls.TICK_INTERVAL > 0:
            errors.append("TICK_INTERVAL must be a positive number")
        if not cls.LOCATION_TIMEOUT > 0:
            errors.append("LOCATION_TIMEOUT must be a positive number")
        if not cls.DISCOVERY_TIMEOUT > 0:
            errors.append("DISCOVERY_TIMEOUT must be a positive number")
        if cls.DISCOVERY_RADIUS <= 0:
            errors.append("DISCOVERY_RADIUS must be a positive integer")
        if cls.DISCOVERY_MAX_ATTEMPTS <= 0:
            errors.append("DISCOVERY_MAX_ATTEMPTS must be a positive integer")
        if cls.DISCOVERY_SOURCE not in ("overpass", "file"):
            errors.append("DISCOVERY_SOURCE must be 'overpass' or 'file'")
        if cls.DISCOVERY_ENABLED and cls.DISCOVERY_SOURCE == "file" and not cls.DISCOVERY_FILE:
            errors.append("DISCOVERY_FILE is required when DISCOVERY_SOURCE=file")
        if not 0 < cls.WEB_PORT < 65536:
            errors.append("WEB_PORT must be between 1 and 65535")
        if (cls.ANCHOR_LAT is None) != (cls.ANCHOR_LNG is None):
            errors.append("ANCHOR_LAT and ANCHOR_LNG must be set together")
        elif cls.ANCHOR_LAT is not None and cls.anchor_override() is None:
            errors.append("ANCHOR_LAT/ANCHOR_LNG must be valid coordinates")

        return errors

    @classmethod
    def validate(cls):
        """Validate configuration, exiting on invalid values"""
        errors = cls.errors()
        if errors:
            print("✗ Invalid configuration:")
            for error in errors:
                print(f"   {error}")
            sys.exit(1)

    @classmethod
    def anchor_override(cls) -> Optional[LatLng]:
        """Fixed anchor from ANCHOR_LAT/ANCHOR_LNG, if both are valid."""
        if cls.ANCHOR_LAT is None or cls.ANCHOR_LNG is None:
            return None
        try:
            lat, lng = float(cls.ANCHOR_LAT), float(cls.ANCHOR_LNG)
        except ValueError:
            return None
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
            return None
        return LatLng(lat, lng)
