"""Simulated traffic-signal phase overlay for map front-ends."""

__version__ = "0.1.0"
