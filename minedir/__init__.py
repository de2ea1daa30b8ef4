"""Maintenance tooling for the mining permit and hotspot directories."""

__version__ = "0.3.0"
