"""Configuration primitives for the rpi-link client."""

from .settings import RpiLinkSettings, get_settings

__all__ = ["RpiLinkSettings", "get_settings"]
