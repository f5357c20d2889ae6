"""Client adapter for a single remote device reachable over a JSON WebSocket."""

__version__ = "0.1.0"
