"""gpsd client - JSON-over-TCP session handling."""

from .connection import GpsdConnection, connect, DEFAULT_GPSD_PORT, WATCH_ENABLE_JSON

__all__ = ['GpsdConnection', 'connect', 'DEFAULT_GPSD_PORT', 'WATCH_ENABLE_JSON']
