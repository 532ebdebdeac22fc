"""
Adapters layer - External data sources for calendar records.
"""

from .json_event_source import JsonEventSource

__all__ = ["JsonEventSource"]
