"""
Filter Stage

Optional record-type, operation and free-text criteria applied before
classification and rendering.
"""

from .event_filter import EventFilter, serializeEvent

__all__ = [
    'EventFilter',
    'serializeEvent',
]
