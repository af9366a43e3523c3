from .day_snapshot import DaySnapshot
from .named_event import NamedEvent

__all__ = [
    "DaySnapshot",
    "NamedEvent",
]
