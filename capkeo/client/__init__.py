"""
Client-side match cache: status mapping, transformation, tab cache and actions.
"""

from .store.match_store import MatchStore
from .store.swipe_store import SwipeStore
from .schedule import ScheduleSnapshot, load_schedule

__all__ = ["MatchStore", "SwipeStore", "ScheduleSnapshot", "load_schedule"]
