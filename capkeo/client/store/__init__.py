from .match_store import MatchStore
from .persistence import ClientStateStorage, PersistedState
from .swipe_store import SwipeStore
from .tab_cache import BucketState, TabCache

__all__ = [
    "MatchStore",
    "SwipeStore",
    "ClientStateStorage",
    "PersistedState",
    "BucketState",
    "TabCache",
]
