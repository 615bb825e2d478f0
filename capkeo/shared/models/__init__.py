"""
Wire and view models.
"""

from .team import TeamSummary
from .match import Match, MatchLocation, MatchRecord, MatchScore
from .pagination import MatchPage, Pagination
from .requests import (
    CancelMatchRequest,
    ConfirmMatchRequest,
    FinishMatchRequest,
    MatchActionRequest,
    RematchRequest,
    SendMatchRequest,
)
from .swipe import ReceivedSwipe, ReceivedSwipePage, SwipeHistoryItem, SwipeHistoryPage, SwipeStats

__all__ = [
    "TeamSummary",
    "Match",
    "MatchLocation",
    "MatchRecord",
    "MatchScore",
    "MatchPage",
    "Pagination",
    "CancelMatchRequest",
    "ConfirmMatchRequest",
    "FinishMatchRequest",
    "MatchActionRequest",
    "RematchRequest",
    "SendMatchRequest",
    "ReceivedSwipe",
    "ReceivedSwipePage",
    "SwipeHistoryItem",
    "SwipeHistoryPage",
    "SwipeStats",
]
