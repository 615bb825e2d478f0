from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ..constants import SwipeAction
from .base import WireModel
from .pagination import Pagination
from .team import TeamSummary


class SwipeHistoryItem(WireModel):
    id: str
    swiper_team_id: str
    target_team_id: str
    action: SwipeAction
    target_team: Optional[TeamSummary] = None
    created_at: Optional[datetime] = None
    can_undo: bool = False
    time_since_swipe: int = 0


class SwipeHistoryPage(WireModel):
    swipes: List[SwipeHistoryItem] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class ReceivedSwipe(WireModel):
    id: str
    swiper_team_id: str
    swiper_team: Optional[TeamSummary] = None
    swiped_at: Optional[datetime] = None
    is_match: bool = False
    match_id: Optional[str] = None


class ReceivedSwipePage(WireModel):
    received_swipes: List[ReceivedSwipe] = Field(default_factory=list)
    total: int = 0
    unread_count: int = 0
    pagination: Optional[Pagination] = None

    def resolved_pagination(self, page: int, limit: int) -> Pagination:
        """Pagination as sent, or derived from `total` when the server omits it."""
        if self.pagination is not None:
            return self.pagination
        total_pages = (self.total + limit - 1) // limit if limit else 0
        return Pagination(page=page, limit=limit, total=self.total, total_pages=total_pages)

    def has_more(self, page: int, limit: int) -> bool:
        if self.pagination is not None:
            return self.pagination.has_more
        return len(self.received_swipes) >= limit


class SwipeStats(WireModel):
    total_swipes: int = 0
    likes: int = 0
    passes: int = 0
    matches: int = 0
    like_rate: float = 0.0
    match_rate: float = 0.0
    like_to_match_rate: float = 0.0
    total_likes_received: Optional[int] = None
    average_response_time: Optional[float] = None
    most_swiped_day: Optional[str] = None
    most_swiped_time: Optional[str] = None
