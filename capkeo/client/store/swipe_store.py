import logging
from typing import Dict, List, Optional

from ...config import Settings, get_settings
from ...shared.constants import SwipeHistoryFilter
from ...shared.models import Pagination, ReceivedSwipe, SwipeHistoryItem, SwipeStats
from ..exceptions import error_message
from ..utils.constants import (
    FETCH_ERROR_MESSAGES,
    SWIPE_STATS_ERROR_MESSAGE,
    UNDO_SWIPE_ERROR_MESSAGE,
    SwipeBucket,
)
from ..utils.swipe_api import SwipeAPI
from .fetch_guard import FetchGuard
from .persistence import ClientStateStorage
from .tab_cache import TabCache

logger = logging.getLogger("capkeo")

SWIPE_BUCKETS = [SwipeBucket.HISTORY, SwipeBucket.RECEIVED]


class SwipeStore:
    """
    Discovery swipes for the active team: our own history, likes we received, and stats.

    Fetching follows the same rules as the match buckets: page 1 is cached per team,
    concurrent requests for the same page are shared, and errors are stored then raised.
    """

    def __init__(
        self,
        api: SwipeAPI,
        settings: Optional[Settings] = None,
        storage: Optional[ClientStateStorage] = None,
    ):
        settings = settings or get_settings()
        self.api = api
        self.limit = settings.page_limit
        self.storage = storage or ClientStateStorage(settings.state_file)

        self.tabs = TabCache(SWIPE_BUCKETS, self.limit)
        self.guard = FetchGuard()
        self.team_id: Optional[str] = None
        self.history_filter: SwipeHistoryFilter = self.storage.load().swipe_history_filter
        self.stats: Optional[SwipeStats] = None
        self.is_loading_stats = False
        self.error: Optional[str] = None

        self._stats_fetched: Dict[str, bool] = {}
        self._versions: Dict[str, int] = {"history": 0, "received": 0, "stats": 0}

    @property
    def history(self) -> List[SwipeHistoryItem]:
        return list(self.tabs[SwipeBucket.HISTORY].items)

    @property
    def received(self) -> List[ReceivedSwipe]:
        return list(self.tabs[SwipeBucket.RECEIVED].items)

    def pagination(self, bucket: SwipeBucket) -> Pagination:
        return self.tabs[bucket].pagination()

    def has_more(self, bucket: SwipeBucket) -> bool:
        return self.tabs[bucket].has_more

    def set_history_filter(self, history_filter: SwipeHistoryFilter) -> None:
        history_filter = SwipeHistoryFilter(history_filter)
        if history_filter == self.history_filter:
            return
        self.history_filter = history_filter
        self.storage.update(swipe_history_filter=history_filter)
        self.tabs.reset_bucket(SwipeBucket.HISTORY)
        self._versions["history"] += 1

    def switch_team(self, team_id: str) -> None:
        """Lists and stats belong to one team; another team starts from an empty cache."""
        if team_id == self.team_id:
            return
        if self.team_id is not None:
            logger.info(f"Switching swipes from team {self.team_id} to {team_id}")
            self.clear_all_data()
        self.team_id = team_id

    def clear_all_data(self) -> None:
        self.tabs.reset()
        self.guard.forget_all()
        self.stats = None
        self._stats_fetched = {}
        self.error = None
        for key in self._versions:
            self._versions[key] += 1

    def _is_fresh(self, bucket: SwipeBucket, team_id: str, page: int, force_refresh: bool) -> bool:
        return (
            page == 1
            and not force_refresh
            and self.tabs.is_fetched(team_id, bucket)
            and bool(self.tabs[bucket].items)
        )

    async def fetch_swipe_history(
        self, team_id: str, page: int = 1, force_refresh: bool = False
    ) -> List[SwipeHistoryItem]:
        self.switch_team(team_id)
        if self._is_fresh(SwipeBucket.HISTORY, team_id, page, force_refresh):
            return self.history
        version = self._versions["history"]
        return await self.guard.run(
            (team_id, SwipeBucket.HISTORY, page, version),
            lambda: self._load(SwipeBucket.HISTORY, team_id, page, force_refresh, version),
        )

    async def fetch_received_swipes(
        self, team_id: str, page: int = 1, force_refresh: bool = False
    ) -> List[ReceivedSwipe]:
        self.switch_team(team_id)
        if self._is_fresh(SwipeBucket.RECEIVED, team_id, page, force_refresh):
            return self.received
        version = self._versions["received"]
        return await self.guard.run(
            (team_id, SwipeBucket.RECEIVED, page, version),
            lambda: self._load(SwipeBucket.RECEIVED, team_id, page, force_refresh, version),
        )

    async def _load(
        self, bucket: SwipeBucket, team_id: str, page: int, force_refresh: bool, version: int
    ) -> list:
        state = self.tabs[bucket]
        state.set_loading(page, True)
        if page == 1:
            self.error = None
        try:
            if bucket == SwipeBucket.HISTORY:
                action = None
                if self.history_filter != SwipeHistoryFilter.ALL:
                    action = self.history_filter.value
                response = await self.api.get_swipe_history(team_id, page, self.limit, action)
                items, pagination, has_more = (
                    response.swipes,
                    response.pagination,
                    response.pagination.has_more,
                )
            else:
                response = await self.api.get_received_swipes(team_id, page, self.limit)
                items = response.received_swipes
                pagination = response.resolved_pagination(page, self.limit)
                has_more = response.has_more(page, self.limit)

            if version != self._versions[bucket.value]:
                logger.info(f"Discarding swipe {bucket.value} page {page} for team {team_id}")
                return list(self.tabs[bucket].items)

            state.apply_page(items, pagination, replace=page == 1 or force_refresh)
            state.has_more = has_more
            self.tabs.mark_fetched(team_id, bucket)
            self.error = None
            return list(state.items)
        except Exception as e:
            if version == self._versions[bucket.value]:
                self.error = error_message(e, FETCH_ERROR_MESSAGES[bucket])
            logger.error(f"Error fetching swipe {bucket.value} for team {team_id}: {e}")
            raise
        finally:
            state.set_loading(page, False)

    async def load_more_history(self, team_id: str) -> List[SwipeHistoryItem]:
        state = self.tabs[SwipeBucket.HISTORY]
        if not self.tabs.is_fetched(team_id, SwipeBucket.HISTORY):
            return await self.fetch_swipe_history(team_id)
        if not state.has_more:
            return self.history
        return await self.fetch_swipe_history(team_id, state.page + 1)

    async def load_more_received(self, team_id: str) -> List[ReceivedSwipe]:
        state = self.tabs[SwipeBucket.RECEIVED]
        if not self.tabs.is_fetched(team_id, SwipeBucket.RECEIVED):
            return await self.fetch_received_swipes(team_id)
        if not state.has_more:
            return self.received
        return await self.fetch_received_swipes(team_id, state.page + 1)

    async def fetch_swipe_stats(self, team_id: str, force_refresh: bool = False) -> SwipeStats:
        self.switch_team(team_id)
        if not force_refresh and self._stats_fetched.get(team_id) and self.stats is not None:
            return self.stats
        version = self._versions["stats"]
        return await self.guard.run(
            (team_id, "stats", version), lambda: self._load_stats(team_id, version)
        )

    async def _load_stats(self, team_id: str, version: int) -> SwipeStats:
        self.is_loading_stats = True
        self.error = None
        try:
            stats = await self.api.get_swipe_stats(team_id)
            if version == self._versions["stats"]:
                self.stats = stats
                self._stats_fetched[team_id] = True
            return stats
        except Exception as e:
            if version == self._versions["stats"]:
                self.error = error_message(e, SWIPE_STATS_ERROR_MESSAGE)
            logger.error(f"Error fetching swipe stats for team {team_id}: {e}")
            raise
        finally:
            self.is_loading_stats = False

    async def undo_swipe(self, swipe_id: str) -> None:
        """Undo on the server, then drop the swipe from history."""
        try:
            await self.api.undo_swipe(swipe_id)
        except Exception as e:
            self.error = error_message(e, UNDO_SWIPE_ERROR_MESSAGE)
            logger.error(f"Error undoing swipe {swipe_id}: {e}")
            raise
        self.tabs.remove(swipe_id, [SwipeBucket.HISTORY])
        logger.info(f"Undid swipe {swipe_id}")
