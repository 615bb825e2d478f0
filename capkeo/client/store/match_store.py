"""
Match cache for one client session.

Holds the three buckets (pending, upcoming, history) for the active team, fetches them on
demand, and runs lifecycle actions against the API while keeping the buckets in step.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from ...config import Settings, get_settings
from ...shared.constants import (
    ALL_BUCKETS,
    BUCKET_STATUSES,
    PENDING_FILTER_STATUSES,
    Bucket,
    MatchStatus,
    MatchType,
    NEGOTIATION_STATUSES,
    PendingFilter,
    Stage,
    TERMINAL_STATUSES,
    UIBucket,
)
from ...shared.models import (
    CancelMatchRequest,
    ConfirmMatchRequest,
    FinishMatchRequest,
    Match,
    Pagination,
    RematchRequest,
    SendMatchRequest,
)
from ..exceptions import CapkeoError, ValidationException, error_message
from ..lifecycle import resolve_stage, resolve_ui_bucket, transform_match
from ..schedule import ScheduleSnapshot, load_schedule
from ..utils.constants import ACTION_ERROR_MESSAGES, FETCH_ERROR_MESSAGES
from ..utils.match_api import MatchAPI
from .commands import MatchCommand, append_to, no_effect, remove_from, replace_in
from .fetch_guard import FetchGuard
from .persistence import ClientStateStorage
from .tab_cache import TabCache

logger = logging.getLogger("capkeo")

NON_TERMINAL_STATUSES = [s for s in MatchStatus if s not in TERMINAL_STATUSES]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MatchStore:
    def __init__(
        self,
        api: MatchAPI,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        storage: Optional[ClientStateStorage] = None,
    ):
        settings = settings or get_settings()
        self.api = api
        self.limit = settings.page_limit
        self.match_duration = settings.match_duration
        self.match_timezone = settings.match_timezone
        self.clock = clock or _utc_now
        self.storage = storage or ClientStateStorage(settings.state_file)

        self.tabs: TabCache[Match] = TabCache(ALL_BUCKETS, self.limit)
        self.guard = FetchGuard()
        self.active_team_id: Optional[str] = None
        self.pending_filter = PendingFilter.ALL
        self.action_error: Optional[str] = None
        self.selected_match: Optional[Match] = self.storage.load().selected_match

        # Bumped whenever cached data is thrown away; work started under an older value
        # must not write into the cache.
        self._epoch = 0
        self._bucket_versions: Dict[Bucket, int] = {b: 0 for b in ALL_BUCKETS}

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def fetch_bucket(
        self,
        bucket: Bucket,
        team_id: str,
        page: int = 1,
        force_refresh: bool = False,
    ) -> List[Match]:
        """
        Load one page of a bucket for `team_id` and return the bucket's items.

        Page 1 is served from the cache when it was already fetched for this team and is
        non-empty, unless `force_refresh` is set. A request already running for the same
        page is joined rather than repeated.

        The cache only ever holds the active team's matches, so fetching for another team
        switches to it first.
        """
        bucket = Bucket(bucket)
        self.switch_team(team_id)
        state = self.tabs[bucket]
        if (
            page == 1
            and not force_refresh
            and self.tabs.is_fetched(team_id, bucket)
            and state.items
        ):
            logger.debug(f"Using cached {bucket.value} matches for team {team_id}")
            return list(state.items)

        version = self._bucket_versions[bucket]
        return await self.guard.run(
            self._fetch_key(bucket, team_id, page),
            lambda: self._fetch(bucket, team_id, page, force_refresh, version),
        )

    async def _fetch(
        self, bucket: Bucket, team_id: str, page: int, force_refresh: bool, version: int
    ) -> List[Match]:
        state = self.tabs[bucket]
        state.set_loading(page, True)
        if page == 1:
            state.error = None

        statuses = self._statuses_for(bucket)
        logger.info(
            f"Fetching {bucket.value} matches for team {team_id} "
            f"(page {page}, force_refresh={force_refresh})"
        )
        try:
            result = await self.api.get_matches(
                statuses,
                team_id,
                page=page,
                limit=self.limit,
                error_message=FETCH_ERROR_MESSAGES[bucket],
            )
            if version != self._bucket_versions[bucket]:
                logger.info(
                    f"Discarding {bucket.value} page {page} for team {team_id}: "
                    f"cache was reset while loading"
                )
                return list(self.tabs[bucket].items)

            matches = [transform_match(record, team_id) for record in result.matches]
            state.apply_page(matches, result.pagination, replace=page == 1 or force_refresh)
            state.error = None
            self.tabs.mark_fetched(team_id, bucket)
            logger.debug(
                f"Loaded {len(matches)} {bucket.value} matches for team {team_id} "
                f"(page {state.page}/{state.total_pages})"
            )
            return list(state.items)
        except Exception as e:
            if version == self._bucket_versions[bucket]:
                state.error = error_message(e, FETCH_ERROR_MESSAGES[bucket])
            logger.error(f"Error fetching {bucket.value} matches for team {team_id}: {e}")
            raise
        finally:
            state.set_loading(page, False)

    def _fetch_key(self, bucket: Bucket, team_id: str, page: int) -> tuple:
        return (team_id, bucket, page, self._bucket_versions[bucket])

    async def load_more(self, bucket: Bucket) -> List[Match]:
        """
        Fetch the next page of `bucket` for the active team.

        While page 1 is loading the next page is unknown, so the caller waits for that
        load instead.
        """
        bucket = Bucket(bucket)
        team_id = self._acting_team(None)
        first_page = self._fetch_key(bucket, team_id, 1)
        if self.guard.is_in_flight(first_page):
            logger.debug(f"Waiting for page 1 of {bucket.value} before loading more")
            return await self.guard.join(first_page)
        if not self.tabs.is_fetched(team_id, bucket):
            return await self.fetch_bucket(bucket, team_id, 1)

        state = self.tabs[bucket]
        if not state.has_more:
            logger.debug(f"No more {bucket.value} matches for team {team_id}")
            return list(state.items)
        return await self.fetch_bucket(bucket, team_id, state.page + 1)

    async def load_schedule(
        self,
        team_id: Optional[str] = None,
        buckets: Iterable[Bucket] = ALL_BUCKETS,
        force_refresh: bool = False,
    ) -> ScheduleSnapshot:
        return await load_schedule(self, self._acting_team(team_id), buckets, force_refresh)

    async def refresh_all(self, team_id: Optional[str] = None) -> ScheduleSnapshot:
        return await self.load_schedule(team_id, ALL_BUCKETS, force_refresh=True)

    def switch_team(self, team_id: str) -> None:
        if team_id == self.active_team_id:
            return
        logger.info(f"Switching active team from {self.active_team_id} to {team_id}")
        self.clear_all_data()
        self.active_team_id = team_id
        if self.selected_match is not None and not self.selected_match.involves(team_id):
            self.select_match(None)

    def clear_all_data(self) -> None:
        """Drop every bucket, fetched flag and error. Fetches still running are ignored."""
        self.tabs.reset()
        self.guard.forget_all()
        self._epoch += 1
        for bucket in self._bucket_versions:
            self._bucket_versions[bucket] += 1
        self.action_error = None
        logger.debug("Cleared all cached match data")

    def set_pending_filter(self, pending_filter: PendingFilter) -> None:
        pending_filter = PendingFilter(pending_filter)
        if pending_filter == self.pending_filter:
            return
        self.pending_filter = pending_filter
        self.tabs.reset_bucket(Bucket.PENDING)
        self._bucket_versions[Bucket.PENDING] += 1

    def _statuses_for(self, bucket: Bucket) -> List[MatchStatus]:
        if bucket == Bucket.PENDING:
            return PENDING_FILTER_STATUSES[self.pending_filter]
        return BUCKET_STATUSES[bucket]

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def accept(self, match_id: str, team_id: Optional[str] = None) -> Optional[Match]:
        team_id = self._acting_team(team_id)
        command = MatchCommand.build(
            "accept",
            match_id,
            [MatchStatus.REQUESTED],
            lambda: self.api.accept_match(match_id, team_id),
            effect=remove_from(Bucket.PENDING),
            types=[MatchType.RECEIVED],
        )
        return await self._execute(command, team_id)

    async def decline(self, match_id: str, team_id: Optional[str] = None) -> Optional[Match]:
        team_id = self._acting_team(team_id)
        command = MatchCommand.build(
            "decline",
            match_id,
            [MatchStatus.REQUESTED, MatchStatus.MATCHED],
            lambda: self.api.decline_match(match_id, team_id),
            effect=remove_from(Bucket.PENDING),
        )
        return await self._execute(command, team_id)

    async def send_match_request(
        self,
        match_id: str,
        proposed_date: str,
        proposed_time: str,
        proposed_pitch: str,
        notes: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> Optional[Match]:
        team_id = self._acting_team(team_id)
        request = self._build(
            SendMatchRequest,
            team_id=team_id,
            proposed_date=proposed_date,
            proposed_time=proposed_time,
            proposed_pitch=proposed_pitch,
            notes=notes,
        )
        command = MatchCommand.build(
            "send_request",
            match_id,
            [MatchStatus.MATCHED],
            lambda: self.api.send_match_request(match_id, request),
            effect=replace_in(Bucket.PENDING),
        )
        return await self._execute(command, team_id)

    async def update_match_request(
        self,
        match_id: str,
        proposed_date: str,
        proposed_time: str,
        proposed_pitch: str,
        notes: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> Optional[Match]:
        team_id = self._acting_team(team_id)
        request = self._build(
            SendMatchRequest,
            team_id=team_id,
            proposed_date=proposed_date,
            proposed_time=proposed_time,
            proposed_pitch=proposed_pitch,
            notes=notes,
        )
        command = MatchCommand.build(
            "update_request",
            match_id,
            [MatchStatus.REQUESTED],
            lambda: self.api.update_match_request(match_id, request),
            effect=replace_in(Bucket.PENDING),
            types=[MatchType.SENT],
        )
        return await self._execute(command, team_id)

    async def confirm_match(
        self,
        match_id: str,
        date: str,
        time: str,
        stadium_name: str,
        map_url: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> Optional[Match]:
        team_id = self._acting_team(team_id)
        request = self._build(
            ConfirmMatchRequest,
            team_id=team_id,
            date=date,
            time=time,
            stadium_name=stadium_name,
            map_url=map_url,
        )
        # Confirmed matches show up in upcoming on its next fetch
        command = MatchCommand.build(
            "confirm",
            match_id,
            [MatchStatus.ACCEPTED],
            lambda: self.api.confirm_match(match_id, request),
            effect=no_effect,
        )
        return await self._execute(command, team_id)

    async def finish_match(
        self,
        match_id: str,
        score_a: int,
        score_b: int,
        notes: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> Optional[Match]:
        team_id = self._acting_team(team_id)
        request = self._build(
            FinishMatchRequest,
            team_id=team_id,
            score={"team_a": score_a, "team_b": score_b},
            notes=notes,
        )
        command = MatchCommand.build(
            "finish",
            match_id,
            [MatchStatus.CONFIRMED],
            lambda: self.api.finish_match(match_id, request),
            effect=remove_from(Bucket.UPCOMING),
        )
        return await self._execute(command, team_id)

    async def cancel_match(
        self, match_id: str, reason: str, team_id: Optional[str] = None
    ) -> Optional[Match]:
        """Removes the match from pending and upcoming right away; restores it if the call fails."""
        team_id = self._acting_team(team_id)
        request = self._build(CancelMatchRequest, team_id=team_id, reason=reason)
        command = MatchCommand.build(
            "cancel",
            match_id,
            NON_TERMINAL_STATUSES,
            lambda: self.api.cancel_match(match_id, request),
            effect=remove_from(Bucket.PENDING, Bucket.UPCOMING),
            optimistic=True,
        )
        return await self._execute(command, team_id)

    async def rematch(
        self,
        match_id: str,
        proposed_date: str,
        proposed_time: str,
        proposed_pitch: str,
        notes: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> Optional[Match]:
        team_id = self._acting_team(team_id)
        request = self._build(
            RematchRequest,
            team_id=team_id,
            proposed_date=proposed_date,
            proposed_time=proposed_time,
            proposed_pitch=proposed_pitch,
            notes=notes,
        )
        command = MatchCommand.build(
            "rematch",
            match_id,
            TERMINAL_STATUSES,
            lambda: self.api.rematch(match_id, request),
            effect=append_to(Bucket.PENDING),
        )
        return await self._execute(command, team_id)

    async def _execute(self, command: MatchCommand, team_id: str) -> Optional[Match]:
        command.check(self.find_match(command.match_id))

        epoch = self._epoch
        versions = dict(self._bucket_versions)
        self.action_error = None
        if command.optimistic:
            command.apply(self.tabs, None)

        logger.info(f"Team {team_id} runs {command.action} on match {command.match_id}")
        try:
            record = await command.call()
        except Exception as e:
            if command.optimistic:
                # Buckets reset while the call ran hold a different query's items
                reset = [b for b in ALL_BUCKETS if versions[b] != self._bucket_versions[b]]
                command.revert(self.tabs, skip=reset)
                logger.warning(f"Restored match {command.match_id} after failed {command.action}")
            self.action_error = error_message(e, ACTION_ERROR_MESSAGES[command.action])
            logger.error(f"Error running {command.action} on match {command.match_id}: {e}")
            raise

        result = transform_match(record, team_id) if record is not None else None
        if epoch != self._epoch:
            logger.info(f"Cache was cleared during {command.action}; not applying its result")
            return result

        if not command.optimistic:
            command.apply(self.tabs, result)
        if result is not None and self.selected_match is not None:
            if self.selected_match.id == result.id:
                self.select_match(result)
        return result

    def _acting_team(self, team_id: Optional[str]) -> str:
        team_id = team_id or self.active_team_id
        if not team_id:
            raise CapkeoError("No active team selected", status_code=400)
        self.switch_team(team_id)
        return team_id

    @staticmethod
    def _build(model, **fields):
        try:
            return model(**fields)
        except ValidationError as e:
            raise ValidationException.from_validation_error(e)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_match(self, match: Optional[Match]) -> None:
        self.selected_match = match
        self.storage.update(selected_match=match)

    # ------------------------------------------------------------------
    # Selectors
    # ------------------------------------------------------------------

    def items(self, bucket: Bucket) -> List[Match]:
        return list(self.tabs[bucket].items)

    def pagination(self, bucket: Bucket) -> Pagination:
        return self.tabs[bucket].pagination()

    def has_more(self, bucket: Bucket) -> bool:
        return self.tabs[bucket].has_more

    def is_loading(self, bucket: Bucket) -> bool:
        state = self.tabs[bucket]
        return state.is_loading or state.is_loading_more

    def error(self, bucket: Bucket) -> Optional[str]:
        return self.tabs[bucket].error

    def find_match(self, match_id: str) -> Optional[Match]:
        found = self.tabs.find(match_id)
        if found is None:
            return None
        return found[1]

    def ui_bucket(self, match: Match, now: Optional[datetime] = None) -> UIBucket:
        return resolve_ui_bucket(
            match.status,
            match.scheduled_date,
            match.scheduled_time,
            now or self.clock(),
            self.match_duration,
            self.match_timezone,
        )

    def stage(self, match: Match, now: Optional[datetime] = None) -> Optional[Stage]:
        """Time-derived stage; only CONFIRMED matches have one."""
        if match.status != MatchStatus.CONFIRMED:
            return None
        return resolve_stage(
            match.scheduled_date,
            match.scheduled_time,
            now or self.clock(),
            self.match_duration,
            self.match_timezone,
        )

    def upcoming_by_stage(self, now: Optional[datetime] = None) -> Dict[Stage, List[Match]]:
        now = now or self.clock()
        grouped: Dict[Stage, List[Match]] = {stage: [] for stage in Stage}
        for match in self.tabs[Bucket.UPCOMING].items:
            stage = self.stage(match, now)
            if stage is not None:
                grouped[stage].append(match)
        return grouped

    def pending_by_type(self) -> Dict[MatchType, List[Match]]:
        grouped: Dict[MatchType, List[Match]] = {match_type: [] for match_type in MatchType}
        for match in self.tabs[Bucket.PENDING].items:
            if match.status in NEGOTIATION_STATUSES and match.type is not None:
                grouped[match.type].append(match)
        return grouped
