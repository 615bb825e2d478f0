import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from capkeo.client.store import ClientStateStorage, MatchStore
from capkeo.config import Settings
from capkeo.shared.constants import MatchStatus
from capkeo.shared.models import MatchPage, MatchRecord, Pagination, TeamSummary

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

TEAM_A = "team-a"
TEAM_B = "team-b"
TEAM_C = "team-c"


def make_record(match_id: str, status: MatchStatus, **fields) -> MatchRecord:
    fields.setdefault("team_a_id", TEAM_A)
    fields.setdefault("team_b_id", TEAM_B)
    fields.setdefault("team_a", TeamSummary(id=fields["team_a_id"], name="Team A"))
    fields.setdefault("team_b", TeamSummary(id=fields["team_b_id"], name="Team B"))
    return MatchRecord(id=match_id, status=status, **fields)


class FakeMatchAPI:
    """
    Stands in for MatchAPI. Listing filters `records` like the server would; actions
    return whatever is queued in `results` or raise `action_error`.
    """

    def __init__(self, records: Optional[List[MatchRecord]] = None):
        self.records: List[MatchRecord] = list(records or [])
        self.get_calls: List[dict] = []
        self.action_calls: List[tuple] = []
        self.results: Dict[str, Optional[MatchRecord]] = {}
        self.fetch_error: Optional[Exception] = None
        self.action_error: Optional[Exception] = None
        self.fetch_gate: Optional[asyncio.Event] = None
        self.action_gate: Optional[asyncio.Event] = None

    async def get_matches(self, statuses, team_id, page=1, limit=20, error_message=None):
        self.get_calls.append(
            {"statuses": list(statuses), "team_id": team_id, "page": page, "limit": limit}
        )
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        if self.fetch_error is not None:
            raise self.fetch_error

        statuses = set(statuses)
        matching = [
            r
            for r in self.records
            if r.status in statuses and team_id in (r.team_a_id, r.team_b_id)
        ]
        start = (page - 1) * limit
        total_pages = (len(matching) + limit - 1) // limit
        return MatchPage(
            matches=matching[start:start + limit],
            pagination=Pagination(
                page=page, limit=limit, total=len(matching), total_pages=total_pages
            ),
        )

    async def _action(self, name, match_id, payload):
        self.action_calls.append((name, match_id, payload))
        if self.action_gate is not None:
            await self.action_gate.wait()
        if self.action_error is not None:
            raise self.action_error
        return self.results.get(name)

    async def accept_match(self, match_id, team_id):
        return await self._action("accept", match_id, team_id)

    async def decline_match(self, match_id, team_id):
        return await self._action("decline", match_id, team_id)

    async def send_match_request(self, match_id, request):
        return await self._action("send_request", match_id, request)

    async def update_match_request(self, match_id, request):
        return await self._action("update_request", match_id, request)

    async def confirm_match(self, match_id, request):
        return await self._action("confirm", match_id, request)

    async def finish_match(self, match_id, request):
        return await self._action("finish", match_id, request)

    async def cancel_match(self, match_id, request):
        return await self._action("cancel", match_id, request)

    async def rematch(self, match_id, request):
        return await self._action("rematch", match_id, request)


@pytest.fixture
def settings():
    return Settings(_env_file=None, page_limit=2, state_file=None, api_token="test-token")


@pytest.fixture
def fake_api():
    return FakeMatchAPI()


@pytest.fixture
def store(fake_api, settings):
    match_store = MatchStore(
        fake_api, settings=settings, clock=lambda: FIXED_NOW, storage=ClientStateStorage()
    )
    match_store.switch_team(TEAM_A)
    return match_store
