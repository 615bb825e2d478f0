"""
In-memory storage for the sandbox API.
"""

import itertools
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from fastapi import Request

from ..shared.constants import MatchStatus
from ..shared.models import MatchRecord, TeamSummary
from .exceptions import MatchNotFoundError


class MatchRepository:
    def __init__(self):
        self._matches: Dict[str, MatchRecord] = {}
        self._teams: Dict[str, TeamSummary] = {}
        self._ids = itertools.count(1)

    def add_team(self, team: TeamSummary) -> TeamSummary:
        self._teams[team.id] = team
        return team

    def get_team(self, team_id: str) -> Optional[TeamSummary]:
        return self._teams.get(team_id)

    def create_match(self, team_a_id: str, team_b_id: str, **fields) -> MatchRecord:
        record = MatchRecord(
            id=f"match_{next(self._ids)}",
            team_a_id=team_a_id,
            team_b_id=team_b_id,
            team_a=self.get_team(team_a_id),
            team_b=self.get_team(team_b_id),
            status=fields.pop("status", MatchStatus.MATCHED),
            created_at=datetime.now(timezone.utc),
            **fields,
        )
        self._matches[record.id] = record
        return record

    def get(self, match_id: str) -> MatchRecord:
        record = self._matches.get(match_id)
        if record is None:
            raise MatchNotFoundError(match_id)
        return record

    def update(self, match_id: str, **changes) -> MatchRecord:
        record = self.get(match_id).model_copy(update=changes)
        self._matches[match_id] = record
        return record

    def find(
        self,
        statuses: Iterable[MatchStatus],
        team_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[MatchRecord], int]:
        """Newest first. Returns the requested page and the total number of matches."""
        statuses = set(statuses)
        matches = [
            m
            for m in reversed(list(self._matches.values()))
            if (not statuses or m.status in statuses)
            and (team_id is None or team_id in (m.team_a_id, m.team_b_id))
        ]
        start = (page - 1) * limit
        return matches[start:start + limit], len(matches)


def get_db(request: Request) -> MatchRepository:
    return request.app.state.repository
