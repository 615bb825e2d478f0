from datetime import datetime
from typing import Optional, Tuple

from pydantic import AliasChoices, BaseModel, Field

from ..constants import MatchStatus, MatchType, TBD
from .base import WireModel
from .team import TeamSummary


class MatchLocation(WireModel):
    name: Optional[str] = None
    address: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    map_link: Optional[str] = None


class MatchScore(WireModel):
    team_a: int = Field(..., ge=0)
    team_b: int = Field(..., ge=0)
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None


class MatchRecord(WireModel):
    """A match exactly as the remote API returns it."""

    id: str
    team_a_id: Optional[str] = None
    team_b_id: Optional[str] = None
    team_a: Optional[TeamSummary] = None
    team_b: Optional[TeamSummary] = None
    status: MatchStatus
    date: Optional[str] = None
    time: Optional[str] = None
    location: Optional[MatchLocation] = None
    score: Optional[MatchScore] = None
    proposed_date: Optional[str] = None
    proposed_time: Optional[str] = None
    proposed_pitch: Optional[str] = None
    requested_by_team: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("requestedByTeam", "requestedBy", "requested_by_team"),
        serialization_alias="requestedByTeam",
    )
    accepted_by_team: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("acceptedByTeam", "acceptedBy", "accepted_by_team"),
        serialization_alias="acceptedByTeam",
    )
    requested_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None


class Match(BaseModel):
    """
    Match as the client presents it.

    `type` is the negotiation tag from the current team's point of view. The UI bucket
    is deliberately absent: it depends on the clock and is computed on read.
    """

    id: str
    team_a: TeamSummary
    team_b: TeamSummary
    score: Optional[Tuple[int, int]] = None
    scheduled_date: str = TBD
    scheduled_time: str = TBD
    location: str = TBD
    status: MatchStatus
    requested_by_team: Optional[str] = None
    accepted_by_team: Optional[str] = None
    type: Optional[MatchType] = None
    map_url: Optional[str] = None
    notes: Optional[str] = None

    def involves(self, team_id: str) -> bool:
        return team_id in (self.team_a.id, self.team_b.id)
