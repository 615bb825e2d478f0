from typing import Optional

from ...shared.constants import MatchStatus, MatchType, TBD
from ...shared.models import Match, MatchRecord, TeamSummary


def derive_match_type(
    status: MatchStatus, requested_by_team: Optional[str], current_team_id: Optional[str]
) -> Optional[MatchType]:
    """Negotiation tag from `current_team_id`'s side; None once the match is confirmed."""
    status = MatchStatus(status)
    if status == MatchStatus.MATCHED:
        return MatchType.MATCHED
    if status == MatchStatus.REQUESTED:
        if requested_by_team is not None and requested_by_team == current_team_id:
            return MatchType.SENT
        return MatchType.RECEIVED
    if status == MatchStatus.ACCEPTED:
        return MatchType.ACCEPTED
    return None


def _first(*values: Optional[str]) -> str:
    for value in values:
        if value is not None and value.strip():
            return value
    return TBD


def _team(summary: Optional[TeamSummary], team_id: Optional[str]) -> TeamSummary:
    if summary is not None:
        return summary
    return TeamSummary(id=team_id or TBD, name=TBD)


def transform_match(record: MatchRecord, current_team_id: Optional[str]) -> Match:
    location = record.location
    score = None
    if record.score is not None:
        score = (record.score.team_a, record.score.team_b)

    return Match(
        id=record.id,
        team_a=_team(record.team_a, record.team_a_id),
        team_b=_team(record.team_b, record.team_b_id),
        score=score,
        scheduled_date=_first(record.date, record.proposed_date),
        scheduled_time=_first(record.time, record.proposed_time),
        location=_first(
            location.address if location else None,
            location.name if location else None,
            record.proposed_pitch,
        ),
        status=record.status,
        requested_by_team=record.requested_by_team,
        accepted_by_team=record.accepted_by_team,
        type=derive_match_type(record.status, record.requested_by_team, current_team_id),
        map_url=location.map_link if location else None,
        notes=record.notes,
    )
