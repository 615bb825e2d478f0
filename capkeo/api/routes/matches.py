from datetime import datetime, timezone
from typing import Iterable, List, Optional

from fastapi import APIRouter, Body, Depends, Query

from ...shared.constants import MatchStatus, TERMINAL_STATUSES
from ...shared.models import (
    CancelMatchRequest,
    ConfirmMatchRequest,
    FinishMatchRequest,
    MatchActionRequest,
    MatchLocation,
    MatchRecord,
    MatchScore,
    RematchRequest,
    SendMatchRequest,
)
from ...shared.models.base import WireModel
from ..auth import require_api_token
from ..db import MatchRepository, get_db
from ..exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    SandboxException,
    create_success_response,
)

router = APIRouter(
    prefix="/matches", tags=["matches"], dependencies=[Depends(require_api_token)]
)


class CreateMatchRequest(WireModel):
    team_a_id: str
    team_b_id: str


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _dump(record: MatchRecord) -> dict:
    return record.model_dump(by_alias=True, mode="json")


def _parse_statuses(raw: Optional[str]) -> List[MatchStatus]:
    if not raw:
        return []
    try:
        return [MatchStatus(s.strip()) for s in raw.split(",") if s.strip()]
    except ValueError:
        raise SandboxException(f"Unknown status in '{raw}'", status_code=400, code="INVALID_STATUS")


def _require_status(record: MatchRecord, action: str, allowed: Iterable[MatchStatus]):
    if record.status not in set(allowed):
        raise InvalidTransitionError(action, record.status.value)


def _require_member(record: MatchRecord, team_id: str):
    if team_id not in (record.team_a_id, record.team_b_id):
        raise AuthorizationError(f"Team '{team_id}' is not part of match '{record.id}'")


@router.get("")
async def list_matches(
    statuses: Optional[str] = Query(None),
    team_id: Optional[str] = Query(None, alias="teamId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: MatchRepository = Depends(get_db),
):
    matches, total = db.find(_parse_statuses(statuses), team_id, page, limit)
    return create_success_response(
        {
            "matches": [_dump(m) for m in matches],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": (total + limit - 1) // limit,
            },
        }
    )


@router.post("")
async def create_match(
    body: CreateMatchRequest = Body(...), db: MatchRepository = Depends(get_db)
):
    return create_success_response(_dump(db.create_match(body.team_a_id, body.team_b_id)))


@router.get("/{match_id}")
async def get_match(match_id: str, db: MatchRepository = Depends(get_db)):
    return create_success_response(_dump(db.get(match_id)))


@router.post("/{match_id}/request")
async def send_match_request(
    match_id: str, body: SendMatchRequest = Body(...), db: MatchRepository = Depends(get_db)
):
    record = db.get(match_id)
    _require_member(record, body.team_id)
    _require_status(record, "request", [MatchStatus.MATCHED])
    record = db.update(
        match_id,
        status=MatchStatus.REQUESTED,
        requested_by_team=body.team_id,
        requested_at=_now(),
        proposed_date=body.proposed_date,
        proposed_time=body.proposed_time,
        proposed_pitch=body.proposed_pitch,
        notes=body.notes,
    )
    return create_success_response(_dump(record))


@router.put("/{match_id}/request")
async def update_match_request(
    match_id: str, body: SendMatchRequest = Body(...), db: MatchRepository = Depends(get_db)
):
    record = db.get(match_id)
    _require_member(record, body.team_id)
    _require_status(record, "update the request of", [MatchStatus.REQUESTED])
    if record.requested_by_team != body.team_id:
        raise AuthorizationError("Only the requesting team can update its request")
    record = db.update(
        match_id,
        requested_at=_now(),
        proposed_date=body.proposed_date,
        proposed_time=body.proposed_time,
        proposed_pitch=body.proposed_pitch,
        notes=body.notes if body.notes is not None else record.notes,
    )
    return create_success_response(_dump(record))


@router.post("/{match_id}/accept")
async def accept_match(
    match_id: str, body: MatchActionRequest = Body(...), db: MatchRepository = Depends(get_db)
):
    record = db.get(match_id)
    _require_member(record, body.team_id)
    _require_status(record, "accept", [MatchStatus.REQUESTED])
    if record.requested_by_team == body.team_id:
        raise AuthorizationError("A team cannot accept its own request")
    record = db.update(
        match_id,
        status=MatchStatus.ACCEPTED,
        accepted_by_team=body.team_id,
        accepted_at=_now(),
    )
    return create_success_response(_dump(record))


@router.post("/{match_id}/decline")
async def decline_match(
    match_id: str, body: MatchActionRequest = Body(...), db: MatchRepository = Depends(get_db)
):
    record = db.get(match_id)
    _require_member(record, body.team_id)
    _require_status(record, "decline", [MatchStatus.REQUESTED, MatchStatus.MATCHED])
    if record.status == MatchStatus.REQUESTED:
        # Declining the terms sends the pair back to negotiating from scratch
        record = db.update(
            match_id,
            status=MatchStatus.MATCHED,
            requested_by_team=None,
            requested_at=None,
        )
    else:
        record = db.update(match_id, status=MatchStatus.CANCELLED)
    return create_success_response(_dump(record))


@router.post("/{match_id}/confirm")
async def confirm_match(
    match_id: str, body: ConfirmMatchRequest = Body(...), db: MatchRepository = Depends(get_db)
):
    record = db.get(match_id)
    _require_member(record, body.team_id)
    _require_status(record, "confirm", [MatchStatus.ACCEPTED])
    record = db.update(
        match_id,
        status=MatchStatus.CONFIRMED,
        date=body.date,
        time=body.time,
        location=MatchLocation(name=body.stadium_name, map_link=body.map_url),
    )
    return create_success_response(_dump(record))


@router.post("/{match_id}/finish")
async def finish_match(
    match_id: str, body: FinishMatchRequest = Body(...), db: MatchRepository = Depends(get_db)
):
    record = db.get(match_id)
    _require_member(record, body.team_id)
    _require_status(record, "finish", [MatchStatus.CONFIRMED])
    score = MatchScore(
        team_a=body.score.team_a,
        team_b=body.score.team_b,
        updated_by=body.team_id,
        updated_at=_now(),
    )
    record = db.update(
        match_id,
        status=MatchStatus.FINISHED,
        score=score,
        notes=body.notes if body.notes is not None else record.notes,
    )
    return create_success_response(_dump(record))


@router.post("/{match_id}/cancel")
async def cancel_match(
    match_id: str, body: CancelMatchRequest = Body(...), db: MatchRepository = Depends(get_db)
):
    record = db.get(match_id)
    _require_member(record, body.team_id)
    _require_status(
        record, "cancel", [s for s in MatchStatus if s not in TERMINAL_STATUSES]
    )
    record = db.update(match_id, status=MatchStatus.CANCELLED, cancel_reason=body.reason)
    return create_success_response(_dump(record))


@router.post("/{match_id}/rematch")
async def rematch(
    match_id: str, body: RematchRequest = Body(...), db: MatchRepository = Depends(get_db)
):
    record = db.get(match_id)
    _require_member(record, body.team_id)
    _require_status(record, "rematch", TERMINAL_STATUSES)
    new_record = db.create_match(
        record.team_a_id,
        record.team_b_id,
        proposed_date=body.proposed_date,
        proposed_time=body.proposed_time,
        proposed_pitch=body.proposed_pitch,
        notes=body.notes,
    )
    return create_success_response(_dump(new_record))
