"""
Outbound action payloads.

Dates and times must already be ISO-8601 (`YYYY-MM-DD`, `HH:MM`); any other format is
rejected here rather than guessed at.
"""

import re
from datetime import date as date_type
from typing import Optional

from pydantic import Field, field_validator

from .base import WireModel
from .match import MatchScore

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_iso_date(v: str) -> str:
    if not _DATE_RE.match(v):
        raise ValueError(f"'{v}' is not an ISO date (YYYY-MM-DD)")
    try:
        date_type.fromisoformat(v)
    except ValueError:
        raise ValueError(f"'{v}' is not a valid calendar date")
    return v


def validate_time(v: str) -> str:
    if not _TIME_RE.match(v):
        raise ValueError(f"'{v}' is not a 24h time (HH:MM)")
    return v


class MatchActionRequest(WireModel):
    """Body for actions that only need to know who is acting."""

    team_id: str = Field(..., min_length=1)


class SendMatchRequest(MatchActionRequest):
    proposed_date: str
    proposed_time: str
    proposed_pitch: str = Field(..., min_length=1)
    notes: Optional[str] = None

    @field_validator("proposed_date")
    @classmethod
    def check_date(cls, v: str) -> str:
        return validate_iso_date(v)

    @field_validator("proposed_time")
    @classmethod
    def check_time(cls, v: str) -> str:
        return validate_time(v)


class ConfirmMatchRequest(MatchActionRequest):
    date: str
    time: str
    stadium_name: str = Field(..., min_length=1)
    map_url: Optional[str] = None

    @field_validator("date")
    @classmethod
    def check_date(cls, v: str) -> str:
        return validate_iso_date(v)

    @field_validator("time")
    @classmethod
    def check_time(cls, v: str) -> str:
        return validate_time(v)


class FinishMatchRequest(MatchActionRequest):
    score: MatchScore
    notes: Optional[str] = None


class CancelMatchRequest(MatchActionRequest):
    reason: str = Field(..., min_length=1)


class RematchRequest(SendMatchRequest):
    pass
