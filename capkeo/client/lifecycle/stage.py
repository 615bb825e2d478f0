"""
Status mapping and stage resolution.

Everything here is pure: the caller passes `now`, so the same inputs always give the
same answer and nothing reads the system clock.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from ...shared.constants import MatchStatus, NEGOTIATION_STATUSES, Stage, TBD, UIBucket

DEFAULT_MATCH_DURATION = timedelta(hours=2)


def _is_missing(value: Optional[str]) -> bool:
    return value is None or not value.strip() or value.strip().upper() == TBD


def parse_kickoff(
    scheduled_date: Optional[str],
    scheduled_time: Optional[str],
    tz: timezone = timezone.utc,
) -> Optional[datetime]:
    """
    Combine a schedule date and time into an aware datetime.

    Dates containing `/` are read as DD/MM/YYYY; anything else must be ISO-compatible
    (a full ISO timestamp contributes only its date part). Strings without an offset
    are interpreted in `tz`. Returns None when either part is missing or unparsable.
    """
    if _is_missing(scheduled_date) or _is_missing(scheduled_time):
        return None

    date_part = scheduled_date.strip()
    if "/" in date_part:
        parts = date_part.split("/")
        if len(parts) != 3 or not all(p.strip().isdigit() for p in parts):
            return None
        day, month, year = (p.strip() for p in parts)
        date_part = f"{year.zfill(4)}-{month.zfill(2)}-{day.zfill(2)}"
    else:
        date_part = date_part[:10]

    time_part = scheduled_time.strip()
    if time_part.endswith("Z"):
        time_part = time_part[:-1] + "+00:00"
    hour, sep, rest = time_part.partition(":")
    if sep and len(hour) == 1 and hour.isdigit():
        time_part = f"0{hour}:{rest}"

    try:
        kickoff = datetime.fromisoformat(f"{date_part}T{time_part}")
    except ValueError:
        return None

    if kickoff.tzinfo is None:
        kickoff = kickoff.replace(tzinfo=tz)
    return kickoff


def resolve_stage(
    scheduled_date: Optional[str],
    scheduled_time: Optional[str],
    now: datetime,
    duration: timedelta = DEFAULT_MATCH_DURATION,
    tz: timezone = timezone.utc,
) -> Stage:
    """Stage of a CONFIRMED match at `now`. Unknown kickoff is always UPCOMING."""
    kickoff = parse_kickoff(scheduled_date, scheduled_time, tz)
    if kickoff is None:
        return Stage.UPCOMING

    if now.tzinfo is None:
        now = now.replace(tzinfo=tz)

    if now < kickoff:
        return Stage.UPCOMING
    if now < kickoff + duration:
        return Stage.LIVE
    return Stage.FINISHED


def resolve_ui_bucket(
    status: MatchStatus,
    scheduled_date: Optional[str],
    scheduled_time: Optional[str],
    now: datetime,
    duration: timedelta = DEFAULT_MATCH_DURATION,
    tz: timezone = timezone.utc,
) -> UIBucket:
    status = MatchStatus(status)
    if status in NEGOTIATION_STATUSES:
        return UIBucket.PENDING
    if status == MatchStatus.CONFIRMED:
        stage = resolve_stage(scheduled_date, scheduled_time, now, duration, tz)
        return UIBucket(stage.value)
    return UIBucket.FINISHED
