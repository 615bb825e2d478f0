"""
Domain constants shared by the client and the sandbox API.
"""

from enum import Enum


class MatchStatus(str, Enum):
    MATCHED = "MATCHED"
    REQUESTED = "REQUESTED"
    ACCEPTED = "ACCEPTED"
    CONFIRMED = "CONFIRMED"
    FINISHED = "FINISHED"
    CANCELLED = "CANCELLED"


NEGOTIATION_STATUSES = frozenset(
    {MatchStatus.MATCHED, MatchStatus.REQUESTED, MatchStatus.ACCEPTED}
)
TERMINAL_STATUSES = frozenset({MatchStatus.FINISHED, MatchStatus.CANCELLED})


class Bucket(str, Enum):
    """Independently paginated cache projections."""

    PENDING = "pending"
    UPCOMING = "upcoming"
    HISTORY = "history"


ALL_BUCKETS = [Bucket.PENDING, Bucket.UPCOMING, Bucket.HISTORY]

# Server-side status filter used for each bucket's query
BUCKET_STATUSES = {
    Bucket.PENDING: [MatchStatus.MATCHED, MatchStatus.REQUESTED, MatchStatus.ACCEPTED],
    Bucket.UPCOMING: [MatchStatus.CONFIRMED],
    Bucket.HISTORY: [MatchStatus.FINISHED, MatchStatus.CANCELLED],
}


class UIBucket(str, Enum):
    PENDING = "pending"
    UPCOMING = "upcoming"
    LIVE = "live"
    FINISHED = "finished"


class Stage(str, Enum):
    """Time-derived refinement of a CONFIRMED match."""

    UPCOMING = "upcoming"
    LIVE = "live"
    FINISHED = "finished"


class MatchType(str, Enum):
    """Negotiation-phase tag: who holds the next action."""

    MATCHED = "matched"
    SENT = "sent"
    RECEIVED = "received"
    ACCEPTED = "accepted"


class PendingFilter(str, Enum):
    ALL = "all"
    MATCHED = "matched"
    REQUESTED = "requested"


PENDING_FILTER_STATUSES = {
    PendingFilter.ALL: BUCKET_STATUSES[Bucket.PENDING],
    PendingFilter.MATCHED: [MatchStatus.MATCHED],
    PendingFilter.REQUESTED: [MatchStatus.REQUESTED, MatchStatus.ACCEPTED],
}


class SwipeAction(str, Enum):
    LIKE = "LIKE"
    PASS = "PASS"


class SwipeHistoryFilter(str, Enum):
    ALL = "all"
    LIKE = "LIKE"
    PASS = "PASS"


# Placeholder the UI checks for when a schedule field is unknown
TBD = "TBD"
