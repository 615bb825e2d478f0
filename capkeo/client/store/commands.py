"""
Lifecycle actions as command objects.

A command knows which statuses (and, for negotiation steps, which side of the request)
it may run from, how to call the API, and what it does to the tab cache. It records
every item it removed so a failed optimistic action can put them back.
"""

from dataclasses import dataclass, field
from typing import Awaitable, Callable, FrozenSet, Iterable, List, Optional

from ...shared.constants import Bucket, MatchStatus, MatchType
from ...shared.models import Match, MatchRecord
from ..exceptions import InvalidTransitionError
from .tab_cache import RemovedEntry, TabCache, bucket_key

Effect = Callable[[TabCache, str, Optional[Match]], List[RemovedEntry]]


def remove_from(*buckets: Bucket) -> Effect:
    def effect(tabs: TabCache, match_id: str, result: Optional[Match]) -> List[RemovedEntry]:
        return tabs.remove(match_id, buckets)

    return effect


def replace_in(bucket: Bucket) -> Effect:
    def effect(tabs: TabCache, match_id: str, result: Optional[Match]) -> List[RemovedEntry]:
        if result is not None:
            tabs.replace(bucket, result)
        return []

    return effect


def append_to(bucket: Bucket) -> Effect:
    def effect(tabs: TabCache, match_id: str, result: Optional[Match]) -> List[RemovedEntry]:
        if result is not None:
            tabs.append(bucket, result)
        return []

    return effect


def no_effect(tabs: TabCache, match_id: str, result: Optional[Match]) -> List[RemovedEntry]:
    return []


@dataclass
class MatchCommand:
    action: str
    match_id: str
    allowed_statuses: FrozenSet[MatchStatus]
    call: Callable[[], Awaitable[Optional[MatchRecord]]]
    effect: Effect = no_effect
    optimistic: bool = False
    allowed_types: FrozenSet[MatchType] = frozenset()
    removed: List[RemovedEntry] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        action: str,
        match_id: str,
        allowed: Iterable[MatchStatus],
        call: Callable[[], Awaitable[Optional[MatchRecord]]],
        effect: Effect = no_effect,
        optimistic: bool = False,
        types: Iterable[MatchType] = (),
    ) -> "MatchCommand":
        return cls(
            action=action,
            match_id=match_id,
            allowed_statuses=frozenset(MatchStatus(s) for s in allowed),
            call=call,
            effect=effect,
            optimistic=optimistic,
            allowed_types=frozenset(MatchType(t) for t in types),
        )

    def check(self, current: Optional[Match]) -> None:
        """Reject locally when the cached copy is in a state the action cannot start from."""
        if current is None:
            return
        if current.status not in self.allowed_statuses:
            raise InvalidTransitionError(self.action, current.status.value, self.match_id)
        if self.allowed_types and current.type not in self.allowed_types:
            raise InvalidTransitionError(
                self.action,
                current.status.value,
                self.match_id,
                match_type=current.type.value if current.type else None,
            )

    def apply(self, tabs: TabCache, result: Optional[Match]) -> None:
        self.removed.extend(self.effect(tabs, self.match_id, result))

    def revert(self, tabs: TabCache, skip: Iterable[Bucket] = ()) -> None:
        """Put back what `apply` removed, except in buckets listed in `skip`."""
        skipped = {bucket_key(b) for b in skip}
        tabs.restore([entry for entry in self.removed if entry.bucket not in skipped])
        self.removed = []
