import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from ..shared.constants import ALL_BUCKETS, Bucket
from ..shared.models import Match
from .exceptions import ScheduleUnavailableError, error_message
from .utils.constants import FETCH_ERROR_MESSAGES, PARTIAL_SCHEDULE_NOTICE

if TYPE_CHECKING:
    from .store.match_store import MatchStore

logger = logging.getLogger("capkeo")


@dataclass
class ScheduleSnapshot:
    """Result of loading several buckets at once. `notice` is set when some of them failed."""

    matches: Dict[Bucket, List[Match]] = field(default_factory=dict)
    failed: Dict[Bucket, str] = field(default_factory=dict)
    notice: Optional[str] = None

    @property
    def is_partial(self) -> bool:
        return bool(self.failed)


async def load_schedule(
    store: "MatchStore",
    team_id: str,
    buckets: Iterable[Bucket] = ALL_BUCKETS,
    force_refresh: bool = False,
) -> ScheduleSnapshot:
    """
    Fetch the first page of each bucket concurrently.

    Buckets that load are kept even if others fail; the failures are reported in the
    snapshot's notice. Raises ScheduleUnavailableError when nothing could be loaded.
    """
    buckets = [Bucket(b) for b in buckets]
    results = await asyncio.gather(
        *(store.fetch_bucket(b, team_id, 1, force_refresh) for b in buckets),
        return_exceptions=True,
    )

    snapshot = ScheduleSnapshot()
    for bucket, result in zip(buckets, results):
        if isinstance(result, Exception):
            snapshot.failed[bucket] = error_message(result, FETCH_ERROR_MESSAGES[bucket])
        elif isinstance(result, BaseException):
            raise result
        else:
            snapshot.matches[bucket] = result

    if snapshot.failed and not snapshot.matches:
        logger.error(f"Schedule load failed for team {team_id}: {snapshot.failed}")
        raise ScheduleUnavailableError({b.value: msg for b, msg in snapshot.failed.items()})

    if snapshot.failed:
        failed_names = ", ".join(b.value for b in snapshot.failed)
        snapshot.notice = PARTIAL_SCHEDULE_NOTICE.format(buckets=failed_names)
        logger.warning(f"Partial schedule for team {team_id}, failed: {failed_names}")

    return snapshot
