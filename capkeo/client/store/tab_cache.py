"""
Per-bucket ordered lists with pagination metadata and "already fetched" flags.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Generic, Iterable, List, Optional, Tuple, TypeVar, Union

from ...shared.models import Pagination

T = TypeVar("T")
BucketKey = Union[str, Enum]


def bucket_key(bucket: BucketKey) -> str:
    """Enum members hash by name, so the cache is keyed by the plain value."""
    if isinstance(bucket, Enum):
        return str(bucket.value)
    return str(bucket)


@dataclass
class RemovedEntry(Generic[T]):
    bucket: str
    index: int
    item: T


@dataclass
class BucketState(Generic[T]):
    limit: int = 20
    items: List[T] = field(default_factory=list)
    page: int = 1
    total: int = 0
    total_pages: int = 0
    has_more: bool = True
    is_loading: bool = False
    is_loading_more: bool = False
    error: Optional[str] = None

    def set_loading(self, page: int, value: bool) -> None:
        if page == 1:
            self.is_loading = value
        else:
            self.is_loading_more = value

    def apply_page(self, items: List[T], pagination: Pagination, replace: bool) -> None:
        if replace:
            self.items = list(items)
        else:
            self.items = self.items + list(items)
        self.page = pagination.page
        self.limit = pagination.limit
        self.total = pagination.total
        self.total_pages = pagination.total_pages
        self.has_more = pagination.page < pagination.total_pages

    def pagination(self) -> Pagination:
        return Pagination(
            page=self.page,
            limit=self.limit,
            total=self.total,
            total_pages=self.total_pages,
        )

    def index_of(self, item_id: str) -> int:
        for index, item in enumerate(self.items):
            if getattr(item, "id", None) == item_id:
                return index
        return -1


class TabCache(Generic[T]):
    """Bucket states plus a `fetched[team_id][bucket]` map."""

    def __init__(self, buckets: Iterable[BucketKey], limit: int = 20):
        self.bucket_names = [bucket_key(b) for b in buckets]
        self.limit = limit
        self._states: Dict[str, BucketState[T]] = {}
        self._fetched: Dict[str, Dict[str, bool]] = {}
        self.reset()

    def __getitem__(self, bucket: BucketKey) -> BucketState[T]:
        return self._states[bucket_key(bucket)]

    def reset(self) -> None:
        self._states = {name: BucketState(limit=self.limit) for name in self.bucket_names}
        self._fetched = {}

    def reset_bucket(self, bucket: BucketKey) -> None:
        name = bucket_key(bucket)
        self._states[name] = BucketState(limit=self.limit)
        for flags in self._fetched.values():
            flags.pop(name, None)

    def is_fetched(self, team_id: str, bucket: BucketKey) -> bool:
        return self._fetched.get(team_id, {}).get(bucket_key(bucket), False)

    def mark_fetched(self, team_id: str, bucket: BucketKey) -> None:
        self._fetched.setdefault(team_id, {})[bucket_key(bucket)] = True

    def find(self, item_id: str) -> Optional[Tuple[str, T]]:
        for name in self.bucket_names:
            state = self._states[name]
            index = state.index_of(item_id)
            if index >= 0:
                return name, state.items[index]
        return None

    def remove(self, item_id: str, buckets: Iterable[BucketKey]) -> List[RemovedEntry[T]]:
        removed: List[RemovedEntry[T]] = []
        for bucket in buckets:
            name = bucket_key(bucket)
            state = self._states[name]
            index = state.index_of(item_id)
            if index < 0:
                continue
            removed.append(RemovedEntry(bucket=name, index=index, item=state.items[index]))
            state.items = state.items[:index] + state.items[index + 1:]
        return removed

    def restore(self, removed: List[RemovedEntry[T]]) -> None:
        """Put removed items back where they were, unless a fetch already brought them back."""
        for entry in sorted(removed, key=lambda e: e.index):
            state = self._states.get(entry.bucket)
            if state is None:
                continue
            if state.index_of(getattr(entry.item, "id", None)) >= 0:
                continue
            items = list(state.items)
            items.insert(min(entry.index, len(items)), entry.item)
            state.items = items

    def replace(self, bucket: BucketKey, item: T) -> bool:
        state = self[bucket]
        index = state.index_of(getattr(item, "id", None))
        if index < 0:
            return False
        items = list(state.items)
        items[index] = item
        state.items = items
        return True

    def append(self, bucket: BucketKey, item: T) -> None:
        state = self[bucket]
        if state.index_of(getattr(item, "id", None)) >= 0:
            self.replace(bucket, item)
            return
        state.items = state.items + [item]
