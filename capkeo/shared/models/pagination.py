from typing import List

from pydantic import Field

from .base import WireModel
from .match import MatchRecord


class Pagination(WireModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)
    total: int = Field(default=0, ge=0)
    total_pages: int = Field(default=0, ge=0)

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages


class MatchPage(WireModel):
    matches: List[MatchRecord] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
