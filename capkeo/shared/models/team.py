from typing import Optional

from .base import WireModel


class TeamSummary(WireModel):
    id: str
    name: str
    logo: Optional[str] = None
    level: Optional[str] = None
