from typing import Optional

from ...shared.constants import SwipeAction
from ...shared.models import ReceivedSwipePage, SwipeHistoryPage, SwipeStats
from ..exceptions import APIRequestError
from .api_client import APIClient
from .constants import (
    FETCH_ERROR_MESSAGES,
    NO_DATA_MESSAGE,
    SWIPE_STATS_ERROR_MESSAGE,
    UNDO_SWIPE_ERROR_MESSAGE,
    SwipeBucket,
)


def _require(data):
    if data is None:
        raise APIRequestError(NO_DATA_MESSAGE, status_code=502, code="NO_DATA")
    return data


class SwipeAPI:
    """Discovery swipes: who we liked or passed, who liked us, and the totals."""

    def __init__(self, client: APIClient):
        self.client = client

    async def get_swipe_history(
        self,
        team_id: str,
        page: int = 1,
        limit: int = 20,
        action: Optional[SwipeAction] = None,
    ) -> SwipeHistoryPage:
        params = {"page": page, "limit": limit}
        if action is not None:
            params["action"] = SwipeAction(action).value
        data = await self.client.get(
            f"/swipes/team/{team_id}",
            params,
            error_message=FETCH_ERROR_MESSAGES[SwipeBucket.HISTORY],
        )
        return SwipeHistoryPage.model_validate(_require(data))

    async def get_received_swipes(
        self, team_id: str, page: int = 1, limit: int = 20
    ) -> ReceivedSwipePage:
        data = await self.client.get(
            f"/swipes/team/{team_id}/received",
            {"page": page, "limit": limit},
            error_message=FETCH_ERROR_MESSAGES[SwipeBucket.RECEIVED],
        )
        return ReceivedSwipePage.model_validate(_require(data))

    async def get_swipe_stats(self, team_id: str) -> SwipeStats:
        data = await self.client.get(
            f"/swipes/team/{team_id}/stats", error_message=SWIPE_STATS_ERROR_MESSAGE
        )
        return SwipeStats.model_validate(_require(data))

    async def undo_swipe(self, swipe_id: str) -> None:
        await self.client.post(
            f"/swipes/{swipe_id}/undo", error_message=UNDO_SWIPE_ERROR_MESSAGE
        )
