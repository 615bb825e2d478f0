from typing import Any, Dict, Iterable, Optional

from ...shared.constants import MatchStatus
from ...shared.models import (
    CancelMatchRequest,
    ConfirmMatchRequest,
    FinishMatchRequest,
    MatchActionRequest,
    MatchPage,
    MatchRecord,
    RematchRequest,
    SendMatchRequest,
)
from ..exceptions import APIRequestError, MatchNotFoundError
from .api_client import APIClient
from .constants import ACTION_ERROR_MESSAGES, GENERIC_ERROR_MESSAGE, NO_DATA_MESSAGE


class MatchAPI:
    """Remote match API: listing plus one call per lifecycle transition."""

    def __init__(self, client: APIClient):
        self.client = client

    async def get_matches(
        self,
        statuses: Iterable[MatchStatus],
        team_id: str,
        page: int = 1,
        limit: int = 20,
        error_message: Optional[str] = None,
    ) -> MatchPage:
        params = {
            "statuses": ",".join(MatchStatus(s).value for s in statuses),
            "teamId": team_id,
            "page": page,
            "limit": limit,
        }
        data = await self.client.get("/matches", params, error_message=error_message)
        if data is None:
            raise APIRequestError(NO_DATA_MESSAGE, status_code=502, code="NO_DATA")
        return MatchPage.model_validate(data)

    async def get_match(self, match_id: str) -> MatchRecord:
        data = await self._call("GET", match_id, "", None, GENERIC_ERROR_MESSAGE)
        if data is None:
            raise MatchNotFoundError(match_id)
        return MatchRecord.model_validate(data)

    async def accept_match(self, match_id: str, team_id: str) -> Optional[MatchRecord]:
        body = MatchActionRequest(team_id=team_id)
        return await self._action("POST", match_id, "/accept", body, "accept")

    async def decline_match(self, match_id: str, team_id: str) -> Optional[MatchRecord]:
        body = MatchActionRequest(team_id=team_id)
        return await self._action("POST", match_id, "/decline", body, "decline")

    async def send_match_request(
        self, match_id: str, request: SendMatchRequest
    ) -> Optional[MatchRecord]:
        return await self._action("POST", match_id, "/request", request, "send_request")

    async def update_match_request(
        self, match_id: str, request: SendMatchRequest
    ) -> Optional[MatchRecord]:
        return await self._action("PUT", match_id, "/request", request, "update_request")

    async def confirm_match(
        self, match_id: str, request: ConfirmMatchRequest
    ) -> Optional[MatchRecord]:
        return await self._action("POST", match_id, "/confirm", request, "confirm")

    async def finish_match(
        self, match_id: str, request: FinishMatchRequest
    ) -> Optional[MatchRecord]:
        return await self._action("POST", match_id, "/finish", request, "finish")

    async def cancel_match(
        self, match_id: str, request: CancelMatchRequest
    ) -> Optional[MatchRecord]:
        return await self._action("POST", match_id, "/cancel", request, "cancel")

    async def rematch(self, match_id: str, request: RematchRequest) -> Optional[MatchRecord]:
        return await self._action("POST", match_id, "/rematch", request, "rematch")

    async def _action(
        self, method: str, match_id: str, suffix: str, body, action: str
    ) -> Optional[MatchRecord]:
        payload = body.model_dump(by_alias=True, exclude_none=True)
        data = await self._call(method, match_id, suffix, payload, ACTION_ERROR_MESSAGES[action])
        if data is None:
            return None
        return MatchRecord.model_validate(data)

    async def _call(
        self,
        method: str,
        match_id: str,
        suffix: str,
        payload: Optional[Dict[str, Any]],
        error_message: str,
    ) -> Any:
        endpoint = f"/matches/{match_id}{suffix}"
        try:
            if method == "GET":
                return await self.client.get(endpoint, error_message=error_message)
            if method == "PUT":
                return await self.client.put(endpoint, payload, error_message=error_message)
            return await self.client.post(endpoint, payload, error_message=error_message)
        except APIRequestError as e:
            if e.status_code == 404:
                raise MatchNotFoundError(match_id, message=e.message)
            raise
