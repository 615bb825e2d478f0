import json

import httpx
import pytest

from capkeo.client.exceptions import APIConnectionError, APIRequestError, MatchNotFoundError
from capkeo.client.utils.api_client import APIClient
from capkeo.client.utils.constants import ACTION_ERROR_MESSAGES, FETCH_ERROR_MESSAGES
from capkeo.client.utils.match_api import MatchAPI
from capkeo.shared.constants import Bucket, MatchStatus
from capkeo.shared.models import CancelMatchRequest

BASE_URL = "http://capkeo.test/api/v1"


def make_client(handler, **kwargs) -> APIClient:
    kwargs.setdefault("token", "secret")
    kwargs.setdefault("retry_attempts", 0)
    kwargs.setdefault("retry_delay", 0)
    return APIClient(base_url=BASE_URL, transport=httpx.MockTransport(handler), **kwargs)


def match_json(match_id="m1", status="MATCHED"):
    return {"id": match_id, "status": status, "teamAId": "team-a", "teamBId": "team-b"}


async def test_get_matches_sends_filters_and_unwraps_the_envelope():
    seen = {}

    def handler(request: httpx.Request):
        seen["params"] = dict(request.url.params)
        seen["auth"] = request.headers.get("Authorization")
        seen["path"] = request.url.path
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {
                    "matches": [match_json()],
                    "pagination": {"page": 1, "limit": 20, "total": 1, "totalPages": 1},
                },
            },
        )

    api = MatchAPI(make_client(handler))
    page = await api.get_matches(
        [MatchStatus.FINISHED, MatchStatus.CANCELLED], "team-a", page=1, limit=20
    )

    assert seen["path"] == "/api/v1/matches"
    assert seen["params"] == {
        "statuses": "FINISHED,CANCELLED",
        "teamId": "team-a",
        "page": "1",
        "limit": "20",
    }
    assert seen["auth"] == "Bearer secret"
    assert page.matches[0].id == "m1"
    assert page.pagination.total_pages == 1


async def test_server_message_is_preferred():
    def handler(request):
        return httpx.Response(
            409,
            json={"success": False, "error": {"code": "INVALID_TRANSITION", "message": "Sai trạng thái"}},
        )

    with pytest.raises(APIRequestError) as exc_info:
        await make_client(handler).post("/matches/m1/accept", {"teamId": "team-a"})

    assert exc_info.value.message == "Sai trạng thái"
    assert exc_info.value.code == "INVALID_TRANSITION"
    assert exc_info.value.status_code == 409


async def test_fallback_message_when_the_server_gives_none():
    def handler(request):
        return httpx.Response(500, text="oops")

    with pytest.raises(APIRequestError) as exc_info:
        await make_client(handler).get(
            "/matches", error_message=FETCH_ERROR_MESSAGES[Bucket.HISTORY]
        )

    assert exc_info.value.message == FETCH_ERROR_MESSAGES[Bucket.HISTORY]


async def test_success_false_with_status_200_is_an_error():
    def handler(request):
        return httpx.Response(200, json={"success": False, "message": "Không hợp lệ"})

    with pytest.raises(APIRequestError) as exc_info:
        await make_client(handler).get("/matches")

    assert exc_info.value.message == "Không hợp lệ"


async def test_connection_errors_are_retried_for_reads_only():
    attempts = []

    def handler(request):
        attempts.append(request.method)
        if len(attempts) < 3:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, json={"success": True, "data": {"ok": True}})

    client = make_client(handler, retry_attempts=2)
    assert await client.get("/healthz") == {"ok": True}
    assert attempts == ["GET", "GET", "GET"]

    attempts.clear()
    with pytest.raises(APIConnectionError):
        await client.post("/matches/m1/accept", {"teamId": "team-a"})
    assert attempts == ["POST"]


async def test_not_found_becomes_match_not_found():
    def handler(request):
        return httpx.Response(404, json={"success": False, "error": {"message": "Match 'm1' was not found."}})

    api = MatchAPI(make_client(handler))
    with pytest.raises(MatchNotFoundError) as exc_info:
        await api.accept_match("m1", "team-a")

    assert exc_info.value.code == "MATCH_NOT_FOUND"


async def test_action_body_uses_camel_case_and_null_data_is_allowed():
    bodies = []

    def handler(request):
        bodies.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"success": True, "data": None})

    api = MatchAPI(make_client(handler))
    result = await api.cancel_match("m1", CancelMatchRequest(team_id="team-a", reason="Mưa"))

    assert result is None
    assert bodies == [("POST", "/api/v1/matches/m1/cancel", {"teamId": "team-a", "reason": "Mưa"})]


async def test_action_fallback_message():
    def handler(request):
        return httpx.Response(502)

    api = MatchAPI(make_client(handler))
    with pytest.raises(APIRequestError) as exc_info:
        await api.decline_match("m1", "team-a")

    assert exc_info.value.message == ACTION_ERROR_MESSAGES["decline"]
