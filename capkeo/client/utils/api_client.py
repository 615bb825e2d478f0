import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from ...config import get_settings
from ..exceptions import APIConnectionError, APIRequestError
from .constants import GENERIC_ERROR_MESSAGE

logger = logging.getLogger("capkeo")


class APIClient:
    """
    Thin async wrapper around the remote API.

    Every response uses the `{success, data, error: {code, message}}` envelope; the
    helpers return `data` and turn anything else into an exception.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.transport = transport
        self.retry_attempts = (
            retry_attempts if retry_attempts is not None else settings.retry_attempts
        )
        self.retry_delay = retry_delay if retry_delay is not None else settings.retry_delay
        token = token if token is not None else settings.api_token
        self.headers = {"Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=self.timeout)

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> Any:
        # Only reads are retried; a retried POST could apply an action twice
        attempts = self.retry_attempts + 1
        for attempt in range(1, attempts + 1):
            try:
                return await self._send("GET", endpoint, params=params, error_message=error_message)
            except APIConnectionError:
                if attempt >= attempts:
                    raise
                logger.warning(
                    f"GET {endpoint} failed to connect (attempt {attempt}/{attempts}), "
                    f"retrying in {self.retry_delay}s"
                )
                await asyncio.sleep(self.retry_delay)

    async def post(
        self,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> Any:
        return await self._send("POST", endpoint, json=data, error_message=error_message)

    async def put(
        self,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> Any:
        return await self._send("PUT", endpoint, json=data, error_message=error_message)

    async def _send(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> Any:
        fallback = error_message or GENERIC_ERROR_MESSAGE
        async with self._client() as client:
            try:
                response = await client.request(
                    method,
                    f"{self.base_url}{endpoint}",
                    headers=self.headers,
                    params=params,
                    json=json,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise self._status_error(e.response, endpoint, fallback)
            except httpx.RequestError as e:
                logger.error(f"{method} {endpoint} could not reach the API: {e}")
                raise APIConnectionError()

        try:
            payload = response.json()
        except ValueError:
            raise APIRequestError(fallback, status_code=response.status_code, code="INVALID_RESPONSE")
        return self._unwrap(payload, response.status_code, fallback)

    @staticmethod
    def _unwrap(payload: Any, status_code: int, fallback: str) -> Any:
        if not isinstance(payload, dict) or "success" not in payload:
            return payload
        if not payload.get("success"):
            error = payload.get("error") or {}
            raise APIRequestError(
                error.get("message") or payload.get("message") or fallback,
                status_code=status_code,
                code=error.get("code"),
                details={"details": error.get("details", [])},
            )
        return payload.get("data")

    @staticmethod
    def _status_error(response: httpx.Response, endpoint: str, fallback: str) -> APIRequestError:
        message, code = None, None
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict):
                message = error.get("message")
                code = error.get("code")
            message = message or payload.get("message") or payload.get("detail")
        if not isinstance(message, str) or not message:
            message = fallback
        logger.warning(f"{endpoint} answered {response.status_code}: {message}")
        return APIRequestError(message, status_code=response.status_code, code=code)
