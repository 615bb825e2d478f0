from fastapi import Request

from .exceptions import AuthenticationError


async def require_api_token(request: Request):
    auth = request.headers.get("Authorization")
    if not auth or not auth.startswith("Bearer "):
        raise AuthenticationError("Missing bearer token")
    token = auth[7:]
    if token != request.app.state.settings.sandbox_api_token:
        raise AuthenticationError("Invalid bearer token")
