import hmac
import uuid

import jwt
from fastapi import Header, HTTPException, Request

from .settings import settings


def decode_http_access_token(token: str) -> uuid.UUID:
    payload = jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.ALGORITHM],
    )

    user_id = payload.get("sub")
    if not user_id:
        raise jwt.InvalidTokenError("Token missing user ID")

    try:
        return uuid.UUID(user_id)
    except ValueError:
        raise jwt.InvalidTokenError("Invalid user ID format in token")


async def jwt_protect(request: Request) -> uuid.UUID:
    token = request.cookies.get("access_token")
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        return decode_http_access_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


async def scheduler_key_protect(
    x_scheduler_key: str | None = Header(default=None),
) -> None:
    expected = settings.SCHEDULER_API_KEY
    if not expected or not x_scheduler_key:
        raise HTTPException(status_code=403, detail="Scheduler credentials required")
    if not hmac.compare_digest(x_scheduler_key, expected):
        raise HTTPException(status_code=403, detail="Invalid scheduler credentials")
