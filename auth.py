"""
Bearer-token extraction for API requests.

Session management lives in Supabase; the token is only forwarded to the
store so row-level security decides what the caller may read and write.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException


@dataclass(frozen=True)
class AuthUser:
    token: str


async def get_current_user(authorization: Optional[str] = Header(default=None)) -> AuthUser:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Invalid Authorization header")

    return AuthUser(token=token.strip())
