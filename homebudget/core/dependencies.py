from dataclasses import dataclass
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from redis import asyncio as aioredis

from homebudget.core.database import get_db, get_redis
from homebudget.core.security import decode_token
from homebudget.modules.users.models import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login")


@dataclass
class RequestContext:
    """Authenticated identity for a single request, passed into every handler"""
    user: User
    token: str
    token_payload: dict

    @property
    def user_id(self) -> str:
        return self.user.id


def blacklist_key(token: str) -> str:
    return f"blacklist:{token}"


async def get_request_context(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis)
) -> RequestContext:
    """Resolve the bearer token into a request context"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(token)
    user_id = payload.get("sub")
    token_type = payload.get("type")

    if user_id is None or token_type != "access":
        raise credentials_exception

    # Check if token is blacklisted (logged out)
    is_blacklisted = await redis.get(blacklist_key(token))
    if is_blacklisted:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked"
        )

    result = await db.execute(select(User).where(User.id == str(user_id)))
    user = result.scalar_one_or_none()

    if user is None:
        raise credentials_exception

    return RequestContext(user=user, token=token, token_payload=payload)
