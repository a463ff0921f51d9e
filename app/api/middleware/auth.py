"""JWT authentication helpers and FastAPI dependencies."""

import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt
import redis.asyncio as redis
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import get_redis, revoked_token_key
from app.config import settings
from app.database import get_session
from app.domain.exceptions import UnauthorizedException
from app.domain.models import Member

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(member_id: int) -> str:
    """Issue a signed access token for a member."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(member_id),
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + timedelta(minutes=settings.access_token_expire_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """Decode and verify a token. Raises 401 on any verification failure."""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedException("Access token has expired", "401-2")
    except jwt.InvalidTokenError:
        raise UnauthorizedException("Invalid access token", "401-1")


async def revoke_token(token: str, redis_client: redis.Redis) -> None:
    """Remember the token id until the token would have expired anyway."""
    payload = decode_access_token(token)
    remaining = int(payload["exp"] - datetime.now(timezone.utc).timestamp())
    if remaining > 0:
        await redis_client.set(revoked_token_key(payload["jti"]), "1", ex=remaining)
    logger.info("Revoked token for member %s", payload["sub"])


async def _resolve_member(
    credentials: HTTPAuthorizationCredentials | None,
    session: AsyncSession,
    redis_client: redis.Redis,
) -> Member | None:
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    if await redis_client.exists(revoked_token_key(payload["jti"])):
        raise UnauthorizedException("Access token has been revoked", "401-3")

    result = await session.execute(select(Member).where(Member.id == int(payload["sub"])))
    member = result.scalar_one_or_none()
    if member is None:
        raise UnauthorizedException("Member no longer exists", "401-1")
    return member


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
) -> Member:
    """Require an authenticated member."""
    member = await _resolve_member(credentials, session, redis_client)
    if member is None:
        raise UnauthorizedException("Authentication required", "401-1")
    return member


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
    redis_client: redis.Redis = Depends(get_redis),
) -> Member | None:
    """Resolve the member if a token is present; anonymous requests pass through."""
    return await _resolve_member(credentials, session, redis_client)


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    if credentials is None:
        raise UnauthorizedException("Authentication required", "401-1")
    return credentials.credentials
