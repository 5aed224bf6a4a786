"""Authentication: password hashing, JWT access tokens and blacklist-based revocation."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import uuid4

import bcrypt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import Unauthenticated
from config import get_settings
from db.database import get_db
from models.token_blacklist import TokenBlacklist
from models.user import User

settings = get_settings()
security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes and newer releases refuse longer input.
_BCRYPT_MAX_BYTES = 72

# Verified against when the email is unknown, so both failure paths cost one bcrypt check.
_DUMMY_HASH = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt()).decode("utf-8")


def _password_bytes(plain_password: str) -> bytes:
    return (plain_password or "").encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain_password: str) -> str:
    if not plain_password:
        raise ValueError("Password must not be empty.")
    return bcrypt.hashpw(_password_bytes(plain_password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: Optional[str]) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


@dataclass
class ClientInfo:
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    method: Optional[str] = None
    url: Optional[str] = None


@dataclass
class IssuedToken:
    token: str
    jti: str
    expires_at: datetime


@dataclass
class RequestContext:
    """
    Everything a handler knows about the caller.

    Built once per request by ``get_request_context`` and passed into the
    handler explicitly; there is no ambient "current user".
    """

    user: User
    token_jti: str
    token_expires_at: datetime
    client: ClientInfo

    @property
    def user_id(self) -> int:
        return self.user.id


def get_client_info(request: Request) -> ClientInfo:
    """Extract client IP, User-Agent, method and URL from the request."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        ip_address = forwarded_for.split(",")[0].strip()
    else:
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            ip_address = real_ip.strip()
        elif request.client:
            ip_address = request.client.host
        else:
            ip_address = "unknown"

    return ClientInfo(
        ip_address=ip_address[:45],
        user_agent=request.headers.get("User-Agent", "unknown")[:500],
        method=request.method,
        url=str(request.url)[:500],
    )


def create_access_token(
    user_id: int, expires_delta: Optional[timedelta] = None
) -> IssuedToken:
    """Create a signed JWT access token for ``user_id``."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    jti = str(uuid4())
    to_encode = {
        "sub": str(user_id),
        "exp": expire,
        "iat": now,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "jti": jti,
        "type": "access",
    }
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return IssuedToken(token=encoded_jwt, jti=jti, expires_at=expire)


def decode_token(token: str) -> Optional[dict]:
    """
    Verify signature, expiry, issuer and audience.

    Returns:
        Token payload dict if valid, None otherwise
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except JWTError:
        return None
    if payload.get("type") != "access":
        return None
    return payload


def verify_token(token: str) -> Optional[int]:
    """Return the user id carried by a valid token, or None."""
    payload = decode_token(token)
    if payload is None:
        return None
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None


async def is_token_blacklisted(db: AsyncSession, jti: str) -> bool:
    result = await db.execute(select(TokenBlacklist.id).where(TokenBlacklist.jti == jti))
    return result.scalar_one_or_none() is not None


class TokenService:
    """Issues and revokes access tokens."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def issue(self, user: User) -> IssuedToken:
        return create_access_token(user.id)

    async def revoke(self, context: RequestContext, reason: str = "logout") -> None:
        """Blacklist the token the request was authenticated with."""
        if await is_token_blacklisted(self.db, context.token_jti):
            return
        self.db.add(
            TokenBlacklist(
                jti=context.token_jti,
                user_id=context.user_id,
                expires_at=context.token_expires_at,
                reason=reason,
            )
        )
        await self.db.flush()


class AuthGate:
    """Credential check in front of token issuance."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def authenticate(
        self, email: str, password: str
    ) -> Tuple[Optional[User], Optional[IssuedToken]]:
        """
        Returns ``(user, token)`` on success and ``(None, None)`` when the
        credentials do not match. Unknown email and wrong password are
        indistinguishable to the caller.
        """
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()

        if user is None:
            verify_password(password, _DUMMY_HASH)
            return None, None
        if not verify_password(password, user.password):
            return None, None

        return user, TokenService(self.db).issue(user)


async def get_request_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> RequestContext:
    """Dependency: authenticate the bearer token and build the request context."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()

    payload = decode_token(credentials.credentials.strip())
    if payload is None:
        raise Unauthenticated()

    jti = payload.get("jti")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise Unauthenticated()
    if not jti:
        raise Unauthenticated()

    if await is_token_blacklisted(db, jti):
        logger.warning("Attempted use of revoked token: jti=%s user_id=%s", jti, user_id)
        raise Unauthenticated()

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise Unauthenticated()

    return RequestContext(
        user=user,
        token_jti=jti,
        token_expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        client=get_client_info(request),
    )
