"""
Sender identity.

Password checking and account issuance live in the external identity
provider; this module only issues and verifies the JWT bearer tokens that
stand for a sender's stable user id.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

from jose import jwt, JWTError

from app.core.config import settings
from app.core.exceptions import AuthenticationError


@dataclass(frozen=True)
class SenderIdentity:
    user_id: str
    name: Optional[str] = None


class IdentityProvider(Protocol):
    """Resolves an opaque sender bearer token to a stable user id."""

    def verify(self, token: str) -> SenderIdentity:
        ...


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token.

    Args:
        data: Claims to embed; must contain "sub" (the sender's user id)
        expires_delta: Lifetime, defaults to JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify a token. Returns None when invalid or expired."""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


class JWTIdentityProvider:
    """IdentityProvider backed by HS256 tokens shared with the auth service."""

    def verify(self, token: str) -> SenderIdentity:
        payload = decode_token(token)
        if not payload:
            raise AuthenticationError("Invalid or expired token")

        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Invalid token payload")

        return SenderIdentity(user_id=str(user_id), name=payload.get("name"))


_identity_provider = JWTIdentityProvider()


def get_identity_provider() -> IdentityProvider:
    return _identity_provider
