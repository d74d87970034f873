"""Staff credentials: bcrypt password hashes and HS256 access/refresh tokens.

Tokens carry the user id as ``sub`` and the user's role. An access token is
what API requests present; a refresh token can only be traded for a new pair.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from .config import settings

ALGORITHM = "HS256"
AUDIENCE = "paintshop-clients"
ISSUER = "paintshop"
ACCESS = "access"
REFRESH = "refresh"


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenPayload(BaseModel):
    sub: str
    typ: str
    iat: datetime
    exp: datetime
    aud: str
    iss: str
    role: str | None = None

    @property
    def user_id(self) -> int:
        return int(self.sub)


def _lifetime(token_type: str) -> timedelta:
    if token_type == REFRESH:
        return timedelta(days=settings.JWT_REFRESH_TTL_DAYS)
    return timedelta(minutes=settings.JWT_ACCESS_TTL_MIN)


def _sign(user_id: str, token_type: str, role: str | None) -> str:
    issued = datetime.now(tz=timezone.utc)
    claims: dict[str, Any] = {
        "sub": user_id,
        "typ": token_type,
        "iat": int(issued.timestamp()),
        "exp": int((issued + _lifetime(token_type)).timestamp()),
        "aud": AUDIENCE,
        "iss": ISSUER,
    }
    if role:
        claims["role"] = role
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=ALGORITHM)


def issue_token_pair(user_id: int | str, role: str | None = None) -> TokenPair:
    subject = str(user_id)
    return TokenPair(
        access_token=_sign(subject, ACCESS, role),
        refresh_token=_sign(subject, REFRESH, role),
        expires_in=int(_lifetime(ACCESS).total_seconds()),
    )


def decode_token(token: str, *, verify_type: str | None = None) -> TokenPayload:
    """Verify signature, audience, issuer and expiry.

    Raises ``ValueError`` for anything that is not a usable token of the
    requested type; callers map that to an authentication error.
    """

    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM], audience=AUDIENCE, issuer=ISSUER)
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    try:
        payload = TokenPayload.model_validate(claims)
    except ValidationError as exc:
        raise ValueError("Invalid token payload") from exc
    if verify_type and payload.typ != verify_type:
        raise ValueError(f"Expected a {verify_type} token")
    if not payload.sub.isdigit():
        raise ValueError("Invalid token subject")
    return payload


def refresh_access_token(refresh_token: str) -> TokenPair:
    payload = decode_token(refresh_token, verify_type=REFRESH)
    return issue_token_pair(payload.sub, role=payload.role)


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str | None) -> bool:
    if not plain or not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False
