from __future__ import annotations

from fastapi import Depends, Header, Request
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session

from ..core.errors import AuthError
from ..core.security import ACCESS, decode_token
from ..db.session import get_db
from ..middlewares import principal_ctx_var
from ..models.user import User


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer access token to an active user."""

    scheme, credentials = get_authorization_scheme_param(authorization or "")
    if scheme.lower() != "bearer" or not credentials:
        raise AuthError("Authorization required")
    try:
        payload = decode_token(credentials, verify_type=ACCESS)
    except ValueError as exc:
        raise AuthError(str(exc)) from exc

    user = db.get(User, payload.user_id)
    if user is None or not user.is_active:
        raise AuthError("User not found or inactive")
    _set_principal(request, f"user:{user.id}")
    request.state.token_payload = payload
    return user
