from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import AuthError, ValidationFailed
from ..core.logging import log_extra
from ..core.security import TokenPair, hash_password, issue_token_pair, verify_password
from ..models.user import User

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> User | None:
    stmt = select(User).where(User.email == email.strip().lower())
    return db.execute(stmt).scalars().first()


def setup_superadmin(db: Session, payload: dict) -> User:
    """Create the first account. Refused once any superadmin exists."""

    if db.execute(select(User.id).where(User.role == "superadmin")).first() is not None:
        raise ValidationFailed("Superadmin already exists")
    if get_user_by_email(db, payload["email"]) is not None:
        raise ValidationFailed("User with this email already exists")

    user = User(
        name=payload["name"].strip(),
        email=payload["email"].strip().lower(),
        password_hash=hash_password(payload["password"]),
        role=payload.get("role") or "superadmin",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("auth.superadmin_created", extra=log_extra(user_id=user.id, role=user.role))
    return user


def authenticate(db: Session, email: str, password: str) -> tuple[User, TokenPair]:
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("auth.login_failed", extra=log_extra(email=email))
        raise AuthError("Invalid credentials")
    if not user.is_active:
        raise AuthError("Account is deactivated")
    return user, issue_token_pair(user.id, role=user.role)
