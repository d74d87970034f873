from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.errors import AuthError
from ..core.security import refresh_access_token
from ..crud.users import authenticate, setup_superadmin
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    SetupSuperadminRequest,
    TokenResponse,
    UserOut,
)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post(
    "/setup-superadmin",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create the first superadmin account",
)
def api_setup_superadmin(payload: SetupSuperadminRequest, db: Session = Depends(get_db)):
    return setup_superadmin(db, payload.model_dump(exclude_none=True))


@router.post("/login", response_model=LoginResponse, summary="Exchange credentials for JWTs")
def api_login(payload: LoginRequest, db: Session = Depends(get_db)):
    user, pair = authenticate(db, payload.email, payload.password)
    return LoginResponse(**pair.model_dump(), user=UserOut.model_validate(user))


@router.post("/refresh", response_model=TokenResponse, summary="Refresh access token")
async def api_refresh(payload: RefreshRequest):
    try:
        pair = refresh_access_token(payload.refresh_token)
    except ValueError as exc:
        raise AuthError(str(exc)) from exc
    return TokenResponse(**pair.model_dump())


@router.get("/me", response_model=UserOut)
def api_me(user: User = Depends(get_current_user)):
    return user
