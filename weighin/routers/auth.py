import logging
from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status, Response
from fastapi.security import OAuth2PasswordRequestForm

from weighin.auth import (
    SESSION_COOKIE,
    authenticate_user,
    create_access_token,
    get_current_user,
    get_settings_from_app,
)
from weighin.config import Settings
from weighin.database import JsonStore, get_store
from weighin.models import UserRecord
from weighin.schemas import UserResponse, Token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=Token)
async def login(
    response: Response,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    store: Annotated[JsonStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings_from_app)],
):
    """Login and get access token."""
    db = await store.read()
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        logger.warning("Failed login for %r", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(
        data={"sub": user.id},
        settings=settings,
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
    )

    # Set cookie for web UI
    response.set_cookie(
        key=SESSION_COOKIE,
        value=f"Bearer {access_token}",
        httponly=True,
        max_age=settings.access_token_expire_minutes * 60,
        samesite="lax",
        secure=not settings.debug,  # Secure cookies in production (HTTPS)
    )

    return Token(access_token=access_token)


@router.post("/logout")
async def logout(response: Response):
    """Logout and clear the access token cookie."""
    response.delete_cookie(key=SESSION_COOKIE)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[UserRecord, Depends(get_current_user)],
):
    """Get current member info."""
    return current_user
