from datetime import datetime, timedelta, timezone
from typing import Annotated

import bcrypt
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from weighin.config import Settings
from weighin.database import JsonStore, get_store
from weighin.models import Database, UserRecord

SESSION_COOKIE = "access_token"

# OAuth2 scheme for token extraction
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(
        plain_password.encode('utf-8'),
        hashed_password.encode('utf-8')
    )


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt()
    ).decode('utf-8')


def create_access_token(data: dict, settings: Settings, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def resolve_user_id(token: str | None, settings: Settings) -> str | None:
    """Return the user id carried by a session token, or None if it is missing or invalid."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    user_id = payload.get("sub")
    return str(user_id) if user_id else None


def authenticate_user(db: Database, username: str, password: str) -> UserRecord | None:
    """Authenticate a member by username and password."""
    user = db.find_user_by_username(username)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_token_from_cookie_or_header(request: Request, token: str | None = Depends(oauth2_scheme)) -> str | None:
    """Extract token from cookie or Authorization header."""
    cookie_token = request.cookies.get(SESSION_COOKIE)
    if cookie_token:
        # Remove "Bearer " prefix if present
        if cookie_token.startswith("Bearer "):
            return cookie_token[7:]
        return cookie_token
    return token


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_cookie_or_header)],
    settings: Annotated[Settings, Depends(get_settings_from_app)],
    store: Annotated[JsonStore, Depends(get_store)],
) -> UserRecord | None:
    """Get the current member if authenticated, otherwise return None."""
    user_id = resolve_user_id(token, settings)
    if user_id is None:
        return None
    db = await store.read()
    return db.find_user(user_id)


async def get_current_user(
    user: Annotated[UserRecord | None, Depends(get_current_user_optional)],
) -> UserRecord:
    """Get the current authenticated member from the session token."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
