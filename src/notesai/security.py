import secrets
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import get_settings
from .database import get_db
from .errors import ApiError
from .models import AuthSession, User

logger = structlog.get_logger(__name__)

MIN_SECRET_LENGTH = 8

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def _pwd_ctx() -> CryptContext:
    settings = get_settings()
    return CryptContext(
        schemes=["argon2"],
        deprecated="auto",
        argon2__time_cost=settings.argon2_time_cost,
        argon2__memory_cost=settings.argon2_memory_cost,
        argon2__parallelism=settings.argon2_parallelism,
    )


def hash_password(password: str) -> str:
    return _pwd_ctx().hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return _pwd_ctx().verify(password, hashed)


def _secret() -> str:
    secret = get_settings().jwt_secret
    if len(secret) < MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET must be set and at least {MIN_SECRET_LENGTH} characters long"
        )
    return secret


def create_access_token(
    sub: str,
    ttl_seconds: int | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    settings = get_settings()
    now = datetime.now(tz=UTC)
    ttl = ttl_seconds if ttl_seconds is not None else settings.access_token_ttl_seconds
    claims: dict[str, Any] = {
        "sub": sub,
        "iat": now,
        "exp": now + timedelta(seconds=ttl),
    }
    if extra_claims:
        claims.update(extra_claims)

    return jwt.encode(claims, _secret(), algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    settings = get_settings()
    return jwt.decode(token, _secret(), algorithms=[settings.jwt_algorithm])


def open_session(db: Session, user: User, request: Request | None = None) -> str:
    """Persist a new login session for ``user`` and return its bearer token."""
    settings = get_settings()
    sid = secrets.token_urlsafe(32)
    now = datetime.now(tz=UTC)
    db.add(
        AuthSession(
            id=sid,
            user_id=user.id,
            created_at=now,
            expires_at=now + timedelta(seconds=settings.access_token_ttl_seconds),
            ip_address=request.client.host if request and request.client else None,
            user_agent=request.headers.get("user-agent") if request else None,
        )
    )
    return create_access_token(sub=str(user.id), extra_claims={"sid": sid})


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back.
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def resolve_token(db: Session, token: str) -> tuple[User, AuthSession] | None:
    try:
        payload = decode_access_token(token)
    except JWTError:
        return None
    sid = payload.get("sid")
    sub = payload.get("sub")
    if not sid or not sub:
        return None
    session = db.get(AuthSession, sid)
    if session is None or str(session.user_id) != str(sub):
        return None
    if _aware(session.expires_at) <= datetime.now(tz=UTC):
        db.delete(session)
        db.commit()
        return None
    return session.user, session


def get_current_session(
    db: Session = Depends(get_db),
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AuthSession:
    if creds is None or creds.scheme.lower() != "bearer":
        raise ApiError(401, "Unauthorized - Please log in", "UNAUTHORIZED")
    resolved = resolve_token(db, creds.credentials)
    if resolved is None:
        raise ApiError(401, "Invalid or expired token", "UNAUTHORIZED")
    return resolved[1]


def get_current_user(session: AuthSession = Depends(get_current_session)) -> User:
    return session.user


def get_optional_user(
    db: Session = Depends(get_db),
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> User | None:
    if creds is None:
        return None
    resolved = resolve_token(db, creds.credentials)
    if resolved is None:
        logger.info("auth.optional_token_rejected")
        return None
    return resolved[0]


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != "admin":
        raise ApiError(403, "Admin only", "FORBIDDEN")
    return user
