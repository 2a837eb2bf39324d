import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_db
from ..errors import ApiError
from ..models import AuthSession, Category, User
from ..schemas import (AuthOut, LoginIn, ProfilePatch, SuccessOut, UserCreate,
                       UserEnvelope)
from ..security import (bearer_scheme, get_current_session, get_current_user,
                        hash_password, open_session, resolve_token,
                        verify_password)

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])

DEFAULT_CATEGORIES = (
    ("Personal", "#6366f1", "user"),
    ("Work", "#f59e0b", "briefcase"),
    ("Ideas", "#10b981", "lightbulb"),
)


@router.post("/register", response_model=AuthOut, status_code=201)
def register(payload: UserCreate, request: Request, db: Session = Depends(get_db)):
    email = payload.email.lower()
    exists = db.scalar(select(User).where(User.email == email))
    if exists:
        raise ApiError(409, "An account with this email already exists", "EMAIL_EXISTS")

    settings = get_settings()
    admins = {e.lower() for e in settings.admin_emails}
    user = User(
        email=email,
        name=payload.name.strip(),
        hashed_password=hash_password(payload.password),
        role="admin" if email in admins else "user",
    )
    db.add(user)
    db.flush()
    for name, color, icon in DEFAULT_CATEGORIES:
        db.add(Category(name=name, color=color, icon=icon, user_id=user.id))
    token = open_session(db, user, request)
    db.commit()
    db.refresh(user)
    logger.info("auth.registered", user_id=user.id)
    return {"token": token, "user": user}


@router.post("/login", response_model=AuthOut)
def login(payload: LoginIn, request: Request, db: Session = Depends(get_db)):
    user = db.scalar(select(User).where(User.email == payload.email.lower()))
    if not user or not verify_password(payload.password, user.hashed_password):
        logger.info("auth.login_failed")
        raise ApiError(401, "Incorrect email or password", "INVALID_CREDENTIALS")
    token = open_session(db, user, request)
    db.commit()
    logger.info("auth.logged_in", user_id=user.id)
    return {"token": token, "user": user}


@router.post("/logout", response_model=SuccessOut)
def logout(
    db: Session = Depends(get_db),
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
):
    if creds is not None:
        resolved = resolve_token(db, creds.credentials)
        if resolved is not None:
            user, session = resolved
            db.delete(session)
            db.commit()
            logger.info("auth.logged_out", user_id=user.id)
    return {"success": True}


@router.get("/me", response_model=UserEnvelope)
def me(user: User = Depends(get_current_user)):
    return {"user": user}


@router.patch("/me", response_model=UserEnvelope)
def update_me(
    body: ProfilePatch,
    session: AuthSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    user = session.user
    if body.name is not None:
        user.name = body.name.strip()
    if "avatar" in body.model_fields_set:
        user.avatar = body.avatar or None
    if body.new_password is not None:
        if not body.current_password or not verify_password(
            body.current_password, user.hashed_password
        ):
            raise ApiError(401, "Current password is incorrect", "INVALID_CREDENTIALS")
        user.hashed_password = hash_password(body.new_password)
        db.execute(
            delete(AuthSession).where(
                AuthSession.user_id == user.id, AuthSession.id != session.id
            )
        )
        logger.info("auth.password_changed", user_id=user.id)
    db.commit()
    db.refresh(user)
    return {"user": user}
