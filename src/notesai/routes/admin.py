import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..billing import PLANS
from ..database import get_db
from ..errors import ApiError
from ..models import User
from ..schemas import PlanChange, UserEnvelope, UserList
from ..security import require_admin

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/users", response_model=UserList)
def list_users(_: User = Depends(require_admin), db: Session = Depends(get_db)):
    return {"users": db.scalars(select(User).order_by(User.id)).all()}


@router.put("/users/{user_id}/plan", response_model=UserEnvelope)
def change_plan(
    user_id: int,
    body: PlanChange,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if body.plan not in PLANS:
        raise ApiError(
            400, f"Plan must be one of: {', '.join(PLANS)}", "INVALID_PLAN"
        )
    user = db.get(User, user_id)
    if user is None:
        raise ApiError(404, "User not found", "USER_NOT_FOUND")
    user.plan = body.plan
    db.commit()
    db.refresh(user)
    logger.info("admin.plan_changed", user_id=user.id, plan=user.plan, by=admin.id)
    return {"user": user}
