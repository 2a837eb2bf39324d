from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..billing import (AI_REQUESTS, PLANS, count_categories, count_notes,
                       current_period, plan_for, plan_payload, usage_for)
from ..database import get_db
from ..models import User
from ..schemas import PlanList, UsageOut
from ..security import get_current_user

router = APIRouter(prefix="/api/billing", tags=["billing"])


@router.get("/plans", response_model=PlanList)
def list_plans():
    return {"plans": [plan_payload(p) for p in PLANS.values()]}


@router.get("/usage", response_model=UsageOut)
def get_usage(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    plan = plan_for(user)
    period = current_period()
    return {
        "plan": plan.id,
        "period": period,
        "limits": plan_payload(plan),
        "usage": {
            "notes": count_notes(db, user),
            "categories": count_categories(db, user),
            "ai_requests": usage_for(db, user, AI_REQUESTS, period),
        },
    }
