"""Plan catalog, quota checks and monthly usage metering."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .errors import ApiError
from .models import Category, Note, UsageRecord, User

logger = structlog.get_logger(__name__)

AI_REQUESTS = "ai_requests"
EXPORT = "export"


@dataclass(frozen=True)
class Plan:
    id: str
    label: str
    max_notes: int | None
    max_categories: int | None
    ai_requests_per_month: int | None
    ai_groups: tuple[str, ...]
    features: tuple[str, ...] = field(default_factory=tuple)


PLANS: dict[str, Plan] = {
    "free": Plan(
        id="free",
        label="Free",
        max_notes=50,
        max_categories=5,
        ai_requests_per_month=20,
        ai_groups=("writing", "organize", "custom"),
    ),
    "pro": Plan(
        id="pro",
        label="Pro",
        max_notes=None,
        max_categories=None,
        ai_requests_per_month=None,
        ai_groups=("writing", "code", "organize", "custom"),
        features=(EXPORT,),
    ),
    "team": Plan(
        id="team",
        label="Team",
        max_notes=None,
        max_categories=None,
        ai_requests_per_month=None,
        ai_groups=("writing", "code", "organize", "custom"),
        features=(EXPORT, "shared_workspaces", "admin_controls", "api_access"),
    ),
}


def plan_for(user: User) -> Plan:
    return PLANS.get(user.plan or "free", PLANS["free"])


def current_period(now: datetime | None = None) -> str:
    now = now or datetime.now(tz=UTC)
    return now.strftime("%Y-%m")


def count_notes(db: Session, user: User) -> int:
    return db.scalar(select(func.count(Note.id)).where(Note.user_id == user.id)) or 0


def count_categories(db: Session, user: User) -> int:
    return db.scalar(select(func.count(Category.id)).where(Category.user_id == user.id)) or 0


def usage_for(db: Session, user: User, feature: str, period: str | None = None) -> int:
    record = db.scalar(
        select(UsageRecord).where(
            UsageRecord.user_id == user.id,
            UsageRecord.feature == feature,
            UsageRecord.period == (period or current_period()),
        )
    )
    return record.count if record else 0


def _limit_reached(what: str, plan: Plan, limit: int) -> ApiError:
    return ApiError(
        403,
        f"The {plan.label} plan allows up to {limit} {what}. Upgrade to add more.",
        "PLAN_LIMIT_REACHED",
        details={"plan": plan.id, "limit": limit},
    )


def ensure_note_quota(db: Session, user: User) -> None:
    plan = plan_for(user)
    if plan.max_notes is not None and count_notes(db, user) >= plan.max_notes:
        raise _limit_reached("notes", plan, plan.max_notes)


def ensure_category_quota(db: Session, user: User) -> None:
    plan = plan_for(user)
    if plan.max_categories is not None and count_categories(db, user) >= plan.max_categories:
        raise _limit_reached("categories", plan, plan.max_categories)


def ensure_feature(user: User, feature: str) -> None:
    plan = plan_for(user)
    if feature not in plan.features:
        raise ApiError(
            403,
            f"'{feature}' is not available on the {plan.label} plan",
            "PLAN_FEATURE_UNAVAILABLE",
            details={"plan": plan.id, "feature": feature},
        )


def ensure_ai_access(db: Session, user: User, group: str) -> None:
    plan = plan_for(user)
    if group not in plan.ai_groups:
        raise ApiError(
            403,
            f"{group.capitalize()} assistant actions are not available on the {plan.label} plan",
            "PLAN_FEATURE_UNAVAILABLE",
            details={"plan": plan.id, "group": group},
        )
    limit = plan.ai_requests_per_month
    if limit is not None and usage_for(db, user, AI_REQUESTS) >= limit:
        raise _limit_reached("AI requests per month", plan, limit)


def record_usage(db: Session, user: User, feature: str, amount: int = 1) -> int:
    """Add ``amount`` to this month's counter for ``feature``; caller commits."""
    period = current_period()
    record = db.scalar(
        select(UsageRecord).where(
            UsageRecord.user_id == user.id,
            UsageRecord.feature == feature,
            UsageRecord.period == period,
        )
    )
    if record is None:
        record = UsageRecord(user_id=user.id, feature=feature, period=period, count=0)
        db.add(record)
    record.count += amount
    logger.debug("billing.usage_recorded", user_id=user.id, feature=feature, count=record.count)
    return record.count


def plan_payload(plan: Plan) -> dict:
    return {
        "id": plan.id,
        "label": plan.label,
        "max_notes": plan.max_notes,
        "max_categories": plan.max_categories,
        "ai_requests_per_month": plan.ai_requests_per_month,
        "ai_groups": list(plan.ai_groups),
        "features": list(plan.features),
    }
