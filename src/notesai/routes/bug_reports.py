import structlog
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_db
from ..errors import ApiError
from ..models import BugReport, User, utcnow
from ..ratelimit import BugReportLimiter
from ..schemas import BugReportCreate, BugReportList, BugReportOut, BugReportPatch
from ..security import get_optional_user, require_admin

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/db/bug-reports", tags=["bug-reports"])

SEVERITIES = ("low", "medium", "high", "critical")
STATUSES = ("open", "in_progress", "resolved", "closed")

limiter = BugReportLimiter(get_settings())


def get_limiter() -> BugReportLimiter:
    return limiter


def client_ip(request: Request) -> str:
    if get_settings().trusted_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


@router.post("", response_model=BugReportOut, status_code=201)
def create_bug_report(
    body: BugReportCreate,
    request: Request,
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
    rate_limiter: BugReportLimiter = Depends(get_limiter),
):
    if _blank(body.title):
        raise ApiError(
            400, "Title is required and must be a non-empty string", "MISSING_TITLE"
        )
    if _blank(body.description):
        raise ApiError(
            400,
            "Description is required and must be a non-empty string",
            "MISSING_DESCRIPTION",
        )
    if body.severity not in SEVERITIES:
        raise ApiError(
            400, f"Severity must be one of: {', '.join(SEVERITIES)}", "INVALID_SEVERITY"
        )

    ip_address = client_ip(request)
    decision, message = rate_limiter.check(user.id if user else None, ip_address)
    if not decision.allowed:
        raise ApiError(
            429,
            message,
            "RATE_LIMIT_EXCEEDED",
            details={"retryAfter": decision.retry_after},
            headers={"Retry-After": str(decision.retry_after)},
        )

    now = utcnow()
    report = BugReport(
        title=body.title.strip(),
        description=body.description.strip(),
        severity=body.severity,
        page_url=body.page_url or None,
        browser_info=body.browser_info or None,
        user_id=user.id if user else None,
        user_email=(body.user_email or "").strip() or None,
        status="open",
        ip_address=ip_address,
        created_at=now,
        updated_at=now,
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    logger.info(
        "bug_reports.created",
        report_id=report.id,
        severity=report.severity,
        user_id=report.user_id,
    )
    return report


@router.get("", response_model=BugReportList)
def list_bug_reports(
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
    status: str | None = None,
    severity: str | None = None,
    limit: int = Query(20, ge=1),
    offset: int = Query(0, ge=0),
):
    if user is None:
        raise ApiError(401, "Authentication required", "AUTHENTICATION_REQUIRED")

    query = select(BugReport)
    if user.role != "admin":
        query = query.where(BugReport.user_id == user.id)
    if status in STATUSES:
        query = query.where(BugReport.status == status)
    if severity in SEVERITIES:
        query = query.where(BugReport.severity == severity)

    items = db.scalars(
        query.order_by(BugReport.created_at.desc(), BugReport.id.desc())
        .limit(min(limit, 100))
        .offset(offset)
    ).all()
    return {"bug_reports": items}


@router.patch("/{report_id}", response_model=BugReportOut)
def update_bug_report(
    report_id: int,
    body: BugReportPatch,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if body.status not in STATUSES:
        raise ApiError(
            400, f"Status must be one of: {', '.join(STATUSES)}", "INVALID_STATUS"
        )
    report = db.get(BugReport, report_id)
    if report is None:
        raise ApiError(404, "Bug report not found", "BUG_REPORT_NOT_FOUND")
    report.status = body.status
    report.updated_at = utcnow()
    db.commit()
    db.refresh(report)
    logger.info("bug_reports.status_changed", report_id=report.id, status=report.status, by=admin.id)
    return report
