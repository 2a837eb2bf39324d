from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from structlog.contextvars import bound_contextvars

from .config import get_settings
from .database import Base, engine, ping
from .errors import ApiError, register_exception_handlers
from .log import setup_logging
from .routes import (admin, assistant, auth, billing, bug_reports, categories,
                     notes, tags, templates)

settings = get_settings()
setup_logging(settings.log_level, settings.log_format)
logger = structlog.get_logger(__name__)

app = FastAPI(title="NotesAI API", version="1.0", debug=settings.debug)

Base.metadata.create_all(bind=engine)

register_exception_handlers(app)


@app.middleware("http")
async def attach_correlation_id(request: Request, call_next):
    cid = request.headers.get("x-correlation-id") or str(uuid4())
    request.state.correlation_id = cid
    with bound_contextvars(correlation_id=cid, method=request.method, path=request.url.path):
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = cid
        if response.status_code >= 500:
            logger.error("request.failed", status=response.status_code)
        return response


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/health/ready")
def health_ready():
    if not ping():
        raise ApiError(503, "Database unavailable", "DEPENDENCY_UNAVAILABLE")
    return {"status": "ready"}


for module in (auth, notes, categories, tags, bug_reports, templates, assistant, billing, admin):
    app.include_router(module.router)
