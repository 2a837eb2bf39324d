from dataclasses import asdict

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..assistant import ACTIONS, MAX_CONTEXT_CHARS, respond
from ..billing import AI_REQUESTS, ensure_ai_access, record_usage
from ..database import get_db
from ..errors import ApiError
from ..lookups import owned_note
from ..models import User
from ..schemas import AssistantActionList, AssistantRequest, AssistantResult
from ..security import get_current_user

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/assistant", tags=["assistant"])


@router.get("/actions", response_model=AssistantActionList)
def list_actions():
    return {"actions": [asdict(a) for a in ACTIONS.values()]}


@router.post("", response_model=AssistantResult)
def run_action(
    body: AssistantRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    action = ACTIONS.get(body.action)
    if action is None:
        raise ApiError(400, f"Unknown assistant action '{body.action}'", "INVALID_ACTION")
    if action.id == "custom" and not (body.custom_prompt or "").strip():
        raise ApiError(400, "A prompt is required for custom actions", "MISSING_PROMPT")

    text = (body.text or "").strip()
    if not text and body.note_id is not None:
        text = owned_note(db, user, body.note_id).content[:MAX_CONTEXT_CHARS].strip()
    if not text:
        raise ApiError(400, "Select some text or pick a note with content", "MISSING_TEXT")

    ensure_ai_access(db, user, action.group)
    result = respond(action.id, text, body.custom_prompt)
    used = record_usage(db, user, AI_REQUESTS)
    db.commit()
    logger.info("assistant.completed", user_id=user.id, action=action.id, used=used)
    return {"action": action.id, "result": result}
