import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import ApiError
from ..lookups import DEFAULT_COLOR, find_tag, owned_tag
from ..models import Tag, User
from ..schemas import TagCreate, TagDeleted, TagEnvelope, TagList, TagOut, TagPatch
from ..security import get_current_user

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("", response_model=TagList)
def list_tags(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
):
    items = db.scalars(
        select(Tag)
        .where(Tag.user_id == user.id)
        .order_by(Tag.name)
        .limit(min(limit, 100))
        .offset(offset)
    ).all()
    return {"tags": items}


@router.post("", response_model=TagEnvelope, status_code=201)
def create_tag(
    body: TagCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    name = body.name.strip().lstrip("#").strip()
    if not name:
        raise ApiError(400, "Name is required", "MISSING_REQUIRED_FIELD")
    tag = find_tag(db, user, name)
    if tag:
        payload = TagEnvelope(tag=TagOut.model_validate(tag))
        return JSONResponse(payload.model_dump(mode="json", by_alias=True), status_code=200)
    tag = Tag(name=name, color=(body.color or "").strip() or DEFAULT_COLOR, user_id=user.id)
    db.add(tag)
    db.commit()
    db.refresh(tag)
    logger.info("tags.created", user_id=user.id, tag_id=tag.id)
    return {"tag": tag}


@router.patch("/{tag_id}", response_model=TagEnvelope)
def update_tag(
    tag_id: int,
    body: TagPatch,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tag = owned_tag(db, user, tag_id)
    if body.name is not None:
        name = body.name.strip().lstrip("#").strip()
        if not name:
            raise ApiError(400, "Name is required", "MISSING_REQUIRED_FIELD")
        clash = find_tag(db, user, name)
        if clash is not None and clash.id != tag.id:
            raise ApiError(409, "A tag with this name already exists", "TAG_EXISTS")
        tag.name = name
    if body.color:
        tag.color = body.color.strip()
    db.commit()
    db.refresh(tag)
    return {"tag": tag}


@router.delete("/{tag_id}", response_model=TagDeleted)
def delete_tag(
    tag_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tag = owned_tag(db, user, tag_id)
    deleted = TagOut.model_validate(tag)
    db.delete(tag)
    db.commit()
    logger.info("tags.deleted", user_id=user.id, tag_id=tag_id)
    return {"success": True, "message": "Tag deleted", "deleted": deleted}
