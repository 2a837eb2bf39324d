from typing import Literal

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ..billing import EXPORT, ensure_feature, ensure_note_quota
from ..database import get_db
from ..errors import ApiError
from ..lookups import (check_category_id, check_tag_ids, ensure_category,
                       ensure_tags, owned_note)
from ..models import Note, NoteTag, User, utcnow
from ..schemas import (FromTemplate, NoteCreate, NoteEnvelope, NoteList,
                       NoteOut, NotePatch, NoteStats, SuccessOut, TrashEmptied)
from ..security import get_current_user
from ..templates import get_template

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/notes", tags=["notes"])

RECENT_LIMIT = 10

NoteFilter = Literal["all", "favorites", "recent", "archived", "trash"]


def _note_out(note: Note) -> NoteOut:
    return NoteOut.model_validate(note)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _set_tags(note: Note, tag_ids: list[int]) -> None:
    wanted = set(tag_ids)
    for link in list(note.tag_links):
        if link.tag_id not in wanted:
            note.tag_links.remove(link)
    have = {link.tag_id for link in note.tag_links}
    for tag_id in tag_ids:
        if tag_id not in have:
            note.tag_links.append(NoteTag(tag_id=tag_id))
            have.add(tag_id)


def _resolve_tag_ids(
    db: Session, user: User, tag_ids: list[int] | None, tag_names: list[str] | None
) -> list[int]:
    ids = check_tag_ids(db, user, tag_ids or [])
    for tag in ensure_tags(db, user, tag_names):
        if tag.id not in ids:
            ids.append(tag.id)
    return ids


@router.get("", response_model=NoteList)
def list_notes(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    view: NoteFilter = Query("all", alias="filter"),
    search: str | None = None,
    category_id: int | None = Query(None, alias="categoryId"),
    tag_id: int | None = Query(None, alias="tagId"),
    is_favorite: bool | None = Query(None, alias="isFavorite"),
    is_archived: bool | None = Query(None, alias="isArchived"),
    is_deleted: bool | None = Query(None, alias="isDeleted"),
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
):
    limit = min(limit, 100)
    query = select(Note).where(Note.user_id == user.id)

    if view == "trash":
        flags = {"is_deleted": True}
    elif view == "archived":
        flags = {"is_deleted": False, "is_archived": True}
    elif view == "favorites":
        flags = {"is_deleted": False, "is_favorite": True}
    elif view == "recent":
        flags = {"is_deleted": False}
        limit = min(limit, RECENT_LIMIT)
    else:
        flags = {"is_deleted": False, "is_archived": False}

    for name, value in (
        ("is_favorite", is_favorite),
        ("is_archived", is_archived),
        ("is_deleted", is_deleted),
    ):
        if value is not None:
            flags[name] = value
    for name, value in flags.items():
        query = query.where(getattr(Note, name).is_(value))

    if search:
        like = f"%{_escape_like(search)}%"
        query = query.where(
            or_(Note.title.ilike(like, escape="\\"), Note.content.ilike(like, escape="\\"))
        )
    if category_id is not None:
        query = query.where(Note.category_id == category_id)
    if tag_id is not None:
        query = query.where(Note.tag_links.any(NoteTag.tag_id == tag_id))

    items = db.scalars(
        query.order_by(Note.updated_at.desc(), Note.id.desc()).limit(limit).offset(offset)
    ).all()
    return {"notes": [_note_out(n) for n in items]}


@router.get("/stats", response_model=NoteStats)
def note_stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    def count(*conds) -> int:
        return db.scalar(
            select(func.count(Note.id)).where(Note.user_id == user.id, *conds)
        ) or 0

    live = Note.is_deleted.is_(False)
    rows = db.execute(
        select(Note.category_id, func.count(Note.id))
        .where(Note.user_id == user.id, live, Note.is_archived.is_(False))
        .group_by(Note.category_id)
    ).all()
    return {
        "total": count(live, Note.is_archived.is_(False)),
        "favorites": count(live, Note.is_favorite.is_(True)),
        "archived": count(live, Note.is_archived.is_(True)),
        "trash": count(Note.is_deleted.is_(True)),
        "by_category": [{"category_id": cid, "count": n} for cid, n in rows],
    }


@router.post("", response_model=NoteEnvelope, status_code=201)
def create_note(
    body: NoteCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    title = body.title.strip()
    if not title:
        raise ApiError(400, "Title is required", "MISSING_TITLE")
    ensure_note_quota(db, user)

    category_id = None
    if body.category_id is not None:
        category_id = check_category_id(db, user, body.category_id)
    elif body.category_name:
        category_id = ensure_category(db, user, body.category_name).id
    tag_ids = _resolve_tag_ids(db, user, body.tags, body.tag_names)

    now = utcnow()
    note = Note(
        title=title,
        content=body.content.strip(),
        user_id=user.id,
        category_id=category_id,
        is_favorite=body.is_favorite,
        is_archived=False,
        is_deleted=False,
        created_at=now,
        updated_at=now,
    )
    db.add(note)
    _set_tags(note, tag_ids)
    db.commit()
    db.refresh(note)
    logger.info("notes.created", user_id=user.id, note_id=note.id, tags=len(tag_ids))
    return {"note": _note_out(note)}


@router.post("/from-template", response_model=NoteEnvelope, status_code=201)
def create_from_template(
    body: FromTemplate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    template = get_template(body.template_id)
    if template is None:
        raise ApiError(404, "Template not found", "TEMPLATE_NOT_FOUND")
    ensure_note_quota(db, user)
    category_id = None
    if body.category_id is not None:
        category_id = check_category_id(db, user, body.category_id)

    now = utcnow()
    note = Note(
        title=(body.title or "").strip() or template.title,
        content=template.render(),
        user_id=user.id,
        category_id=category_id,
        created_at=now,
        updated_at=now,
    )
    db.add(note)
    db.commit()
    db.refresh(note)
    logger.info("notes.created_from_template", user_id=user.id, template=template.id)
    return {"note": _note_out(note)}


@router.delete("/trash", response_model=TrashEmptied)
def empty_trash(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    trashed = db.scalars(
        select(Note).where(Note.user_id == user.id, Note.is_deleted.is_(True))
    ).all()
    for note in trashed:
        db.delete(note)
    db.commit()
    logger.info("notes.trash_emptied", user_id=user.id, deleted=len(trashed))
    return {"success": True, "message": "Trash emptied", "deleted": len(trashed)}


@router.get("/{note_id}", response_model=NoteEnvelope)
def get_note(
    note_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"note": _note_out(owned_note(db, user, note_id))}


@router.patch("/{note_id}", response_model=NoteEnvelope)
@router.put("/{note_id}", response_model=NoteEnvelope)
def update_note(
    note_id: int,
    body: NotePatch,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    note = owned_note(db, user, note_id)
    fields = body.model_fields_set

    if body.title is not None:
        title = body.title.strip()
        if not title:
            raise ApiError(400, "Title is required", "MISSING_TITLE")
        note.title = title
    if body.content is not None:
        note.content = body.content
    if "category_id" in fields:
        note.category_id = (
            None if body.category_id is None else check_category_id(db, user, body.category_id)
        )
    elif body.category_name:
        note.category_id = ensure_category(db, user, body.category_name).id
    for flag in ("is_favorite", "is_archived", "is_deleted"):
        value = getattr(body, flag)
        if value is not None:
            setattr(note, flag, value)

    if body.tags is not None or body.tag_names:
        base = body.tags if body.tags is not None else [link.tag_id for link in note.tag_links]
        _set_tags(note, _resolve_tag_ids(db, user, base, body.tag_names))

    note.updated_at = utcnow()
    db.commit()
    db.refresh(note)
    logger.info("notes.updated", user_id=user.id, note_id=note.id, fields=sorted(fields))
    return {"note": _note_out(note)}


@router.delete("/{note_id}", response_model=SuccessOut)
def delete_note(
    note_id: int,
    permanent: bool = False,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    note = owned_note(db, user, note_id)
    if permanent:
        db.delete(note)
    else:
        note.is_deleted = True
        note.updated_at = utcnow()
    db.commit()
    logger.info("notes.deleted", user_id=user.id, note_id=note_id, permanent=permanent)
    return {"success": True, "message": "Note deleted"}


@router.get("/{note_id}/export", response_class=PlainTextResponse)
def export_note(
    note_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_feature(user, EXPORT)
    note = owned_note(db, user, note_id)
    parts = [f"# {note.title}", "", note.content.rstrip()]
    if note.tags:
        parts += ["", " ".join(f"#{t.name}" for t in note.tags)]
    filename = f"note-{note.id}.md"
    return PlainTextResponse(
        "\n".join(parts) + "\n",
        media_type="text/markdown",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
