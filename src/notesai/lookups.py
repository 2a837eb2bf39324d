"""Owner-scoped lookups and the tag/category auto-creation used by note editing."""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .billing import ensure_category_quota
from .errors import ApiError
from .models import Category, Note, Tag, User

DEFAULT_COLOR = "#6366f1"
DEFAULT_ICON = "folder"


def owned_note(db: Session, user: User, note_id: int) -> Note:
    note = db.get(Note, note_id)
    if note is None:
        raise ApiError(404, "Note not found", "NOTE_NOT_FOUND")
    if note.user_id != user.id:
        raise ApiError(403, "Forbidden", "FORBIDDEN")
    return note


def owned_category(db: Session, user: User, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if category is None or category.user_id != user.id:
        raise ApiError(404, "Category not found", "CATEGORY_NOT_FOUND")
    return category


def owned_tag(db: Session, user: User, tag_id: int) -> Tag:
    tag = db.get(Tag, tag_id)
    if tag is None or tag.user_id != user.id:
        raise ApiError(404, "Tag not found", "TAG_NOT_FOUND")
    return tag


def find_tag(db: Session, user: User, name: str) -> Tag | None:
    return db.scalar(
        select(Tag).where(Tag.user_id == user.id, func.lower(Tag.name) == name.lower())
    )


def find_category(db: Session, user: User, name: str) -> Category | None:
    return db.scalar(
        select(Category).where(
            Category.user_id == user.id, func.lower(Category.name) == name.lower()
        )
    )


def check_category_id(db: Session, user: User, category_id: int) -> int:
    category = db.get(Category, category_id)
    if category is None or category.user_id != user.id:
        raise ApiError(400, "Category not found", "INVALID_CATEGORY")
    return category.id


def check_tag_ids(db: Session, user: User, tag_ids: list[int]) -> list[int]:
    unique = list(dict.fromkeys(tag_ids))
    if not unique:
        return []
    found = db.scalars(
        select(Tag.id).where(Tag.user_id == user.id, Tag.id.in_(unique))
    ).all()
    if len(found) != len(unique):
        raise ApiError(400, "One or more tags not found", "INVALID_TAGS")
    return unique


def ensure_tags(db: Session, user: User, names: list[str] | None) -> list[Tag]:
    """Resolve tag names for ``user``, creating the ones that do not exist yet."""
    if not names:
        return []
    tags: list[Tag] = []
    seen: set[str] = set()
    for raw in names:
        name = raw.strip().lstrip("#").strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        t = find_tag(db, user, name)
        if not t:
            t = Tag(name=name, color=DEFAULT_COLOR, user_id=user.id)
            db.add(t)
            db.flush()
        tags.append(t)
    return tags


def ensure_category(db: Session, user: User, name: str) -> Category:
    name = name.strip()
    if not name:
        raise ApiError(400, "Category name is required", "MISSING_NAME")
    category = find_category(db, user, name)
    if category is None:
        ensure_category_quota(db, user)
        category = Category(name=name, color=DEFAULT_COLOR, icon=DEFAULT_ICON, user_id=user.id)
        db.add(category)
        db.flush()
    return category
