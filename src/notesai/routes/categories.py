import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..billing import ensure_category_quota
from ..database import get_db
from ..errors import ApiError
from ..lookups import DEFAULT_COLOR, DEFAULT_ICON, owned_category
from ..models import Category, Note, User
from ..schemas import (CategoryCreate, CategoryEnvelope, CategoryList,
                       CategoryPatch, SuccessOut)
from ..security import get_current_user

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=CategoryList)
def list_categories(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
):
    items = db.scalars(
        select(Category)
        .where(Category.user_id == user.id)
        .order_by(Category.created_at.desc(), Category.id.desc())
        .limit(min(limit, 100))
        .offset(offset)
    ).all()
    return {"categories": items}


@router.post("", response_model=CategoryEnvelope, status_code=201)
def create_category(
    body: CategoryCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    name = body.name.strip()
    if not name:
        raise ApiError(400, "Name is required", "MISSING_NAME")
    ensure_category_quota(db, user)
    category = Category(
        name=name,
        color=(body.color or "").strip() or DEFAULT_COLOR,
        icon=(body.icon or "").strip() or DEFAULT_ICON,
        user_id=user.id,
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info("categories.created", user_id=user.id, category_id=category.id)
    return {"category": category}


@router.patch("/{category_id}", response_model=CategoryEnvelope)
def update_category(
    category_id: int,
    body: CategoryPatch,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    category = owned_category(db, user, category_id)
    if body.name is not None:
        name = body.name.strip()
        if not name:
            raise ApiError(400, "Name is required", "MISSING_NAME")
        category.name = name
    if body.color:
        category.color = body.color.strip()
    if body.icon:
        category.icon = body.icon.strip()
    db.commit()
    db.refresh(category)
    return {"category": category}


@router.delete("/{category_id}", response_model=SuccessOut)
def delete_category(
    category_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    category = owned_category(db, user, category_id)
    db.execute(
        update(Note)
        .where(Note.user_id == user.id, Note.category_id == category.id)
        .values(category_id=None)
    )
    db.delete(category)
    db.commit()
    logger.info("categories.deleted", user_id=user.id, category_id=category_id)
    return {"success": True, "message": "Category deleted"}
