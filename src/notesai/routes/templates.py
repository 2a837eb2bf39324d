from fastapi import APIRouter

from ..schemas import TemplateList
from ..templates import TEMPLATE_CATEGORIES, list_templates

router = APIRouter(prefix="/api/templates", tags=["templates"])


@router.get("", response_model=TemplateList)
def get_templates(category: str | None = None):
    templates = [
        {
            "id": t.id,
            "title": t.title,
            "description": t.description,
            "icon": t.icon,
            "category": t.category,
            "content": t.render(),
        }
        for t in list_templates(category)
    ]
    categories = [
        {"id": key, "label": label, "color": color}
        for key, (label, color) in TEMPLATE_CATEGORIES.items()
    ]
    return {"templates": templates, "categories": categories}
