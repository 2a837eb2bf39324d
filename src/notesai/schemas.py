from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class InModel(CamelModel):
    model_config = ConfigDict(extra="forbid")


# --- users / auth -----------------------------------------------------------


class UserCreate(InModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(min_length=1, max_length=255)


class LoginIn(InModel):
    email: EmailStr
    password: str


class ProfilePatch(InModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    avatar: str | None = None
    current_password: str | None = None
    new_password: str | None = Field(default=None, min_length=8, max_length=128)


class UserOut(CamelModel):
    id: int
    email: EmailStr
    name: str
    avatar: str | None = None
    role: str
    plan: str


class AuthOut(CamelModel):
    success: bool = True
    token: str
    token_type: str = "bearer"
    user: UserOut


class UserEnvelope(CamelModel):
    user: UserOut


class UserList(CamelModel):
    users: list[UserOut]


class PlanChange(InModel):
    plan: str


class SuccessOut(CamelModel):
    success: bool = True
    message: str | None = None


# --- categories / tags ------------------------------------------------------


class CategoryCreate(InModel):
    name: str = ""
    color: str | None = None
    icon: str | None = None


class CategoryPatch(InModel):
    name: str | None = None
    color: str | None = None
    icon: str | None = None


class CategoryOut(CamelModel):
    id: int
    name: str
    color: str
    icon: str
    user_id: int
    created_at: datetime


class CategoryEnvelope(CamelModel):
    category: CategoryOut


class CategoryList(CamelModel):
    categories: list[CategoryOut]


class TagCreate(InModel):
    name: str = ""
    color: str | None = None


class TagPatch(InModel):
    name: str | None = None
    color: str | None = None


class TagRef(CamelModel):
    id: int
    name: str
    color: str


class TagOut(TagRef):
    user_id: int


class TagEnvelope(CamelModel):
    tag: TagOut


class TagList(CamelModel):
    tags: list[TagOut]


class TagDeleted(SuccessOut):
    deleted: TagOut


# --- notes ------------------------------------------------------------------


class NoteCreate(InModel):
    title: str = ""
    content: str = ""
    category_id: int | None = None
    category_name: str | None = None
    tags: list[int] | None = None
    tag_names: list[str] | None = None
    is_favorite: bool = False


class NotePatch(InModel):
    title: str | None = None
    content: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    tags: list[int] | None = None
    tag_names: list[str] | None = None
    is_favorite: bool | None = None
    is_archived: bool | None = None
    is_deleted: bool | None = None


class NoteOut(CamelModel):
    id: int
    title: str
    content: str
    user_id: int
    category_id: int | None = None
    is_favorite: bool
    is_archived: bool
    is_deleted: bool
    created_at: datetime
    updated_at: datetime
    tags: list[TagRef] = []


class NoteEnvelope(CamelModel):
    note: NoteOut


class NoteList(CamelModel):
    notes: list[NoteOut]


class CategoryCount(CamelModel):
    category_id: int | None
    count: int


class NoteStats(CamelModel):
    total: int
    favorites: int
    archived: int
    trash: int
    by_category: list[CategoryCount]


class TrashEmptied(SuccessOut):
    deleted: int


class FromTemplate(InModel):
    template_id: str
    title: str | None = None
    category_id: int | None = None


# --- bug reports ------------------------------------------------------------


class BugReportCreate(InModel):
    title: str | None = None
    description: str | None = None
    severity: str | None = None
    page_url: str | None = None
    browser_info: str | None = None
    user_email: str | None = None

    @field_validator("title", "description", "severity", mode="before")
    @classmethod
    def _non_string_as_missing(cls, value):
        # the route reports these with its own error codes
        return value if isinstance(value, str) else None


class BugReportPatch(InModel):
    status: str


class BugReportOut(CamelModel):
    id: int
    title: str
    description: str
    severity: str
    page_url: str | None = None
    browser_info: str | None = None
    user_id: int | None = None
    user_email: str | None = None
    status: str
    ip_address: str | None = None
    created_at: datetime
    updated_at: datetime


class BugReportList(CamelModel):
    bug_reports: list[BugReportOut]


# --- templates / assistant / billing ---------------------------------------


class TemplateOut(CamelModel):
    id: str
    title: str
    description: str
    icon: str
    category: str
    content: str


class TemplateCategoryOut(CamelModel):
    id: str
    label: str
    color: str


class TemplateList(CamelModel):
    templates: list[TemplateOut]
    categories: list[TemplateCategoryOut]


class AssistantActionOut(CamelModel):
    id: str
    label: str
    description: str
    group: str


class AssistantActionList(CamelModel):
    actions: list[AssistantActionOut]


class AssistantRequest(InModel):
    action: str
    text: str | None = None
    note_id: int | None = None
    custom_prompt: str | None = None


class AssistantResult(CamelModel):
    action: str
    result: str


class PlanOut(CamelModel):
    id: str
    label: str
    max_notes: int | None
    max_categories: int | None
    ai_requests_per_month: int | None
    ai_groups: list[str]
    features: list[str]


class PlanList(CamelModel):
    plans: list[PlanOut]


class UsageCounts(CamelModel):
    notes: int
    categories: int
    ai_requests: int


class UsageOut(CamelModel):
    plan: str
    period: str
    limits: PlanOut
    usage: UsageCounts
