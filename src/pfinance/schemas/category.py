"""Category and category rule schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

CategoryType = Literal["income", "expense", "both"]
MatchType = Literal["contains", "starts_with", "ends_with", "regex"]

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


# Categories


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    type: CategoryType = "both"
    color: str = Field("#8884d8", pattern=HEX_COLOR)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    type: CategoryType | None = None
    color: str | None = Field(None, pattern=HEX_COLOR)
    is_active: bool | None = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    type: CategoryType
    color: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryBulkFields(BaseModel):
    """Fields that can be applied to many categories at once (names stay unique)."""

    type: CategoryType | None = None
    color: str | None = Field(None, pattern=HEX_COLOR)
    is_active: bool | None = None


class CategoryBulkUpdate(BaseModel):
    ids: list[int] = Field(min_length=1)
    updates: CategoryBulkFields


class BulkDeleteRequest(BaseModel):
    ids: list[int] = Field(min_length=1)


# Rules


class RuleCreate(BaseModel):
    category_id: int
    pattern: str = Field(min_length=1, max_length=255)
    match_type: MatchType = "contains"
    priority: int = Field(10, ge=0, description="Lower numbers are evaluated first")
    enabled: bool = True
    notes: str | None = Field(None, max_length=500)


class RuleUpdate(BaseModel):
    category_id: int | None = None
    pattern: str | None = Field(None, min_length=1, max_length=255)
    match_type: MatchType | None = None
    priority: int | None = Field(None, ge=0)
    enabled: bool | None = None
    notes: str | None = Field(None, max_length=500)


class RuleResponse(BaseModel):
    id: int
    category_id: int
    category_name: str
    pattern: str
    match_type: MatchType
    priority: int
    enabled: bool
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, rule) -> "RuleResponse":
        return cls(
            id=rule.id,
            category_id=rule.category_id,
            category_name=rule.category.name,
            pattern=rule.pattern,
            match_type=rule.match_type,
            priority=rule.priority,
            enabled=rule.enabled,
            notes=rule.notes,
            created_at=rule.created_at,
            updated_at=rule.updated_at,
        )


class RuleBulkFields(BaseModel):
    category_id: int | None = None
    match_type: MatchType | None = None
    priority: int | None = Field(None, ge=0)
    enabled: bool | None = None


class RuleBulkUpdate(BaseModel):
    ids: list[int] = Field(min_length=1)
    updates: RuleBulkFields


class RulePreviewRequest(BaseModel):
    """Preview categorization of sample descriptions.

    When ``candidate`` is given it is evaluated together with the stored
    rules, as if it had been saved.
    """

    descriptions: list[str] = Field(min_length=1, max_length=100)
    candidate: RuleCreate | None = None


class PreviewItem(BaseModel):
    description: str
    category: str


class RulePreviewResult(BaseModel):
    results: list[PreviewItem]
    rule_errors: list[dict] = Field(default_factory=list)
