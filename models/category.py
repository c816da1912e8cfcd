# models/category.py

from typing import Optional
from pydantic import BaseModel, Field

from models.enums import CategoryStatus


class LocalizedText(BaseModel):
    zh: Optional[str] = None
    en: Optional[str] = None


class Category(BaseModel):
    """A service type requests are classified under."""
    id: str
    name: str
    display_name: LocalizedText = Field(default_factory=LocalizedText)
    description: LocalizedText = Field(default_factory=LocalizedText)
    icon: str = "📁"
    color: str = "primary"
    status: CategoryStatus = CategoryStatus.active
    sort_order: int = 0


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, pattern=r"^[a-zA-Z0-9_-]+$")
    display_name: LocalizedText
    description: LocalizedText = Field(default_factory=LocalizedText)
    icon: str = Field("🤝", min_length=1, max_length=10)
    color: str = Field("#2196F3", pattern=r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
    sort_order: int = Field(0, ge=0)


class CategoryUpdate(BaseModel):
    display_name: Optional[LocalizedText] = None
    description: Optional[LocalizedText] = None
    icon: Optional[str] = Field(None, min_length=1, max_length=10)
    color: Optional[str] = Field(None, pattern=r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
    status: Optional[CategoryStatus] = None
    sort_order: Optional[int] = Field(None, ge=0)


# -----------------------------------------------------
# Built-in fallback used when categories cannot be fetched.
# Order is fixed; callers always get fresh copies.
# -----------------------------------------------------
DEFAULT_CATEGORY_ROWS = [
    ("medical", "医疗", "Medical", "🏥"),
    ("transportation", "交通", "Transportation", "🚗"),
    ("shopping", "购物", "Shopping", "🛒"),
    ("household", "家务", "Household", "🏠"),
    ("companion", "陪伴", "Companion", "👥"),
    ("technology", "科技", "Technology", "💻"),
    ("education", "教育", "Education", "📚"),
    ("other", "其他", "Other", "📝"),
]


def default_categories() -> list[Category]:
    return [
        Category(
            id=name,
            name=name,
            display_name=LocalizedText(zh=zh, en=en),
            icon=icon,
            sort_order=index,
        )
        for index, (name, zh, en, icon) in enumerate(DEFAULT_CATEGORY_ROWS)
    ]
