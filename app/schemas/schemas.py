from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import List, Optional
from enum import Enum
from datetime import date, datetime

COLOR_OPTIONS = [
    "#EF4444", "#F97316", "#F59E0B", "#EAB308", "#84CC16",
    "#22C55E", "#10B981", "#14B8A6", "#06B6D4", "#0EA5E9",
    "#3B82F6", "#6366F1", "#8B5CF6", "#A855F7", "#D946EF",
    "#EC4899", "#F43F5E",
]

class UserCreate(BaseModel):
    email: EmailStr
    name: str
    password: str

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class RecipeURL(BaseModel):
    # Optional so a missing URL reaches the handler and gets its own error.
    url: Optional[str] = None

class ExtractedMetadata(BaseModel):
    """Best-effort summary of a recipe page, used to pre-fill a bookmark."""
    title: str
    description: str = ""
    thumbnail_url: str = ""
    source_domain: str = ""
    prep_time: Optional[str] = None
    cuisine_type: Optional[str] = None


def _check_color(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.upper()
    if value not in COLOR_OPTIONS:
        raise ValueError(f"color must be one of {', '.join(COLOR_OPTIONS)}")
    return value

class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    color: str = COLOR_OPTIONS[0]
    icon: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("color")
    @classmethod
    def validate_color(cls, value):
        return _check_color(value)

class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = None
    icon: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("color")
    @classmethod
    def validate_color(cls, value):
        return _check_color(value)

class Category(BaseModel):
    id: int
    name: str
    color: Optional[str] = None
    icon: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"

class RecipeCreate(BaseModel):
    url: str = Field(min_length=1)
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    category_id: Optional[int] = None
    prep_time: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    cuisine_type: Optional[str] = None
    dietary_tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    is_favorite: bool = False
    source_domain: Optional[str] = None

class RecipeUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    category_id: Optional[int] = None
    prep_time: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    cuisine_type: Optional[str] = None
    dietary_tags: Optional[List[str]] = None
    notes: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    is_favorite: Optional[bool] = None

class Recipe(BaseModel):
    id: int
    url: str
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    category_id: Optional[int] = None
    prep_time: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    cuisine_type: Optional[str] = None
    dietary_tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    rating: Optional[int] = None
    is_favorite: bool = False
    source_domain: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("dietary_tags", mode="before")
    @classmethod
    def default_tags(cls, value):
        return value or []

    @field_validator("difficulty", mode="before")
    @classmethod
    def plain_difficulty(cls, value):
        # ORM rows carry the database enum, not this one.
        return value.value if isinstance(value, Enum) else value


class DayOfWeek(str, Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"

class MealType(str, Enum):
    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"

class MealPlanCreate(BaseModel):
    week_start_date: date
    day_of_week: DayOfWeek
    meal_type: MealType
    recipe_id: int

class MealPlan(BaseModel):
    id: int
    week_start_date: date
    day_of_week: DayOfWeek
    meal_type: MealType
    recipe_id: int
    recipe_title: Optional[str] = None
