from sqlalchemy import Column, String, Integer, ForeignKey, Enum, Date, DateTime, Boolean, Text, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
import enum

class User(Base):
    __tablename__ = 'users'
    email = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    hashed_password = Column(String, nullable=False)

    recipes = relationship('Recipe', back_populates='owner', cascade="all, delete-orphan")
    categories = relationship('Category', back_populates='owner', cascade="all, delete-orphan")
    meal_plans = relationship('MealPlan', back_populates='user', cascade="all, delete-orphan")


class Category(Base):
    __tablename__ = 'categories'
    id = Column(Integer, primary_key=True, index=True)
    owner_email = Column(String, ForeignKey('users.email', ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    color = Column(String(7), nullable=True)
    icon = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship('User', back_populates='categories')
    # Deleting a category detaches its recipes instead of deleting them.
    recipes = relationship('Recipe', back_populates='category')

    __table_args__ = (UniqueConstraint("owner_email", "name", name="unique_owner_category_name"),)


class Difficulty(str, enum.Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


class Recipe(Base):
    __tablename__ = 'recipes'
    id = Column(Integer, primary_key=True, index=True)
    owner_email = Column(String, ForeignKey('users.email', ondelete="CASCADE"), nullable=False, index=True)
    url = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    thumbnail_url = Column(String, nullable=True)
    category_id = Column(Integer, ForeignKey('categories.id', ondelete="SET NULL"), nullable=True)
    prep_time = Column(String, nullable=True)
    difficulty = Column(Enum(Difficulty), nullable=True)
    cuisine_type = Column(String, nullable=True)
    dietary_tags = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    notes = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)
    is_favorite = Column(Boolean, nullable=False, default=False)
    source_domain = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship('User', back_populates='recipes')
    category = relationship('Category', back_populates='recipes')
    meal_plans = relationship('MealPlan', back_populates='recipe', cascade="all, delete-orphan")


class DayOfWeek(str, enum.Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"


class MealType(str, enum.Enum):
    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"


class MealPlan(Base):
    __tablename__ = 'meal_plans'
    id = Column(Integer, primary_key=True, index=True)
    user_email = Column(String, ForeignKey('users.email', ondelete="CASCADE"), nullable=False, index=True)
    recipe_id = Column(Integer, ForeignKey('recipes.id', ondelete="CASCADE"), nullable=False)
    week_start_date = Column(Date, nullable=False, index=True)
    day_of_week = Column(Enum(DayOfWeek), nullable=False)
    meal_type = Column(Enum(MealType), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship('User', back_populates='meal_plans')
    recipe = relationship('Recipe', back_populates='meal_plans')

    __table_args__ = (
        UniqueConstraint("user_email", "week_start_date", "day_of_week", "meal_type", name="unique_meal_slot"),
    )
