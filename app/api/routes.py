import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.models import (
    User,
    Category as CategoryModel,
    Recipe as RecipeModel,
    MealPlan as MealPlanModel,
)
from app.schemas.schemas import (
    UserCreate,
    RecipeURL,
    ExtractedMetadata,
    CategoryCreate,
    CategoryUpdate,
    Category,
    RecipeCreate,
    RecipeUpdate,
    Recipe,
    MealPlanCreate,
    MealPlan,
)
from app.utils.auth import get_password_hash, authenticate_user, create_access_token, get_current_user
from app.utils.meal_plan_utils import week_start, current_week_start, purge_past_weeks
from app.utils.scraping_utils import (
    ScrapeError,
    UnexpectedScrapeError,
    UNTITLED,
    extract_metadata,
    extract_metadata_or_fallback,
    parse_recipe_url,
    source_domain_for,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup")
async def signup(user: UserCreate, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == user.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    hashed_password = get_password_hash(user.password)
    db_user = User(email=user.email, name=user.name, hashed_password=hashed_password)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return {"email": db_user.email, "name": db_user.name}


@router.post("/token")
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=400, detail="Incorrect email or password")
    access_token = create_access_token(data={"sub": user.email})
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/scrape-recipe", response_model=ExtractedMetadata)
def scrape_recipe(recipe_url: RecipeURL):
    """
    Fetches title, description, thumbnail, prep time and cuisine for a recipe URL
    so the client can pre-fill a new bookmark.
    """
    try:
        return extract_metadata(recipe_url.url)
    except ScrapeError:
        raise
    except Exception as e:
        logger.exception("Error scraping recipe %s", recipe_url.url)
        raise UnexpectedScrapeError(url=recipe_url.url, details=str(e))


# Categories

def _get_category(db: Session, category_id: int, user: User) -> CategoryModel:
    category = db.query(CategoryModel).filter(
        CategoryModel.id == category_id,
        CategoryModel.owner_email == user.email,
    ).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


def _ensure_unique_category_name(db: Session, name: str, user: User, exclude_id: Optional[int] = None):
    query = db.query(CategoryModel).filter(
        CategoryModel.owner_email == user.email,
        CategoryModel.name == name,
    )
    if exclude_id is not None:
        query = query.filter(CategoryModel.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=409, detail="A category with this name already exists")


@router.get("/categories", response_model=List[Category])
async def list_categories(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    categories = db.query(CategoryModel).filter(
        CategoryModel.owner_email == current_user.email
    ).order_by(CategoryModel.name).all()
    return [Category.model_validate(category) for category in categories]


@router.post("/categories", response_model=Category, status_code=status.HTTP_201_CREATED)
async def create_category(
    category: CategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    name = category.name
    _ensure_unique_category_name(db, name, current_user)
    db_category = CategoryModel(
        owner_email=current_user.email,
        name=name,
        color=category.color,
        icon=category.icon,
    )
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return Category.model_validate(db_category)


@router.patch("/categories/{category_id}", response_model=Category)
async def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    category = _get_category(db, category_id, current_user)
    if payload.name is not None:
        name = payload.name
        _ensure_unique_category_name(db, name, current_user, exclude_id=category.id)
        category.name = name
    if payload.color is not None:
        category.color = payload.color
    if payload.icon is not None:
        category.icon = payload.icon
    db.commit()
    db.refresh(category)
    return Category.model_validate(category)


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Deletes a category. Recipes filed under it are kept and become uncategorized.
    """
    category = _get_category(db, category_id, current_user)
    for recipe in category.recipes:
        recipe.category_id = None
    db.delete(category)
    db.commit()
    return {"message": "Category deleted successfully"}


# Recipes

def _get_recipe(db: Session, recipe_id: int, user: User) -> RecipeModel:
    recipe = db.query(RecipeModel).filter(
        RecipeModel.id == recipe_id,
        RecipeModel.owner_email == user.email
    ).first()
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe


@router.post("/recipes", response_model=Recipe, status_code=status.HTTP_201_CREATED)
def save_recipe(
    recipe: RecipeCreate,
    autofill: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Saves a recipe bookmark. With ``autofill`` set, blank fields are filled in
    from the page's metadata; values sent by the client always win.
    """
    try:
        parsed = parse_recipe_url(recipe.url)
    except ScrapeError as e:
        raise HTTPException(status_code=422, detail=e.message)
    if recipe.category_id is not None:
        _get_category(db, recipe.category_id, current_user)

    data = recipe.model_dump(mode="json")
    if autofill:
        metadata = extract_metadata_or_fallback(recipe.url)
        for field, value in metadata.model_dump().items():
            if not data.get(field) and value:
                data[field] = value
    if not data.get("title"):
        data["title"] = UNTITLED
    if not data.get("source_domain"):
        data["source_domain"] = source_domain_for(parsed.hostname)

    db_recipe = RecipeModel(owner_email=current_user.email, **data)
    db.add(db_recipe)
    db.commit()
    db.refresh(db_recipe)
    return Recipe.model_validate(db_recipe)


@router.get("/recipes", response_model=List[Recipe])
async def get_user_recipes(
    category_id: Optional[int] = None,
    favorites_only: bool = False,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(RecipeModel).filter(RecipeModel.owner_email == current_user.email)
    if category_id is not None:
        query = query.filter(RecipeModel.category_id == category_id)
    if favorites_only:
        query = query.filter(RecipeModel.is_favorite.is_(True))
    if q:
        query = query.filter(or_(
            RecipeModel.title.icontains(q, autoescape=True),
            RecipeModel.description.icontains(q, autoescape=True),
            RecipeModel.cuisine_type.icontains(q, autoescape=True),
            RecipeModel.source_domain.icontains(q, autoescape=True),
        ))
    recipes = query.order_by(RecipeModel.created_at.desc(), RecipeModel.id.desc()).all()
    return [Recipe.model_validate(recipe) for recipe in recipes]


@router.get("/recipes/{recipe_id}", response_model=Recipe)
async def get_recipe(
    recipe_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return Recipe.model_validate(_get_recipe(db, recipe_id, current_user))


@router.patch("/recipes/{recipe_id}", response_model=Recipe)
async def update_recipe(
    recipe_id: int,
    payload: RecipeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    recipe = _get_recipe(db, recipe_id, current_user)
    changes = payload.model_dump(mode="json", exclude_unset=True)
    if changes.get("category_id") is not None:
        _get_category(db, changes["category_id"], current_user)
    # Columns that cannot hold NULL keep their value when sent as null.
    for field in ("title", "is_favorite"):
        if field in changes and changes[field] is None:
            del changes[field]
    for field, value in changes.items():
        setattr(recipe, field, value)
    db.commit()
    db.refresh(recipe)
    return Recipe.model_validate(recipe)


@router.post("/recipes/{recipe_id}/favorite", response_model=Recipe)
async def toggle_favorite(
    recipe_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    recipe = _get_recipe(db, recipe_id, current_user)
    recipe.is_favorite = not recipe.is_favorite
    db.commit()
    db.refresh(recipe)
    return Recipe.model_validate(recipe)


@router.delete("/recipes/{recipe_id}")
async def delete_recipe(
    recipe_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Deletes a recipe by its ID if it belongs to the current user.
    Any meal plan slots using it are cleared as well.
    """
    recipe = _get_recipe(db, recipe_id, current_user)
    db.delete(recipe)
    db.commit()
    return {"message": "Recipe deleted successfully"}


# Meal plans

def _to_meal_plan(meal_plan: MealPlanModel) -> MealPlan:
    return MealPlan(
        id=meal_plan.id,
        week_start_date=meal_plan.week_start_date,
        day_of_week=meal_plan.day_of_week.value,
        meal_type=meal_plan.meal_type.value,
        recipe_id=meal_plan.recipe_id,
        recipe_title=meal_plan.recipe.title if meal_plan.recipe else None,
    )


@router.get("/meal-plans", response_model=List[MealPlan])
async def get_meal_plans(
    week_start_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Returns the entries of one week (the current week by default).
    Weeks that have already passed are dropped first.
    """
    purged = purge_past_weeks(db, current_user.email)
    if purged:
        logger.info("Removed %d past meal plan entries for %s", purged, current_user.email)
    week = week_start(week_start_date) if week_start_date else current_week_start()
    meal_plans = db.query(MealPlanModel).filter(
        MealPlanModel.user_email == current_user.email,
        MealPlanModel.week_start_date == week,
    ).order_by(MealPlanModel.id).all()
    return [_to_meal_plan(meal_plan) for meal_plan in meal_plans]


@router.post("/meal-plans", response_model=MealPlan, status_code=status.HTTP_201_CREATED)
async def create_meal_plan(
    meal_plan: MealPlanCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    week = week_start(meal_plan.week_start_date)
    if week < current_week_start():
        raise HTTPException(status_code=400, detail="Cannot plan meals for a past week")
    _get_recipe(db, meal_plan.recipe_id, current_user)

    occupied = db.query(MealPlanModel).filter(
        MealPlanModel.user_email == current_user.email,
        MealPlanModel.week_start_date == week,
        MealPlanModel.day_of_week == meal_plan.day_of_week.value,
        MealPlanModel.meal_type == meal_plan.meal_type.value,
    ).first()
    if occupied:
        raise HTTPException(status_code=409, detail="This meal slot already has a recipe")

    db_meal_plan = MealPlanModel(
        user_email=current_user.email,
        recipe_id=meal_plan.recipe_id,
        week_start_date=week,
        day_of_week=meal_plan.day_of_week.value,
        meal_type=meal_plan.meal_type.value,
    )
    db.add(db_meal_plan)
    db.commit()
    db.refresh(db_meal_plan)
    return _to_meal_plan(db_meal_plan)


@router.delete("/meal-plans/{meal_plan_id}")
async def delete_meal_plan(
    meal_plan_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    meal_plan = db.query(MealPlanModel).filter(
        MealPlanModel.id == meal_plan_id,
        MealPlanModel.user_email == current_user.email
    ).first()
    if not meal_plan:
        raise HTTPException(status_code=404, detail="Meal plan not found")
    db.delete(meal_plan)
    db.commit()
    return {"message": "Meal plan deleted successfully"}


@router.get("/health")
async def health_check():
    return {"status": "healthy"}
