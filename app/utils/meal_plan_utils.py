from datetime import date, timedelta
from typing import Optional
from sqlalchemy.orm import Session
from app.models.models import MealPlan


def week_start(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def current_week_start(today: Optional[date] = None) -> date:
    return week_start(today or date.today())


def purge_past_weeks(db: Session, user_email: str, today: Optional[date] = None) -> int:
    """Deletes the user's entries for weeks before the current one and returns how many went."""
    cutoff = current_week_start(today)
    deleted = db.query(MealPlan).filter(
        MealPlan.user_email == user_email,
        MealPlan.week_start_date < cutoff,
    ).delete(synchronize_session=False)
    db.commit()
    return deleted
