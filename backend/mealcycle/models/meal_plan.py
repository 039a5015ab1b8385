from datetime import datetime, date
from sqlalchemy import (
    Column, Integer, String, Date, DateTime
)
from mealcycle.database import Base, JSONDocument


class MealPlan(Base):
    __tablename__ = "meal_plans"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(64), nullable=False, index=True)

    name = Column(String(25), nullable=False)
    length_days = Column(Integer, nullable=False, default=7)
    meals_per_day = Column(Integer, nullable=False, default=3)
    start_date = Column(Date, nullable=False, default=date.today)

    # JSON fields
    meal_names = Column(
        JSONDocument,
        nullable=False,
        comment="Ordered meal names, one per slot of the day"
        # Example:
        # ["Breakfast", "Lunch", "Dinner"]
    )

    schedule_weekly = Column(
        JSONDocument,
        nullable=True,
        comment="{ week_index: { weekday: [ {meal_name, recipe_id, name, image_url} ] } }"
    )

    schedule_flat = Column(
        JSONDocument,
        nullable=True,
        comment="{ days: { day_index: { slot_index: recipe_ref | null } }, meals, length_days }"
    )

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
