from pydantic import BaseModel
from typing import List, Optional, Any, Dict
from datetime import date, datetime

class RecipeRefSchema(BaseModel):
    recipe_id: Any
    name: Optional[str] = None
    image_url: Optional[str] = None

class MealPlanCreate(BaseModel):
    name: str
    length_days: int = 7
    meals_per_day: Optional[int] = None
    meal_names: Optional[List[str]] = None
    start_date: Optional[date] = None

class MealPlanUpdate(BaseModel):
    name: Optional[str] = None
    length_days: Optional[int] = None
    start_date: Optional[date] = None
    meals_per_day: Optional[int] = None

class SlotAssignRequest(BaseModel):
    """Address a day either by day_index (1-based) or by week_index + weekday."""
    day_index: Optional[int] = None
    week_index: Optional[int] = None
    weekday: Optional[str] = None
    meal_name: str
    recipe: Optional[RecipeRefSchema] = None  # None clears the slot

class MealRenameRequest(BaseModel):
    old_name: str
    new_name: str

class MealPlanSummary(BaseModel):
    id: int
    name: str
    length_days: int
    meals_per_day: int
    start_date: date
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class MealPlanResponse(MealPlanSummary):
    owner_id: str
    meal_names: List[str]
    schedule_weekly: Optional[Dict[str, Dict[str, List[Dict[str, Any]]]]] = None
    schedule_flat: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

class CalendarSlot(BaseModel):
    meal_name: str
    recipe: Optional[RecipeRefSchema] = None

class CalendarDay(BaseModel):
    day_index: int
    calendar_date: date
    weekday: str
    label: str
    is_today: bool
    complete: bool
    meals: List[CalendarSlot]

class MealPlanCalendarResponse(BaseModel):
    plan_id: int
    name: str
    start_date: date
    today_index: Optional[int] = None
    days: List[CalendarDay]
