import logging
from dataclasses import replace
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from config import ACTIVITY_LEVEL_PRECEDENCE
from mealcycle.crud import meal_plan as crud_meal_plan
from mealcycle.crud import user_profile as crud_user_profile
from mealcycle.crud.recipe import SQLRecipeNutritionLookup
from mealcycle.errors import ValidationError, PlanNotFound
from mealcycle.models.meal_plan import MealPlan
from mealcycle.services import schedule_service
from mealcycle.services.aggregation_service import aggregate, per_day, build_report
from mealcycle.services.cycle_service import CycleState, advance_cycle, today_index, day_dates, local_today
from mealcycle.services.nutrition_service import ProfileMetrics, derive_targets
from mealcycle.services.schedule_service import (
    PlanSchedule, RecipeRef, MIN_MEALS_PER_DAY, MAX_MEALS_PER_DAY, PLACEHOLDER_MEAL_NAME,
)

logger = logging.getLogger(__name__)

"""
Plan Service
------------
Use-cases behind the meal plan endpoints. Every mutation builds the new schedule
in memory, validates it, and hands one patch to the store.
"""

MAX_NAME_LENGTH = 25
MIN_LENGTH_DAYS = 1
MAX_LENGTH_DAYS = 90
DEFAULT_MEAL_NAMES = ["Breakfast", "Lunch", "Dinner"]


# --- validation ---

def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_plan_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Plan name is required")
    trimmed = name.strip()
    if len(trimmed) > MAX_NAME_LENGTH:
        raise ValidationError(f"Plan name must be at most {MAX_NAME_LENGTH} characters")
    return trimmed


def validate_length_days(length_days) -> int:
    if not _is_int(length_days) or not MIN_LENGTH_DAYS <= length_days <= MAX_LENGTH_DAYS:
        raise ValidationError(f"Length must be {MIN_LENGTH_DAYS}-{MAX_LENGTH_DAYS} days")
    return length_days


def validate_meal_names(meal_names) -> List[str]:
    if not isinstance(meal_names, list) or not MIN_MEALS_PER_DAY <= len(meal_names) <= MAX_MEALS_PER_DAY:
        raise ValidationError(f"Meals/day must be {MIN_MEALS_PER_DAY}-{MAX_MEALS_PER_DAY}")
    cleaned = [name.strip() if isinstance(name, str) else "" for name in meal_names]
    if not all(cleaned):
        raise ValidationError("Meal names cannot be empty")
    return cleaned


def default_meal_names(count: int) -> List[str]:
    if not _is_int(count) or not MIN_MEALS_PER_DAY <= count <= MAX_MEALS_PER_DAY:
        raise ValidationError(f"Meals/day must be {MIN_MEALS_PER_DAY}-{MAX_MEALS_PER_DAY}")
    names = DEFAULT_MEAL_NAMES[:count]
    while len(names) < count:
        names.append(PLACEHOLDER_MEAL_NAME.format(n=len(names) + 1))
    return names


# --- lookups ---

def owner_today(db: Session, owner_id: str) -> date:
    profile = crud_user_profile.get_user_profile_by_owner(db, owner_id)
    return local_today(profile.timezone if profile else None)


def get_owned_plan(db: Session, owner_id: str, plan_id: int) -> MealPlan:
    plan = crud_meal_plan.get_meal_plan_for_owner(db, plan_id, owner_id)
    if plan is None:
        raise PlanNotFound(f"Plan {plan_id} not found")
    return plan


def targets_for_owner(db: Session, owner_id: str, today: Optional[date] = None) -> Dict[str, Any]:
    """Targets derived fresh from the stored profile; every field None-safe."""
    profile = crud_user_profile.get_user_profile_by_owner(db, owner_id)
    metrics = ProfileMetrics.from_profile(profile) if profile else ProfileMetrics()
    if today is None:
        today = local_today(profile.timezone if profile else None)
    return derive_targets(metrics, today, precedence=ACTIVITY_LEVEL_PRECEDENCE)


# --- use-cases ---

def create_plan(
    db: Session,
    owner_id: str,
    name: str,
    length_days: int = 7,
    meals_per_day: Optional[int] = None,
    meal_names: Optional[List[str]] = None,
    start_date: Optional[date] = None,
) -> MealPlan:
    name = validate_plan_name(name)
    length_days = validate_length_days(length_days)
    if meal_names is None:
        meal_names = default_meal_names(3 if meals_per_day is None else meals_per_day)
    meal_names = validate_meal_names(meal_names)
    if meals_per_day is not None and meals_per_day != len(meal_names):
        raise ValidationError("meals_per_day does not match the number of meal names")

    plan_schedule = PlanSchedule(length_days=length_days, meal_names=meal_names)
    fields = plan_schedule.to_patch()
    fields["name"] = name
    fields["start_date"] = start_date or owner_today(db, owner_id)

    plan = crud_meal_plan.create_meal_plan(db, owner_id, fields)
    logger.info(f"Created plan {plan.id} '{name}' ({length_days} days, {len(meal_names)} meals/day) for owner {owner_id}")
    return plan


def rollover_plan(db: Session, plan: MealPlan, today: date) -> CycleState:
    """Advance start_date past elapsed cycles; writes only when the cycle expired."""
    state = advance_cycle(plan.start_date, plan.length_days, today)
    if state.expired:
        crud_meal_plan.update_meal_plan(db, plan, {"start_date": state.start_date})
    return state


def load_plan(db: Session, owner_id: str, plan_id: int, today: Optional[date] = None) -> MealPlan:
    """Fetch a plan and roll it over once."""
    plan = get_owned_plan(db, owner_id, plan_id)
    rollover_plan(db, plan, today or owner_today(db, owner_id))
    return plan


def _save_schedule(db: Session, plan: MealPlan, plan_schedule: PlanSchedule, extra: Optional[dict] = None) -> MealPlan:
    patch = plan_schedule.to_patch()
    patch.update(extra or {})
    return crud_meal_plan.update_meal_plan(db, plan, patch)


def assign_slot(
    db: Session,
    owner_id: str,
    plan_id: int,
    day_ref: schedule_service.DayRef,
    meal_name: str,
    recipe_ref: Optional[RecipeRef],
) -> MealPlan:
    plan = get_owned_plan(db, owner_id, plan_id)
    updated = schedule_service.assign(PlanSchedule.from_plan(plan), day_ref, meal_name, recipe_ref)
    return _save_schedule(db, plan, updated)


def rename_meal(db: Session, owner_id: str, plan_id: int, old_name: str, new_name: str) -> MealPlan:
    plan = get_owned_plan(db, owner_id, plan_id)
    current = PlanSchedule.from_plan(plan)
    updated = schedule_service.rename_meal_type(current, old_name, new_name)
    if updated is current:
        return plan
    return _save_schedule(db, plan, updated)


def update_parameters(
    db: Session,
    owner_id: str,
    plan_id: int,
    name: Optional[str] = None,
    length_days: Optional[int] = None,
    start_date: Optional[date] = None,
    meals_per_day: Optional[int] = None,
) -> MealPlan:
    """
    Change name, length, start date and/or meals per day in one write.
    Shrinking length or meals keeps the stored slots; they just fall outside the plan.
    """
    plan = get_owned_plan(db, owner_id, plan_id)
    updated = PlanSchedule.from_plan(plan)

    extra = {}
    if name is not None:
        extra["name"] = validate_plan_name(name)
    if length_days is not None:
        updated = replace(updated, length_days=validate_length_days(length_days))
    if meals_per_day is not None:
        updated = schedule_service.resize_meals_per_day(updated, meals_per_day)
    if start_date is not None:
        extra["start_date"] = start_date

    return _save_schedule(db, plan, updated, extra)


def calendar(db: Session, owner_id: str, plan_id: int, today: Optional[date] = None) -> Dict[str, Any]:
    """Day-by-day view of the current cycle with today's position."""
    today = today or owner_today(db, owner_id)
    plan = load_plan(db, owner_id, plan_id, today)
    plan_schedule = PlanSchedule.from_plan(plan)
    current = today_index(plan.start_date, plan.length_days, today)

    days = []
    for day in day_dates(plan.start_date, plan.length_days):
        index = day["day_index"]
        meals = []
        for meal_name in plan_schedule.meal_names:
            ref = plan_schedule.schedule.get(index, meal_name)
            meals.append({"meal_name": meal_name, "recipe": ref.to_dict() if ref else None})
        days.append({
            "day_index": index,
            "calendar_date": day["date"],
            "weekday": day["weekday"],
            "label": day["label"],
            "is_today": index == current,
            "complete": plan_schedule.is_day_complete(index),
            "meals": meals,
        })

    return {
        "plan_id": plan.id,
        "name": plan.name,
        "start_date": plan.start_date,
        "today_index": current,
        "days": days,
    }


def nutrition_report(
    db: Session,
    owner_id: str,
    plan_id: int,
    lookup=None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Totals, per-day averages and compliance against the owner's targets."""
    plan = get_owned_plan(db, owner_id, plan_id)
    plan_schedule = PlanSchedule.from_plan(plan)

    totals = aggregate(plan_schedule, lookup or SQLRecipeNutritionLookup(db))
    daily = per_day(totals, plan_schedule.length_days)
    targets = targets_for_owner(db, owner_id, today)
    compliance = build_report(daily, targets)

    return {
        "plan_id": plan.id,
        "length_days": plan_schedule.length_days,
        "totals": totals,
        "per_day": daily,
        "compliance": {key: entry.to_dict() for key, entry in compliance.items()},
        "targets": targets,
    }
