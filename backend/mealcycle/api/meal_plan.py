from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mealcycle.database import get_db
from mealcycle.api.auth import get_current_user_id
from mealcycle.crud import meal_plan as crud_meal_plan
from mealcycle.errors import ValidationError
from mealcycle.schemas.meal_plan import (
    MealPlanCreate, MealPlanUpdate, MealPlanResponse, MealPlanSummary,
    MealPlanCalendarResponse, MealRenameRequest, SlotAssignRequest,
)
from mealcycle.schemas.nutrition import PlanNutritionResponse
from mealcycle.services import plan_service
from mealcycle.services.schedule_service import RecipeRef

router = APIRouter(
    prefix="/meal-plans",
    tags=["Meal Plans"]
)


@router.post("/", response_model=MealPlanResponse, status_code=status.HTTP_201_CREATED)
def create_meal_plan_endpoint(
    request: MealPlanCreate,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_user_id)
):
    return plan_service.create_plan(
        db,
        owner_id,
        name=request.name,
        length_days=request.length_days,
        meals_per_day=request.meals_per_day,
        meal_names=request.meal_names,
        start_date=request.start_date,
    )


@router.get("/", response_model=List[MealPlanSummary])
def list_meal_plans(
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_user_id)
):
    return crud_meal_plan.get_meal_plans_for_owner(db, owner_id)


@router.get("/{plan_id}", response_model=MealPlanResponse)
def get_meal_plan_endpoint(
    plan_id: int,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_user_id)
):
    """Loads the plan, rolling its start date forward if the cycle has elapsed."""
    return plan_service.load_plan(db, owner_id, plan_id)


@router.put("/{plan_id}/slots", response_model=MealPlanResponse)
def assign_slot_endpoint(
    plan_id: int,
    request: SlotAssignRequest,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_user_id)
):
    if request.day_index is not None:
        day_ref = request.day_index
    elif request.week_index is not None and request.weekday:
        day_ref = (request.week_index, request.weekday)
    else:
        raise ValidationError("Provide day_index or week_index + weekday")

    recipe_ref = RecipeRef(**request.recipe.model_dump()) if request.recipe else None
    return plan_service.assign_slot(db, owner_id, plan_id, day_ref, request.meal_name, recipe_ref)


@router.post("/{plan_id}/meal-names/rename", response_model=MealPlanResponse)
def rename_meal_endpoint(
    plan_id: int,
    request: MealRenameRequest,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_user_id)
):
    return plan_service.rename_meal(db, owner_id, plan_id, request.old_name, request.new_name)


@router.patch("/{plan_id}", response_model=MealPlanResponse)
def update_meal_plan_endpoint(
    plan_id: int,
    request: MealPlanUpdate,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_user_id)
):
    return plan_service.update_parameters(db, owner_id, plan_id, **request.model_dump(exclude_unset=True))


@router.get("/{plan_id}/calendar", response_model=MealPlanCalendarResponse)
def get_calendar_endpoint(
    plan_id: int,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_user_id)
):
    return plan_service.calendar(db, owner_id, plan_id)


@router.get("/{plan_id}/nutrition", response_model=PlanNutritionResponse)
def get_nutrition_endpoint(
    plan_id: int,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_user_id)
):
    return plan_service.nutrition_report(db, owner_id, plan_id)
