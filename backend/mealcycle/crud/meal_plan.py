import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from mealcycle.errors import PersistenceFailure
from mealcycle.models.meal_plan import MealPlan

logger = logging.getLogger(__name__)

"""
Meal Plan CRUD
--------------
Pure Database Access Object for Meal Plans.
Scheduling rules live in mealcycle.services.plan_service; this module only reads and writes rows.
"""

JSON_FIELDS = ('meal_names', 'schedule_weekly', 'schedule_flat')
WRITABLE_FIELDS = (
    'name', 'length_days', 'meals_per_day', 'start_date',
    'meal_names', 'schedule_weekly', 'schedule_flat',
)


def get_meal_plan(db: Session, plan_id: int) -> Optional[MealPlan]:
    return db.query(MealPlan).filter(MealPlan.id == plan_id).first()


def get_meal_plan_for_owner(db: Session, plan_id: int, owner_id: str) -> Optional[MealPlan]:
    return db.query(MealPlan).filter(
        MealPlan.id == plan_id,
        MealPlan.owner_id == owner_id
    ).first()


def get_meal_plans_for_owner(db: Session, owner_id: str) -> List[MealPlan]:
    return db.query(MealPlan).filter(MealPlan.owner_id == owner_id).order_by(MealPlan.id).all()


def get_all_meal_plans(db: Session, skip: int = 0, limit: int = 500) -> List[MealPlan]:
    """Batch read for the nightly rollover sweep"""
    return db.query(MealPlan).order_by(MealPlan.id).offset(skip).limit(limit).all()


def _commit(db: Session, action: str):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{action} failed: {e}")
        raise PersistenceFailure(f"{action} failed") from e


def create_meal_plan(db: Session, owner_id: str, fields: dict) -> MealPlan:
    """Insert a new plan; returns it with its generated id."""
    plan = MealPlan(owner_id=owner_id, **{k: v for k, v in fields.items() if k in WRITABLE_FIELDS})
    db.add(plan)
    _commit(db, f"Creating plan for owner {owner_id}")
    db.refresh(plan)
    return plan


def update_meal_plan(db: Session, plan: MealPlan, patch: dict) -> MealPlan:
    """
    Replace the named top-level fields in one commit.
    On failure the session is rolled back, so `plan` reloads its stored state on next access.
    """
    for key, value in patch.items():
        if key not in WRITABLE_FIELDS:
            raise KeyError(f"'{key}' is not a writable plan field")
        setattr(plan, key, value)
        # Explicitly flag JSON fields as modified so in-place changes are persisted
        if key in JSON_FIELDS:
            flag_modified(plan, key)

    _commit(db, f"Updating plan {plan.id}")
    db.refresh(plan)
    return plan
