from mealcycle.celery_app import celery_app
from sqlalchemy.orm import Session
from mealcycle.database import SessionLocal
from mealcycle.crud import meal_plan as crud_meal_plan
from mealcycle.crud import user_profile as crud_user_profile
from mealcycle.errors import PersistenceFailure
from mealcycle.services.cycle_service import local_today
from mealcycle.services.plan_service import rollover_plan
from config import ROLLOVER_SWEEP_HOUR
from datetime import datetime
import pytz
import logging

logger = logging.getLogger(__name__)

BATCH_SIZE = 500


def sweep_rollovers(db: Session, now: datetime = None) -> dict:
    """
    Roll every expired plan forward to its current cycle.
    "Today" is evaluated in each owner's timezone, so a plan turns over at the owner's midnight.
    """
    now = now or datetime.now(pytz.utc)
    if now.tzinfo is None:
        now = pytz.utc.localize(now)
    rolled = checked = failed = 0
    skip = 0

    while True:
        plans = crud_meal_plan.get_all_meal_plans(db, skip=skip, limit=BATCH_SIZE)
        if not plans:
            break
        profiles = crud_user_profile.get_profiles_by_owner(db, {plan.owner_id for plan in plans})

        for plan in plans:
            checked += 1
            profile = profiles.get(plan.owner_id)
            tz_name = profile.timezone if profile else None
            today = local_today(tz_name, now)
            try:
                if rollover_plan(db, plan, today).expired:
                    rolled += 1
            except PersistenceFailure as e:
                failed += 1
                logger.error(f"Rollover failed for plan {plan.id}: {e}")

        skip += BATCH_SIZE

    logger.info(f"Rollover sweep ran. Checked {checked} plans, rolled {rolled}, failed {failed}.")
    return {"checked": checked, "rolled": rolled, "failed": failed}


# --- BEAT SCHEDULER TASK ---
@celery_app.task
def rollover_plans_scheduler():
    """
    Beat task: Runs once a night. Loading a plan also rolls it over, so this only keeps
    start dates current for plans nobody opened.
    """
    db: Session = SessionLocal()
    try:
        return sweep_rollovers(db)
    finally:
        db.close()

# --- SCHEDULE CONFIG ---
from celery.schedules import crontab

celery_app.conf.beat_schedule = {
    'nightly-plan-rollover': {
        'task': 'mealcycle.tasks.scheduler.rollover_plans_scheduler',
        'schedule': crontab(minute=0, hour=ROLLOVER_SWEEP_HOUR)
    },
}
