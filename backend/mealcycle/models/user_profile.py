# mealcycle/models/user_profile.py
from sqlalchemy import Column, Integer, Float, String, Date, DateTime, event
from sqlalchemy.orm import attributes
from datetime import datetime
import logging
from mealcycle.database import Base, JSONDocument

logger = logging.getLogger(__name__)

class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(64), unique=True, nullable=False, index=True)  # "sub" of the auth token

    # Inputs
    sex = Column(String(16), default="unknown")   # "male", "female", "unknown"
    birth_date = Column(Date)
    height_cm = Column(Float)
    weight_kg = Column(Float)
    job_level = Column(Integer, default=1)        # 1..3
    weekly_active_minutes = Column(Integer)
    goal_level = Column(Integer, default=3)       # 1 fast loss .. 5 fast gain

    # Stored values that win over computed ones
    active_level = Column(Integer)                # 1..5
    recommended_kcal_override = Column(Float)
    macro_overrides = Column(JSONDocument, nullable=True, comment="e.g. { protein_g: 150 }")
    micro_overrides = Column(JSONDocument, nullable=True, comment="e.g. { iron_mg: 18 }")

    # Advisory copy of the last derived targets; always recomputed on read
    cached_targets = Column(JSONDocument, nullable=True)

    timezone = Column(String(50), default="UTC")  # e.g. "Asia/Kolkata"
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_physical_update = Column(DateTime, default=datetime.utcnow)


# --- CALCULATION ENGINE LIVES IN THE SERVICE ---
# Please refer to mealcycle.services.nutrition_service for calculation logic.
from mealcycle.services.nutrition_service import ProfileMetrics, derive_targets
from config import ACTIVITY_LEVEL_PRECEDENCE

PHYSICAL_FIELDS = [
    'sex', 'birth_date', 'height_cm', 'weight_kg', 'job_level',
    'weekly_active_minutes', 'goal_level', 'active_level',
]


def refresh_cached_targets(target):
    """
    Stores a snapshot of the derived targets on the profile row.
    Readers never trust it: targets are recomputed from the inputs on demand.
    """
    logger.info(f"Refreshing nutrition targets for profile {getattr(target, 'id', None) or 'new'}")

    targets = derive_targets(ProfileMetrics.from_profile(target), precedence=ACTIVITY_LEVEL_PRECEDENCE)
    if target.cached_targets != targets:
        target.cached_targets = targets


# --- AUTOMATION LISTENERS ---

@event.listens_for(UserProfile, 'before_insert')
def receive_before_insert(mapper, connection, target):
    logger.info("Before insert event triggered for new profile")
    refresh_cached_targets(target)

@event.listens_for(UserProfile, 'before_update')
def receive_before_update(mapper, connection, target):
    logger.info(f"Before update event triggered for profile {getattr(target, 'id', 'unknown')}")

    physical_changed = any(
        attributes.get_history(target, field).has_changes() for field in PHYSICAL_FIELDS
    )
    if physical_changed:
        target.last_physical_update = datetime.utcnow()

    refresh_cached_targets(target)
