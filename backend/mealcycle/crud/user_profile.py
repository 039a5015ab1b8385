# mealcycle/crud/user_profile.py
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from mealcycle.errors import PersistenceFailure
from mealcycle.models.user_profile import UserProfile
from mealcycle.schemas.user_profile import UserProfileUpdate

logger = logging.getLogger(__name__)

JSON_FIELDS = ('macro_overrides', 'micro_overrides')


def get_user_profile_by_owner(db: Session, owner_id: str) -> Optional[UserProfile]:
    """Get user profile by the owner's auth id"""
    return db.query(UserProfile).filter(UserProfile.owner_id == owner_id).first()


def upsert_user_profile(db: Session, owner_id: str, profile_update: UserProfileUpdate) -> UserProfile:
    """
    Create or update the owner's profile - cached targets are refreshed by SQLAlchemy events.
    Only fields present in the request are written.
    """
    db_profile = get_user_profile_by_owner(db, owner_id)
    if db_profile is None:
        db_profile = UserProfile(owner_id=owner_id)
        db.add(db_profile)

    update_data = profile_update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_profile, field, value)
        if field in JSON_FIELDS:
            flag_modified(db_profile, field)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Saving profile for owner {owner_id} failed: {e}")
        raise PersistenceFailure("Could not save profile") from e

    db.refresh(db_profile)
    return db_profile


def get_profiles_by_owner(db: Session, owner_ids) -> dict:
    """owner_id -> UserProfile for a batch of owners"""
    if not owner_ids:
        return {}
    rows = db.query(UserProfile).filter(UserProfile.owner_id.in_(list(owner_ids))).all()
    return {row.owner_id: row for row in rows}
