# mealcycle/api/user_profile.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from mealcycle.database import get_db
from mealcycle.schemas.user_profile import UserProfileResponse, UserProfileUpdate
from mealcycle.schemas.nutrition import NutritionTargetsResponse
from mealcycle.crud import user_profile as crud_user_profile
from mealcycle.services import plan_service
from mealcycle.api.auth import get_current_user_id


router = APIRouter(prefix="/user-profiles", tags=["user-profiles"])

# GET - Get profile for current user
@router.get("/me", response_model=UserProfileResponse)
def read_my_profile(
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_user_id)
):
    db_profile = crud_user_profile.get_user_profile_by_owner(db, owner_id)
    if db_profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found"
        )
    return db_profile


# PUT - Create or update profile for current user
@router.put("/me", response_model=UserProfileResponse)
def update_my_profile(
    profile_update: UserProfileUpdate,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_user_id)
):
    """
    Save the owner's metrics. Fields left out of the body keep their stored value.
    """
    return crud_user_profile.upsert_user_profile(db, owner_id, profile_update)


# GET - Derived nutrition targets
@router.get("/me/targets", response_model=NutritionTargetsResponse)
def read_my_targets(
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_user_id)
):
    """
    Targets are recomputed from the stored profile on every call.
    Missing inputs leave the dependent fields null rather than failing.
    """
    return plan_service.targets_for_owner(db, owner_id)
