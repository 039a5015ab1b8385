# mealcycle/schemas/user_profile.py
from pydantic import BaseModel, Field
from typing import Optional, Dict
from datetime import date, datetime

class UserProfileUpdate(BaseModel):
    sex: Optional[str] = Field(
        None,
        pattern="^(male|female|unknown)$",
        description="male, female, or unknown"
    )
    birth_date: Optional[date] = None
    height_cm: Optional[float] = Field(None, gt=0, description="Height in cm")
    weight_kg: Optional[float] = Field(None, gt=0, description="Current weight in kg")
    job_level: Optional[int] = Field(None, ge=1, le=3, description="1 sedentary .. 3 very active job")
    weekly_active_minutes: Optional[int] = Field(None, ge=0)
    goal_level: Optional[int] = Field(None, ge=1, le=5, description="1 fast loss .. 5 fast gain")

    active_level: Optional[int] = Field(None, ge=1, le=5, description="Stored activity level")
    recommended_kcal_override: Optional[float] = Field(None, ge=0)
    macro_overrides: Optional[Dict[str, float]] = None
    micro_overrides: Optional[Dict[str, float]] = None
    timezone: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "sex": "male",
                "birth_date": "1996-05-14",
                "height_cm": 180.0,
                "weight_kg": 80.0,
                "job_level": 1,
                "weekly_active_minutes": 200,
                "goal_level": 3,
                "timezone": "Europe/Berlin"
            }
        }

class UserProfileResponse(BaseModel):
    id: int
    owner_id: str

    sex: Optional[str]
    birth_date: Optional[date]
    height_cm: Optional[float]
    weight_kg: Optional[float]
    job_level: Optional[int]
    weekly_active_minutes: Optional[int]
    goal_level: Optional[int]
    active_level: Optional[int]
    recommended_kcal_override: Optional[float]
    macro_overrides: Optional[Dict[str, float]]
    micro_overrides: Optional[Dict[str, float]]

    # Meta
    timezone: Optional[str]
    created_at: datetime
    updated_at: datetime
    last_physical_update: Optional[datetime]

    class Config:
        from_attributes = True
