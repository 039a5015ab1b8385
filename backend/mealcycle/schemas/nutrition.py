# mealcycle/schemas/nutrition.py
from pydantic import BaseModel
from typing import Optional, Dict


class MacroTargets(BaseModel):
    protein_g: Optional[float] = None
    carbs_g: Optional[float] = None
    carbs_sugar_g: Optional[float] = None
    carbs_fiber_g: Optional[float] = None
    carbs_starch_g: Optional[float] = None
    fat_g: Optional[float] = None
    fat_saturated_g: Optional[float] = None
    fat_monosaturated_g: Optional[float] = None
    fat_polyunsaturated_g: Optional[float] = None
    fat_trans_g: Optional[float] = None


class NutritionTargetsResponse(BaseModel):
    """Null fields mean the profile is missing an input they depend on."""
    age: Optional[int] = None
    sex: Optional[str] = None
    bmr_kcal: Optional[int] = None
    activity_level: Optional[int] = None
    activity_name: Optional[str] = None
    job_level: Optional[int] = None
    job_name: Optional[str] = None
    goal_level: Optional[int] = None
    goal_name: Optional[str] = None
    tdee_kcal: Optional[int] = None
    recommended_kcal: Optional[int] = None
    activity_kcal: Optional[int] = None
    water_ml: Optional[int] = None
    macros: Optional[MacroTargets] = None
    micros: Optional[Dict[str, Optional[float]]] = None


class ComplianceEntry(BaseModel):
    value: float
    target: Optional[float] = None
    ratio: Optional[float] = None
    status: str


class PlanNutritionResponse(BaseModel):
    plan_id: int
    length_days: int
    totals: Dict[str, float]
    per_day: Dict[str, float]
    compliance: Dict[str, ComplianceEntry]
    targets: NutritionTargetsResponse
