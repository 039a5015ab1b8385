import logging
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Any

from mealcycle.services.nutrition_service import MACRO_FIELDS, MICRO_FIELDS, to_number
from mealcycle.services.schedule_service import PlanSchedule

logger = logging.getLogger(__name__)

"""
Aggregation Service
-------------------
Sums recipe nutrition over a plan's scheduled slots, averages it per plan day and
grades each nutrient against the profile's targets.
"""

TOLERANCE = 0.05

ON_TARGET = "on_target"
ABOVE = "above"
BELOW = "below"
UNDEFINED = "undefined"

# Vitamins recipes may carry that have no daily target yet
UNTARGETED_MICROS = ("B2_mg", "B3_mg", "B5_mg", "B9_mcg")

TRACKED_NUTRIENTS = (
    ("kcal", "water_ml")
    + MACRO_FIELDS
    + ("carbs_other_g",)
    + MICRO_FIELDS
    + UNTARGETED_MICROS
)

# Alternate field names found in recipe nutrition rows
NUTRIENT_ALIASES = {
    "protein_g": ("macro_protein_total",),
    "carbs_g": ("macro_carb_total",),
    "carbs_sugar_g": ("macro_carb_sugar",),
    "carbs_fiber_g": ("macro_carb_fiber",),
    "carbs_starch_g": ("macro_carb_starch",),
    "carbs_other_g": ("macro_carb_other",),
    "fat_g": ("macro_fat_total",),
    "fat_saturated_g": ("macro_fat_saturated",),
    "fat_monosaturated_g": ("fat_mono_g", "macro_fat_monosaturated"),
    "fat_polyunsaturated_g": ("fat_poly_g", "macro_fat_polyunsaturated"),
    "fat_trans_g": ("macro_fat_trans",),
    "vitA_mcg": ("micro_vitA",),
    "B1_mg": ("micro_vitB1",),
    "B2_mg": ("micro_vitB2",),
    "B3_mg": ("micro_vitB3",),
    "B5_mg": ("micro_vitB5",),
    "B6_mg": ("micro_B6",),
    "B9_mcg": ("micro_vitB9",),
    "B12_mcg": ("micro_B12",),
    "vitC_mg": ("micro_vitC",),
    "vitD_mcg": ("micro_vitD",),
    "vitE_mg": ("micro_vitE",),
    "vitK_mcg": ("micro_vitK",),
    "calcium_mg": ("micro_calcium",),
    "copper_mg": ("micro_copper",),
    "iron_mg": ("micro_iron",),
    "magnesium_mg": ("micro_magnesium",),
    "manganese_mg": ("micro_manganese",),
    "phosphorus_mg": ("micro_phosphorus",),
    "potassium_mg": ("micro_potassium",),
    "selenium_mcg": ("micro_selenium",),
    "sodium_mg": ("micro_sodium",),
    "zinc_mg": ("micro_zinc",),
}


@dataclass(frozen=True)
class ComplianceEntry:
    value: float
    target: Optional[float]
    ratio: Optional[float]
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def nutrient_value(nutrition: dict, key: str) -> float:
    """Value of one nutrient in a recipe's nutrition vector; 0 when absent."""
    for name in (key,) + NUTRIENT_ALIASES.get(key, ()):
        value = to_number(nutrition.get(name))
        if value is not None:
            return value
    return 0.0


def empty_totals() -> Dict[str, float]:
    return {key: 0.0 for key in TRACKED_NUTRIENTS}


def aggregate(plan: PlanSchedule, lookup) -> Dict[str, float]:
    """
    Sum every tracked nutrient over the plan's reachable slots.
    A recipe the lookup cannot resolve contributes nothing.
    """
    totals = empty_totals()
    missing = 0
    for day_index, meal_name, ref in plan.reachable_slots():
        nutrition = lookup.get(ref.recipe_id)
        if not nutrition:
            missing += 1
            continue
        for key in TRACKED_NUTRIENTS:
            totals[key] += nutrient_value(nutrition, key)

    if missing:
        logger.warning(f"Aggregation skipped {missing} slot(s) with no nutrition data")
    return totals


def per_day(totals: Dict[str, float], length_days: int) -> Dict[str, float]:
    """Average over the plan length (not over the days that happen to be filled)."""
    if length_days < 1:
        raise ValueError("length_days must be >= 1")
    return {key: value / length_days for key, value in totals.items()}


def classify(value, target) -> ComplianceEntry:
    v = to_number(value) or 0.0
    t = to_number(target)
    if t is None or t <= 0:
        return ComplianceEntry(v, t, None, UNDEFINED)

    ratio = (v - t) / t
    if abs(ratio) <= TOLERANCE:
        status = ON_TARGET
    elif ratio > TOLERANCE:
        status = ABOVE
    else:
        status = BELOW
    return ComplianceEntry(v, t, ratio, status)


def compare_to_targets(per_day_totals: Dict[str, float], targets: Dict[str, Optional[float]]) -> Dict[str, ComplianceEntry]:
    report = {key: classify(value, targets.get(key)) for key, value in per_day_totals.items()}
    for key, target in targets.items():
        if key not in report:
            report[key] = classify(0.0, target)
    return report


def targets_for_comparison(targets: Dict[str, Any]) -> Dict[str, Optional[float]]:
    """Flatten derived targets into the nutrient key space used by the totals."""
    kcal = targets.get("recommended_kcal")
    if kcal is None:
        kcal = targets.get("tdee_kcal")
    flat = {"kcal": kcal, "water_ml": targets.get("water_ml")}
    flat.update(targets.get("macros") or {key: None for key in MACRO_FIELDS})
    flat.update(targets.get("micros") or {})
    return flat


def build_report(per_day_totals: Dict[str, float], targets: Dict[str, Any]) -> Dict[str, ComplianceEntry]:
    """Compliance per nutrient, plus the activity energy line (kcal above BMR)."""
    report = compare_to_targets(per_day_totals, targets_for_comparison(targets))

    bmr = targets.get("bmr_kcal")
    activity_value = max(0.0, per_day_totals.get("kcal", 0.0) - bmr) if bmr is not None else 0.0
    report["activity_kcal"] = classify(activity_value, targets.get("activity_kcal"))
    return report
