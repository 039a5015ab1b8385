import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

"""
Nutrition Service
-----------------
Derives calorie, macro, water and micro targets from profile metrics.
This module is pure business logic and does not depend on the Database or Models directly.

Every function accepts missing inputs and answers None for the affected value
instead of raising, so callers can render an "incomplete profile" state.
"""

ACTIVITY_FACTOR = {1: 1.2, 2: 1.375, 3: 1.55, 4: 1.725, 5: 1.9}
JOB_KCAL_ADJUSTMENT = {1: 0, 2: 200, 3: 400}
GOAL_KCAL_ADJUSTMENT = {1: -500, 2: -250, 3: 0, 4: 250, 5: 500}
WATER_MULTIPLIER = {1: 0.9, 2: 1.0, 3: 1.125, 4: 1.25, 5: 1.4}

PROTEIN_PCT_BY_GOAL = {1: 0.40, 2: 0.35, 3: 0.30, 4: 0.30, 5: 0.35}
FAT_PCT_BY_ACTIVITY = {1: 0.20, 2: 0.25, 3: 0.30, 4: 0.30, 5: 0.30}

ACTIVITY_LEVEL_NAMES = {
    1: "Inactive",
    2: "Lightly active",
    3: "Active",
    4: "Very active",
    5: "Extremely active",
}
JOB_LEVEL_NAMES = {1: "Sedentary", 2: "Active", 3: "Very Active"}
GOAL_LEVEL_NAMES = {
    1: "Fast Weight Loss",
    2: "Progressive Weight Loss",
    3: "Maintenance",
    4: "Progressive Weight Gain",
    5: "Fast Weight Gain",
}

MACRO_FIELDS = (
    "protein_g",
    "carbs_g",
    "carbs_sugar_g",
    "carbs_fiber_g",
    "carbs_starch_g",
    "fat_g",
    "fat_saturated_g",
    "fat_monosaturated_g",
    "fat_polyunsaturated_g",
    "fat_trans_g",
)

PRECEDENCE_OVERRIDE = "override"
PRECEDENCE_MINUTES = "minutes"


@dataclass
class ProfileMetrics:
    sex: str = "unknown"
    birth_date: Optional[date] = None
    height_cm: Optional[float] = None
    weight_kg: Optional[float] = None
    job_level: Optional[int] = 1
    weekly_active_minutes: Optional[int] = None
    goal_level: Optional[int] = 3
    # Stored values that win over computed ones when present
    active_level: Optional[int] = None
    recommended_kcal_override: Optional[float] = None
    macro_overrides: Dict[str, Any] = field(default_factory=dict)
    micro_overrides: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_profile(cls, profile) -> "ProfileMetrics":
        """Build metrics from a UserProfile row (or anything exposing the same attributes)."""
        return cls(
            sex=normalize_sex(getattr(profile, "sex", None)),
            birth_date=getattr(profile, "birth_date", None),
            height_cm=getattr(profile, "height_cm", None),
            weight_kg=getattr(profile, "weight_kg", None),
            job_level=getattr(profile, "job_level", None),
            weekly_active_minutes=getattr(profile, "weekly_active_minutes", None),
            goal_level=getattr(profile, "goal_level", None),
            active_level=getattr(profile, "active_level", None),
            recommended_kcal_override=getattr(profile, "recommended_kcal_override", None),
            macro_overrides=getattr(profile, "macro_overrides", None) or {},
            micro_overrides=getattr(profile, "micro_overrides", None) or {},
        )


# --- value helpers ---

def to_number(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


def to_level(value, table: dict) -> Optional[int]:
    """Integer level if it is a key of `table`, else None."""
    n = to_number(value)
    if n is None or not n.is_integer():
        return None
    n = int(n)
    return n if n in table else None


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _non_negative(value: Optional[int]) -> Optional[int]:
    if value is None or value < 0:
        return None
    return value


def normalize_sex(raw) -> str:
    s = str(raw or "").strip().lower()
    if s.startswith("m"):
        return "male"
    if s.startswith("f"):
        return "female"
    return "unknown"


def parse_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def goal_level_from_text(text: Optional[str]) -> int:
    """Map the legacy lose / maintain / gain goal text onto a goal level."""
    t = (text or "").strip().lower()
    if t == "lose":
        return 2
    if t == "gain":
        return 4
    return 3


# --- engine ---

def compute_age(birth_date, today: Optional[date] = None) -> Optional[int]:
    born = parse_date(birth_date)
    if born is None:
        return None
    today = today or date.today()
    age = today.year - born.year - ((today.month, today.day) < (born.month, born.day))
    return age if age >= 0 else None


def compute_activity_level(weekly_active_minutes) -> Optional[int]:
    minutes = to_number(weekly_active_minutes)
    if minutes is None:
        return None
    if minutes <= 60:
        return 1
    if minutes <= 180:
        return 2
    if minutes <= 360:
        return 3
    if minutes <= 600:
        return 4
    return 5


def resolve_activity_level(
    active_level,
    weekly_active_minutes,
    precedence: str = PRECEDENCE_OVERRIDE,
) -> Optional[int]:
    """
    Pick the activity level when a profile carries both a stored level and weekly minutes.

    override: stored level when present, else derived from minutes.
    minutes:  derived from minutes when present, else stored level.
    """
    stored = to_level(active_level, ACTIVITY_FACTOR)
    derived = compute_activity_level(weekly_active_minutes)

    if precedence == PRECEDENCE_MINUTES:
        return derived if derived is not None else stored
    if precedence != PRECEDENCE_OVERRIDE:
        logger.warning(f"Unknown activity precedence '{precedence}', using '{PRECEDENCE_OVERRIDE}'")
    return stored if stored is not None else derived


def compute_bmr(sex, age, height_cm, weight_kg) -> Optional[int]:
    """Mifflin-St Jeor, rounded to the nearest kcal."""
    a = to_number(age)
    h = to_number(height_cm)
    w = to_number(weight_kg)
    if a is None or h is None or w is None or h <= 0 or w <= 0 or a < 0:
        return None
    sex_adjustment = 5 if normalize_sex(sex) == "male" else -161
    return _non_negative(round_half_up(10 * w + 6.25 * h - 5 * a + sex_adjustment))


def compute_tdee(bmr, job_level, activity_level) -> Optional[int]:
    b = to_number(bmr)
    al = to_level(activity_level, ACTIVITY_FACTOR)
    if b is None or al is None:
        return None
    jl = to_level(job_level, JOB_KCAL_ADJUSTMENT) or 1
    return _non_negative(round_half_up(b * ACTIVITY_FACTOR[al]) + JOB_KCAL_ADJUSTMENT[jl])


def compute_recommended_calories(
    bmr,
    activity_level,
    job_level,
    goal_level,
    explicit_override=None,
) -> Optional[int]:
    explicit = to_number(explicit_override)
    if explicit is not None:
        return _non_negative(round_half_up(explicit))

    b = to_number(bmr)
    if b is None:
        return None

    # Missing activity falls back to level 1 so a usable (if conservative) target still exists.
    al = to_level(activity_level, ACTIVITY_FACTOR) or 1
    gl = to_level(goal_level, GOAL_KCAL_ADJUSTMENT) or 3
    jl = to_level(job_level, JOB_KCAL_ADJUSTMENT) or 1

    return _non_negative(
        round_half_up(b * ACTIVITY_FACTOR[al] + GOAL_KCAL_ADJUSTMENT[gl] + JOB_KCAL_ADJUSTMENT[jl])
    )


def compute_macros(kcal, goal_level, activity_level) -> Optional[Dict[str, int]]:
    """
    Macro breakdown for a calorie target.

    Protein share follows the goal, fat share follows the activity level,
    carbs take the remaining energy. Carbs are not clipped at this level.
    """
    c = to_number(kcal)
    gl = to_level(goal_level, GOAL_KCAL_ADJUSTMENT)
    al = to_level(activity_level, ACTIVITY_FACTOR)
    if c is None or gl is None or al is None or c < 0:
        return None

    protein_pct = PROTEIN_PCT_BY_GOAL[gl]
    fat_pct = FAT_PCT_BY_ACTIVITY[al]

    protein_g = round_half_up(c * protein_pct / 4)
    fat_g = round_half_up(c * fat_pct / 9)
    carbs_g = round_half_up((c - protein_g * 4 - fat_g * 9) / 4)

    # Carb subtypes, per 1000 kcal
    sugar_g = round_half_up(c / 1000 * 10)
    fiber_g = round_half_up(c / 1000 * 14)
    starch_g = max(0, carbs_g - sugar_g - fiber_g)

    # Fat subtypes
    saturated_g = round_half_up(fat_g * 0.16)
    polyunsaturated_g = round_half_up(fat_g * 0.30)
    trans_g = 0
    monounsaturated_g = max(0, fat_g - saturated_g - polyunsaturated_g - trans_g)

    return {
        "protein_g": protein_g,
        "carbs_g": carbs_g,
        "carbs_sugar_g": sugar_g,
        "carbs_fiber_g": fiber_g,
        "carbs_starch_g": starch_g,
        "fat_g": fat_g,
        "fat_saturated_g": saturated_g,
        "fat_monosaturated_g": monounsaturated_g,
        "fat_polyunsaturated_g": polyunsaturated_g,
        "fat_trans_g": trans_g,
    }


def compute_water(weight_kg, activity_level) -> Optional[int]:
    w = to_number(weight_kg)
    if w is None or w <= 0:
        return None
    al = to_level(activity_level, WATER_MULTIPLIER) or 1
    return round_half_up(w * 40 * WATER_MULTIPLIER[al])


def compute_micros(sex, age) -> Dict[str, float]:
    """
    Daily vitamin and mineral targets.

    Unknown sex uses the female column, unknown age the 50-and-under column,
    so every nutrient always has a value.
    """
    male = normalize_sex(sex) == "male"
    a = to_number(age)
    over_50 = a is not None and a > 50
    over_70 = a is not None and a > 70

    def pick(male_value, female_value):
        return male_value if male else female_value

    if a is None or a <= 50:
        calcium_mg = 1000
        chloride_mg = 2300
    elif a <= 70:
        calcium_mg = pick(1000, 1200)
        chloride_mg = 2000
    else:
        calcium_mg = 1200
        chloride_mg = 1800

    return {
        # Vitamins
        "vitA_mcg": pick(900, 700),
        "B1_mg": 1.5 if over_50 else 1.3,
        "B6_mg": 1.5 if over_50 else 1.3,
        "B12_mcg": 2.44,
        "vitC_mg": pick(90, 75),
        "vitD_mcg": 20 if over_70 else 15,
        "vitE_mg": 15,
        "vitK_mcg": pick(120, 90),
        "thiamin_mg": pick(1.2, 1.1),
        "riboflavin_mg": pick(1.3, 1.1),
        "niacin_mg": pick(16, 14),
        "folate_mcg": 400,
        "pantothenic_mg": 5,
        "biotin_mcg": 30,
        "choline_mg": pick(550, 425),
        # Minerals
        "calcium_mg": calcium_mg,
        "chloride_mg": chloride_mg,
        "chromium_mcg": pick(30, 20) if over_50 else pick(35, 25),
        "copper_mg": 0.9,
        "fluoride_mg": pick(4, 3),
        "iodine_mcg": 150,
        "iron_mg": 8 if over_50 else pick(8, 18),
        "magnesium_mg": pick(420, 320) if over_50 else pick(400, 310),
        "manganese_mg": pick(2.3, 1.8),
        "molybdenum_mcg": 45,
        "phosphorus_mg": 700,
        "potassium_mg": pick(3400, 2600),
        "selenium_mcg": 55,
        "sodium_mg": 1500,
        "zinc_mg": pick(11, 8),
    }


MICRO_FIELDS = tuple(compute_micros(None, None))


def _apply_overrides(computed: Optional[dict], overrides: dict, fields) -> Optional[dict]:
    stored = {}
    for key in fields:
        value = to_number((overrides or {}).get(key))
        if value is not None and value >= 0:
            stored[key] = value
    if computed is None and not stored:
        return None
    merged = dict(computed or {key: None for key in fields})
    merged.update(stored)
    return merged


def derive_targets(
    metrics: ProfileMetrics,
    today: Optional[date] = None,
    precedence: str = PRECEDENCE_OVERRIDE,
) -> Dict[str, Any]:
    """
    Full target set for a profile.

    Algorithm:
    1. Age from birth date
    2. Activity level (stored level vs weekly minutes, see resolve_activity_level)
    3. BMR (Mifflin-St Jeor) -> TDEE (activity factor + job adjustment)
    4. Recommended calories (explicit override wins, else goal adjustment)
    5. Macros, water and micros; stored per-nutrient values win over computed ones
    """
    age = compute_age(metrics.birth_date, today)
    activity_level = resolve_activity_level(
        metrics.active_level, metrics.weekly_active_minutes, precedence
    )
    job_level = to_level(metrics.job_level, JOB_KCAL_ADJUSTMENT) or 1
    goal_level = to_level(metrics.goal_level, GOAL_KCAL_ADJUSTMENT) or 3

    bmr = compute_bmr(metrics.sex, age, metrics.height_cm, metrics.weight_kg)
    tdee = compute_tdee(bmr, job_level, activity_level)
    recommended = compute_recommended_calories(
        bmr, activity_level, job_level, goal_level, metrics.recommended_kcal_override
    )

    macros = _apply_overrides(
        compute_macros(recommended, goal_level, activity_level),
        metrics.macro_overrides,
        MACRO_FIELDS,
    )
    micros = compute_micros(metrics.sex, age)
    micros = _apply_overrides(micros, metrics.micro_overrides, tuple(micros.keys()))

    activity_kcal = max(0, tdee - bmr) if tdee is not None and bmr is not None else None

    if bmr is None:
        logger.info("[Nutrition Service] Incomplete profile: BMR unavailable, energy targets left empty")

    return {
        "age": age,
        "sex": metrics.sex,
        "bmr_kcal": bmr,
        "activity_level": activity_level,
        "activity_name": ACTIVITY_LEVEL_NAMES.get(activity_level),
        "job_level": job_level,
        "job_name": JOB_LEVEL_NAMES[job_level],
        "goal_level": goal_level,
        "goal_name": GOAL_LEVEL_NAMES[goal_level],
        "tdee_kcal": tdee,
        "recommended_kcal": recommended,
        "activity_kcal": activity_kcal,
        "water_ml": compute_water(metrics.weight_kg, activity_level),
        "macros": macros,
        "micros": micros,
    }
