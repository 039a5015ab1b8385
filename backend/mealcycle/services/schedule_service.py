import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from mealcycle.errors import ValidationError, ConsistencyViolation

logger = logging.getLogger(__name__)

"""
Schedule Service
----------------
Single source of truth for a plan's meal-slot assignments.

The canonical model is a map keyed by (day_index, meal_name). The two persisted
shapes are pure projections of it:

    weekly: {week_index: {weekday_name: [{meal_name, recipe_id, name, image_url}]}}
    flat:   {"days": {day_index: {slot_index: recipe_ref | None}}, "meals": [...], "length_days": n}

Both are rebuilt from the canonical model on every write; neither is edited directly.
"""

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

MIN_MEALS_PER_DAY = 1
MAX_MEALS_PER_DAY = 10
PLACEHOLDER_MEAL_NAME = "Meal {n}"

DayRef = Union[int, Tuple[int, str]]


@dataclass(frozen=True)
class RecipeRef:
    recipe_id: Any
    name: Optional[str] = None
    image_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"recipe_id": self.recipe_id, "name": self.name, "image_url": self.image_url}

    @classmethod
    def from_dict(cls, data) -> Optional["RecipeRef"]:
        if not isinstance(data, dict) or data.get("recipe_id") is None:
            return None
        return cls(
            recipe_id=data["recipe_id"],
            name=data.get("name"),
            image_url=data.get("image_url", data.get("image_ref")),
        )


def day_position(day_index: int) -> Tuple[int, str]:
    """(week_index, weekday_name) for a 1-based day index."""
    return (day_index - 1) // 7, WEEKDAYS[(day_index - 1) % 7]


def day_index_for(week_index: int, weekday_name: str) -> int:
    if weekday_name not in WEEKDAYS:
        raise ValidationError(f"Unknown weekday '{weekday_name}'")
    if week_index < 0:
        raise ValidationError("Week index must be >= 0")
    return week_index * 7 + WEEKDAYS.index(weekday_name) + 1


class Schedule:
    """Canonical slot map: (day_index, meal_name) -> RecipeRef."""

    def __init__(self, slots: Optional[Dict[Tuple[int, str], RecipeRef]] = None):
        self._slots: Dict[Tuple[int, str], RecipeRef] = dict(slots or {})

    def __len__(self) -> int:
        return len(self._slots)

    def __eq__(self, other) -> bool:
        return isinstance(other, Schedule) and self._slots == other._slots

    def __repr__(self) -> str:
        return f"<Schedule {len(self._slots)} slots>"

    def items(self) -> Iterator[Tuple[Tuple[int, str], RecipeRef]]:
        return iter(self._slots.items())

    def get(self, day_index: int, meal_name: str) -> Optional[RecipeRef]:
        return self._slots.get((day_index, meal_name))

    def with_slot(self, day_index: int, meal_name: str, ref: Optional[RecipeRef]) -> "Schedule":
        slots = dict(self._slots)
        if ref is None:
            slots.pop((day_index, meal_name), None)
        else:
            slots[(day_index, meal_name)] = ref
        return Schedule(slots)

    def renamed(self, old_name: str, new_name: str) -> "Schedule":
        """Move every `old_name` slot to `new_name`; moved slots replace orphans already stored there."""
        slots = {key: ref for key, ref in self._slots.items() if key[1] != new_name}
        for (day, meal), ref in self._slots.items():
            if meal == old_name:
                del slots[(day, meal)]
                slots[(day, new_name)] = ref
        return Schedule(slots)

    def reachable(self, meal_names: List[str], length_days: int) -> List[Tuple[int, str, RecipeRef]]:
        """Slots inside the plan horizon whose meal name is still on the plan, in calendar order."""
        names = set(meal_names)
        out = [
            (day, meal, ref)
            for (day, meal), ref in self._slots.items()
            if 1 <= day <= length_days and meal in names
        ]
        order = {name: i for i, name in reversed(list(enumerate(meal_names)))}
        out.sort(key=lambda slot: (slot[0], order[slot[1]]))
        return out

    # --- persisted shapes ---

    @classmethod
    def from_weekly(cls, weekly) -> "Schedule":
        slots: Dict[Tuple[int, str], RecipeRef] = {}
        for week_key, by_day in (weekly or {}).items():
            try:
                week_index = int(week_key)
            except (TypeError, ValueError):
                logger.warning(f"Skipping weekly entry with invalid week index '{week_key}'")
                continue
            for weekday_name, entries in (by_day or {}).items():
                if weekday_name not in WEEKDAYS or week_index < 0:
                    logger.warning(f"Skipping weekly entry for unknown day '{week_key}/{weekday_name}'")
                    continue
                day_index = day_index_for(week_index, weekday_name)
                for entry in entries or []:
                    if not isinstance(entry, dict):
                        continue
                    # Older rows stored the meal name under "type"
                    meal_name = entry.get("meal_name", entry.get("type"))
                    ref = RecipeRef.from_dict(entry)
                    if meal_name is None or ref is None:
                        continue
                    # First entry wins, matching the flat projection's lookup
                    slots.setdefault((day_index, meal_name), ref)
        return cls(slots)

    @classmethod
    def from_flat(cls, flat, meal_names: List[str]) -> "Schedule":
        flat = flat or {}
        names = flat.get("meals") or meal_names
        slots: Dict[Tuple[int, str], RecipeRef] = {}
        for day_key, by_slot in (flat.get("days") or {}).items():
            for slot_key, data in (by_slot or {}).items():
                try:
                    day_index, slot_index = int(day_key), int(slot_key)
                except (TypeError, ValueError):
                    continue
                ref = RecipeRef.from_dict(data)
                if ref is None or day_index < 1 or not 1 <= slot_index <= len(names):
                    continue
                slots.setdefault((day_index, names[slot_index - 1]), ref)
        return cls(slots)

    def to_weekly(self) -> Dict[str, Dict[str, List[dict]]]:
        weekly: Dict[str, Dict[str, List[dict]]] = {}
        for (day_index, meal_name), ref in sorted(self._slots.items(), key=lambda kv: kv[0][0]):
            week_index, weekday_name = day_position(day_index)
            weekly.setdefault(str(week_index), {}).setdefault(weekday_name, []).append(
                {"meal_name": meal_name, **ref.to_dict()}
            )
        return weekly

    def to_flat(self, meal_names: List[str], length_days: int) -> Dict[str, Any]:
        days = {}
        for day_index in range(1, length_days + 1):
            day = {}
            for slot, meal_name in enumerate(meal_names, start=1):
                ref = self.get(day_index, meal_name)
                day[str(slot)] = ref.to_dict() if ref else None
            days[str(day_index)] = day
        return {"days": days, "meals": list(meal_names), "length_days": length_days}


def build_flat_from_weekly(weekly, meal_names: List[str], length_days: int) -> Dict[str, Any]:
    """
    Flat day-by-day schedule derived straight from the weekly structure.

    Pure and deterministic: the same weekly data always yields an identical result.
    """
    days = {}
    for day_index in range(1, length_days + 1):
        week_index, weekday_name = day_position(day_index)
        by_day = (weekly or {}).get(str(week_index)) or (weekly or {}).get(week_index) or {}
        assigned = by_day.get(weekday_name) or []
        day = {}
        for slot, meal_name in enumerate(meal_names, start=1):
            hit = next(
                (x for x in assigned
                 if isinstance(x, dict) and x.get("meal_name", x.get("type")) == meal_name),
                None,
            )
            ref = RecipeRef.from_dict(hit)
            day[str(slot)] = ref.to_dict() if ref else None
        days[str(day_index)] = day
    return {"days": days, "meals": list(meal_names), "length_days": length_days}


@dataclass
class PlanSchedule:
    """The part of a plan the schedule store owns: horizon, meal names and slots."""

    length_days: int
    meal_names: List[str]
    schedule: Schedule = field(default_factory=Schedule)

    @classmethod
    def from_plan(cls, plan) -> "PlanSchedule":
        meal_names = list(plan.meal_names or [])
        weekly = getattr(plan, "schedule_weekly", None)
        flat = getattr(plan, "schedule_flat", None)
        if weekly:
            schedule = Schedule.from_weekly(weekly)
        elif flat:
            schedule = Schedule.from_flat(flat, meal_names)
        else:
            schedule = Schedule()
        return cls(length_days=int(plan.length_days), meal_names=meal_names, schedule=schedule)

    @property
    def meals_per_day(self) -> int:
        return len(self.meal_names)

    def weekly(self) -> dict:
        return self.schedule.to_weekly()

    def flat(self) -> dict:
        return self.schedule.to_flat(self.meal_names, self.length_days)

    def to_patch(self) -> Dict[str, Any]:
        """All schedule-owned columns, written together in one commit."""
        verify_consistency(self)
        return {
            "length_days": self.length_days,
            "meals_per_day": self.meals_per_day,
            "meal_names": list(self.meal_names),
            "schedule_weekly": self.weekly(),
            "schedule_flat": self.flat(),
        }

    def is_day_complete(self, day_index: int) -> bool:
        return all(self.schedule.get(day_index, name) is not None for name in self.meal_names)

    def reachable_slots(self) -> List[Tuple[int, str, RecipeRef]]:
        return self.schedule.reachable(self.meal_names, self.length_days)


def _resolve_day(plan: PlanSchedule, day_ref: DayRef) -> int:
    if isinstance(day_ref, tuple):
        week_index, weekday_name = day_ref
        day_index = day_index_for(int(week_index), weekday_name)
    else:
        day_index = int(day_ref)
    if not 1 <= day_index <= plan.length_days:
        raise ValidationError(f"Day {day_index} is outside the plan (1-{plan.length_days})")
    return day_index


def assign(plan: PlanSchedule, day_ref: DayRef, meal_name: str, recipe_ref: Optional[RecipeRef]) -> PlanSchedule:
    """Upsert (or clear, with recipe_ref=None) one slot."""
    day_index = _resolve_day(plan, day_ref)
    if meal_name not in plan.meal_names:
        raise ValidationError(f"Unknown meal '{meal_name}'")
    if recipe_ref is not None and recipe_ref.recipe_id is None:
        raise ValidationError("Recipe reference requires a recipe_id")
    return replace(plan, schedule=plan.schedule.with_slot(day_index, meal_name, recipe_ref))


def rename_meal_type(plan: PlanSchedule, old_name: str, new_name: str) -> PlanSchedule:
    """
    Rename a meal column and carry every slot keyed by it forward, across all weeks.
    Returns a new PlanSchedule; the caller persists it as one write.

    Slots are keyed by name, so when the same name appears at several positions
    every one of them is renamed.
    """
    new_name = (new_name or "").strip()
    if old_name not in plan.meal_names:
        raise ValidationError(f"Unknown meal '{old_name}'")
    if not new_name:
        raise ValidationError("Meal name required")
    if new_name == old_name:
        return plan
    if new_name in plan.meal_names:
        raise ValidationError(f"A meal named '{new_name}' already exists")

    meal_names = [new_name if name == old_name else name for name in plan.meal_names]
    logger.info(f"Renaming meal '{old_name}' -> '{new_name}'")
    return replace(plan, meal_names=meal_names, schedule=plan.schedule.renamed(old_name, new_name))


def resize_meals_per_day(plan: PlanSchedule, new_count: int) -> PlanSchedule:
    """
    Truncate or pad the meal names. Slots under dropped names stay in storage but
    are no longer reachable from the plan.
    """
    if not isinstance(new_count, int) or isinstance(new_count, bool) or not MIN_MEALS_PER_DAY <= new_count <= MAX_MEALS_PER_DAY:
        raise ValidationError(f"Meals/day must be {MIN_MEALS_PER_DAY}-{MAX_MEALS_PER_DAY}")
    meal_names = list(plan.meal_names[:new_count])
    while len(meal_names) < new_count:
        meal_names.append(PLACEHOLDER_MEAL_NAME.format(n=len(meal_names) + 1))
    return replace(plan, meal_names=meal_names)


def verify_consistency(plan: PlanSchedule) -> None:
    weekly = plan.weekly()
    flat = plan.flat()
    if build_flat_from_weekly(weekly, plan.meal_names, plan.length_days) != flat:
        raise ConsistencyViolation("Flat schedule does not match the weekly schedule")
    if Schedule.from_weekly(weekly) != plan.schedule:
        raise ConsistencyViolation("Weekly schedule lost assignments during rebuild")
