import unittest

from mealcycle.errors import ValidationError, ConsistencyViolation
from mealcycle.services.schedule_service import (
    PlanSchedule,
    RecipeRef,
    Schedule,
    assign,
    build_flat_from_weekly,
    day_position,
    rename_meal_type,
    resize_meals_per_day,
    verify_consistency,
)

OATS = RecipeRef(recipe_id=1, name="Oats", image_url="oats.png")
SALAD = RecipeRef(recipe_id=2, name="Salad")
APPLE = RecipeRef(recipe_id=3, name="Apple")


def make_plan(length_days=14, meal_names=None):
    return PlanSchedule(length_days=length_days, meal_names=meal_names or ["Breakfast", "Lunch", "Snack"])


class FakePlanRow:
    def __init__(self, **fields):
        self.__dict__.update(fields)


class TestDayPositions(unittest.TestCase):
    def test_day_position(self):
        self.assertEqual(day_position(1), (0, "Monday"))
        self.assertEqual(day_position(7), (0, "Sunday"))
        self.assertEqual(day_position(8), (1, "Monday"))
        self.assertEqual(day_position(14), (1, "Sunday"))


class TestAssign(unittest.TestCase):
    def test_assign_and_clear(self):
        plan = assign(make_plan(), 3, "Lunch", SALAD)
        self.assertEqual(plan.schedule.get(3, "Lunch"), SALAD)

        plan = assign(plan, 3, "Lunch", None)
        self.assertIsNone(plan.schedule.get(3, "Lunch"))
        self.assertEqual(len(plan.schedule), 0)

    def test_assign_replaces_existing_slot(self):
        plan = assign(make_plan(), 1, "Breakfast", OATS)
        plan = assign(plan, 1, "Breakfast", APPLE)
        self.assertEqual(len(plan.schedule), 1)
        self.assertEqual(plan.schedule.get(1, "Breakfast"), APPLE)

    def test_assign_by_week_and_weekday(self):
        plan = assign(make_plan(), (1, "Wednesday"), "Snack", APPLE)
        self.assertEqual(plan.schedule.get(10, "Snack"), APPLE)

    def test_assign_returns_new_plan(self):
        before = make_plan()
        assign(before, 1, "Breakfast", OATS)
        self.assertEqual(len(before.schedule), 0)

    def test_assign_rejects_bad_references(self):
        plan = make_plan(length_days=14)
        with self.assertRaises(ValidationError):
            assign(plan, 0, "Lunch", SALAD)
        with self.assertRaises(ValidationError):
            assign(plan, 15, "Lunch", SALAD)
        with self.assertRaises(ValidationError):
            assign(plan, 2, "Dinner", SALAD)
        with self.assertRaises(ValidationError):
            assign(plan, (0, "Funday"), "Lunch", SALAD)
        with self.assertRaises(ValidationError):
            assign(plan, 1, "Lunch", RecipeRef(None, "Nameless"))


class TestProjections(unittest.TestCase):
    def setUp(self):
        plan = make_plan()
        plan = assign(plan, 1, "Breakfast", OATS)
        plan = assign(plan, 1, "Snack", APPLE)
        plan = assign(plan, 9, "Lunch", SALAD)
        self.plan = plan

    def test_weekly_shape(self):
        weekly = self.plan.weekly()
        self.assertEqual(sorted(weekly), ["0", "1"])
        monday = weekly["0"]["Monday"]
        self.assertEqual({e["meal_name"] for e in monday}, {"Breakfast", "Snack"})
        self.assertEqual(weekly["1"]["Tuesday"][0]["recipe_id"], 2)

    def test_flat_shape(self):
        flat = self.plan.flat()
        self.assertEqual(flat["meals"], ["Breakfast", "Lunch", "Snack"])
        self.assertEqual(flat["length_days"], 14)
        self.assertEqual(len(flat["days"]), 14)
        self.assertEqual(flat["days"]["1"]["1"]["recipe_id"], 1)
        self.assertIsNone(flat["days"]["1"]["2"])
        self.assertEqual(flat["days"]["1"]["3"]["recipe_id"], 3)
        self.assertEqual(flat["days"]["9"]["2"]["name"], "Salad")

    def test_build_flat_from_weekly_is_deterministic(self):
        weekly = self.plan.weekly()
        first = build_flat_from_weekly(weekly, self.plan.meal_names, 14)
        second = build_flat_from_weekly(weekly, self.plan.meal_names, 14)
        self.assertEqual(first, second)
        self.assertEqual(first, self.plan.flat())

    def test_weekly_and_flat_parse_back_to_same_schedule(self):
        self.assertEqual(Schedule.from_weekly(self.plan.weekly()), self.plan.schedule)
        self.assertEqual(Schedule.from_flat(self.plan.flat(), self.plan.meal_names), self.plan.schedule)

    def test_legacy_type_key(self):
        weekly = {"0": {"Monday": [{"type": "Breakfast", "recipe_id": 1, "name": "Oats", "image_url": "oats.png"}]}}
        schedule = Schedule.from_weekly(weekly)
        self.assertEqual(schedule.get(1, "Breakfast"), OATS)

    def test_first_duplicate_wins(self):
        weekly = {0: {"Monday": [
            {"meal_name": "Lunch", "recipe_id": 2, "name": "Salad"},
            {"meal_name": "Lunch", "recipe_id": 3, "name": "Apple"},
        ]}}
        self.assertEqual(Schedule.from_weekly(weekly).get(1, "Lunch"), SALAD)
        flat = build_flat_from_weekly(weekly, ["Lunch"], 1)
        self.assertEqual(flat["days"]["1"]["1"]["recipe_id"], 2)

    def test_from_plan_prefers_weekly(self):
        row = FakePlanRow(
            length_days=14,
            meal_names=["Breakfast", "Lunch", "Snack"],
            schedule_weekly=self.plan.weekly(),
            schedule_flat={"days": {}, "meals": [], "length_days": 14},
        )
        self.assertEqual(PlanSchedule.from_plan(row).schedule, self.plan.schedule)

    def test_from_plan_falls_back_to_flat(self):
        row = FakePlanRow(
            length_days=14,
            meal_names=["Breakfast", "Lunch", "Snack"],
            schedule_weekly=None,
            schedule_flat=self.plan.flat(),
        )
        self.assertEqual(PlanSchedule.from_plan(row).schedule, self.plan.schedule)

    def test_patch_carries_every_schedule_column(self):
        patch = self.plan.to_patch()
        self.assertEqual(
            set(patch),
            {"length_days", "meals_per_day", "meal_names", "schedule_weekly", "schedule_flat"},
        )
        self.assertEqual(patch["meals_per_day"], 3)

    def test_day_complete(self):
        self.assertFalse(self.plan.is_day_complete(1))
        plan = assign(self.plan, 1, "Lunch", SALAD)
        self.assertTrue(plan.is_day_complete(1))


class TestRename(unittest.TestCase):
    def test_rename_carries_every_slot_forward(self):
        plan = make_plan()
        for day in (1, 5, 8, 14):
            plan = assign(plan, day, "Snack", APPLE)
        plan = assign(plan, 2, "Lunch", SALAD)

        renamed = rename_meal_type(plan, "Snack", "Morning Snack")

        self.assertEqual(renamed.meal_names, ["Breakfast", "Lunch", "Morning Snack"])
        self.assertEqual(len(renamed.schedule), len(plan.schedule))
        for day in (1, 5, 8, 14):
            self.assertEqual(renamed.schedule.get(day, "Morning Snack"), APPLE)
            self.assertIsNone(renamed.schedule.get(day, "Snack"))
        self.assertEqual(renamed.schedule.get(2, "Lunch"), SALAD)

        for entries in (e for week in renamed.weekly().values() for e in week.values()):
            self.assertNotIn("Snack", [entry["meal_name"] for entry in entries])
        self.assertEqual(renamed.flat()["days"]["8"]["3"]["recipe_id"], 3)
        verify_consistency(renamed)

    def test_rename_trims_and_validates(self):
        plan = make_plan()
        self.assertEqual(rename_meal_type(plan, "Snack", "  Tea  ").meal_names[2], "Tea")
        with self.assertRaises(ValidationError):
            rename_meal_type(plan, "Snack", "   ")
        with self.assertRaises(ValidationError):
            rename_meal_type(plan, "Dinner", "Supper")
        with self.assertRaises(ValidationError):
            rename_meal_type(plan, "Snack", "Lunch")

    def test_rename_onto_orphaned_name_keeps_renamed_slots(self):
        plan = make_plan(meal_names=["Breakfast", "Dinner", "Snack"])
        plan = assign(plan, 1, "Dinner", RecipeRef(1, "Steak"))
        plan = assign(plan, 1, "Snack", APPLE)
        plan = resize_meals_per_day(plan, 2)

        renamed = rename_meal_type(plan, "Dinner", "Snack")

        self.assertEqual(renamed.meal_names, ["Breakfast", "Snack"])
        self.assertEqual(renamed.schedule.get(1, "Snack"), RecipeRef(1, "Steak"))
        self.assertIsNone(renamed.schedule.get(1, "Dinner"))
        self.assertEqual(renamed.flat()["days"]["1"]["2"]["recipe_id"], 1)
        verify_consistency(renamed)

    def test_rename_repeated_name_renames_every_position(self):
        plan = assign(make_plan(meal_names=["Snack", "Lunch", "Snack"]), 2, "Snack", APPLE)
        renamed = rename_meal_type(plan, "Snack", "Fruit")
        self.assertEqual(renamed.meal_names, ["Fruit", "Lunch", "Fruit"])
        self.assertEqual(renamed.schedule.get(2, "Fruit"), APPLE)

    def test_rename_to_same_name_is_noop(self):
        plan = make_plan()
        self.assertIs(rename_meal_type(plan, "Lunch", "Lunch"), plan)


class TestResize(unittest.TestCase):
    def test_pad_with_placeholders(self):
        plan = resize_meals_per_day(make_plan(), 5)
        self.assertEqual(plan.meal_names, ["Breakfast", "Lunch", "Snack", "Meal 4", "Meal 5"])

    def test_shrink_orphans_slots_without_dropping_them(self):
        plan = assign(make_plan(), 1, "Snack", APPLE)
        shrunk = resize_meals_per_day(plan, 2)

        self.assertEqual(shrunk.meal_names, ["Breakfast", "Lunch"])
        self.assertEqual(shrunk.reachable_slots(), [])
        self.assertEqual(shrunk.schedule.get(1, "Snack"), APPLE)
        self.assertEqual(shrunk.weekly()["0"]["Monday"][0]["meal_name"], "Snack")
        self.assertEqual(shrunk.flat()["days"]["1"], {"1": None, "2": None})

        regrown = rename_meal_type(resize_meals_per_day(shrunk, 3), "Meal 3", "Snack")
        self.assertEqual(regrown.schedule.get(1, "Snack"), APPLE)

    def test_bounds(self):
        with self.assertRaises(ValidationError):
            resize_meals_per_day(make_plan(), 0)
        with self.assertRaises(ValidationError):
            resize_meals_per_day(make_plan(), 11)
        with self.assertRaises(ValidationError):
            resize_meals_per_day(make_plan(), True)


class TestReachable(unittest.TestCase):
    def test_calendar_order_and_horizon(self):
        plan = make_plan(length_days=14)
        plan = assign(plan, 2, "Snack", APPLE)
        plan = assign(plan, 2, "Breakfast", OATS)
        plan = assign(plan, 1, "Lunch", SALAD)
        plan = assign(plan, 14, "Lunch", SALAD)

        slots = [(day, meal) for day, meal, _ in plan.reachable_slots()]
        self.assertEqual(slots, [(1, "Lunch"), (2, "Breakfast"), (2, "Snack"), (14, "Lunch")])

        shorter = PlanSchedule(length_days=7, meal_names=plan.meal_names, schedule=plan.schedule)
        self.assertEqual(len(shorter.reachable_slots()), 3)


class TestConsistency(unittest.TestCase):
    def test_consistent_plan_passes(self):
        verify_consistency(assign(make_plan(), 1, "Lunch", SALAD))

    def test_unrepresentable_slot_is_reported(self):
        broken = PlanSchedule(
            length_days=7,
            meal_names=["Lunch"],
            schedule=Schedule({(0, "Lunch"): SALAD}),
        )
        with self.assertRaises(ConsistencyViolation):
            verify_consistency(broken)


if __name__ == '__main__':
    unittest.main()
