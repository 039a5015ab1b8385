import unittest
from datetime import date, datetime, timedelta

import pytz

from mealcycle.services.cycle_service import (
    CURRENT,
    EXPIRED,
    advance_cycle,
    today_index,
    day_dates,
    local_today,
)

TODAY = date(2026, 3, 10)


class TestAdvanceCycle(unittest.TestCase):
    def test_one_elapsed_cycle(self):
        state = advance_cycle(TODAY - timedelta(days=20), 14, TODAY)
        self.assertEqual(state.state, EXPIRED)
        self.assertEqual(state.cycles, 1)
        self.assertEqual(state.start_date, TODAY - timedelta(days=6))

    def test_second_call_is_noop(self):
        first = advance_cycle(TODAY - timedelta(days=20), 14, TODAY)
        second = advance_cycle(first.start_date, 14, TODAY)
        self.assertEqual(second.state, CURRENT)
        self.assertEqual(second.start_date, first.start_date)

    def test_several_elapsed_cycles(self):
        state = advance_cycle(TODAY - timedelta(days=100), 7, TODAY)
        self.assertEqual(state.cycles, 14)
        self.assertEqual(state.start_date, TODAY - timedelta(days=2))

    def test_boundary(self):
        self.assertEqual(advance_cycle(TODAY - timedelta(days=13), 14, TODAY).state, CURRENT)
        state = advance_cycle(TODAY - timedelta(days=14), 14, TODAY)
        self.assertEqual(state.state, EXPIRED)
        self.assertEqual(state.start_date, TODAY)

    def test_future_start_is_current(self):
        start = TODAY + timedelta(days=5)
        state = advance_cycle(start, 7, TODAY)
        self.assertEqual(state.state, CURRENT)
        self.assertEqual(state.start_date, start)
        self.assertEqual(state.days_since_start, -5)

    def test_single_day_plan_rolls_daily(self):
        state = advance_cycle(TODAY - timedelta(days=3), 1, TODAY)
        self.assertEqual(state.start_date, TODAY)

    def test_invalid_length(self):
        with self.assertRaises(ValueError):
            advance_cycle(TODAY, 0, TODAY)


class TestCalendarHelpers(unittest.TestCase):
    def test_today_index(self):
        self.assertEqual(today_index(TODAY, 7, TODAY), 1)
        self.assertEqual(today_index(TODAY - timedelta(days=6), 7, TODAY), 7)
        self.assertIsNone(today_index(TODAY + timedelta(days=1), 7, TODAY))
        self.assertIsNone(today_index(TODAY - timedelta(days=7), 7, TODAY))

    def test_day_dates(self):
        days = day_dates(date(2026, 3, 9), 3)  # a Monday
        self.assertEqual([d["day_index"] for d in days], [1, 2, 3])
        self.assertEqual(days[0]["weekday"], "Monday")
        self.assertEqual(days[2]["date"], date(2026, 3, 11))
        self.assertEqual(days[0]["label"], "9 Mar")

    def test_local_today_uses_owner_timezone(self):
        now = pytz.utc.localize(datetime(2026, 3, 10, 23, 30))
        self.assertEqual(local_today("UTC", now), date(2026, 3, 10))
        self.assertEqual(local_today("Asia/Kolkata", now), date(2026, 3, 11))
        self.assertEqual(local_today("America/New_York", now), date(2026, 3, 10))
        self.assertEqual(local_today("Not/AZone", now), date(2026, 3, 10))
        self.assertEqual(local_today(None, now), date(2026, 3, 10))


if __name__ == '__main__':
    unittest.main()
