import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional

import pytz

from mealcycle.services.schedule_service import WEEKDAYS

logger = logging.getLogger(__name__)

CURRENT = "current"
EXPIRED = "expired"


@dataclass(frozen=True)
class CycleState:
    state: str
    start_date: date
    days_since_start: int
    cycles: int = 0

    @property
    def expired(self) -> bool:
        return self.state == EXPIRED


def advance_cycle(start_date: date, length_days: int, today: Optional[date] = None) -> CycleState:
    """
    Roll a repeating plan's start date forward by whole cycles once today is past the cycle.

    Returns the state for `today`; when expired, `start_date` is the new start the caller
    must persist. Feeding the result back in with the same `today` always yields `current`.
    """
    if length_days < 1:
        raise ValueError("length_days must be >= 1")
    today = today or date.today()
    days_since_start = (today - start_date).days

    # Start in the future or still inside the cycle
    if days_since_start < length_days:
        return CycleState(CURRENT, start_date, days_since_start)

    cycles = days_since_start // length_days
    new_start = start_date + timedelta(days=cycles * length_days)
    logger.info(f"Plan cycle expired: {cycles} cycle(s) elapsed, start {start_date} -> {new_start}")
    return CycleState(EXPIRED, new_start, days_since_start, cycles)


def today_index(start_date: date, length_days: int, today: Optional[date] = None) -> Optional[int]:
    """1-based position of today inside the cycle, or None when today is outside it."""
    today = today or date.today()
    index = (today - start_date).days + 1
    return index if 1 <= index <= length_days else None


def day_dates(start_date: date, length_days: int) -> List[dict]:
    """Calendar date and label for every day of the cycle."""
    days = []
    for offset in range(length_days):
        current = start_date + timedelta(days=offset)
        days.append({
            "day_index": offset + 1,
            "date": current,
            "weekday": WEEKDAYS[current.weekday()],
            "label": current.strftime("%d %b").lstrip("0"),
        })
    return days


def local_today(timezone_name: Optional[str], now: Optional[datetime] = None) -> date:
    """Date of `now` (default: the current instant) in the owner's timezone; unknown zones fall back to UTC."""
    try:
        tz = pytz.timezone(timezone_name or "UTC")
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Unknown timezone '{timezone_name}', using UTC")
        tz = pytz.utc
    if now is None:
        return datetime.now(tz).date()
    return now.astimezone(tz).date()
