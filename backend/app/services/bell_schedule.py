from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo

from app.models.timetable import Day

MINUTES_PER_DAY = 24 * 60

# Institution bell schedule; spacing follows the breaks between periods.
SLOT_START_TIMES: dict[int, str] = {
    1: "09:00",
    2: "09:55",
    3: "11:05",
    4: "12:00",
    5: "13:40",
    6: "14:35",
    7: "15:35",
}
MIN_SLOT = min(SLOT_START_TIMES)
MAX_SLOT = max(SLOT_START_TIMES)

Clock = Callable[[], datetime]


def parse_time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def slot_start_minutes(slot: int) -> int:
    try:
        return parse_time_to_minutes(SLOT_START_TIMES[slot])
    except KeyError as exc:
        raise ValueError(f"Unknown slot {slot}") from exc


def week_offset(day: Day, minutes: int) -> int:
    return day.position * MINUTES_PER_DAY + minutes


def slot_week_offset(day: Day, slot: int) -> int:
    return week_offset(day, slot_start_minutes(slot))


def moment_week_offset(moment: datetime) -> int:
    # datetime.weekday() is already Monday=0 .. Sunday=6.
    return moment.weekday() * MINUTES_PER_DAY + moment.hour * 60 + moment.minute


def system_clock(timezone_name: str | None = None) -> Clock:
    if timezone_name:
        zone = ZoneInfo(timezone_name)
        return lambda: datetime.now(zone)
    return datetime.now
