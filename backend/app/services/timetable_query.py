from __future__ import annotations

import logging

from app.models.timetable import DAY_ORDER, Day
from app.schemas.timetable import FacultyLoad, NextClass, TimetableEntry
from app.services.bell_schedule import (
    SLOT_START_TIMES,
    Clock,
    moment_week_offset,
    slot_week_offset,
    system_clock,
)
from app.services.slot_assignment import parse_day, parse_section
from app.store.base import ScanFilter, TimetableStore

logger = logging.getLogger(__name__)

DEFAULT_FACULTY_DAILY_SLOT_CAP = 5


def entry_order(entry: TimetableEntry) -> tuple[int, int]:
    return entry.day.position, entry.slot


class TimetableQueryService:
    def __init__(
        self,
        store: TimetableStore,
        clock: Clock | None = None,
        faculty_daily_cap: int = DEFAULT_FACULTY_DAILY_SLOT_CAP,
    ) -> None:
        self.store = store
        self.clock = clock or system_clock()
        self.faculty_daily_cap = faculty_daily_cap

    def weekly(self, section: str) -> dict[Day, list[TimetableEntry]]:
        entries = sorted(self.store.query(parse_section(section)), key=entry_order)
        grouped: dict[Day, list[TimetableEntry]] = {}
        for entry in entries:
            grouped.setdefault(entry.day, []).append(entry)
        # Canonical MONDAY..SUNDAY order regardless of how the store returns rows.
        return {day: grouped[day] for day in DAY_ORDER if day in grouped}

    def daily(self, section: str, day: str | Day) -> list[TimetableEntry]:
        day = parse_day(day)
        entries = self.store.query(parse_section(section), sort_key_prefix=f"{day.value}#")
        return sorted(entries, key=lambda entry: entry.slot)

    def by_faculty(self, faculty: str) -> list[TimetableEntry]:
        """All entries taught by ``faculty``. Full-table scan; keep it behind admin routes."""
        entries = list(self.store.scan_all(ScanFilter(faculty=faculty.strip()), consistent=True))
        return sorted(entries, key=lambda entry: (entry.section, entry.day.position, entry.slot))

    def daily_load(self, faculty: str, day: str | Day) -> FacultyLoad:
        day = parse_day(day)
        faculty = faculty.strip()
        scan_filter = ScanFilter(faculty=faculty, sort_key_prefix=f"{day.value}#")
        entries = sorted(
            self.store.scan_all(scan_filter, consistent=True),
            key=lambda entry: (entry.slot, entry.section),
        )
        assigned = len(entries)
        return FacultyLoad(
            faculty=faculty,
            day=day,
            assigned=assigned,
            remaining=max(0, self.faculty_daily_cap - assigned),
            cap=self.faculty_daily_cap,
            slots=entries,
        )

    def next_class(self, section: str, subject: str) -> NextClass | None:
        section = parse_section(section)
        wanted = subject.strip().lower()
        matches = [entry for entry in self.store.query(section) if entry.subject.strip().lower() == wanted]
        if not matches:
            return None

        now_offset = moment_week_offset(self.clock())
        upcoming = [entry for entry in matches if slot_week_offset(entry.day, entry.slot) >= now_offset]
        if upcoming:
            chosen = min(upcoming, key=lambda entry: slot_week_offset(entry.day, entry.slot))
            is_next_week = False
        else:
            chosen = min(matches, key=lambda entry: slot_week_offset(entry.day, entry.slot))
            is_next_week = True

        logger.debug("Next %s class for %s: %s (next week: %s)", subject, section, chosen.location, is_next_week)
        return NextClass(
            year_section=section,
            subject=chosen.subject,
            day=chosen.day,
            slot=chosen.slot,
            start_time=SLOT_START_TIMES[chosen.slot],
            faculty=chosen.faculty,
            room=chosen.room,
            type=chosen.type,
            is_next_week=is_next_week,
        )
