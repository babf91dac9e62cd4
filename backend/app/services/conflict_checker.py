from __future__ import annotations

from dataclasses import dataclass, field
import logging

from app.core.exceptions import ErrorCode
from app.models.timetable import Day
from app.schemas.timetable import TimetableEntry
from app.store.base import ScanFilter, TimetableStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotConflict:
    code: ErrorCode
    existing: TimetableEntry
    same_batch: bool = False

    def describe(self, candidate: TimetableEntry) -> str:
        if self.code == ErrorCode.section_conflict:
            message = f"Slot already exists for {self.existing.location}"
        else:
            message = (
                f"Faculty {candidate.faculty} is already assigned to {self.existing.subject} "
                f"for {self.existing.location}"
            )
        if self.same_batch:
            message += " (claimed earlier in the same batch)"
        return message


@dataclass
class BatchWorkingSet:
    """Entries committed so far by one batch call."""

    by_faculty: dict[tuple[str, Day, int], TimetableEntry] = field(default_factory=dict)
    by_section: dict[tuple[str, Day, int], TimetableEntry] = field(default_factory=dict)

    def record(self, entry: TimetableEntry) -> None:
        self.by_faculty[(entry.faculty, entry.day, entry.slot)] = entry
        self.by_section[(entry.section, entry.day, entry.slot)] = entry

    def find(self, candidate: TimetableEntry) -> SlotConflict | None:
        existing = self.by_section.get((candidate.section, candidate.day, candidate.slot))
        if existing is not None:
            return SlotConflict(ErrorCode.section_conflict, existing, same_batch=True)
        existing = self.by_faculty.get((candidate.faculty, candidate.day, candidate.slot))
        if existing is not None:
            return SlotConflict(ErrorCode.faculty_conflict, existing, same_batch=True)
        return None


class ConflictChecker:
    def __init__(self, store: TimetableStore) -> None:
        self.store = store

    def check(
        self,
        candidate: TimetableEntry,
        exclude_self: bool = False,
        working_set: BatchWorkingSet | None = None,
    ) -> SlotConflict | None:
        if working_set is not None:
            conflict = working_set.find(candidate)
            if conflict is not None:
                return conflict

        if not exclude_self:
            conflict = self.check_section(candidate)
            if conflict is not None:
                return conflict
        return self.check_faculty(candidate, exclude_self=exclude_self)

    def check_section(self, candidate: TimetableEntry) -> SlotConflict | None:
        existing = self.store.get(candidate.section, candidate.sort_key, consistent=True)
        if existing is None:
            return None
        return SlotConflict(ErrorCode.section_conflict, existing)

    def check_faculty(self, candidate: TimetableEntry, exclude_self: bool = False) -> SlotConflict | None:
        scan_filter = ScanFilter(faculty=candidate.faculty, day=candidate.day, slot=candidate.slot)
        for existing in self.store.scan_all(scan_filter, consistent=True):
            if exclude_self and (existing.section, existing.sort_key) == (candidate.section, candidate.sort_key):
                continue
            logger.debug(
                "Faculty %s already booked for %s; rejecting %s",
                candidate.faculty,
                existing.location,
                candidate.location,
            )
            return SlotConflict(ErrorCode.faculty_conflict, existing)
        return None
