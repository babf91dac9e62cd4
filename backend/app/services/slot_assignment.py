from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
import logging

from app.core.exceptions import (
    ErrorCode,
    SlotConflictError,
    SlotNotFoundError,
    SlotValidationError,
    StoreError,
    WriteConflictError,
)
from app.models.timetable import Day, SlotType
from app.schemas.timetable import (
    BatchRejection,
    BatchSlotItem,
    SlotDraft,
    SlotPatch,
    TimetableEntry,
    sort_key_for,
)
from app.services.bell_schedule import MAX_SLOT, MIN_SLOT
from app.services.conflict_checker import BatchWorkingSet, ConflictChecker, SlotConflict
from app.store.base import TimetableStore

logger = logging.getLogger(__name__)

SLOT_TYPE_VALUES = ", ".join(f'"{item.value}"' for item in SlotType)


def parse_day(value: str | Day) -> Day:
    if isinstance(value, Day):
        return value
    try:
        return Day(value.strip().upper())
    except ValueError as exc:
        raise SlotValidationError(
            f"Invalid day. Must be one of: {', '.join(day.value for day in Day)}",
            details={"day": value},
        ) from exc


def parse_slot_type(value: str | SlotType) -> SlotType:
    if isinstance(value, SlotType):
        return value
    try:
        return SlotType(value.strip().upper())
    except ValueError as exc:
        raise SlotValidationError(f"Type must be either {SLOT_TYPE_VALUES}", details={"type": value}) from exc


def parse_slot(value: int) -> int:
    if not MIN_SLOT <= value <= MAX_SLOT:
        raise SlotValidationError(
            f"Slot number must be between {MIN_SLOT} and {MAX_SLOT}",
            details={"slot": value},
        )
    return value


def parse_section(value: str) -> str:
    section = value.strip().upper()
    if not section:
        raise SlotValidationError("year_section is required")
    return section


def _required_text(name: str, value: str) -> str:
    text = value.strip()
    if not text:
        raise SlotValidationError(f"{name} is required", details={"field": name})
    return text


def validate_draft(draft: SlotDraft) -> TimetableEntry:
    return TimetableEntry(
        section=parse_section(draft.section),
        day=parse_day(draft.day),
        slot=parse_slot(draft.slot),
        subject=_required_text("subject", draft.subject),
        faculty=_required_text("faculty", draft.faculty),
        room=_required_text("room", draft.room),
        type=parse_slot_type(draft.type),
    )


def conflict_error(conflict: SlotConflict, candidate: TimetableEntry) -> SlotConflictError:
    return SlotConflictError(conflict.code, conflict.describe(candidate), conflict.existing)


@dataclass
class BatchOutcome:
    section: str
    day: Day
    committed: list[TimetableEntry] = field(default_factory=list)
    rejected: list[BatchRejection] = field(default_factory=list)

    @property
    def summary(self) -> str:
        return (
            f"Batch operation completed. {len(self.committed)} slots added, "
            f"{len(self.rejected)} rejected"
        )


class SlotAssignmentService:
    """Creates, updates and deletes timetable entries under the uniqueness rules.

    A section holds at most one entry per (day, slot), and a faculty member
    teaches at most one entry per (day, slot) across all sections. Every
    mutation runs the conflict checker first; inserts are additionally written
    as "put if not exists" so a lost race surfaces as a conflict.
    """

    def __init__(self, store: TimetableStore, checker: ConflictChecker | None = None) -> None:
        self.store = store
        self.checker = checker or ConflictChecker(store)

    def add_single(self, draft: SlotDraft) -> TimetableEntry:
        entry = validate_draft(draft)
        conflict = self.checker.check(entry)
        if conflict is not None:
            raise conflict_error(conflict, entry)
        self._insert(entry)
        logger.info("Added %s (%s, %s)", entry.location, entry.subject, entry.faculty)
        return entry

    def add_batch(self, section: str, day: str | Day, items: Sequence[BatchSlotItem]) -> BatchOutcome:
        outcome = BatchOutcome(section=parse_section(section), day=parse_day(day))
        working_set = BatchWorkingSet()

        for index, item in enumerate(items):
            try:
                entry = validate_draft(
                    SlotDraft(
                        section=outcome.section,
                        day=outcome.day.value,
                        slot=item.slot,
                        subject=item.subject,
                        faculty=item.faculty,
                        room=item.room,
                        type=item.type,
                    )
                )
                conflict = self.checker.check(entry, working_set=working_set)
                if conflict is not None:
                    raise conflict_error(conflict, entry)
                self._insert(entry)
            except SlotConflictError as exc:
                outcome.rejected.append(
                    BatchRejection(
                        index=index,
                        slot=item.slot,
                        code=exc.code.value,
                        reason=exc.message,
                        conflict_with=exc.existing,
                    )
                )
                continue
            except (SlotValidationError, StoreError) as exc:
                if exc.code == ErrorCode.store_error:
                    logger.warning("Store failure while adding slot %s for %s", item.slot, outcome.section)
                outcome.rejected.append(
                    BatchRejection(index=index, slot=item.slot, code=exc.code.value, reason=exc.message)
                )
                continue

            working_set.record(entry)
            outcome.committed.append(entry)

        logger.info(
            "Batch for %s on %s: %d added, %d rejected",
            outcome.section,
            outcome.day.value,
            len(outcome.committed),
            len(outcome.rejected),
        )
        return outcome

    def update(self, section: str, day: str | Day, slot: int, patch: SlotPatch) -> TimetableEntry:
        section = parse_section(section)
        day = parse_day(day)
        slot = parse_slot(slot)
        changes: dict = {}
        for name, value in patch.changes().items():
            changes[name] = _required_text(name, value)
        if not changes:
            raise SlotValidationError("No fields to update")
        if "type" in changes:
            changes["type"] = parse_slot_type(changes["type"])

        sort_key = sort_key_for(day, slot)
        existing = self.store.get(section, sort_key, consistent=True)
        if existing is None:
            raise SlotNotFoundError(section, day.value, slot)

        candidate = existing.model_copy(update=changes)
        if candidate.faculty != existing.faculty:
            conflict = self.checker.check(candidate, exclude_self=True)
            if conflict is not None:
                raise conflict_error(conflict, candidate)

        try:
            updated = self.store.update(section, sort_key, changes)
        except WriteConflictError:
            conflict = self.checker.check(candidate, exclude_self=True)
            if conflict is not None:
                raise conflict_error(conflict, candidate)
            raise
        if updated is None:
            raise SlotNotFoundError(section, day.value, slot)
        logger.info("Updated %s: %s", updated.location, ", ".join(sorted(changes)))
        return updated

    def delete(self, section: str, day: str | Day, slot: int) -> TimetableEntry:
        section = parse_section(section)
        day = parse_day(day)
        slot = parse_slot(slot)
        sort_key = sort_key_for(day, slot)
        existing = self.store.get(section, sort_key, consistent=True)
        if existing is None:
            raise SlotNotFoundError(section, day.value, slot)
        if not self.store.delete(section, sort_key):
            logger.info("Slot %s was already removed by a concurrent request", existing.location)
        else:
            logger.info("Deleted %s", existing.location)
        return existing

    def _insert(self, entry: TimetableEntry) -> None:
        try:
            self.store.put(entry, if_not_exists=True)
        except WriteConflictError:
            conflict = self.checker.check(entry)
            if conflict is not None:
                raise conflict_error(conflict, entry)
            raise
