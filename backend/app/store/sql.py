from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import logging

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import StoreError, WriteConflictError
from app.models.timetable import Day, SlotType, TimetableSlot
from app.schemas.timetable import TimetableEntry
from app.store.base import ScanCursor, ScanFilter, ScanPage, TimetableStore

logger = logging.getLogger(__name__)


def row_to_entry(row: TimetableSlot) -> TimetableEntry:
    return TimetableEntry(
        section=row.section,
        day=Day(row.day),
        slot=row.slot,
        subject=row.subject,
        faculty=row.faculty,
        room=row.room,
        type=SlotType(row.type),
    )


def entry_to_row(entry: TimetableEntry) -> TimetableSlot:
    return TimetableSlot(
        section=entry.section,
        sort_key=entry.sort_key,
        day=entry.day.value,
        slot=entry.slot,
        subject=entry.subject,
        faculty=entry.faculty,
        room=entry.room,
        type=entry.type.value,
    )


class SqlTimetableStore(TimetableStore):
    """Timetable store over the ``timetable_slots`` table.

    Every mutation commits immediately. The table's unique constraint on
    ``(day, slot, faculty)`` turns a lost check-then-act race into a
    ``WriteConflictError`` instead of a double booking.
    """

    def __init__(self, db: Session, page_size: int = 100) -> None:
        self.db = db
        self.page_size = max(1, page_size)

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            self.db.rollback()
            logger.info("Conditional %s rejected: %s", action, exc.orig)
            raise WriteConflictError(f"Timetable {action} rejected by a uniqueness constraint") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Timetable store failed during %s", action)
            raise StoreError(f"Timetable store failed during {action}") from exc

    def get(self, section: str, sort_key: str, consistent: bool = True) -> TimetableEntry | None:
        with self._guard("get"):
            row = self.db.get(TimetableSlot, (section, sort_key), populate_existing=consistent)
        return row_to_entry(row) if row is not None else None

    def put(self, entry: TimetableEntry, if_not_exists: bool = False) -> None:
        with self._guard("put"):
            if if_not_exists:
                self.db.add(entry_to_row(entry))
            else:
                self.db.merge(entry_to_row(entry))
            self.db.commit()

    def update(self, section: str, sort_key: str, patch: dict) -> TimetableEntry | None:
        with self._guard("update"):
            row = self.db.get(TimetableSlot, (section, sort_key), populate_existing=True)
            if row is None:
                return None
            for key, value in patch.items():
                setattr(row, key, value.value if isinstance(value, SlotType) else value)
            self.db.commit()
            self.db.refresh(row)
        return row_to_entry(row)

    def delete(self, section: str, sort_key: str) -> bool:
        with self._guard("delete"):
            row = self.db.get(TimetableSlot, (section, sort_key))
            if row is None:
                return False
            self.db.delete(row)
            self.db.commit()
        return True

    def query(self, section: str, sort_key_prefix: str | None = None) -> list[TimetableEntry]:
        statement = select(TimetableSlot).where(TimetableSlot.section == section)
        if sort_key_prefix:
            statement = statement.where(TimetableSlot.sort_key.startswith(sort_key_prefix, autoescape=True))
        statement = statement.order_by(TimetableSlot.sort_key).execution_options(populate_existing=True)
        with self._guard("query"):
            rows = self.db.execute(statement).scalars().all()
        return [row_to_entry(row) for row in rows]

    def scan(
        self,
        scan_filter: ScanFilter,
        consistent: bool = True,
        cursor: ScanCursor | None = None,
        limit: int | None = None,
    ) -> ScanPage:
        page_limit = limit or self.page_size
        statement = select(TimetableSlot)
        if scan_filter.faculty is not None:
            statement = statement.where(TimetableSlot.faculty == scan_filter.faculty)
        if scan_filter.day is not None:
            statement = statement.where(TimetableSlot.day == scan_filter.day.value)
        if scan_filter.slot is not None:
            statement = statement.where(TimetableSlot.slot == scan_filter.slot)
        if scan_filter.sort_key_prefix is not None:
            statement = statement.where(
                TimetableSlot.sort_key.startswith(scan_filter.sort_key_prefix, autoescape=True)
            )
        if cursor is not None:
            last_section, last_sort_key = cursor
            statement = statement.where(
                or_(
                    TimetableSlot.section > last_section,
                    and_(TimetableSlot.section == last_section, TimetableSlot.sort_key > last_sort_key),
                )
            )
        statement = statement.order_by(TimetableSlot.section, TimetableSlot.sort_key).limit(page_limit)
        if consistent:
            statement = statement.execution_options(populate_existing=True)

        with self._guard("scan"):
            rows = self.db.execute(statement).scalars().all()
        next_cursor = (rows[-1].section, rows[-1].sort_key) if len(rows) == page_limit else None
        return ScanPage(items=[row_to_entry(row) for row in rows], next_cursor=next_cursor)
