"""Key-value store interface for timetable entries.

Entries are addressed by partition key (section) and sort key ("{DAY}#{slot}").
Besides point operations the store offers a prefix query inside one partition
and a filtered full-table scan that pages with a continuation cursor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field

from app.models.timetable import Day
from app.schemas.timetable import TimetableEntry

ScanCursor = tuple[str, str]


@dataclass(frozen=True)
class ScanFilter:
    faculty: str | None = None
    day: Day | None = None
    slot: int | None = None
    sort_key_prefix: str | None = None

    def matches(self, entry: TimetableEntry) -> bool:
        if self.faculty is not None and entry.faculty != self.faculty:
            return False
        if self.day is not None and entry.day != self.day:
            return False
        if self.slot is not None and entry.slot != self.slot:
            return False
        if self.sort_key_prefix is not None and not entry.sort_key.startswith(self.sort_key_prefix):
            return False
        return True


@dataclass
class ScanPage:
    items: list[TimetableEntry] = field(default_factory=list)
    next_cursor: ScanCursor | None = None


class TimetableStore(ABC):
    page_size: int = 100

    @abstractmethod
    def get(self, section: str, sort_key: str, consistent: bool = True) -> TimetableEntry | None:
        ...

    @abstractmethod
    def put(self, entry: TimetableEntry, if_not_exists: bool = False) -> None:
        """Write ``entry``. With ``if_not_exists`` an existing key raises ``WriteConflictError``."""

    @abstractmethod
    def update(self, section: str, sort_key: str, patch: dict) -> TimetableEntry | None:
        """Apply ``patch`` and return the stored entry, or None when the key is absent."""

    @abstractmethod
    def delete(self, section: str, sort_key: str) -> bool:
        ...

    @abstractmethod
    def query(self, section: str, sort_key_prefix: str | None = None) -> list[TimetableEntry]:
        ...

    @abstractmethod
    def scan(
        self,
        scan_filter: ScanFilter,
        consistent: bool = True,
        cursor: ScanCursor | None = None,
        limit: int | None = None,
    ) -> ScanPage:
        ...

    def scan_all(self, scan_filter: ScanFilter, consistent: bool = True) -> Iterator[TimetableEntry]:
        cursor: ScanCursor | None = None
        while True:
            page = self.scan(scan_filter, consistent=consistent, cursor=cursor)
            yield from page.items
            if page.next_cursor is None:
                return
            cursor = page.next_cursor
