from __future__ import annotations

from threading import Lock

from app.core.exceptions import WriteConflictError
from app.models.timetable import SlotType
from app.schemas.timetable import TimetableEntry
from app.store.base import ScanCursor, ScanFilter, ScanPage, TimetableStore


class InMemoryTimetableStore(TimetableStore):
    """Process-local store for tests and demos.

    ``limit`` on scans counts evaluated rows, not matches, so a page may come
    back empty while still carrying a cursor.
    """

    def __init__(self, page_size: int = 100) -> None:
        self.page_size = max(1, page_size)
        self._items: dict[tuple[str, str], TimetableEntry] = {}
        self._lock = Lock()
        self.writes = 0

    def get(self, section: str, sort_key: str, consistent: bool = True) -> TimetableEntry | None:
        with self._lock:
            return self._items.get((section, sort_key))

    def put(self, entry: TimetableEntry, if_not_exists: bool = False) -> None:
        key = (entry.section, entry.sort_key)
        with self._lock:
            if if_not_exists and key in self._items:
                raise WriteConflictError(f"Entry already exists for {entry.location}")
            self._items[key] = entry
            self.writes += 1

    def update(self, section: str, sort_key: str, patch: dict) -> TimetableEntry | None:
        key = (section, sort_key)
        with self._lock:
            current = self._items.get(key)
            if current is None:
                return None
            values = dict(patch)
            if "type" in values:
                values["type"] = SlotType(values["type"])
            updated = current.model_copy(update=values)
            self._items[key] = updated
            self.writes += 1
            return updated

    def delete(self, section: str, sort_key: str) -> bool:
        with self._lock:
            removed = self._items.pop((section, sort_key), None)
            if removed is not None:
                self.writes += 1
            return removed is not None

    def query(self, section: str, sort_key_prefix: str | None = None) -> list[TimetableEntry]:
        with self._lock:
            return [
                entry
                for (partition, sort_key), entry in sorted(self._items.items())
                if partition == section and (sort_key_prefix is None or sort_key.startswith(sort_key_prefix))
            ]

    def scan(
        self,
        scan_filter: ScanFilter,
        consistent: bool = True,
        cursor: ScanCursor | None = None,
        limit: int | None = None,
    ) -> ScanPage:
        page_limit = limit or self.page_size
        with self._lock:
            keys = sorted(key for key in self._items if cursor is None or key > cursor)
            evaluated = keys[:page_limit]
            items = [self._items[key] for key in evaluated if scan_filter.matches(self._items[key])]
        next_cursor = evaluated[-1] if len(keys) > page_limit else None
        return ScanPage(items=items, next_cursor=next_cursor)
