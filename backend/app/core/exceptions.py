from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.schemas.timetable import TimetableEntry


class ErrorCode(str, Enum):
    validation = "VALIDATION"
    not_found = "NOT_FOUND"
    section_conflict = "SECTION_CONFLICT"
    faculty_conflict = "FACULTY_CONFLICT"
    store_error = "STORE_ERROR"


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None, code: ErrorCode | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.code = code
        super().__init__(self.message)

    def to_error(self) -> dict:
        error = {"message": self.message}
        if self.code is not None:
            error["code"] = self.code.value
        if self.details:
            error["details"] = self.details
        return error


class SlotValidationError(AppError):
    """Raised when a timetable entry or patch is malformed."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details, code=ErrorCode.validation)


class SlotNotFoundError(AppError):
    """Raised when an update or delete targets an absent slot."""
    def __init__(self, section: str, day: str, slot: int):
        super().__init__(
            f"Slot not found for {section} on {day} at slot {slot}",
            status_code=404,
            details={"year_section": section, "day": day, "slot": slot},
            code=ErrorCode.not_found,
        )


class SlotConflictError(AppError):
    """Raised when committing an entry would double-book a section or a faculty member."""
    def __init__(self, code: ErrorCode, message: str, existing: "TimetableEntry"):
        self.existing = existing
        super().__init__(
            message,
            status_code=409,
            details={"conflict": code.value, "with": existing.model_dump(mode="json")},
            code=code,
        )


class StoreError(AppError):
    """Raised when the timetable store cannot complete a request."""
    def __init__(self, message: str = "Timetable store is unavailable"):
        super().__init__(message, status_code=503, code=ErrorCode.store_error)


class WriteConflictError(StoreError):
    """Raised by a store when a conditional write loses to an existing row."""
    def __init__(self, message: str = "Conditional write rejected by the store"):
        super().__init__(message)
