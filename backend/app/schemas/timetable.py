from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.timetable import Day, SlotType

DAY_VALUES = {day.value for day in Day}


def sort_key_for(day: Day | str, slot: int) -> str:
    day_value = day.value if isinstance(day, Day) else day
    return f"{day_value}#{slot}"


def normalize_day_value(value: str) -> str:
    day = value.strip().upper()
    if day not in DAY_VALUES:
        raise ValueError(f"Invalid day. Must be one of: {', '.join(item.value for item in Day)}")
    return day


class TimetableEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    section: str
    day: Day
    slot: int
    subject: str
    faculty: str
    room: str
    type: SlotType

    @property
    def sort_key(self) -> str:
        return sort_key_for(self.day, self.slot)

    @property
    def location(self) -> str:
        return f"{self.section} on {self.day.value} at slot {self.slot}"


class SlotView(BaseModel):
    slot: int
    subject: str
    faculty: str
    room: str
    type: SlotType

    @classmethod
    def from_entry(cls, entry: TimetableEntry) -> "SlotView":
        return cls(slot=entry.slot, subject=entry.subject, faculty=entry.faculty, room=entry.room, type=entry.type)


class SlotDraft(BaseModel):
    """Unvalidated slot values; range and enum checks happen in the assignment service."""

    section: str
    day: str
    slot: int
    subject: str
    faculty: str
    room: str
    type: str


class BatchSlotItem(BaseModel):
    slot: int
    subject: str = Field(min_length=1, max_length=200)
    faculty: str = Field(min_length=1, max_length=200)
    room: str = Field(min_length=1, max_length=100)
    type: str = Field(min_length=1, max_length=10)


class SlotCreate(BatchSlotItem):
    year_section: str = Field(min_length=1, max_length=50)
    day: str

    @field_validator("year_section")
    @classmethod
    def normalize_section(cls, value: str) -> str:
        trimmed = value.strip().upper()
        if not trimmed:
            raise ValueError("year_section cannot be empty")
        return trimmed

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day_value(value)

    def to_draft(self) -> SlotDraft:
        return SlotDraft(
            section=self.year_section,
            day=self.day,
            slot=self.slot,
            subject=self.subject,
            faculty=self.faculty,
            room=self.room,
            type=self.type,
        )


class BatchSlotCreate(BaseModel):
    year_section: str = Field(min_length=1, max_length=50)
    day: str
    slots: list[BatchSlotItem] = Field(min_length=1, max_length=50)

    @field_validator("year_section")
    @classmethod
    def normalize_section(cls, value: str) -> str:
        trimmed = value.strip().upper()
        if not trimmed:
            raise ValueError("year_section cannot be empty")
        return trimmed

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day_value(value)


class SlotPatch(BaseModel):
    subject: str | None = Field(default=None, min_length=1, max_length=200)
    faculty: str | None = Field(default=None, min_length=1, max_length=200)
    room: str | None = Field(default=None, min_length=1, max_length=100)
    type: str | None = Field(default=None, min_length=1, max_length=10)

    def changes(self) -> dict[str, str]:
        return {key: value for key, value in self.model_dump().items() if value is not None}


class SlotUpdate(SlotPatch):
    year_section: str = Field(min_length=1, max_length=50)
    day: str
    slot: int

    @field_validator("year_section")
    @classmethod
    def normalize_section(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day_value(value)

    @model_validator(mode="after")
    def require_change(self) -> "SlotUpdate":
        if not self.changes():
            raise ValueError("At least one field to update is required: subject, faculty, room, or type")
        return self

    def to_patch(self) -> SlotPatch:
        return SlotPatch(subject=self.subject, faculty=self.faculty, room=self.room, type=self.type)


class BatchRejection(BaseModel):
    index: int
    slot: int
    code: str
    reason: str
    conflict_with: TimetableEntry | None = None


class BatchResult(BaseModel):
    year_section: str
    day: Day
    added: list[TimetableEntry]
    rejected: list[BatchRejection]


class WeeklyTimetable(BaseModel):
    year_section: str
    days: dict[Day, list[SlotView]]


class DayTimetable(BaseModel):
    year_section: str
    day: Day
    slots: list[SlotView]


class FacultyLoad(BaseModel):
    faculty: str
    day: Day
    assigned: int
    remaining: int
    cap: int
    slots: list[TimetableEntry] = Field(default_factory=list)


class NextClass(BaseModel):
    year_section: str
    subject: str
    day: Day
    slot: int
    start_time: str
    faculty: str
    room: str
    type: SlotType
    is_next_week: bool
