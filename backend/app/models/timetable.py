from enum import Enum

from sqlalchemy import Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Day(str, Enum):
    monday = "MONDAY"
    tuesday = "TUESDAY"
    wednesday = "WEDNESDAY"
    thursday = "THURSDAY"
    friday = "FRIDAY"
    saturday = "SATURDAY"
    sunday = "SUNDAY"

    @property
    def position(self) -> int:
        return DAY_ORDER.index(self)


DAY_ORDER: list[Day] = list(Day)


class SlotType(str, Enum):
    theory = "THEORY"
    lab = "LAB"


class TimetableSlot(Base):
    __tablename__ = "timetable_slots"
    __table_args__ = (
        UniqueConstraint("day", "slot", "faculty", name="uq_timetable_slots_day_slot_faculty"),
        Index("ix_timetable_slots_faculty", "faculty"),
    )

    # Partition key / sort key ("MONDAY#3").
    section: Mapped[str] = mapped_column(String(50), primary_key=True)
    sort_key: Mapped[str] = mapped_column(String(20), primary_key=True)

    day: Mapped[str] = mapped_column(String(10), nullable=False)
    slot: Mapped[int] = mapped_column(Integer, nullable=False)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    faculty: Mapped[str] = mapped_column(String(200), nullable=False)
    room: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
