from app.models.timetable import Day, SlotType, TimetableSlot  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
