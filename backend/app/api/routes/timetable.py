from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import get_query_service, get_slot_service, require_roles
from app.models.user import User, UserRole
from app.schemas.common import ApiResponse
from app.schemas.timetable import (
    BatchResult,
    BatchSlotCreate,
    DayTimetable,
    FacultyLoad,
    NextClass,
    SlotCreate,
    SlotUpdate,
    SlotView,
    TimetableEntry,
    WeeklyTimetable,
)
from app.services.slot_assignment import SlotAssignmentService, parse_day, parse_section
from app.services.timetable_query import TimetableQueryService

router = APIRouter()

admin_only = require_roles(UserRole.admin)
any_user = require_roles(UserRole.admin, UserRole.student)
student_only = require_roles(UserRole.student)


@router.post("/slot", response_model=ApiResponse[TimetableEntry], status_code=status.HTTP_201_CREATED)
def add_slot(
    payload: SlotCreate,
    current_user: User = Depends(admin_only),
    service: SlotAssignmentService = Depends(get_slot_service),
) -> ApiResponse[TimetableEntry]:
    entry = service.add_single(payload.to_draft())
    return ApiResponse(message="Timetable slot added successfully", data=entry)


@router.post("/slots/batch", response_model=ApiResponse[BatchResult], status_code=status.HTTP_201_CREATED)
def add_batch_for_day(
    payload: BatchSlotCreate,
    current_user: User = Depends(admin_only),
    service: SlotAssignmentService = Depends(get_slot_service),
) -> ApiResponse[BatchResult]:
    outcome = service.add_batch(payload.year_section, payload.day, payload.slots)
    result = BatchResult(
        year_section=outcome.section,
        day=outcome.day,
        added=outcome.committed,
        rejected=outcome.rejected,
    )
    return ApiResponse(
        message=outcome.summary,
        data=result,
        errors=[item.reason for item in outcome.rejected] or None,
    )


@router.put("/slot", response_model=ApiResponse[TimetableEntry])
def update_slot(
    payload: SlotUpdate,
    current_user: User = Depends(admin_only),
    service: SlotAssignmentService = Depends(get_slot_service),
) -> ApiResponse[TimetableEntry]:
    entry = service.update(payload.year_section, payload.day, payload.slot, payload.to_patch())
    return ApiResponse(message="Timetable slot updated successfully", data=entry)


@router.delete("/slot", response_model=ApiResponse[TimetableEntry])
def delete_slot(
    year_section: str = Query(min_length=1, max_length=50),
    day: str = Query(min_length=1),
    slot: int = Query(),
    current_user: User = Depends(admin_only),
    service: SlotAssignmentService = Depends(get_slot_service),
) -> ApiResponse[TimetableEntry]:
    removed = service.delete(year_section, day, slot)
    return ApiResponse(message="Timetable slot deleted successfully", data=removed)


@router.get("/weekly/{section}", response_model=ApiResponse[WeeklyTimetable])
def get_weekly_timetable(
    section: str,
    current_user: User = Depends(any_user),
    service: TimetableQueryService = Depends(get_query_service),
) -> ApiResponse[WeeklyTimetable]:
    grouped = service.weekly(section)
    data = WeeklyTimetable(
        year_section=parse_section(section),
        days={day: [SlotView.from_entry(entry) for entry in entries] for day, entries in grouped.items()},
    )
    if not grouped:
        return ApiResponse(message="No timetable found for this year section", data=data)
    return ApiResponse(message="Weekly timetable retrieved successfully", data=data)


@router.get("/day/{section}/{day}", response_model=ApiResponse[DayTimetable])
def get_day_timetable(
    section: str,
    day: str,
    current_user: User = Depends(any_user),
    service: TimetableQueryService = Depends(get_query_service),
) -> ApiResponse[DayTimetable]:
    wanted_day = parse_day(day)
    entries = service.daily(section, wanted_day)
    data = DayTimetable(
        year_section=parse_section(section),
        day=wanted_day,
        slots=[SlotView.from_entry(entry) for entry in entries],
    )
    if not entries:
        return ApiResponse(message=f"No timetable found for {data.year_section} on {data.day.value}", data=data)
    return ApiResponse(message=f"Timetable for {data.day.value} retrieved successfully", data=data)


# Declared before /faculty/{name} so "load" is not captured as a faculty name.
@router.get("/faculty/load", response_model=ApiResponse[FacultyLoad])
def get_faculty_daily_load(
    faculty: str = Query(min_length=1, max_length=200),
    day: str = Query(min_length=1),
    current_user: User = Depends(admin_only),
    service: TimetableQueryService = Depends(get_query_service),
) -> ApiResponse[FacultyLoad]:
    load = service.daily_load(faculty, day)
    return ApiResponse(
        message=f"{load.faculty} has {load.assigned} of {load.cap} slots on {load.day.value}",
        data=load,
    )


@router.get("/faculty", response_model=ApiResponse[list[TimetableEntry]])
@router.get("/faculty/{name}", response_model=ApiResponse[list[TimetableEntry]])
def get_slots_by_faculty(
    name: str | None = None,
    faculty: str | None = Query(default=None, max_length=200),
    current_user: User = Depends(admin_only),
    service: TimetableQueryService = Depends(get_query_service),
) -> ApiResponse[list[TimetableEntry]]:
    wanted = (name or "").strip() or (faculty or "").strip()
    if not wanted:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Faculty name is required (use path param or ?faculty=)",
        )
    entries = service.by_faculty(wanted)
    return ApiResponse(message=f"Found {len(entries)} slot(s) for faculty {wanted}", data=entries)


@router.get("/next-class/{section}/{subject}", response_model=ApiResponse[NextClass])
def get_next_class(
    section: str,
    subject: str,
    current_user: User = Depends(student_only),
    service: TimetableQueryService = Depends(get_query_service),
) -> ApiResponse[NextClass]:
    next_class = service.next_class(section, subject)
    if next_class is None:
        return ApiResponse(message=f"No upcoming {subject} class found for {parse_section(section)}")
    when = "next week" if next_class.is_next_week else "this week"
    return ApiResponse(
        message=f"Next {next_class.subject} class is {when} on {next_class.day.value} at {next_class.start_time}",
        data=next_class,
    )
