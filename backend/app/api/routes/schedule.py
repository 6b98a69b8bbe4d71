from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_caller, get_db, require_roles
from app.core.config import get_settings
from app.core.exceptions import store_errors
from app.models.user import User, UserRole
from app.schemas.common import ApiResponse
from app.schemas.conflict import ConflictReport
from app.schemas.schedule import (
    DailyScheduleOut,
    ScheduleFiltersOut,
    ScheduleOut,
    ScheduleSearchOut,
    ScheduleStats,
    SearchType,
    WeeklyScheduleOut,
)
from app.schemas.time_slot import AvailableSlotsOut
from app.services.conflict_service import detect_schedule_conflicts
from app.services.schedule import (
    CallerContext,
    ScheduleQuery,
    assemble_schedule,
    daily_list,
    parse_day,
    search_rows,
    week_start,
    weekly_grid,
)
from app.services.stats import schedule_stats
from app.services.time_slots import available_slots

router = APIRouter()


def get_schedule_query(
    week: date | None = Query(default=None),
    view: str = Query(default="week", max_length=20),
    academic_year: str | None = Query(default=None, max_length=20),
    semester: int | None = Query(default=None, ge=1, le=3),
    department: str | None = Query(default=None, max_length=200),
    faculty_id: int | None = Query(default=None, gt=0),
    subject_id: int | None = Query(default=None, gt=0),
) -> ScheduleQuery:
    settings = get_settings()
    return ScheduleQuery(
        academic_year=academic_year or settings.default_academic_year,
        semester=semester or settings.default_semester,
        week=week_start(week),
        view=view,
        department=department,
        faculty_id=faculty_id,
        subject_id=subject_id,
    )


@router.get("", response_model=ApiResponse[ScheduleOut])
def get_schedule(
    query: ScheduleQuery = Depends(get_schedule_query),
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
) -> ApiResponse[ScheduleOut]:
    with store_errors(action="schedule.read", user_id=caller.user_id):
        rows = assemble_schedule(db, caller, query)
    filters = None
    if caller.role == UserRole.admin.value:
        filters = ScheduleFiltersOut(
            department=query.department,
            faculty_id=query.faculty_id,
            subject_id=query.subject_id,
        )
    return ApiResponse(
        data=ScheduleOut(
            schedule=rows,
            week=query.week,
            view=query.view,
            academic_year=query.academic_year,
            semester=query.semester,
            user_role=caller.role,
            filters=filters,
        )
    )


@router.get("/weekly", response_model=ApiResponse[WeeklyScheduleOut])
def get_weekly_schedule(
    query: ScheduleQuery = Depends(get_schedule_query),
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
) -> ApiResponse[WeeklyScheduleOut]:
    with store_errors(action="schedule.weekly", user_id=caller.user_id):
        rows = assemble_schedule(db, caller, query)
    grid, days = weekly_grid(rows)
    return ApiResponse(data=WeeklyScheduleOut(weekly_schedule=grid, days=days, user_role=caller.role))


@router.get("/daily", response_model=ApiResponse[DailyScheduleOut])
def get_daily_schedule(
    day: str | None = Query(default=None, max_length=20),
    query: ScheduleQuery = Depends(get_schedule_query),
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
) -> ApiResponse[DailyScheduleOut]:
    selected_day = parse_day(day)
    with store_errors(action="schedule.daily", user_id=caller.user_id):
        rows = assemble_schedule(db, caller, query)
    return ApiResponse(
        data=DailyScheduleOut(
            daily_schedule=daily_list(rows, selected_day),
            selected_day=selected_day,
            user_role=caller.role,
        )
    )


@router.get("/stats", response_model=ApiResponse[ScheduleStats])
def get_schedule_stats(
    query: ScheduleQuery = Depends(get_schedule_query),
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
) -> ApiResponse[ScheduleStats]:
    with store_errors(action="schedule.stats", user_id=caller.user_id):
        stats = schedule_stats(db, caller, query)
    return ApiResponse(data=stats)


@router.get("/search", response_model=ApiResponse[ScheduleSearchOut])
def search_schedule(
    q: str = Query(default="", max_length=100),
    search_type: SearchType = Query(default="all", alias="type"),
    query: ScheduleQuery = Depends(get_schedule_query),
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
) -> ApiResponse[ScheduleSearchOut]:
    with store_errors(action="schedule.search", user_id=caller.user_id):
        rows = assemble_schedule(db, caller, query)
    results = search_rows(rows, q, search_type)
    return ApiResponse(
        data=ScheduleSearchOut(results=results, query=q.strip(), type=search_type, count=len(results))
    )


@router.get("/conflicts", response_model=ApiResponse[ConflictReport])
def get_conflicts(
    query: ScheduleQuery = Depends(get_schedule_query),
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ApiResponse[ConflictReport]:
    with store_errors(action="schedule.conflicts", user_id=current_user.id):
        report = detect_schedule_conflicts(db, academic_year=query.academic_year, semester=query.semester)
    return ApiResponse(data=report)


@router.get("/available-slots", response_model=ApiResponse[AvailableSlotsOut])
def get_available_slots(
    on_date: date | None = Query(default=None, alias="date"),
    classroom_id: int | None = Query(default=None, gt=0),
    faculty_id: int | None = Query(default=None, gt=0),
    academic_year: str | None = Query(default=None, max_length=20),
    semester: int | None = Query(default=None, ge=1, le=3),
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ApiResponse[AvailableSlotsOut]:
    settings = get_settings()
    with store_errors(action="schedule.available_slots", user_id=current_user.id):
        result = available_slots(
            db,
            on_date=on_date or date.today(),
            academic_year=academic_year or settings.default_academic_year,
            semester=semester or settings.default_semester,
            classroom_id=classroom_id,
            faculty_id=faculty_id,
        )
    return ApiResponse(data=result)
