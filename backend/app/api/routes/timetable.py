from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_caller, get_db, require_roles
from app.core.exceptions import ResourceNotFoundError, UnauthorizedError, store_errors
from app.models.user import User, UserRole
from app.schemas.common import ApiResponse
from app.schemas.conflict import ConflictCheckOut, ConflictCheckRequest
from app.schemas.timetable import (
    RosterOut,
    TimetableDetail,
    TimetableEntryCreate,
    TimetableEntryUpdate,
    TimetableWriteResult,
)
from app.services.enrollments import roster
from app.services.schedule import CallerContext, can_view_entry
from app.services.timetable_store import (
    activate_entry,
    create_entry,
    deactivate_entry,
    find_booking_clashes,
    get_entry,
    get_entry_detail,
    update_entry,
)

router = APIRouter()


@router.post("/check-conflicts", response_model=ApiResponse[ConflictCheckOut])
def check_conflicts(
    payload: ConflictCheckRequest,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ApiResponse[ConflictCheckOut]:
    with store_errors(action="timetable.check_conflicts", user_id=current_user.id):
        clashes = find_booking_clashes(
            db,
            faculty_id=payload.faculty_id,
            classroom_id=payload.classroom_id,
            slot_id=payload.slot_id,
            semester=payload.semester,
            academic_year=payload.academic_year,
            exclude_id=payload.exclude_timetable_id,
        )
    message = clashes[0].message if clashes else "No conflicts detected"
    return ApiResponse(data=ConflictCheckOut(has_conflict=bool(clashes), message=message, clashes=clashes))


@router.post("", response_model=ApiResponse[TimetableWriteResult], status_code=status.HTTP_201_CREATED)
def create_timetable_entry(
    payload: TimetableEntryCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ApiResponse[TimetableWriteResult]:
    with store_errors(action="timetable.create", user_id=current_user.id):
        result = create_entry(db, payload, user_id=current_user.id)
    return ApiResponse(data=result)


@router.get("/{entry_id}", response_model=ApiResponse[TimetableDetail])
def get_timetable_entry(
    entry_id: int,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
) -> ApiResponse[TimetableDetail]:
    with store_errors(action="timetable.detail", user_id=caller.user_id, target_id=entry_id):
        entry = get_entry(db, entry_id)
        # Entries outside the caller's scope are reported as missing.
        if not can_view_entry(db, caller, entry):
            raise ResourceNotFoundError("Timetable entry", entry_id)
        detail = get_entry_detail(db, entry_id)
    return ApiResponse(data=detail)


@router.get("/{entry_id}/students", response_model=ApiResponse[RosterOut])
def get_timetable_roster(
    entry_id: int,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
) -> ApiResponse[RosterOut]:
    if caller.role not in {UserRole.admin.value, UserRole.faculty.value}:
        raise UnauthorizedError("Insufficient permissions")
    with store_errors(action="timetable.roster", user_id=caller.user_id, target_id=entry_id):
        entry = get_entry(db, entry_id)
        if not can_view_entry(db, caller, entry):
            raise UnauthorizedError("You can only view rosters for your own classes")
        students = roster(db, entry)
    return ApiResponse(data=RosterOut(timetable_id=entry_id, enrolled_count=len(students), students=students))


@router.put("/{entry_id}", response_model=ApiResponse[TimetableWriteResult])
def update_timetable_entry(
    entry_id: int,
    payload: TimetableEntryUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ApiResponse[TimetableWriteResult]:
    with store_errors(action="timetable.update", user_id=current_user.id, target_id=entry_id):
        result = update_entry(db, entry_id, payload, user_id=current_user.id)
    return ApiResponse(data=result)


@router.delete("/{entry_id}", response_model=ApiResponse[TimetableWriteResult])
def delete_timetable_entry(
    entry_id: int,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ApiResponse[TimetableWriteResult]:
    with store_errors(action="timetable.deactivate", user_id=current_user.id, target_id=entry_id):
        result = deactivate_entry(db, entry_id, user_id=current_user.id)
    return ApiResponse(data=result)


@router.post("/{entry_id}/activate", response_model=ApiResponse[TimetableWriteResult])
def activate_timetable_entry(
    entry_id: int,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ApiResponse[TimetableWriteResult]:
    with store_errors(action="timetable.activate", user_id=current_user.id, target_id=entry_id):
        result = activate_entry(db, entry_id, user_id=current_user.id)
    return ApiResponse(data=result)
