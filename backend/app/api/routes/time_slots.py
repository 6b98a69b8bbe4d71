from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.core.exceptions import store_errors
from app.models.user import User, UserRole
from app.schemas.common import ApiResponse
from app.schemas.time_slot import TimeSlotDetails, TimeSlotOut
from app.services.time_slots import list_slots, slot_details

router = APIRouter()


@router.get("", response_model=ApiResponse[list[TimeSlotOut]])
def list_time_slots(
    day: str | None = Query(default=None, max_length=20),
    active_only: bool = Query(default=False),
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ApiResponse[list[TimeSlotOut]]:
    with store_errors(action="time_slots.list", user_id=current_user.id):
        slots = list_slots(db, day=day, active_only=active_only)
    return ApiResponse(data=slots)


@router.get("/{slot_id}", response_model=ApiResponse[TimeSlotDetails])
def get_time_slot(
    slot_id: int,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ApiResponse[TimeSlotDetails]:
    with store_errors(action="time_slots.detail", user_id=current_user.id, target_id=slot_id):
        details = slot_details(db, slot_id)
    return ApiResponse(data=details)
