from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.core.exceptions import store_errors
from app.models.user import User, UserRole
from app.schemas.availability import AvailabilityReport
from app.schemas.common import ApiResponse
from app.services.availability import resolve_available_faculty

router = APIRouter()


@router.get("/available", response_model=ApiResponse[AvailabilityReport])
def available_faculty(
    subject_id: int = Query(..., gt=0, description="Subject needing a faculty assignment"),
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ApiResponse[AvailabilityReport]:
    with store_errors(action="faculty.available", user_id=current_user.id, target_id=subject_id):
        report = resolve_available_faculty(db, subject_id)
    return ApiResponse(data=report)
