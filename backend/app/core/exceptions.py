from contextlib import contextmanager
import logging

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class UnauthenticatedError(AppError):
    """Raised when a request carries no usable identity."""
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, status_code=401)

class UnauthorizedError(AppError):
    """Raised when the caller's role does not allow the action."""
    def __init__(self, message: str = "Unauthorized access"):
        super().__init__(message, status_code=403)

class ValidationError(AppError):
    """Raised when an id, filter or payload value is missing or malformed."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class InvalidRoleError(ValidationError):
    def __init__(self, role: str):
        super().__init__(f"Invalid user role: {role}", details={"role": role})

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class SubjectNotFoundError(ResourceNotFoundError):
    def __init__(self, subject_id: int):
        AppError.__init__(self, "Subject not found or inactive", status_code=404, details={"subject_id": subject_id})

class ProfileNotFoundError(ResourceNotFoundError):
    """Raised when the caller has no faculty/student record for their role."""
    def __init__(self, role: str):
        AppError.__init__(self, f"{role.capitalize()} profile not found", status_code=404)

class ConflictDetectedError(AppError):
    """Raised when a write would double-book a classroom or faculty member."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class InternalError(AppError):
    """Generic failure surfaced to clients without internal details."""
    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message, status_code=500)


@contextmanager
def store_errors(*, action: str, user_id: int | None = None, target_id=None):
    """Translate unexpected database failures into a logged InternalError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception(
            "ACTION FAILED | user_id=%s | action=%s | target_id=%s",
            user_id,
            action,
            target_id,
        )
        raise InternalError() from exc
