from collections.abc import Callable, Generator, Iterable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.exceptions import UnauthenticatedError, UnauthorizedError
from app.core.security import decode_token
from app.db.session import SessionLocal
from app.models.user import User, UserRole
from app.services.schedule import CallerContext, resolve_caller

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise UnauthenticatedError()
    try:
        payload = decode_token(credentials.credentials)
        subject = payload.get("sub")
        if subject is None:
            raise UnauthenticatedError("Could not validate credentials")
        user_id = int(subject)
    except (JWTError, ValueError) as exc:
        raise UnauthenticatedError("Could not validate credentials") from exc

    user = db.get(User, user_id)
    if user is None:
        raise UnauthenticatedError("Could not validate credentials")
    if not user.is_active:
        raise UnauthorizedError("User account is inactive")
    return user


def require_roles(*roles: UserRole) -> Callable[[User], User]:
    allowed_roles: Iterable[UserRole] = set(roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise UnauthorizedError("Insufficient permissions")
        return current_user

    return role_checker


def get_caller(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CallerContext:
    return resolve_caller(db, current_user)
