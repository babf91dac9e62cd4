from collections.abc import Callable, Generator, Iterable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.security import decode_token
from app.db.session import SessionLocal
from app.models.user import User, UserRole
from app.services.bell_schedule import Clock, system_clock
from app.services.slot_assignment import SlotAssignmentService
from app.services.timetable_query import TimetableQueryService
from app.store.base import TimetableStore
from app.store.sql import SqlTimetableStore

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_clock(settings: Settings = Depends(get_settings)) -> Clock:
    return system_clock(settings.timetable_timezone)


def get_timetable_store(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> TimetableStore:
    return SqlTimetableStore(db, page_size=settings.store_scan_page_size)


def get_slot_service(store: TimetableStore = Depends(get_timetable_store)) -> SlotAssignmentService:
    return SlotAssignmentService(store)


def get_query_service(
    store: TimetableStore = Depends(get_timetable_store),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> TimetableQueryService:
    return TimetableQueryService(store, clock=clock, faculty_daily_cap=settings.faculty_daily_slot_cap)


def _request_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
    settings: Settings,
) -> str | None:
    if credentials is not None and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return request.cookies.get(settings.admin_cookie_name) or request.cookies.get(settings.student_cookie_name)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    token = _request_token(request, credentials, settings)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Please login first.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
    except JWTError as exc:
        raise credentials_exception from exc
    user_id = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if payload.get("role") != user.role.value:
        raise credentials_exception
    return user


def require_roles(*roles: UserRole) -> Callable[[User], User]:
    allowed_roles: Iterable[UserRole] = set(roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            labels = " or ".join(sorted(role.value.title() for role in allowed_roles))
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. {labels} privileges required.",
            )
        return current_user

    return role_checker
