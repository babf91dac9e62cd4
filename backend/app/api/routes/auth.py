import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.config import Settings, get_settings
from app.core.security import create_access_token, get_password_hash, verify_password
from app.models.user import User, UserRole
from app.schemas.common import ApiResponse
from app.schemas.user import AdminLogin, AdminRegister, LoginOut, StudentLogin, StudentRegister, UserOut

router = APIRouter()
logger = logging.getLogger(__name__)


def _create_user(db: Session, user: User, duplicate_detail: str) -> User:
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=duplicate_detail) from exc
    db.refresh(user)
    return user


def _issue_login(response: Response, user: User, cookie_name: str, settings: Settings) -> LoginOut:
    token = create_access_token(user.id, user.role.value)
    response.set_cookie(
        key=cookie_name,
        value=token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        path="/",
    )
    return LoginOut(access_token=token, user=UserOut.model_validate(user))


def _clear_login(response: Response, cookie_name: str, settings: Settings) -> None:
    response.delete_cookie(
        key=cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        path="/",
    )


@router.post("/admin/register", response_model=ApiResponse[UserOut], status_code=status.HTTP_201_CREATED)
def register_admin(payload: AdminRegister, db: Session = Depends(get_db)) -> ApiResponse[UserOut]:
    existing = db.execute(select(User).where(User.email == payload.email)).scalar_one_or_none()
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Admin with this email already exists")
    user = _create_user(
        db,
        User(
            role=UserRole.admin,
            name=payload.name,
            email=payload.email,
            hashed_password=get_password_hash(payload.password),
        ),
        "Admin with this email already exists",
    )
    logger.info("Registered admin %s", user.email)
    return ApiResponse(message="Admin registered successfully", data=UserOut.model_validate(user))


@router.post("/admin/login", response_model=ApiResponse[LoginOut])
def login_admin(
    payload: AdminLogin,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ApiResponse[LoginOut]:
    user = db.execute(
        select(User).where(User.email == payload.email, User.role == UserRole.admin)
    ).scalar_one_or_none()
    if user is None or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    return ApiResponse(message="Login successful", data=_issue_login(response, user, settings.admin_cookie_name, settings))


@router.post("/admin/logout", response_model=ApiResponse[None])
def logout_admin(response: Response, settings: Settings = Depends(get_settings)) -> ApiResponse[None]:
    _clear_login(response, settings.admin_cookie_name, settings)
    return ApiResponse(message="Admin logged out successfully")


@router.post("/student/register", response_model=ApiResponse[UserOut], status_code=status.HTTP_201_CREATED)
def register_student(payload: StudentRegister, db: Session = Depends(get_db)) -> ApiResponse[UserOut]:
    existing = db.execute(select(User).where(User.usn == payload.usn)).scalar_one_or_none()
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Student with this USN already exists")
    user = _create_user(
        db,
        User(
            role=UserRole.student,
            name=payload.name,
            usn=payload.usn,
            hashed_password=get_password_hash(payload.password),
        ),
        "Student with this USN already exists",
    )
    logger.info("Registered student %s", user.usn)
    return ApiResponse(message="Student registered successfully", data=UserOut.model_validate(user))


@router.post("/student/login", response_model=ApiResponse[LoginOut])
def login_student(
    payload: StudentLogin,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ApiResponse[LoginOut]:
    user = db.execute(
        select(User).where(User.usn == payload.usn, User.role == UserRole.student)
    ).scalar_one_or_none()
    if user is None or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid USN or password")
    return ApiResponse(
        message="Login successful",
        data=_issue_login(response, user, settings.student_cookie_name, settings),
    )


@router.post("/student/logout", response_model=ApiResponse[None])
def logout_student(response: Response, settings: Settings = Depends(get_settings)) -> ApiResponse[None]:
    _clear_login(response, settings.student_cookie_name, settings)
    return ApiResponse(message="Student logged out successfully")
