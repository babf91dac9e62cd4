import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class UserRole(str, Enum):
    admin = "ADMIN"
    student = "STUDENT"


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, name="user_role", values_callable=lambda roles: [role.value for role in roles]),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    # Admins sign in with email, students with their university roster number (USN).
    email: Mapped[str | None] = mapped_column(String(255), unique=True, index=True, nullable=True)
    usn: Mapped[str | None] = mapped_column(String(50), unique=True, index=True, nullable=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @property
    def identifier(self) -> str:
        if self.role == UserRole.admin:
            return self.email or ""
        return self.usn or ""
