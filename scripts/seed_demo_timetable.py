"""Seed demo accounts and a sample week for one section.

Run:
  PYTHONPATH=backend python scripts/seed_demo_timetable.py
"""

from __future__ import annotations

import logging
import os

from sqlalchemy import select

from app.core.config import get_settings
from app.core.logging_config import configure_logging
from app.core.security import get_password_hash
from app.db.bootstrap import ensure_schema
from app.db.session import SessionLocal
from app.models.user import User, UserRole
from app.schemas.timetable import BatchSlotItem
from app.services.slot_assignment import SlotAssignmentService
from app.store.sql import SqlTimetableStore

logger = logging.getLogger("app.scripts.seed_demo_timetable")

DEFAULT_PASSWORD = os.getenv("DEMO_PASSWORD", "DemoPass123")
DEMO_SECTION = os.getenv("DEMO_SECTION", "3A")

DEMO_WEEK: dict[str, list[tuple[int, str, str, str, str]]] = {
    "MONDAY": [
        (1, "Data Structures", "RSH", "A-101", "THEORY"),
        (2, "Discrete Maths", "KLM", "A-101", "THEORY"),
        (3, "DBMS", "ABC", "A-102", "THEORY"),
        (5, "DBMS Lab", "ABC", "L-2", "LAB"),
        (6, "DBMS Lab", "PQR", "L-2", "LAB"),
    ],
    "WEDNESDAY": [
        (1, "Discrete Maths", "KLM", "A-101", "THEORY"),
        (3, "Data Structures", "RSH", "A-101", "THEORY"),
        (4, "Operating Systems", "XYZ", "A-103", "THEORY"),
    ],
    "FRIDAY": [
        (2, "Operating Systems", "XYZ", "A-103", "THEORY"),
        (4, "Data Structures Lab", "RSH", "L-1", "LAB"),
    ],
}


def _ensure_user(db, *, role: UserRole, name: str, email: str | None = None, usn: str | None = None) -> None:
    column = User.email if role == UserRole.admin else User.usn
    identifier = email if role == UserRole.admin else usn
    if db.execute(select(User).where(column == identifier)).scalar_one_or_none() is not None:
        logger.info("%s %s already exists", role.value.title(), identifier)
        return
    db.add(User(role=role, name=name, email=email, usn=usn, hashed_password=get_password_hash(DEFAULT_PASSWORD)))
    db.commit()
    logger.info("Created %s %s", role.value.lower(), identifier)


def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    ensure_schema()

    db = SessionLocal()
    try:
        _ensure_user(db, role=UserRole.admin, name="Demo Admin", email="admin.demo@example.com")
        _ensure_user(db, role=UserRole.student, name="Demo Student", usn="1DEMO21CS001")

        service = SlotAssignmentService(SqlTimetableStore(db, page_size=settings.store_scan_page_size))
        for day, rows in DEMO_WEEK.items():
            items = [
                BatchSlotItem(slot=slot, subject=subject, faculty=faculty, room=room, type=slot_type)
                for slot, subject, faculty, room, slot_type in rows
            ]
            outcome = service.add_batch(DEMO_SECTION, day, items)
            for rejection in outcome.rejected:
                logger.info("Skipped %s slot %s: %s", day, rejection.slot, rejection.reason)
    finally:
        db.close()


if __name__ == "__main__":
    main()
