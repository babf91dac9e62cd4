"""create users and timetable slots

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role_enum = sa.Enum("ADMIN", "STUDENT", name="user_role")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("usn", sa.String(length=50), nullable=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_usn", "users", ["usn"], unique=True)

    op.create_table(
        "timetable_slots",
        sa.Column("section", sa.String(length=50), primary_key=True, nullable=False),
        sa.Column("sort_key", sa.String(length=20), primary_key=True, nullable=False),
        sa.Column("day", sa.String(length=10), nullable=False),
        sa.Column("slot", sa.Integer(), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("faculty", sa.String(length=200), nullable=False),
        sa.Column("room", sa.String(length=100), nullable=False),
        sa.Column("type", sa.String(length=10), nullable=False),
        sa.UniqueConstraint("day", "slot", "faculty", name="uq_timetable_slots_day_slot_faculty"),
    )
    op.create_index("ix_timetable_slots_faculty", "timetable_slots", ["faculty"])


def downgrade() -> None:
    op.drop_index("ix_timetable_slots_faculty", table_name="timetable_slots")
    op.drop_table("timetable_slots")
    op.drop_index("ix_users_usn", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    user_role_enum.drop(op.get_bind(), checkfirst=True)
