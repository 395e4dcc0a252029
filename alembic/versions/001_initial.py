"""Initial tables: users, groups, catalogs, competitions, tries.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("firstname", sa.String(50), nullable=False),
        sa.Column("lastname", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "groups",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "user_groups",
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("group_id", sa.String(36), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "group_id"),
    )

    op.create_table(
        "catalogs",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("address", sa.String(255), nullable=False),
        sa.Column("description", sa.String(255), nullable=False, server_default=""),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "competitions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("catalog_id", sa.String(36), nullable=False),
        sa.Column("catalog_theme", sa.String(50), nullable=False),
        sa.Column("show", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("finished", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(["catalog_id"], ["catalogs.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_competitions_catalog_id"), "competitions", ["catalog_id"], unique=False)

    op.create_table(
        "tries",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("competition_id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("puzzle_id", sa.String(255), nullable=False),
        sa.Column("puzzle_index", sa.Integer(), nullable=False),
        sa.Column("puzzle_lvl", sa.String(255), nullable=False),
        sa.Column("step", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_answer", sa.String(255), nullable=True),
        sa.Column("last_move_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("score", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["competition_id"], ["competitions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "competition_id", "user_id", "puzzle_id", "puzzle_index", "step",
            name="uq_tries_identity",
        ),
    )
    op.create_index(op.f("ix_tries_competition_id"), "tries", ["competition_id"], unique=False)
    op.create_index(op.f("ix_tries_user_id"), "tries", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_tries_user_id"), table_name="tries")
    op.drop_index(op.f("ix_tries_competition_id"), table_name="tries")
    op.drop_table("tries")
    op.drop_index(op.f("ix_competitions_catalog_id"), table_name="competitions")
    op.drop_table("competitions")
    op.drop_table("catalogs")
    op.drop_table("user_groups")
    op.drop_table("groups")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
