"""Add projects, judges and options tables.

Revision ID: 8c4d2e6f7a1b
Revises: 3f1a2b4c5d6e
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8c4d2e6f7a1b"
down_revision: Union[str, Sequence[str], None] = "3f1a2b4c5d6e"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "options",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("curr_table_num", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("num_groups", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("group_sizes", sa.JSON(), nullable=False),
        sa.Column("group_table_nums", sa.JSON(), nullable=False),
        sa.Column("multi_group", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("manual_switches", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("url", sa.String(512), nullable=True),
        sa.Column("location", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("group", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("created_by_user_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_projects_location", "projects", ["location"])
    op.create_index("idx_projects_group", "projects", ["group"])

    op.create_table(
        "judges",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("group", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email"),
    )
    op.create_index("idx_judges_group", "judges", ["group"])


def downgrade() -> None:
    op.drop_index("idx_judges_group", table_name="judges")
    op.drop_table("judges")
    op.drop_index("idx_projects_group", table_name="projects")
    op.drop_index("idx_projects_location", table_name="projects")
    op.drop_table("projects")
    op.drop_table("options")
