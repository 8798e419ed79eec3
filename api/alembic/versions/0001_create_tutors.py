"""create tutors table

Revision ID: 0001_create_tutors
Revises:
Create Date: 2026-10-19
"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_create_tutors"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tutors",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(15), nullable=True),
        sa.Column("subject", sa.String(50), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_tutors_email"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_tutors_created_at", "tutors", ["created_at"])
    op.create_index("ix_tutors_subject_name", "tutors", ["subject", "name"])


def downgrade() -> None:
    op.drop_index("ix_tutors_subject_name", table_name="tutors")
    op.drop_index("ix_tutors_created_at", table_name="tutors")
    op.drop_table("tutors")
