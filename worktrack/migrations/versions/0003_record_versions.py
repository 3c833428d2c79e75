"""Add row versions for optimistic write checks

Revision ID: 0003_record_versions
Revises: 0002_leave_requests
Create Date: 2026-10-20 00:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0003_record_versions"
down_revision: Union[str, None] = "0002_leave_requests"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "attendance_records",
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.add_column(
        "leave_requests",
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )


def downgrade() -> None:
    op.drop_column("leave_requests", "version")
    op.drop_column("attendance_records", "version")
