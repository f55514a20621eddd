"""add timecards table

Revision ID: 3c1f0a9d2e77
Revises:
Create Date: 2026-10-19 09:12:44.201873

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d2e77'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "timecards",
        sa.Column("internal_key", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("timecard_id", sa.String(length=36), nullable=False),
        sa.Column("employee", sa.Integer(), nullable=False),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version", sa.String(), nullable=False),
        sa.Column("lines", sa.JSON(), nullable=False),
        sa.Column("transitions", sa.JSON(), nullable=False),
    )
    op.create_index("ix_timecards_timecard_id", "timecards", ["timecard_id"], unique=True)
    op.create_index("ix_timecards_employee", "timecards", ["employee"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_timecards_employee", table_name="timecards")
    op.drop_index("ix_timecards_timecard_id", table_name="timecards")
    op.drop_table("timecards")
