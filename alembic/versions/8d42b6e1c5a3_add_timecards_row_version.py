"""add timecards row_version

Revision ID: 8d42b6e1c5a3
Revises: 3c1f0a9d2e77
Create Date: 2026-10-20 14:03:17.448126

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d42b6e1c5a3'
down_revision: Union[str, Sequence[str], None] = '3c1f0a9d2e77'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    with op.batch_alter_table("timecards") as batch_op:
        batch_op.add_column(
            sa.Column("row_version", sa.Integer(), nullable=False, server_default=sa.text("1"))
        )


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table("timecards") as batch_op:
        batch_op.drop_column("row_version")
